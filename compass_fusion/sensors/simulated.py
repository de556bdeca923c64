"""Simulated sensor source producing synthetic compass data.

Generates gravity and magnetic field samples for a device lying flat and
optionally rotating about the vertical axis, with Gaussian noise. Useful for
development without hardware.
"""

import logging
import math
import threading
from collections import defaultdict
from typing import Dict, List, Optional
import numpy as np

from ..core.config import Config
from ..core.timing import Clock, SystemClock
from ..core.types import ChannelKind, SensorSample
from .source import ChannelHandle, SampleListener

logger = logging.getLogger(__name__)


class SimulatedSensorSource:
    """Background-thread sensor source.

    The sampling thread starts with the first subscription and stops once the
    last listener has unsubscribed.
    """

    def __init__(self, config: Config, clock: Optional[Clock] = None, seed: Optional[int] = None):
        """Initialize simulated source.

        Args:
            config: System configuration with simulation settings.
            clock: Time source used to stamp samples.
            seed: Seed for the noise generator.
        """
        self._sim_cfg = config.simulation
        self._clock = clock if clock is not None else SystemClock()
        self._rng = np.random.default_rng(seed)

        self._handles = {
            ChannelKind.GRAVITY: ChannelHandle(ChannelKind.GRAVITY, "simulated-gravity"),
            ChannelKind.MAGNETIC_FIELD: ChannelHandle(ChannelKind.MAGNETIC_FIELD, "simulated-magnetic"),
        }
        self._gravity = np.array(self._sim_cfg.gravity, dtype=np.float64)
        self._magnetic = np.array(self._sim_cfg.magnetic, dtype=np.float64)

        self._lock = threading.Lock()
        self._subscribers: Dict[ChannelHandle, List[SampleListener]] = defaultdict(list)
        self._thread: Optional[threading.Thread] = None
        self._retired: List[threading.Thread] = []
        self._stop_event: Optional[threading.Event] = None
        self._start_ms = self._clock.now()
        self.sample_count = 0

    def list_channels(self, kind: ChannelKind) -> List[ChannelHandle]:
        return [self._handles[kind]]

    def subscribe(self, handle: ChannelHandle, listener: SampleListener, rate_hint: int) -> None:
        with self._lock:
            if listener not in self._subscribers[handle]:
                self._subscribers[handle].append(listener)
            if self._thread is None:
                self._start_thread()
        logger.debug("Subscribed to %s (rate hint %d)", handle.name, rate_hint)

    def unsubscribe(self, handle: ChannelHandle, listener: SampleListener) -> None:
        with self._lock:
            if listener in self._subscribers[handle]:
                self._subscribers[handle].remove(listener)
            if self._thread is not None and not any(self._subscribers.values()):
                # May run on the sampling thread itself, so signal without joining.
                self._stop_event.set()
                self._retired = [t for t in self._retired if t.is_alive()]
                self._retired.append(self._thread)
                self._thread = None
                self._stop_event = None
                logger.info("Simulated sensors idle, sampling stopped")
        logger.debug("Unsubscribed from %s", handle.name)

    def _start_thread(self) -> None:
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._sampling_loop,
            args=(self._stop_event,),
            name="Simulated-Sensor-Thread",
            daemon=True,
        )
        self._thread.start()
        logger.info("Simulated sensors sampling at %d Hz", self._sim_cfg.sample_rate_hz)

    def _sampling_loop(self, stop_event: threading.Event) -> None:
        interval = 1.0 / self._sim_cfg.sample_rate_hz

        while not stop_event.is_set():
            for kind in (ChannelKind.GRAVITY, ChannelKind.MAGNETIC_FIELD):
                if stop_event.is_set():
                    break
                self._deliver(kind)
            stop_event.wait(interval)

    def _deliver(self, kind: ChannelKind) -> None:
        handle = self._handles[kind]
        with self._lock:
            targets = list(self._subscribers[handle])
        if not targets:
            return

        timestamp = self._clock.now()
        sample = SensorSample.from_vector(self.generate(kind, timestamp), timestamp)
        self.sample_count += 1
        for listener in targets:
            listener.on_sample(kind, sample)

    def generate(self, kind: ChannelKind, timestamp: int) -> np.ndarray:
        """Synthetic raw vector for ``kind`` at ``timestamp`` milliseconds."""
        if kind is ChannelKind.GRAVITY:
            noise = self._rng.normal(0.0, self._sim_cfg.gravity_noise, 3)
            return self._gravity + noise

        elapsed_s = (timestamp - self._start_ms) / 1000.0
        angle = math.radians(self._sim_cfg.rotation_dps * elapsed_s)
        c, s = math.cos(angle), math.sin(angle)
        rotation = np.array([
            [c, -s, 0.0],
            [s, c, 0.0],
            [0.0, 0.0, 1.0],
        ])
        noise = self._rng.normal(0.0, self._sim_cfg.magnetic_noise, 3)
        return rotation @ self._magnetic + noise

    @property
    def is_sampling(self) -> bool:
        with self._lock:
            return self._thread is not None

    def close(self) -> None:
        """Stop sampling and wait for the thread to exit."""
        with self._lock:
            threads = self._retired + ([self._thread] if self._thread is not None else [])
            if self._stop_event is not None:
                self._stop_event.set()
            self._thread = None
            self._stop_event = None
            self._retired = []
            self._subscribers.clear()

        for thread in threads:
            if thread is not threading.current_thread():
                thread.join(timeout=2.0)
        logger.info("Simulated sensors closed (%d samples)", self.sample_count)

    def __enter__(self) -> "SimulatedSensorSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
