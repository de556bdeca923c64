"""Compass listener lifecycle.

The listener subscribes to a gravity channel and a magnetic field channel,
smooths every raw sample, fuses the pair into a heading and keeps the most
recent reading available for clients. To save power it unsubscribes when the
heading has not been read for ``idle_timeout_ms``.

All state is guarded by one re-entrant lock shared by sample delivery, client
requests and the start-timeout callback.
"""

import logging
import math
import threading
from typing import Callable, List, Optional

from ..core.config import Config
from ..core.timing import Cancellable, Clock, Scheduler, SystemClock, ThreadingScheduler
from ..core.types import ChannelKind, HeadingReading, ListenerState, SensorSample
from ..fusion.heading import ChannelFilter, compute_heading
from ..sensors.source import ChannelHandle, SensorSource, SensorSourceError

logger = logging.getLogger(__name__)

START_TIMEOUT_MS = 2000
FAILED_TO_START_MESSAGE = "Compass listener failed to start."


class CompassError(Exception):
    """Base exception for compass listener errors."""
    pass


class SensorUnavailableError(CompassError):
    """A required sensor channel could not be found or subscribed."""
    pass


class StartTimeoutError(CompassError):
    """The listener did not come up within the start window."""
    pass


ErrorCallback = Callable[[CompassError], None]


class CompassListener:
    """Listens to the compass sensors and stores the latest heading.

    Usage:
        listener = CompassListener(source)
        reading = listener.get_heading()   # starts sensing if needed
        ...
        listener.close()

    Note:
        Nothing moves the listener from STARTING to RUNNING, so once the
        start window elapses the listener reports ERROR_FAILED_TO_START even
        while samples keep arriving. The next ``get_heading`` restarts it.
    """

    def __init__(
        self,
        source: SensorSource,
        config: Optional[Config] = None,
        clock: Optional[Clock] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        """Initialize listener in the STOPPED state.

        Args:
            source: Sensor source providing the two channels.
            config: System configuration with listener settings.
            clock: Millisecond time source.
            scheduler: Runs the deferred start-timeout check.
        """
        listener_cfg = (config if config is not None else Config()).listener
        self._source = source
        self._clock = clock if clock is not None else SystemClock()
        self._scheduler = scheduler if scheduler is not None else ThreadingScheduler()
        self._rate_hint = listener_cfg.rate_hint
        self._idle_timeout_ms = int(listener_cfg.idle_timeout_ms)

        self._lock = threading.RLock()
        self._state = ListenerState.STOPPED
        self._gravity = ChannelFilter()
        self._magnetic = ChannelFilter()
        self._reading = HeadingReading()
        self._timestamp = 0
        self._last_access_time = 0

        self._subscriptions: List[ChannelHandle] = []
        self._start_timer: Optional[Cancellable] = None
        self._start_generation = 0
        self._error_callbacks: List[ErrorCallback] = []

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def start(self) -> ListenerState:
        """Start listening to the compass sensors.

        Returns:
            Listener state after the call.
        """
        with self._lock:
            return self._start_locked()

    def stop(self) -> None:
        """Stop listening to the compass sensors."""
        with self._lock:
            self._stop_locked()

    def get_status(self) -> ListenerState:
        """Current listener state."""
        with self._lock:
            return self._state

    def get_heading(self, on_error: Optional[ErrorCallback] = None) -> HeadingReading:
        """Return the most recent heading, starting the sensors if needed.

        Does not wait for fresh data: right after a start the stored reading
        may be stale or the zero default.

        Args:
            on_error: Called with a StartTimeoutError if the start triggered
                or awaited by this read times out.

        Returns:
            Latest heading reading.

        Raises:
            SensorUnavailableError: If the sensors could not be started.
        """
        with self._lock:
            self._last_access_time = self._clock.now()

            if self._state != ListenerState.RUNNING:
                if self._start_locked() == ListenerState.ERROR_FAILED_TO_START:
                    raise SensorUnavailableError("Compass sensors are not available")

            if on_error is not None and self._state == ListenerState.STARTING:
                self._error_callbacks.append(on_error)

            return self._reading

    def set_timeout(self, timeout_ms: int) -> None:
        """Set how long the heading may go unread before sensors are shut off."""
        with self._lock:
            self._idle_timeout_ms = int(timeout_ms)
        logger.debug("Idle timeout set to %d ms", timeout_ms)

    def get_timeout(self) -> int:
        """Idle timeout in milliseconds."""
        with self._lock:
            return self._idle_timeout_ms

    def close(self) -> None:
        """Stop the listener for good (host teardown)."""
        self.stop()

    # ------------------------------------------------------------------
    # Sample delivery
    # ------------------------------------------------------------------

    def on_sample(self, kind: ChannelKind, sample: SensorSample) -> None:
        """Handle one raw sample delivered by the sensor source.

        Args:
            kind: Channel the sample arrived on.
            sample: Raw timestamped sample.
        """
        with self._lock:
            self._timestamp = sample.timestamp

            if kind is ChannelKind.GRAVITY:
                self._gravity.update(sample.vector)
            else:
                self._magnetic.update(sample.vector)

            heading = self._reading.heading
            if self._gravity.has_value and self._magnetic.has_value:
                heading = compute_heading(self._gravity.value, self._magnetic.value)
                if not math.isfinite(heading):
                    logger.debug("Degenerate compass input at %d ms", self._timestamp)
            # The reading is stamped with every sample, fused or not.
            self._reading = HeadingReading(heading=heading, timestamp=self._timestamp)

            idle_ms = self._timestamp - self._last_access_time
            if idle_ms > self._idle_timeout_ms:
                logger.info("Heading not read for %d ms, shutting off sensors", idle_ms)
                self._stop_locked()

    # ------------------------------------------------------------------
    # Internals (lock held)
    # ------------------------------------------------------------------

    def _start_locked(self) -> ListenerState:
        if self._state in (ListenerState.RUNNING, ListenerState.STARTING):
            return self._state

        gravity_channels = self._source.list_channels(ChannelKind.GRAVITY)
        magnetic_channels = self._source.list_channels(ChannelKind.MAGNETIC_FIELD)

        # Leftovers of a start attempt that timed out.
        self._release_subscriptions()

        if not gravity_channels or not magnetic_channels:
            logger.warning(
                "Compass sensors not found (gravity: %d, magnetic field: %d)",
                len(gravity_channels), len(magnetic_channels),
            )
            self._fail_start()
            return self._state

        try:
            for handle in (gravity_channels[0], magnetic_channels[0]):
                self._source.subscribe(handle, self, self._rate_hint)
                self._subscriptions.append(handle)
        except SensorSourceError as e:
            logger.warning("Failed to subscribe to compass sensors: %s", e)
            self._release_subscriptions()
            self._fail_start()
            return self._state

        self._last_access_time = self._clock.now()
        self._set_state(ListenerState.STARTING)
        self._schedule_start_timeout()
        return self._state

    def _stop_locked(self) -> None:
        if self._state != ListenerState.STOPPED:
            self._release_subscriptions()
            logger.info("Compass listener stopped")
        self._cancel_start_timeout()
        self._error_callbacks.clear()
        self._set_state(ListenerState.STOPPED)

    def _fail_start(self) -> None:
        self._cancel_start_timeout()
        self._set_state(ListenerState.ERROR_FAILED_TO_START)

    def _release_subscriptions(self) -> None:
        for handle in self._subscriptions:
            self._source.unsubscribe(handle, self)
        self._subscriptions.clear()

    def _schedule_start_timeout(self) -> None:
        self._cancel_start_timeout()
        generation = self._start_generation
        self._start_timer = self._scheduler.schedule(
            START_TIMEOUT_MS, lambda: self._on_start_timeout(generation)
        )

    def _cancel_start_timeout(self) -> None:
        self._start_generation += 1
        if self._start_timer is not None:
            self._start_timer.cancel()
            self._start_timer = None

    def _on_start_timeout(self, generation: int) -> None:
        """Fail the start attempt if the listener is still starting."""
        with self._lock:
            if generation != self._start_generation or self._state != ListenerState.STARTING:
                return
            self._start_timer = None
            self._set_state(ListenerState.ERROR_FAILED_TO_START)
            callbacks, self._error_callbacks = self._error_callbacks, []
            logger.warning("Compass listener still starting after %d ms", START_TIMEOUT_MS)

        error = StartTimeoutError(FAILED_TO_START_MESSAGE)
        for callback in callbacks:
            try:
                callback(error)
            except Exception as e:
                logger.error("Error in start-timeout callback: %s", e, exc_info=True)

    def _set_state(self, state: ListenerState) -> None:
        if state != self._state:
            logger.debug("Compass listener %s -> %s", self._state.name, state.name)
        self._state = state

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def last_access_time(self) -> int:
        with self._lock:
            return self._last_access_time

    @property
    def timestamp(self) -> int:
        """Arrival time of the most recent sample on either channel."""
        with self._lock:
            return self._timestamp

    @property
    def reading(self) -> HeadingReading:
        """Stored heading, without touching the access time."""
        with self._lock:
            return self._reading

    @property
    def gravity(self):
        """Smoothed gravity vector, None before the first sample."""
        with self._lock:
            return self._gravity.value

    @property
    def magnetic(self):
        """Smoothed magnetic field vector, None before the first sample."""
        with self._lock:
            return self._magnetic.value

    @property
    def is_subscribed(self) -> bool:
        with self._lock:
            return bool(self._subscriptions)

    def __enter__(self) -> "CompassListener":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self):
        return f"<CompassListener(state={self._state.name}, heading={self._reading.heading:.1f})>"
