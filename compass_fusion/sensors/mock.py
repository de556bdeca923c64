"""In-memory sensor source for tests and replays."""

import logging
import threading
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.types import ChannelKind, SensorSample
from .source import ChannelHandle, SampleListener, SensorSourceError

logger = logging.getLogger(__name__)


class MockSensorSource:
    """Sensor source whose samples are pushed explicitly with ``emit``.

    Every subscribe and unsubscribe call is recorded in ``calls`` so tests can
    assert on the exact interaction with the source.
    """

    def __init__(
        self,
        channels: Optional[Dict[ChannelKind, Iterable[str]]] = None,
        fail_on_subscribe: bool = False,
    ):
        """Initialize mock source.

        Args:
            channels: Channel names offered per kind. Defaults to one
                channel of each kind. Pass an empty list for a kind to
                simulate a device without that sensor.
            fail_on_subscribe: If True, every subscribe call raises
                SensorSourceError after being recorded.
        """
        self.fail_on_subscribe = fail_on_subscribe
        if channels is None:
            channels = {
                ChannelKind.GRAVITY: ["mock-gravity"],
                ChannelKind.MAGNETIC_FIELD: ["mock-magnetic"],
            }
        self._channels: Dict[ChannelKind, List[ChannelHandle]] = {
            kind: [ChannelHandle(kind=kind, name=name) for name in names]
            for kind, names in channels.items()
        }
        self._lock = threading.Lock()
        self._subscribers: Dict[ChannelHandle, List[SampleListener]] = defaultdict(list)
        self.calls: List[Tuple[str, ChannelHandle]] = []

    def list_channels(self, kind: ChannelKind) -> List[ChannelHandle]:
        return list(self._channels.get(kind, []))

    def subscribe(self, handle: ChannelHandle, listener: SampleListener, rate_hint: int) -> None:
        with self._lock:
            self.calls.append(("subscribe", handle))
            if self.fail_on_subscribe:
                raise SensorSourceError(f"Cannot register listener on {handle.name}")
            if listener not in self._subscribers[handle]:
                self._subscribers[handle].append(listener)
        logger.debug("Subscribed to %s (rate hint %d)", handle.name, rate_hint)

    def unsubscribe(self, handle: ChannelHandle, listener: SampleListener) -> None:
        with self._lock:
            self.calls.append(("unsubscribe", handle))
            if listener in self._subscribers[handle]:
                self._subscribers[handle].remove(listener)
        logger.debug("Unsubscribed from %s", handle.name)

    def emit(self, kind: ChannelKind, vector, timestamp: int) -> int:
        """Deliver a sample to every listener subscribed to a channel of ``kind``.

        Args:
            kind: Channel kind to deliver on.
            vector: Raw 3-component sample.
            timestamp: Arrival time in milliseconds.

        Returns:
            Number of listeners the sample was delivered to.
        """
        sample = SensorSample.from_vector(vector, timestamp)
        with self._lock:
            targets = [
                listener
                for handle in self._channels.get(kind, [])
                for listener in self._subscribers[handle]
            ]

        for listener in targets:
            listener.on_sample(kind, sample)
        return len(targets)

    def is_subscribed(self, kind: ChannelKind) -> bool:
        """Whether any listener is subscribed to a channel of ``kind``."""
        with self._lock:
            return any(self._subscribers[h] for h in self._channels.get(kind, []))

    @property
    def subscribe_count(self) -> int:
        return sum(1 for call, _ in self.calls if call == "subscribe")

    @property
    def unsubscribe_count(self) -> int:
        return sum(1 for call, _ in self.calls if call == "unsubscribe")
