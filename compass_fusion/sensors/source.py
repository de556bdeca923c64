"""Sensor source interfaces.

A sensor source lists the channels it offers per kind, and delivers
timestamped samples to subscribed listeners until they unsubscribe.
"""

from dataclasses import dataclass
from typing import List, Protocol

from ..core.types import ChannelKind, SensorSample


class SensorSourceError(Exception):
    """Base exception for sensor source errors."""
    pass


@dataclass(frozen=True)
class ChannelHandle:
    """Identifies one physical sensor of a given kind."""
    kind: ChannelKind
    name: str


class SampleListener(Protocol):
    """Receives samples from subscribed channels."""

    def on_sample(self, kind: ChannelKind, sample: SensorSample) -> None:
        ...


class SensorSource(Protocol):
    """Platform sensor service."""

    def list_channels(self, kind: ChannelKind) -> List[ChannelHandle]:
        ...

    def subscribe(self, handle: ChannelHandle, listener: SampleListener, rate_hint: int) -> None:
        ...

    def unsubscribe(self, handle: ChannelHandle, listener: SampleListener) -> None:
        ...
