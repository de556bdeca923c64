"""Compass listener lifecycle module."""

from .controller import (
    START_TIMEOUT_MS,
    CompassError,
    CompassListener,
    SensorUnavailableError,
    StartTimeoutError,
)

__all__ = [
    "START_TIMEOUT_MS",
    "CompassError",
    "CompassListener",
    "SensorUnavailableError",
    "StartTimeoutError",
]
