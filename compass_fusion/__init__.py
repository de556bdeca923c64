"""Compass heading estimation from gravity and magnetic field sensors.

This package provides:
- Heading fusion and exponential smoothing of raw sensor vectors
- A compass listener with idle shutdown and start timeout
- Request dispatch for host bridges
"""

__version__ = "1.0.0"

from .core import Config, HeadingReading, ListenerState, load_config
from .fusion import compute_heading, low_pass
from .listener import (
    CompassError,
    CompassListener,
    SensorUnavailableError,
    StartTimeoutError,
)
from .plugin import CompassPlugin, PluginResult, ResultStatus

__all__ = [
    "Config",
    "HeadingReading",
    "ListenerState",
    "load_config",
    "compute_heading",
    "low_pass",
    "CompassError",
    "CompassListener",
    "SensorUnavailableError",
    "StartTimeoutError",
    "CompassPlugin",
    "PluginResult",
    "ResultStatus",
]
