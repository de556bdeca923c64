"""Core module for compass heading estimation."""

from .types import (
    ListenerState,
    ChannelKind,
    SensorSample,
    HeadingReading,
    ValidationResult,
    as_vector,
)
from .validation import SampleValidator
from .timing import Clock, Scheduler, SystemClock, ThreadingScheduler
from .config import Config, load_config

__all__ = [
    "ListenerState",
    "ChannelKind",
    "SensorSample",
    "HeadingReading",
    "ValidationResult",
    "as_vector",
    "SampleValidator",
    "Clock",
    "Scheduler",
    "SystemClock",
    "ThreadingScheduler",
    "Config",
    "load_config",
]
