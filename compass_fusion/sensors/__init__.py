"""Sensor source module for compass heading estimation."""

from .source import ChannelHandle, SampleListener, SensorSource, SensorSourceError
from .mock import MockSensorSource
from .simulated import SimulatedSensorSource

__all__ = [
    "ChannelHandle",
    "SampleListener",
    "SensorSource",
    "SensorSourceError",
    "MockSensorSource",
    "SimulatedSensorSource",
]
