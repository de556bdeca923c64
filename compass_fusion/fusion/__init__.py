"""Sensor fusion module for compass heading estimation."""

from .heading import ALPHA, ChannelFilter, compute_heading, low_pass

__all__ = [
    "ALPHA",
    "ChannelFilter",
    "compute_heading",
    "low_pass",
]
