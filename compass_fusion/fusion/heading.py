"""Heading computation from gravity and magnetic field vectors.

The device heading is derived with two cross products: the magnetic field
crossed with gravity points east in the device frame, and gravity crossed with
east points north. The heading is the angle of the device y axis measured in
that horizontal east/north basis.
"""

import math
from typing import Optional
import numpy as np
from numpy.typing import NDArray

from ..core.types import as_vector

ALPHA = 0.15
"""Blending factor of the exponential smoothing filter."""


def compute_heading(gravity, magnetic) -> float:
    """Compute the compass heading in degrees.

    Degenerate input (a zero vector, or gravity parallel to the magnetic
    field) is not guarded and yields NaN.

    Args:
        gravity: Gravity (accelerometer) vector, any magnitude.
        magnetic: Magnetic field vector, any magnitude.

    Returns:
        Heading in degrees in [0, 360), or NaN.
    """
    g = as_vector(gravity)
    m = as_vector(magnetic)

    with np.errstate(divide="ignore", invalid="ignore"):
        east = np.cross(m, g)
        east = east / np.linalg.norm(east)
        g = g / np.linalg.norm(g)
        north = np.cross(g, east)

    heading_rad = math.atan2(east[1], north[1])
    degrees = heading_rad / math.pi * 180.0
    return (degrees + 360.0) % 360.0


def low_pass(raw, previous=None) -> NDArray[np.float64]:
    """Exponentially smooth a raw sample towards the previous output.

    Each component moves ``ALPHA`` of the way from the previous output to the
    raw input. Without a previous output the raw input is returned as is.

    Args:
        raw: Raw 3-component sample.
        previous: Previous smoothed vector, or None.

    Returns:
        New smoothed vector.
    """
    output = as_vector(raw)
    if previous is None:
        return output

    prev = as_vector(previous)
    return prev + ALPHA * (output - prev)


class ChannelFilter:
    """Smoothed vector of one sensor channel."""

    def __init__(self):
        self._value: Optional[NDArray[np.float64]] = None
        self._sample_count = 0

    def update(self, raw) -> NDArray[np.float64]:
        """Blend a raw sample into the smoothed vector and return it."""
        self._value = low_pass(raw, self._value)
        self._sample_count += 1
        return self._value.copy()

    @property
    def value(self) -> Optional[NDArray[np.float64]]:
        """Current smoothed vector, None before the first sample."""
        return None if self._value is None else self._value.copy()

    @property
    def has_value(self) -> bool:
        return self._value is not None

    @property
    def sample_count(self) -> int:
        return self._sample_count
