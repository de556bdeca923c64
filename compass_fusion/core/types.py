"""Data types for compass heading estimation."""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
import numpy as np
from numpy.typing import NDArray


class ListenerState(IntEnum):
    """Lifecycle state of the compass listener.

    The integer values are the ones reported by ``getStatus``.
    """
    STOPPED = 0
    STARTING = 1
    RUNNING = 2
    ERROR_FAILED_TO_START = 3


class ChannelKind(Enum):
    """Kind of sensor channel the listener subscribes to."""
    GRAVITY = "gravity"
    MAGNETIC_FIELD = "magnetic_field"


def as_vector(values) -> NDArray[np.float64]:
    """Convert a 3-component sequence to a float vector.

    Raises:
        ValueError: If the input does not have exactly 3 components.
    """
    vec = np.array(values, dtype=np.float64).reshape(-1)
    if vec.shape != (3,):
        raise ValueError(f"Expected 3 components, got {vec.size}")
    return vec


@dataclass(frozen=True)
class SensorSample:
    """Single raw sample from one sensor channel.

    Attributes:
        x, y, z: Vector components (m/s^2 for gravity, uT for magnetic field).
        timestamp: Arrival time in milliseconds, stamped by the sensor source.
    """
    x: float
    y: float
    z: float
    timestamp: int

    @classmethod
    def from_vector(cls, values, timestamp: int) -> "SensorSample":
        """Create a sample from any 3-component sequence."""
        vec = as_vector(values)
        return cls(x=float(vec[0]), y=float(vec[1]), z=float(vec[2]),
                   timestamp=int(timestamp))

    @property
    def vector(self) -> NDArray[np.float64]:
        """Sample vector [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def magnitude(self) -> float:
        """Euclidean norm of the sample vector."""
        return float(np.linalg.norm(self.vector))


@dataclass(frozen=True)
class HeadingReading:
    """Most recent fused heading.

    Attributes:
        heading: Degrees in [0, 360), NaN for degenerate input.
        timestamp: Arrival time of the most recent sample on either
            channel, in milliseconds.
    """
    heading: float = 0.0
    timestamp: int = 0

    def to_dict(self) -> dict:
        """Convert to the compass heading object returned to clients.

        Magnetic and true heading are always identical, so the accuracy
        (their difference) is always zero.
        """
        return {
            "magneticHeading": self.heading,
            "trueHeading": self.heading,
            "headingAccuracy": 0,
            "timestamp": self.timestamp,
        }


@dataclass
class ValidationResult:
    """Result of sensor data validation."""
    is_valid: bool
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.is_valid = False
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)
