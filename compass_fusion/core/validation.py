"""Input validation for sensor samples."""

import numpy as np

from .types import ChannelKind, SensorSample, ValidationResult
from .config import Config


class SampleValidator:
    """Checks raw compass samples for plausibility.

    Validation is advisory: results are meant to be logged, the fusion
    engine processes whatever it is given.
    """

    def __init__(self, config: Config):
        """Initialize validator with configuration.

        Args:
            config: System configuration with validation thresholds.
        """
        self._config = config

    def validate(self, kind: ChannelKind, sample: SensorSample) -> ValidationResult:
        """Validate one sample of the given channel.

        Args:
            kind: Channel the sample was delivered on.
            sample: Raw sample.

        Returns:
            ValidationResult with validation status and any errors/warnings.
        """
        result = ValidationResult(is_valid=True)

        self._check_finite(sample, result)
        if not result.is_valid:
            return result

        if sample.magnitude == 0.0:
            result.add_error(f"Zero {kind.value} vector")
            return result

        if kind is ChannelKind.GRAVITY:
            self._check_gravity(sample, result)
        else:
            self._check_magnetic(sample, result)

        return result

    def _check_finite(self, sample: SensorSample, result: ValidationResult) -> None:
        """Check all components are finite (not NaN or Inf)."""
        for axis, val in zip("xyz", (sample.x, sample.y, sample.z)):
            if not np.isfinite(val):
                result.add_error(f"Non-finite {axis} component: {val}")

    def _check_gravity(self, sample: SensorSample, result: ValidationResult) -> None:
        cfg = self._config.validation
        magnitude = sample.magnitude

        if abs(magnitude - cfg.gravity_nominal) > cfg.gravity_tolerance:
            result.add_warning(
                f"Gravity magnitude {magnitude:.2f} deviates from "
                f"expected {cfg.gravity_nominal:.2f} +/- {cfg.gravity_tolerance:.2f} m/s^2"
            )

    def _check_magnetic(self, sample: SensorSample, result: ValidationResult) -> None:
        cfg = self._config.validation
        magnitude = sample.magnitude

        if magnitude < cfg.min_field_ut:
            result.add_warning(f"Magnetic field too weak: {magnitude:.1f} uT")
        elif magnitude > cfg.max_field_ut:
            result.add_warning(f"Magnetic field too strong: {magnitude:.1f} uT")

