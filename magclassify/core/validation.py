"""Input validation for magnetometer samples and orientations."""

from .config import Config
from .errors import InvalidNumericInput
from .types import Quaternion, ValidationResult, Vector3


class SampleValidator:
    """Validates raw field samples and orientation quaternions.

    Non-finite values must never reach the vector math, so they are
    reported as errors and the sample is dropped by the caller.
    """

    def __init__(self, config: Config):
        """Initialize validator with configuration.

        Args:
            config: System configuration with validation thresholds.
        """
        self._config = config

    def validate(self, field: Vector3, orientation: Quaternion) -> ValidationResult:
        """Validate one (raw field, orientation) pair.

        Args:
            field: Raw magnetometer reading in uT.
            orientation: Device orientation quaternion.

        Returns:
            ValidationResult with validation status and any errors/warnings.
        """
        result = ValidationResult(is_valid=True)

        self._check_field(field, result)
        self._check_orientation(orientation, result)

        return result

    def require_valid(self, field: Vector3, orientation: Quaternion) -> ValidationResult:
        """Validate and raise on error.

        Raises:
            InvalidNumericInput: If the sample fails validation.
        """
        result = self.validate(field, orientation)
        if not result.is_valid:
            raise InvalidNumericInput("; ".join(result.errors))
        return result

    def _check_field(self, field: Vector3, result: ValidationResult) -> None:
        """Validate magnetometer components."""
        if not field.is_finite():
            result.add_error(
                f"Non-finite field value: ({field.x}, {field.y}, {field.z})"
            )
            return

        range_ut = self._config.sensor.range_ut
        for axis, value in (("mx", field.x), ("my", field.y), ("mz", field.z)):
            if abs(value) > range_ut:
                result.add_warning(f"{axis} beyond sensor range: {value:.1f} uT")

    def _check_orientation(self, q: Quaternion, result: ValidationResult) -> None:
        """Validate orientation quaternion."""
        if not q.is_finite():
            result.add_error(
                f"Non-finite orientation: ({q.w}, {q.x}, {q.y}, {q.z})"
            )
            return

        cfg = self._config.validation.orientation
        norm_error = abs(q.norm - 1.0)

        if norm_error > cfg.divergence_threshold:
            result.add_error(f"Orientation is not a unit quaternion: norm={q.norm:.4f}")
        elif norm_error > cfg.norm_tolerance:
            result.add_warning(f"Orientation norm drift: {q.norm:.6f}")
