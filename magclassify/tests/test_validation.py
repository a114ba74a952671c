"""Tests for sample validation."""

import pytest

from magclassify.core.errors import InvalidNumericInput
from magclassify.core.types import Quaternion, Vector3
from magclassify.core.validation import SampleValidator


class TestSampleValidator:
    """Tests for SampleValidator class."""

    def test_valid_sample_passes(self, config, sample_quaternion):
        """Finite field and unit quaternion should pass validation."""
        validator = SampleValidator(config)
        result = validator.validate(Vector3(20.0, 5.0, -45.0), sample_quaternion)

        assert result.is_valid
        assert len(result.errors) == 0
        assert len(result.warnings) == 0

    @pytest.mark.parametrize("field", [
        Vector3(float("nan"), 0.0, 0.0),
        Vector3(0.0, float("inf"), 0.0),
        Vector3(0.0, 0.0, float("-inf")),
    ])
    def test_non_finite_field(self, config, identity_quaternion, field):
        validator = SampleValidator(config)
        result = validator.validate(field, identity_quaternion)

        assert not result.is_valid
        assert any("Non-finite field" in e for e in result.errors)

    def test_non_finite_orientation(self, config):
        validator = SampleValidator(config)
        result = validator.validate(
            Vector3(1.0, 2.0, 3.0), Quaternion(w=float("nan"), x=0.0, y=0.0, z=0.0)
        )

        assert not result.is_valid
        assert any("Non-finite orientation" in e for e in result.errors)

    def test_diverged_orientation(self, config):
        """Norm far from one should be an error."""
        validator = SampleValidator(config)
        result = validator.validate(
            Vector3(1.0, 2.0, 3.0), Quaternion(w=1.5, x=0.0, y=0.0, z=0.0)
        )

        assert not result.is_valid
        assert any("not a unit quaternion" in e for e in result.errors)

    def test_orientation_drift_warning(self, config):
        """Small norm drift should only warn."""
        validator = SampleValidator(config)
        result = validator.validate(
            Vector3(1.0, 2.0, 3.0), Quaternion(w=1.05, x=0.0, y=0.0, z=0.0)
        )

        assert result.is_valid
        assert any("norm drift" in w for w in result.warnings)

    def test_beyond_sensor_range_warning(self, config, identity_quaternion):
        validator = SampleValidator(config)
        result = validator.validate(Vector3(5000.0, 0.0, 0.0), identity_quaternion)

        assert result.is_valid
        assert any("mx beyond sensor range" in w for w in result.warnings)

    def test_require_valid_raises(self, config, identity_quaternion):
        validator = SampleValidator(config)

        with pytest.raises(InvalidNumericInput):
            validator.require_valid(Vector3(float("nan"), 0.0, 0.0), identity_quaternion)

    def test_require_valid_returns_result(self, config, identity_quaternion):
        validator = SampleValidator(config)
        result = validator.require_valid(Vector3(1.0, 2.0, 3.0), identity_quaternion)

        assert result.is_valid
