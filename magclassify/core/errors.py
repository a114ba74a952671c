"""Exceptions raised by the magnet sensing pipeline."""


class MagClassifyError(Exception):
    """Base exception for magnet sensing errors."""
    pass


class InsufficientCalibrationData(MagClassifyError):
    """Calibration window produced too few samples to estimate parameters."""

    def __init__(self, sample_count: int, minimum: int):
        self.sample_count = sample_count
        self.minimum = minimum
        super().__init__(
            f"Insufficient calibration data: {sample_count} samples "
            f"(need more than {minimum})"
        )


class CalibrationBufferOverflow(MagClassifyError):
    """Calibration buffer exceeded its sample cap."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Calibration buffer exceeded {limit} samples")


class SensorUnavailable(MagClassifyError):
    """Sample source could not be started."""
    pass


class ClassifierUnavailable(MagClassifyError):
    """Classifier model could not be loaded."""
    pass


class ClassificationFailed(MagClassifyError):
    """Classifier failed to produce a result for an input."""
    pass


class InvalidNumericInput(MagClassifyError):
    """Sample or orientation contains non-finite values."""
    pass
