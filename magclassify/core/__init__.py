"""Core module for magnet sensing."""

from .types import (
    Vector3,
    Quaternion,
    CalibrationParameters,
    MotionSample,
    DetectionState,
    CalibrationStatus,
    ValidationResult,
    SourceStats,
)
from .vector import VectorOps
from .quaternion import QuaternionOps
from .validation import SampleValidator
from .config import Config, load_config
from .errors import (
    MagClassifyError,
    InsufficientCalibrationData,
    CalibrationBufferOverflow,
    SensorUnavailable,
    ClassifierUnavailable,
    ClassificationFailed,
    InvalidNumericInput,
)

__all__ = [
    "Vector3",
    "Quaternion",
    "CalibrationParameters",
    "MotionSample",
    "DetectionState",
    "CalibrationStatus",
    "ValidationResult",
    "SourceStats",
    "VectorOps",
    "QuaternionOps",
    "SampleValidator",
    "Config",
    "load_config",
    "MagClassifyError",
    "InsufficientCalibrationData",
    "CalibrationBufferOverflow",
    "SensorUnavailable",
    "ClassifierUnavailable",
    "ClassificationFailed",
    "InvalidNumericInput",
]
