"""Magnetometer calibration: estimation and run orchestration."""

from .estimator import (
    CalibrationEstimator,
    MIN_CALIBRATION_SAMPLES,
)
from .controller import (
    CalibrationController,
    CalibrationState,
    Idle,
    Calibrating,
    Calibrated,
    Failed,
)

__all__ = [
    'CalibrationEstimator',
    'MIN_CALIBRATION_SAMPLES',
    'CalibrationController',
    'CalibrationState',
    'Idle',
    'Calibrating',
    'Calibrated',
    'Failed',
]
