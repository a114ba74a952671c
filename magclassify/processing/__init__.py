"""Per-sample field processing: correction, frame transforms, detection."""

from .correction import FieldCorrector
from .frames import FrameTransformer, EarthFieldCanceller
from .detection import (
    MagnetDetector,
    DebouncedDetector,
    PresenceDetector,
    build_detector,
    MAGNET_THRESHOLD_UT,
)

__all__ = [
    "FieldCorrector",
    "FrameTransformer",
    "EarthFieldCanceller",
    "MagnetDetector",
    "DebouncedDetector",
    "PresenceDetector",
    "build_detector",
    "MAGNET_THRESHOLD_UT",
]
