"""Classifier contract, label set and dispatch."""

from .labels import Direction, DirectionMetadata, DIRECTION_METADATA, NEUTRAL_DIRECTION
from .classifier import Classifier, ClassificationResult, CentroidClassifier
from .dispatch import InlineDispatcher, ThreadedDispatcher

__all__ = [
    "Direction",
    "DirectionMetadata",
    "DIRECTION_METADATA",
    "NEUTRAL_DIRECTION",
    "Classifier",
    "ClassificationResult",
    "CentroidClassifier",
    "InlineDispatcher",
    "ThreadedDispatcher",
]
