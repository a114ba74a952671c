"""Classifier contract and a nearest-centroid adapter.

The position classifier is an external collaborator: anything with a
`classify(field) -> ClassificationResult` method can be plugged into the
pipeline. CentroidClassifier loads a small JSON model of per-label mean
device-frame field vectors.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Protocol
import numpy as np

from ..core.errors import ClassificationFailed, ClassifierUnavailable
from ..core.types import Vector3
from .labels import Direction, NEUTRAL_DIRECTION

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationResult:
    """Label plus per-label probability mapping."""
    label: Direction
    probabilities: Dict[Direction, float] = field(default_factory=dict)

    @property
    def confidence(self) -> float:
        """Probability of the chosen label."""
        return self.probabilities.get(self.label, 0.0)

    @classmethod
    def neutral(cls) -> "ClassificationResult":
        """Result published when no magnet is present."""
        return cls(label=NEUTRAL_DIRECTION, probabilities={})

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        metadata = self.label.metadata
        return {
            "label": self.label.value,
            "confidence": self.confidence,
            "probabilities": {d.value: p for d, p in self.probabilities.items()},
            "color": metadata.color,
            "icon": metadata.icon,
            "indicator_offset": list(metadata.indicator_offset),
        }


class Classifier(Protocol):
    """Protocol for magnet position classifiers."""

    def classify(self, device_frame_field: Vector3) -> ClassificationResult:
        """Classify a device-frame magnet field vector."""
        ...


class CentroidClassifier:
    """Nearest-centroid classifier over the Direction label set.

    Probabilities are a softmax over negative Euclidean distances divided
    by a temperature in uT.
    """

    def __init__(self, centroids: Dict[Direction, Vector3], temperature: float = 25.0):
        """Initialize classifier.

        Args:
            centroids: Mean device-frame field per label, uT.
            temperature: Softmax temperature in uT.

        Raises:
            ClassifierUnavailable: If the model is empty or malformed.
        """
        if not centroids:
            raise ClassifierUnavailable("Model has no centroids")
        if not temperature > 0:
            raise ClassifierUnavailable(f"Invalid temperature: {temperature}")

        self._labels = list(centroids.keys())
        self._centroids = np.array([centroids[d].to_array() for d in self._labels])
        if not np.all(np.isfinite(self._centroids)):
            raise ClassifierUnavailable("Model contains non-finite centroids")
        self.temperature = temperature

    @classmethod
    def load(cls, model_path: str) -> "CentroidClassifier":
        """Load a model file.

        Format::

            {"labels": {"Top": [x, y, z], ...}, "temperature": 25.0}

        Raises:
            ClassifierUnavailable: If the file is missing or invalid.
        """
        path = Path(model_path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            centroids = {
                Direction(name): Vector3(*(float(c) for c in vec))
                for name, vec in data["labels"].items()
            }
            temperature = float(data.get("temperature", 25.0))
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise ClassifierUnavailable(f"Failed to load model {path}: {e}") from e

        classifier = cls(centroids, temperature=temperature)
        logger.info("Loaded centroid model %s (%d labels)", path, len(centroids))
        return classifier

    @property
    def labels(self) -> list:
        """Labels known to the model."""
        return list(self._labels)

    def classify(self, device_frame_field: Vector3) -> ClassificationResult:
        """Classify a device-frame magnet field.

        Raises:
            ClassificationFailed: If the input is non-finite.
        """
        if not device_frame_field.is_finite():
            raise ClassificationFailed(
                f"Non-finite classifier input: {device_frame_field}"
            )

        distances = np.linalg.norm(
            self._centroids - device_frame_field.to_array(), axis=1
        )
        logits = -distances / self.temperature
        logits -= np.max(logits)
        weights = np.exp(logits)
        probs = weights / np.sum(weights)

        probabilities = {d: 0.0 for d in Direction}
        for label, p in zip(self._labels, probs):
            probabilities[label] = float(p)

        best = self._labels[int(np.argmin(distances))]
        return ClassificationResult(label=best, probabilities=probabilities)
