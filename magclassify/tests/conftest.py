"""Pytest fixtures for magnet sensing tests."""

import json
import pytest
import numpy as np
from numpy.typing import NDArray

from magclassify.classification import CentroidClassifier, ClassificationResult, Direction
from magclassify.core.config import Config
from magclassify.core.errors import ClassificationFailed
from magclassify.core.types import CalibrationParameters, Quaternion, Vector3


class ManualClock:
    """Settable time source for controller and coordinator tests."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt


@pytest.fixture
def config() -> Config:
    """Create default configuration for tests."""
    return Config()


@pytest.fixture
def sync_config() -> Config:
    """Configuration with the classifier invoked on the sample path."""
    cfg = Config()
    cfg.classifier.async_dispatch = False
    return cfg


@pytest.fixture
def clock() -> ManualClock:
    """Manual clock starting at t=0."""
    return ManualClock()


@pytest.fixture
def identity_quaternion() -> Quaternion:
    """Create identity quaternion (no rotation)."""
    return Quaternion.identity()


@pytest.fixture
def sample_quaternion() -> Quaternion:
    """Create a sample non-identity quaternion.

    Represents approximately 30 degree rotation about Z axis.
    """
    angle = np.deg2rad(30)
    return Quaternion(
        w=np.cos(angle / 2),
        x=0.0,
        y=0.0,
        z=np.sin(angle / 2),
    )


@pytest.fixture
def random_quaternions() -> list:
    """Twenty random unit quaternions."""
    rng = np.random.default_rng(7)
    quats = []
    for _ in range(20):
        q = rng.normal(size=4)
        q /= np.linalg.norm(q)
        quats.append(Quaternion.from_array(q))
    return quats


@pytest.fixture
def offset_params() -> CalibrationParameters:
    """Hard-iron offset of 50 uT on x, identity scale."""
    return CalibrationParameters(
        hard_iron_offset=Vector3(50.0, 0.0, 0.0),
        soft_iron_scale=Vector3(1.0, 1.0, 1.0),
        is_calibrated=True,
        sample_count=150,
    )


@pytest.fixture
def ellipsoid_samples() -> NDArray[np.float64]:
    """Samples on an axis-aligned ellipsoid.

    Centre (30, -20, 10) uT, semi-axes (60, 45, 30) uT. The six axis
    extremes are included so the bounding box is exact.
    """
    center = np.array([30.0, -20.0, 10.0])
    axes = np.array([60.0, 45.0, 30.0])

    rng = np.random.default_rng(42)
    directions = rng.normal(size=(200, 3))
    directions /= np.linalg.norm(directions, axis=1, keepdims=True)
    extremes = np.vstack([np.eye(3), -np.eye(3)])
    directions = np.vstack([directions, extremes])

    return center + directions * axes


@pytest.fixture
def centroids() -> dict:
    """Per-label magnet field centroids in uT."""
    return {
        Direction.TOP: Vector3(0.0, 200.0, 0.0),
        Direction.RIGHT: Vector3(200.0, 0.0, 0.0),
        Direction.LEFT: Vector3(-200.0, 0.0, 0.0),
        Direction.DOWN: Vector3(0.0, -200.0, 0.0),
    }


@pytest.fixture
def centroid_classifier(centroids) -> CentroidClassifier:
    """Nearest-centroid classifier over four positions."""
    return CentroidClassifier(centroids, temperature=25.0)


@pytest.fixture
def model_file(tmp_path, centroids):
    """Centroid model written to a JSON file."""
    path = tmp_path / "model.json"
    path.write_text(json.dumps({
        "labels": {d.value: list(v.to_array()) for d, v in centroids.items()},
        "temperature": 25.0,
    }))
    return path


class FixedClassifier:
    """Classifier returning a constant label and recording its inputs."""

    def __init__(self, label: Direction = Direction.TOP):
        self.label = label
        self.inputs = []

    def classify(self, device_frame_field: Vector3) -> ClassificationResult:
        self.inputs.append(device_frame_field)
        return ClassificationResult(label=self.label, probabilities={self.label: 1.0})


class FailingClassifier:
    """Classifier whose every call raises."""

    def __init__(self, error: Exception):
        self.error = error

    def classify(self, device_frame_field: Vector3) -> ClassificationResult:
        raise self.error


@pytest.fixture
def fixed_classifier() -> FixedClassifier:
    return FixedClassifier()


@pytest.fixture
def failing_classifier() -> FailingClassifier:
    """Classifier raising ClassificationFailed."""
    return FailingClassifier(ClassificationFailed("model exploded"))


@pytest.fixture
def crashing_classifier() -> FailingClassifier:
    """Classifier raising an unexpected exception type."""
    return FailingClassifier(RuntimeError("segfault-ish"))
