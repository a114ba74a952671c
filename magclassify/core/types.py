"""Data types for magnetic field correction and magnet detection."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class Vector3:
    """Immutable 3-component vector.

    Field quantities are expressed in uT (microtesla).
    """
    x: float
    y: float
    z: float

    @classmethod
    def zero(cls) -> "Vector3":
        """Return the zero vector."""
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_array(cls, arr: NDArray[np.float64]) -> "Vector3":
        """Create from numpy array [x, y, z]."""
        return cls(x=float(arr[0]), y=float(arr[1]), z=float(arr[2]))

    def to_array(self) -> NDArray[np.float64]:
        """Convert to numpy array [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def magnitude(self) -> float:
        """Euclidean norm of the vector."""
        return float(np.sqrt(self.x**2 + self.y**2 + self.z**2))

    def is_finite(self) -> bool:
        """Check all components are finite."""
        return bool(np.all(np.isfinite([self.x, self.y, self.z])))

    def __add__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def __mul__(self, factor: float) -> "Vector3":
        return Vector3(self.x * factor, self.y * factor, self.z * factor)

    __rmul__ = __mul__

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class Quaternion:
    """Unit quaternion representing device orientation.

    Convention: [w, x, y, z] where w is the scalar component. Rotating a
    device-frame vector by this quaternion yields its reference-frame
    coordinates.
    """
    w: float
    x: float
    y: float
    z: float

    @classmethod
    def identity(cls) -> "Quaternion":
        """Return identity quaternion (no rotation)."""
        return cls(w=1.0, x=0.0, y=0.0, z=0.0)

    @classmethod
    def from_array(cls, arr: NDArray[np.float64]) -> "Quaternion":
        """Create from numpy array [w, x, y, z]."""
        return cls(w=float(arr[0]), x=float(arr[1]),
                   y=float(arr[2]), z=float(arr[3]))

    def to_array(self) -> NDArray[np.float64]:
        """Convert to numpy array [w, x, y, z]."""
        return np.array([self.w, self.x, self.y, self.z], dtype=np.float64)

    @property
    def real(self) -> float:
        """Scalar part."""
        return self.w

    @property
    def imag(self) -> NDArray[np.float64]:
        """Vector part [x, y, z]."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @property
    def norm(self) -> float:
        """Euclidean norm of quaternion."""
        return float(np.sqrt(self.w**2 + self.x**2 + self.y**2 + self.z**2))

    def is_valid(self, tolerance: float = 0.01) -> bool:
        """Check if quaternion is unit quaternion within tolerance."""
        return self.is_finite() and abs(self.norm - 1.0) <= tolerance

    def is_finite(self) -> bool:
        """Check all components are finite."""
        return bool(np.all(np.isfinite([self.w, self.x, self.y, self.z])))

    def normalized(self) -> "Quaternion":
        """Return normalized copy."""
        n = self.norm
        if n < 1e-10:
            return Quaternion.identity()
        return Quaternion(w=self.w/n, x=self.x/n, y=self.y/n, z=self.z/n)


@dataclass(frozen=True)
class CalibrationParameters:
    """Hard-iron/soft-iron calibration snapshot.

    Instances are never modified; a successful calibration run publishes a
    new snapshot in place of the previous one.
    """
    hard_iron_offset: Vector3 = field(default_factory=Vector3.zero)
    soft_iron_scale: Vector3 = field(default_factory=lambda: Vector3(1.0, 1.0, 1.0))
    reference_field: Vector3 = field(default_factory=Vector3.zero)
    is_calibrated: bool = False
    sample_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "hard_iron_offset": self.hard_iron_offset.to_dict(),
            "soft_iron_scale": self.soft_iron_scale.to_dict(),
            "reference_field": self.reference_field.to_dict(),
            "is_calibrated": self.is_calibrated,
            "sample_count": self.sample_count,
        }


@dataclass(frozen=True)
class MotionSample:
    """One sample from the sensor source: raw field plus orientation."""
    timestamp: float  # Seconds, monotonic within a source
    raw_field: Vector3  # uT, device frame
    orientation: Quaternion


@dataclass(frozen=True)
class DetectionState:
    """Per-sample result of correction and presence detection."""
    corrected_field: Vector3
    magnet_field: Vector3
    magnitude: float
    magnet_present: bool


class CalibrationStatus(str, Enum):
    """Externally visible calibration status."""
    IDLE = "idle"
    CALIBRATING = "calibrating"
    CALIBRATED = "calibrated"
    FAILED = "failed"


@dataclass
class ValidationResult:
    """Result of sample validation."""
    is_valid: bool
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.is_valid = False
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


@dataclass
class SourceStats:
    """Counters for samples delivered by a source."""
    total_samples: int = 0
    timeouts: int = 0
    last_timestamp: Optional[float] = None
