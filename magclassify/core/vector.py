"""Three-vector arithmetic."""

import numpy as np

from .types import Vector3


class VectorOps:
    """Static methods for 3-vector operations."""

    @staticmethod
    def add(a: Vector3, b: Vector3) -> Vector3:
        """Component-wise sum a + b."""
        return Vector3(a.x + b.x, a.y + b.y, a.z + b.z)

    @staticmethod
    def subtract(a: Vector3, b: Vector3) -> Vector3:
        """Component-wise difference a - b."""
        return Vector3(a.x - b.x, a.y - b.y, a.z - b.z)

    @staticmethod
    def scale(v: Vector3, factor: float) -> Vector3:
        """Multiply every component by a scalar."""
        return Vector3(v.x * factor, v.y * factor, v.z * factor)

    @staticmethod
    def magnitude(v: Vector3) -> float:
        """Euclidean norm."""
        return float(np.linalg.norm(v.to_array()))

    @staticmethod
    def dot(a: Vector3, b: Vector3) -> float:
        """Scalar product."""
        return a.x * b.x + a.y * b.y + a.z * b.z

    @staticmethod
    def cross(a: Vector3, b: Vector3) -> Vector3:
        """Vector product a x b."""
        return Vector3(
            a.y * b.z - a.z * b.y,
            a.z * b.x - a.x * b.z,
            a.x * b.y - a.y * b.x,
        )

    @staticmethod
    def diag_multiply(diag: Vector3, v: Vector3) -> Vector3:
        """Product of a diagonal 3x3 matrix with a vector.

        Args:
            diag: Diagonal entries of the matrix.
            v: Vector to transform.

        Returns:
            diag(d) @ v, i.e. the component-wise product.
        """
        return Vector3(diag.x * v.x, diag.y * v.y, diag.z * v.z)
