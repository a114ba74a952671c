"""Quaternion operations and vector rotation."""

import numpy as np
from numpy.typing import NDArray

from .types import Quaternion, Vector3


class QuaternionOps:
    """Static methods for quaternion operations."""

    @staticmethod
    def multiply(q1: Quaternion, q2: Quaternion) -> Quaternion:
        """Multiply two quaternions (Hamilton product).

        Args:
            q1: First quaternion.
            q2: Second quaternion.

        Returns:
            Product quaternion q1 * q2.
        """
        w = q1.w * q2.w - q1.x * q2.x - q1.y * q2.y - q1.z * q2.z
        x = q1.w * q2.x + q1.x * q2.w + q1.y * q2.z - q1.z * q2.y
        y = q1.w * q2.y - q1.x * q2.z + q1.y * q2.w + q1.z * q2.x
        z = q1.w * q2.z + q1.x * q2.y - q1.y * q2.x + q1.z * q2.w
        return Quaternion(w=w, x=x, y=y, z=z)

    @staticmethod
    def conjugate(q: Quaternion) -> Quaternion:
        """Compute quaternion conjugate.

        Args:
            q: Input quaternion.

        Returns:
            Conjugate quaternion.
        """
        return Quaternion(w=q.w, x=-q.x, y=-q.y, z=-q.z)

    @staticmethod
    def inverse(q: Quaternion) -> Quaternion:
        """Compute quaternion inverse.

        Equal to the conjugate for unit quaternions; divides by the squared
        norm otherwise.

        Args:
            q: Input quaternion (non-zero).

        Returns:
            Inverse quaternion.
        """
        n2 = q.w**2 + q.x**2 + q.y**2 + q.z**2
        return Quaternion(w=q.w / n2, x=-q.x / n2, y=-q.y / n2, z=-q.z / n2)

    @staticmethod
    def from_axis_angle(axis: NDArray[np.float64], angle: float) -> Quaternion:
        """Build a unit quaternion rotating by angle (rad) about axis."""
        axis = np.asarray(axis, dtype=np.float64)
        n = np.linalg.norm(axis)
        if n < 1e-12:
            return Quaternion.identity()
        axis = axis / n
        s = np.sin(angle / 2.0)
        return Quaternion(
            w=float(np.cos(angle / 2.0)),
            x=float(axis[0] * s),
            y=float(axis[1] * s),
            z=float(axis[2] * s),
        )

    @staticmethod
    def rotate(v: Vector3, q: Quaternion) -> Vector3:
        """Actively rotate a vector by a unit quaternion.

        Computes v' = v + 2 * (w * (u x v) + u x (u x v)) with u the vector
        part of q, which equals q * v * q^-1 without building the
        intermediate pure quaternion.

        Args:
            v: Vector to rotate.
            q: Unit quaternion.

        Returns:
            Rotated vector.
        """
        u = q.imag
        vec = v.to_array()
        uv = np.cross(u, vec)
        uuv = np.cross(u, uv)
        return Vector3.from_array(vec + 2.0 * (q.real * uv + uuv))

    @staticmethod
    def rotate_inverse(v: Vector3, q: Quaternion) -> Vector3:
        """Rotate a vector by the inverse of a unit quaternion."""
        return QuaternionOps.rotate(v, QuaternionOps.inverse(q))

