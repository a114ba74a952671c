"""Device/reference frame transforms and earth-field cancellation.

The orientation quaternion rotates device-frame vectors into the
reference frame. A quantity known in the reference frame (the earth
field) is brought into the device frame with the inverse rotation before
it is subtracted from a device-frame reading.
"""

from ..core.quaternion import QuaternionOps
from ..core.types import CalibrationParameters, Quaternion, Vector3
from ..core.vector import VectorOps


class FrameTransformer:
    """Rotates vectors between device and reference frames."""

    @staticmethod
    def to_reference_frame(v: Vector3, orientation: Quaternion) -> Vector3:
        """Express a device-frame vector in the reference frame."""
        return QuaternionOps.rotate(v, orientation)

    @staticmethod
    def to_device_frame(v: Vector3, orientation: Quaternion) -> Vector3:
        """Express a reference-frame vector in the device frame."""
        return QuaternionOps.rotate_inverse(v, orientation)


class EarthFieldCanceller:
    """Removes the calibrated earth field from corrected readings.

    The reference field stored in the calibration snapshot is a
    reference-frame vector. For each sample it is rotated into the current
    device frame and subtracted, leaving the magnet-only field.
    """

    @staticmethod
    def cancel(
        corrected: Vector3,
        orientation: Quaternion,
        params: CalibrationParameters,
    ) -> Vector3:
        """Subtract the earth field as seen in the current device frame.

        Args:
            corrected: Hard/soft-iron corrected field, device frame.
            orientation: Current device orientation.
            params: Calibration snapshot holding the reference field.

        Returns:
            Estimated magnet field in uT, device frame.
        """
        earth_in_device = FrameTransformer.to_device_frame(
            params.reference_field, orientation
        )
        return VectorOps.subtract(corrected, earth_in_device)
