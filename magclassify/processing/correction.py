"""Hard-iron and soft-iron correction of raw magnetometer samples."""

import numpy as np
from numpy.typing import NDArray

from ..core.types import CalibrationParameters, Vector3
from ..core.vector import VectorOps


class FieldCorrector:
    """Applies a calibration snapshot to raw samples.

    corrected = scale * (raw - offset), with the soft-iron scale treated as
    a diagonal matrix.
    """

    @staticmethod
    def correct(raw: Vector3, params: CalibrationParameters) -> Vector3:
        """Correct one raw sample.

        Args:
            raw: Raw magnetometer reading in uT.
            params: Calibration snapshot to apply.

        Returns:
            Corrected field in uT, device frame.
        """
        centered = VectorOps.subtract(raw, params.hard_iron_offset)
        return VectorOps.diag_multiply(params.soft_iron_scale, centered)

    @staticmethod
    def correct_many(
        raw: NDArray[np.float64],
        params: CalibrationParameters,
    ) -> NDArray[np.float64]:
        """Correct an N x 3 array of raw samples."""
        offset = params.hard_iron_offset.to_array()
        scale = params.soft_iron_scale.to_array()
        return (np.asarray(raw, dtype=np.float64) - offset) * scale
