"""Hard-iron / soft-iron estimation from a recorded motion window.

The fit is a per-axis bounding box: the centre of the box is the hard-iron
offset, and each axis is scaled so its range matches the mean range of
the three axes. It assumes the device was turned through enough
orientations for the samples to span an axis-aligned ellipsoid.
"""

import logging
from dataclasses import replace
from typing import List, Optional
import numpy as np
from numpy.typing import NDArray

from ..core.errors import CalibrationBufferOverflow, InsufficientCalibrationData
from ..core.types import CalibrationParameters, Quaternion, Vector3
from ..processing.correction import FieldCorrector
from ..processing.frames import FrameTransformer

logger = logging.getLogger(__name__)

MIN_CALIBRATION_SAMPLES = 100
MIN_AXIS_RANGE_UT = 1.0


class CalibrationEstimator:
    """Accumulates raw samples and fits calibration parameters."""

    def __init__(
        self,
        min_samples: int = MIN_CALIBRATION_SAMPLES,
        max_samples: Optional[int] = None,
        min_axis_range: float = MIN_AXIS_RANGE_UT,
    ):
        """Initialize estimator.

        Args:
            min_samples: finish() fails unless more samples than this were
                accepted.
            max_samples: Buffer cap; None disables it.
            min_axis_range: Floor on each axis range in uT.
        """
        self.min_samples = min_samples
        self.max_samples = max_samples
        self.min_axis_range = min_axis_range

        self._samples: List[NDArray[np.float64]] = []
        self._orientations: List[Optional[Quaternion]] = []

    def begin(self) -> None:
        """Discard any accumulated samples."""
        self._samples.clear()
        self._orientations.clear()

    def accept(self, sample: Vector3, orientation: Optional[Quaternion] = None) -> None:
        """Append one raw sample.

        Args:
            sample: Raw magnetometer reading in uT.
            orientation: Orientation at the time of the sample, used to
                estimate the reference field.

        Raises:
            CalibrationBufferOverflow: If the buffer cap is reached.
        """
        if self.max_samples is not None and len(self._samples) >= self.max_samples:
            raise CalibrationBufferOverflow(self.max_samples)

        self._samples.append(sample.to_array())
        self._orientations.append(orientation)

    @property
    def sample_count(self) -> int:
        """Number of samples accumulated in the current run."""
        return len(self._samples)

    def finish(self) -> CalibrationParameters:
        """Fit calibration parameters from the accumulated samples.

        The buffer is emptied whether or not the fit succeeds.

        Returns:
            New calibration snapshot with is_calibrated set.

        Raises:
            InsufficientCalibrationData: If min_samples or fewer samples
                were accepted.
        """
        samples = self._samples
        orientations = self._orientations
        self._samples = []
        self._orientations = []

        count = len(samples)
        if count <= self.min_samples:
            raise InsufficientCalibrationData(count, self.min_samples)

        data = np.array(samples)
        mins = np.min(data, axis=0)
        maxs = np.max(data, axis=0)

        offset = (mins + maxs) / 2.0
        ranges = np.maximum(maxs - mins, self.min_axis_range)
        scale = np.mean(ranges) / ranges

        params = CalibrationParameters(
            hard_iron_offset=Vector3.from_array(offset),
            soft_iron_scale=Vector3.from_array(scale),
            is_calibrated=True,
            sample_count=count,
        )

        reference = self._estimate_reference_field(data, orientations, params)
        params = replace(params, reference_field=reference)

        logger.info(
            "Calibration fit from %d samples: offset=(%.1f, %.1f, %.1f) uT, "
            "scale=(%.3f, %.3f, %.3f), reference |B|=%.1f uT",
            count,
            offset[0], offset[1], offset[2],
            scale[0], scale[1], scale[2],
            reference.magnitude,
        )
        return params

    @staticmethod
    def _estimate_reference_field(
        data: NDArray[np.float64],
        orientations: List[Optional[Quaternion]],
        params: CalibrationParameters,
    ) -> Vector3:
        """Mean corrected field in the reference frame.

        Only samples that carried an orientation contribute. Returns the
        zero vector when none did.
        """
        corrected = FieldCorrector.correct_many(data, params)

        rotated = [
            FrameTransformer.to_reference_frame(Vector3.from_array(c), q).to_array()
            for c, q in zip(corrected, orientations)
            if q is not None
        ]
        if not rotated:
            return Vector3.zero()

        return Vector3.from_array(np.mean(rotated, axis=0))
