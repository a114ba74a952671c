"""Magnet presence detection.

MagnetDetector is a stateless threshold on the magnet-field magnitude; a
single sample crossing the threshold flips presence. DebouncedDetector
wraps any detector and requires N consecutive agreeing decisions before
the reported state changes.
"""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)

MAGNET_THRESHOLD_UT = 100.0


class PresenceDetector(Protocol):
    """Protocol for magnitude-based presence detectors."""

    def detect(self, magnitude: float) -> bool:
        """Return True when a magnet is considered present."""
        ...


class MagnetDetector:
    """Strict greater-than threshold on field magnitude."""

    def __init__(self, threshold_ut: float = MAGNET_THRESHOLD_UT):
        """Initialize detector.

        Args:
            threshold_ut: Presence threshold in uT.
        """
        self.threshold_ut = threshold_ut

    def detect(self, magnitude: float) -> bool:
        """Return True when magnitude exceeds the threshold."""
        return magnitude > self.threshold_ut


class DebouncedDetector:
    """Hysteresis layer over another detector.

    The reported state only changes after `samples` consecutive raw
    decisions disagree with it.
    """

    def __init__(self, detector: PresenceDetector, samples: int = 3):
        """Initialize debounced detector.

        Args:
            detector: Underlying per-sample detector.
            samples: Consecutive agreeing decisions needed to switch state.

        Raises:
            ValueError: If samples is less than 1.
        """
        if samples < 1:
            raise ValueError(f"samples must be >= 1, got {samples}")

        self._detector = detector
        self.samples = samples
        self._state = False
        self._streak = 0

    def detect(self, magnitude: float) -> bool:
        """Feed one magnitude and return the debounced presence state."""
        raw = self._detector.detect(magnitude)

        if raw == self._state:
            self._streak = 0
            return self._state

        self._streak += 1
        if self._streak >= self.samples:
            self._state = raw
            self._streak = 0
            logger.debug("Magnet presence changed to %s", raw)

        return self._state

    @property
    def state(self) -> bool:
        """Current debounced state."""
        return self._state

    def reset(self) -> None:
        """Reset to 'no magnet'."""
        self._state = False
        self._streak = 0


def build_detector(threshold_ut: float, debounce_samples: int = 1) -> PresenceDetector:
    """Create a detector, wrapped in a debounce layer when requested."""
    detector = MagnetDetector(threshold_ut)
    if debounce_samples > 1:
        return DebouncedDetector(detector, debounce_samples)
    return detector
