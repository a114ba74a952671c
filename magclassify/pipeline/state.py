"""Published state exposed to the consumer layer."""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional

from ..classification.classifier import ClassificationResult
from ..core.types import CalibrationStatus, DetectionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PublishedState:
    """Snapshot of everything a UI or logger would display."""
    calibration_status: CalibrationStatus = CalibrationStatus.IDLE
    calibration_progress: float = 0.0  # Percent
    detection: Optional[DetectionState] = None
    classification: ClassificationResult = field(
        default_factory=ClassificationResult.neutral
    )
    classifier_status: str = "Classifier not loaded"
    status_message: str = ""
    recording: bool = False
    samples_processed: int = 0
    samples_rejected: int = 0
    classifier_dropped: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "calibration_status": self.calibration_status.value,
            "calibration_progress": self.calibration_progress,
            "status": self.status_message,
            "classifier_status": self.classifier_status,
            "recording": self.recording,
            "samples_processed": self.samples_processed,
            "samples_rejected": self.samples_rejected,
            "classifier_dropped": self.classifier_dropped,
        }
        result.update(self.classification.to_dict())

        if self.detection is not None:
            result.update({
                "corrected": self.detection.corrected_field.to_dict(),
                "field": self.detection.magnet_field.to_dict(),
                "magnitude": self.detection.magnitude,
                "magnet_present": self.detection.magnet_present,
            })

        return result


StateCallback = Callable[[PublishedState], None]


class StatePublisher:
    """Thread-safe holder of the latest PublishedState.

    The sample path and the classifier worker both write here; each write
    replaces the whole snapshot under a lock.
    """

    def __init__(self, initial: Optional[PublishedState] = None):
        self._lock = threading.Lock()
        self._state = initial if initial is not None else PublishedState()
        self._subscribers: List[StateCallback] = []

    @property
    def latest(self) -> PublishedState:
        """Most recently published snapshot."""
        with self._lock:
            return self._state

    def subscribe(self, callback: StateCallback) -> None:
        """Register a callback invoked after every publish."""
        with self._lock:
            self._subscribers.append(callback)

    def update_if(
        self,
        predicate: Callable[[PublishedState], bool],
        **changes,
    ) -> Optional[PublishedState]:
        """Publish changes only if predicate holds for the latest snapshot.

        Returns:
            The newly published snapshot, or None if nothing changed.
        """
        with self._lock:
            if not predicate(self._state):
                return None
            self._state = replace(self._state, **changes)
            state = self._state
            subscribers = list(self._subscribers)

        self._notify(subscribers, state)
        return state

    def update(self, **changes) -> PublishedState:
        """Publish a copy of the latest snapshot with fields replaced.

        Returns:
            The newly published snapshot.
        """
        with self._lock:
            self._state = replace(self._state, **changes)
            state = self._state
            subscribers = list(self._subscribers)

        self._notify(subscribers, state)
        return state

    @staticmethod
    def _notify(subscribers: List[StateCallback], state: PublishedState) -> None:
        # Callbacks run outside the lock so they may subscribe or publish.
        for callback in subscribers:
            callback(state)
