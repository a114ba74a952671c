"""Per-sample pipeline: validation, calibration routing, correction,
earth-field cancellation, presence detection and classifier dispatch.

All work for one sample runs synchronously on the caller's thread. Only
the classifier runs elsewhere; its results are merged into the published
state when they arrive.
"""

import logging
import time
from typing import Callable, Optional

from ..calibration.controller import CalibrationController
from ..classification.classifier import Classifier, ClassificationResult
from ..classification.dispatch import InlineDispatcher, ThreadedDispatcher
from ..communication.recorder import DataRecorder
from ..core.config import Config
from ..core.errors import InvalidNumericInput, MagClassifyError
from ..core.types import (
    CalibrationParameters,
    CalibrationStatus,
    DetectionState,
    MotionSample,
    Quaternion,
    Vector3,
)
from ..core.validation import SampleValidator
from ..processing.correction import FieldCorrector
from ..processing.detection import DebouncedDetector, build_detector
from ..processing.frames import EarthFieldCanceller
from .state import PublishedState, StatePublisher

logger = logging.getLogger(__name__)


class PipelineCoordinator:
    """Routes each (raw field, orientation) pair through the pipeline."""

    def __init__(
        self,
        config: Config,
        classifier: Optional[Classifier] = None,
        classifier_status: Optional[str] = None,
        recorder: Optional[DataRecorder] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize coordinator.

        Args:
            config: System configuration.
            classifier: Position classifier, or None when unavailable.
            classifier_status: Initial classifier status text.
            recorder: Raw data recorder toggled by toggle_recording().
            clock: Time source used when process() is given no timestamp.
        """
        self._config = config
        self._clock = clock

        self.controller = CalibrationController(config, clock=clock)
        self.validator = SampleValidator(config)
        self.detector = build_detector(
            config.detection.threshold_ut,
            config.detection.debounce_samples,
        )
        self.recorder = recorder if recorder is not None else DataRecorder(
            config.output.record_dir
        )
        self.publisher = StatePublisher()

        self._dispatcher = None
        if classifier is not None:
            if config.classifier.async_dispatch:
                self._dispatcher = ThreadedDispatcher(
                    classifier,
                    self._on_classification,
                    self._on_classification_error,
                    queue_size=config.classifier.queue_size,
                )
            else:
                self._dispatcher = InlineDispatcher(
                    classifier,
                    self._on_classification,
                    self._on_classification_error,
                )
            classifier_status = classifier_status or "Model ready"
        else:
            classifier_status = classifier_status or "Classifier unavailable"

        self._now: Optional[float] = None
        self._calibration_requested = False
        self._processed = 0
        self._rejected = 0

        self.publisher.update(
            classifier_status=classifier_status,
            status_message=self.controller.message,
        )

    def start(self) -> None:
        """Start the classifier worker."""
        if self._dispatcher is not None:
            self._dispatcher.start()

    def stop(self) -> None:
        """Stop the classifier worker and any recording."""
        if self._dispatcher is not None:
            self._dispatcher.stop()
        self.recorder.stop()

    @property
    def state(self) -> PublishedState:
        """Latest published state."""
        return self.publisher.latest

    @property
    def dispatcher(self):
        """Classifier dispatcher, or None without a classifier."""
        return self._dispatcher

    def start_calibration(self) -> PublishedState:
        """Open a calibration window.

        The window is timed on sample timestamps, so before the first
        sample arrives the start is deferred to that sample.
        """
        if self._now is None:
            self._calibration_requested = True
            logger.info("Calibration requested, waiting for first sample")
        else:
            self.controller.start_calibration(now=self._now)

        if isinstance(self.detector, DebouncedDetector):
            self.detector.reset()

        return self.publisher.update(
            calibration_status=CalibrationStatus.CALIBRATING,
            calibration_progress=0.0,
            detection=None,
            classification=ClassificationResult.neutral(),
            status_message=self.controller.message
            if self.controller.is_calibrating
            else "Calibration requested.",
        )

    def toggle_recording(self) -> bool:
        """Start or stop raw data recording.

        Returns:
            New recording state.
        """
        recording = self.recorder.toggle()
        self.publisher.update(recording=recording)
        return recording

    def process_sample(self, sample: MotionSample) -> PublishedState:
        """Process a sample using its own timestamp."""
        return self.process(sample.raw_field, sample.orientation, now=sample.timestamp)

    def process(
        self,
        raw: Vector3,
        orientation: Quaternion,
        now: Optional[float] = None,
    ) -> PublishedState:
        """Process one (raw field, orientation) pair.

        Args:
            raw: Raw magnetometer reading in uT, device frame.
            orientation: Device orientation quaternion.
            now: Sample time in seconds; defaults to the clock.

        Returns:
            Published state after this sample.
        """
        now = self._clock() if now is None else now
        self._now = now

        try:
            self.validator.require_valid(raw, orientation)
        except InvalidNumericInput as e:
            self._rejected += 1
            logger.warning("Dropped invalid sample: %s", e)
            return self.publisher.update(
                samples_rejected=self._rejected,
                status_message=f"Dropped invalid sample: {e}",
            )

        self._processed += 1
        self.recorder.record(now, raw, orientation)

        # Rotations assume a unit quaternion; the validator tolerates drift.
        orientation = orientation.normalized()

        if self._calibration_requested:
            self._calibration_requested = False
            self.controller.start_calibration(now=now)

        if self.controller.is_calibrating:
            self.controller.accept(raw, orientation, now=now)
            return self._publish_status()

        params = self.controller.active_parameters
        if params is None:
            return self._publish_status()

        return self._process_calibrated(raw, orientation, params)

    def poll(self, now: Optional[float] = None) -> PublishedState:
        """Check calibration window expiry when no sample arrived."""
        now = self._clock() if now is None else now
        if self.controller.is_calibrating:
            self.controller.poll(now)
            return self._publish_status()
        return self.publisher.latest

    def detect(
        self,
        raw: Vector3,
        orientation: Quaternion,
        params: CalibrationParameters,
    ) -> DetectionState:
        """Correct, cancel the earth field, and threshold one sample."""
        corrected = FieldCorrector.correct(raw, params)
        magnet_field = EarthFieldCanceller.cancel(corrected, orientation, params)
        magnitude = magnet_field.magnitude

        return DetectionState(
            corrected_field=corrected,
            magnet_field=magnet_field,
            magnitude=magnitude,
            magnet_present=self.detector.detect(magnitude),
        )

    def _process_calibrated(
        self,
        raw: Vector3,
        orientation: Quaternion,
        params: CalibrationParameters,
    ) -> PublishedState:
        detection = self.detect(raw, orientation, params)

        changes = dict(
            calibration_status=self.controller.status,
            calibration_progress=self.controller.progress * 100.0,
            detection=detection,
            samples_processed=self._processed,
            samples_rejected=self._rejected,
        )

        if self.controller.status is CalibrationStatus.FAILED:
            changes["status_message"] = self.controller.message
        else:
            changes["status_message"] = (
                f"Calibrated - field magnitude: {detection.magnitude:.1f} uT"
            )

        if not detection.magnet_present or self._dispatcher is None:
            changes["classification"] = ClassificationResult.neutral()
            return self.publisher.update(**changes)

        # Detection must be published before submit: inline results are
        # merged only while a magnet is present.
        self.publisher.update(**changes)
        if not self._dispatcher.submit(detection.magnet_field):
            return self.publisher.update(classifier_dropped=self._dispatcher.dropped)
        return self.publisher.latest

    def _publish_status(self) -> PublishedState:
        return self.publisher.update(
            calibration_status=self.controller.status,
            calibration_progress=self.controller.progress * 100.0,
            detection=None,
            classification=ClassificationResult.neutral(),
            status_message=self.controller.message,
            samples_processed=self._processed,
            samples_rejected=self._rejected,
        )

    def _on_classification(self, result: ClassificationResult) -> None:
        """Merge a classifier result unless the magnet has gone since."""
        self.publisher.update_if(
            _magnet_present,
            classification=result,
            classifier_status="Model ready",
        )

    def _on_classification_error(self, error: MagClassifyError) -> None:
        self.publisher.update(classifier_status=f"Prediction error: {error}")

    def __enter__(self) -> "PipelineCoordinator":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def _magnet_present(state: PublishedState) -> bool:
    return state.detection is not None and state.detection.magnet_present
