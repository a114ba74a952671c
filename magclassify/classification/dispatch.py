"""Classifier dispatch off the sample path.

ThreadedDispatcher runs the classifier on a worker thread behind a
bounded queue. When the queue is full the newest request is dropped, so
sample ingestion never blocks on a slow classifier and results that do
arrive are for the oldest pending input. InlineDispatcher calls the
classifier synchronously.
"""

import logging
import queue
import threading
from typing import Callable, Optional

from ..core.errors import ClassificationFailed, MagClassifyError
from ..core.types import Vector3
from .classifier import Classifier, ClassificationResult

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ClassificationResult], None]
ErrorCallback = Callable[[MagClassifyError], None]

_STOP = object()


class InlineDispatcher:
    """Invokes the classifier on the caller's thread."""

    def __init__(
        self,
        classifier: Classifier,
        on_result: ResultCallback,
        on_error: ErrorCallback,
    ):
        self._classifier = classifier
        self._on_result = on_result
        self._on_error = on_error
        self.submitted = 0
        self.dropped = 0

    def start(self) -> None:
        pass

    def stop(self) -> None:
        pass

    def submit(self, device_frame_field: Vector3) -> bool:
        """Classify immediately and deliver the outcome."""
        self.submitted += 1
        _invoke(self._classifier, device_frame_field, self._on_result, self._on_error)
        return True


class ThreadedDispatcher:
    """Worker-thread dispatcher with a bounded, drop-newest queue."""

    def __init__(
        self,
        classifier: Classifier,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        queue_size: int = 1,
    ):
        """Initialize dispatcher.

        Args:
            classifier: Classifier to invoke.
            on_result: Called on the worker thread with each result.
            on_error: Called on the worker thread with each failure.
            queue_size: Maximum pending requests.

        Raises:
            ValueError: If queue_size is less than 1.
        """
        if queue_size < 1:
            raise ValueError(f"queue_size must be >= 1, got {queue_size}")

        self._classifier = classifier
        self._on_result = on_result
        self._on_error = on_error
        self._queue: "queue.Queue" = queue.Queue(maxsize=queue_size)
        self._thread: Optional[threading.Thread] = None

        self.submitted = 0
        self.dropped = 0

    def start(self) -> None:
        """Start the worker thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._thread = threading.Thread(
            target=self._run, name="classifier-dispatch", daemon=True
        )
        self._thread.start()
        logger.debug("Classifier dispatcher started")

    def stop(self, timeout_s: float = 2.0) -> None:
        """Stop the worker after pending requests are processed."""
        if self._thread is None:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout=timeout_s)
        self._thread = None
        logger.debug(
            "Classifier dispatcher stopped (submitted=%d, dropped=%d)",
            self.submitted, self.dropped,
        )

    def submit(self, device_frame_field: Vector3) -> bool:
        """Queue a request without blocking.

        Returns:
            False if the request was dropped because the queue is full.
        """
        try:
            self._queue.put_nowait(device_frame_field)
        except queue.Full:
            self.dropped += 1
            logger.debug("Classifier busy, dropped request (%d total)", self.dropped)
            return False
        self.submitted += 1
        return True

    def drain(self) -> None:
        """Block until every queued request has been processed."""
        self._queue.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                _invoke(self._classifier, item, self._on_result, self._on_error)
            finally:
                self._queue.task_done()

    def __enter__(self) -> "ThreadedDispatcher":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def _invoke(
    classifier: Classifier,
    device_frame_field: Vector3,
    on_result: ResultCallback,
    on_error: ErrorCallback,
) -> None:
    """Run one classification and route the outcome to a callback."""
    try:
        result = classifier.classify(device_frame_field)
    except MagClassifyError as e:
        logger.warning("Classification failed: %s", e)
        on_error(e)
        return
    except Exception as e:
        logger.exception("Classifier raised unexpectedly")
        on_error(ClassificationFailed(f"{type(e).__name__}: {e}"))
        return
    on_result(result)
