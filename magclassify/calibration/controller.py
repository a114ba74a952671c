"""Calibration state machine.

States:
    Idle         -- never calibrated, no run in progress.
    Calibrating  -- a timed recording window is open.
    Calibrated   -- a fitted parameter snapshot is in effect.
    Failed       -- the last run failed; the previous snapshot (if any)
                    stays in effect as the fallback.

Starting a run while one is already open restarts it: in-flight samples
are discarded and the window start is reset.
"""

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..core.config import Config
from ..core.errors import CalibrationBufferOverflow, InsufficientCalibrationData
from ..core.types import CalibrationParameters, CalibrationStatus, Quaternion, Vector3
from .estimator import CalibrationEstimator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Idle:
    """No calibration has been run."""


@dataclass(frozen=True)
class Calibrating:
    """Recording window open."""
    started_at: float
    samples_so_far: int = 0


@dataclass(frozen=True)
class Calibrated:
    """Calibration parameters in effect."""
    params: CalibrationParameters


@dataclass(frozen=True)
class Failed:
    """Last run failed; fallback holds the previous good snapshot."""
    reason: str
    fallback: Optional[CalibrationParameters] = None


CalibrationState = Union[Idle, Calibrating, Calibrated, Failed]


class CalibrationController:
    """Orchestrates calibration runs and owns the active parameter snapshot."""

    def __init__(
        self,
        config: Config,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize controller.

        Args:
            config: System configuration with calibration settings.
            clock: Monotonic time source in seconds.
        """
        cal_cfg = config.calibration
        self.window_s = cal_cfg.window_s
        self.sample_rate_hz = config.sensor.sample_rate_hz
        self._clock = clock

        self._estimator = CalibrationEstimator(
            min_samples=cal_cfg.min_samples,
            max_samples=math.ceil(
                cal_cfg.window_s * self.sample_rate_hz * cal_cfg.buffer_safety_factor
            ),
            min_axis_range=cal_cfg.min_axis_range_ut,
        )

        # Reentrant so a restart issued from within accept() cannot deadlock.
        self._lock = threading.RLock()
        self._state: CalibrationState = Idle()
        self._last_good: Optional[CalibrationParameters] = None
        self._message = "Press calibrate to start calibration."

    @property
    def state(self) -> CalibrationState:
        """Current state."""
        return self._state

    @property
    def is_calibrating(self) -> bool:
        """Whether a recording window is open."""
        return isinstance(self._state, Calibrating)

    @property
    def is_calibrated(self) -> bool:
        """Whether a fitted snapshot is in effect and no run is open."""
        return self.active_parameters is not None

    @property
    def active_parameters(self) -> Optional[CalibrationParameters]:
        """Snapshot the correction path should use, or None."""
        state = self._state
        if isinstance(state, Calibrated):
            return state.params
        if isinstance(state, Failed):
            return state.fallback
        return None

    @property
    def last_good_parameters(self) -> Optional[CalibrationParameters]:
        """Most recent successful snapshot, retained across new runs."""
        return self._last_good

    @property
    def expected_samples(self) -> int:
        """Samples expected over a full window at the nominal rate."""
        return max(1, int(round(self.window_s * self.sample_rate_hz)))

    @property
    def progress(self) -> float:
        """Fraction of the window collected, in [0, 1]."""
        state = self._state
        if isinstance(state, Calibrating):
            return min(1.0, state.samples_so_far / self.expected_samples)
        if isinstance(state, Calibrated):
            return 1.0
        return 0.0

    @property
    def status(self) -> CalibrationStatus:
        """Externally visible status."""
        state = self._state
        if isinstance(state, Calibrating):
            return CalibrationStatus.CALIBRATING
        if isinstance(state, Calibrated):
            return CalibrationStatus.CALIBRATED
        if isinstance(state, Failed):
            return CalibrationStatus.FAILED
        return CalibrationStatus.IDLE

    @property
    def message(self) -> str:
        """Human-readable status message."""
        return self._message

    def start_calibration(self, now: Optional[float] = None) -> None:
        """Open a new recording window, restarting any run in progress."""
        now = self._clock() if now is None else now

        with self._lock:
            if isinstance(self._state, Calibrating):
                logger.info(
                    "Calibration restarted, discarding %d samples",
                    self._state.samples_so_far,
                )
            self._estimator.begin()
            self._state = Calibrating(started_at=now)
            self._message = (
                f"Move the device in a figure-eight ({self.window_s:.0f} s)."
            )

        logger.info("Calibration started (window %.1f s)", self.window_s)

    def accept(
        self,
        sample: Vector3,
        orientation: Optional[Quaternion] = None,
        now: Optional[float] = None,
    ) -> None:
        """Record one sample if a window is open, then check for expiry.

        Samples arriving after the window end are not recorded; they close
        the window instead. The whole read-append-write runs under the lock
        so a concurrent restart is never overwritten.
        """
        now = self._clock() if now is None else now

        with self._lock:
            state = self._state
            if not isinstance(state, Calibrating):
                return

            if self._expired(state, now):
                self._complete()
                return

            try:
                self._estimator.accept(sample, orientation)
            except CalibrationBufferOverflow as e:
                self._fail(str(e))
                return

            # A restart from a callback on this thread replaces the state.
            if self._state is not state:
                return

            self._state = Calibrating(
                started_at=state.started_at,
                samples_so_far=self._estimator.sample_count,
            )
            self._message = (
                f"Calibrating... ({self.progress * 100:.0f}%)"
            )

    def poll(self, now: Optional[float] = None) -> CalibrationState:
        """Close the window if it has expired.

        Returns:
            State after the check.
        """
        now = self._clock() if now is None else now
        with self._lock:
            state = self._state
            if isinstance(state, Calibrating) and self._expired(state, now):
                self._complete()
            return self._state

    def _expired(self, state: Calibrating, now: float) -> bool:
        return now - state.started_at >= self.window_s

    def _complete(self) -> None:
        """Fit parameters and publish the outcome. Caller holds the lock."""
        try:
            params = self._estimator.finish()
        except InsufficientCalibrationData as e:
            self._fail(str(e))
            return

        self._last_good = params
        self._state = Calibrated(params=params)
        self._message = "Calibration complete. Bring a magnet close."

        logger.info("Calibration complete (%d samples)", params.sample_count)

    def _fail(self, reason: str) -> None:
        """Caller holds the lock."""
        self._estimator.begin()
        self._state = Failed(reason=reason, fallback=self._last_good)
        if self._last_good is not None:
            self._message = (
                f"Calibration failed: {reason}. Keeping previous calibration."
            )
        else:
            self._message = f"Calibration failed: {reason}. Please try again."

        logger.warning("Calibration failed: %s", reason)
