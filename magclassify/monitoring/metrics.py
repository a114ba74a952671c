"""Performance metrics for the sample processing loop."""

import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional
import numpy as np

from ..core.config import Config

logger = logging.getLogger(__name__)


@dataclass
class PerformanceStats:
    """Aggregated performance statistics."""
    mean_dt_ms: float
    std_dt_ms: float
    max_dt_ms: float
    mean_processing_ms: float
    max_processing_ms: float
    effective_rate_hz: float
    missed_samples: int
    total_samples: int

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "rate_hz": self.effective_rate_hz,
            "dt_mean_ms": self.mean_dt_ms,
            "dt_std_ms": self.std_dt_ms,
            "dt_max_ms": self.max_dt_ms,
            "processing_ms": self.mean_processing_ms,
            "processing_max_ms": self.max_processing_ms,
            "missed_samples": self.missed_samples,
            "total_samples": self.total_samples,
        }


class PerformanceMonitor:
    """Tracks sample intervals and per-sample processing time.

    Processing must stay well inside the sample interval for the pipeline
    to keep up with the source; gaps longer than one nominal interval are
    counted as missed samples.
    """

    def __init__(self, config: Config, clock=time.perf_counter):
        """Initialize performance monitor.

        Args:
            config: System configuration with monitoring settings.
            clock: High resolution timer for processing time.
        """
        self._mon_cfg = config.monitoring
        self._clock = clock

        window = self._mon_cfg.window_size
        self._dt_history: Deque[float] = deque(maxlen=window)
        self._processing_history: Deque[float] = deque(maxlen=window)

        self._count = 0
        self._missed = 0
        self._last_log_time = time.time()
        self._last_timestamp: Optional[float] = None
        self._start: Optional[float] = None

        self._target_dt_ms = 1000.0 / config.sensor.sample_rate_hz

    def start_sample(self) -> None:
        """Mark the start of processing for one sample."""
        self._start = self._clock()

    def end_sample(self, timestamp: float) -> None:
        """Mark the end of processing for one sample.

        Args:
            timestamp: Sample timestamp in seconds.
        """
        if self._start is not None:
            self._processing_history.append((self._clock() - self._start) * 1000)
            self._start = None

        if self._last_timestamp is not None:
            dt_ms = (timestamp - self._last_timestamp) * 1000
            self._dt_history.append(dt_ms)

            expected = int(dt_ms / self._target_dt_ms + 0.5)
            if expected > 1:
                self._missed += expected - 1

        self._last_timestamp = timestamp
        self._count += 1
        self._maybe_log_stats()

    def _maybe_log_stats(self) -> None:
        """Log statistics periodically."""
        now = time.time()
        if now - self._last_log_time < self._mon_cfg.log_interval_s:
            return

        stats = self.get_stats()
        logger.info(
            "Performance: rate=%.1f Hz, dt=%.2f+/-%.2f ms, "
            "processing=%.3f ms, missed=%d",
            stats.effective_rate_hz,
            stats.mean_dt_ms,
            stats.std_dt_ms,
            stats.mean_processing_ms,
            stats.missed_samples,
        )
        self._last_log_time = now

    def get_stats(self) -> PerformanceStats:
        """Get aggregated performance statistics."""
        if not self._dt_history:
            return PerformanceStats(
                mean_dt_ms=0.0,
                std_dt_ms=0.0,
                max_dt_ms=0.0,
                mean_processing_ms=0.0,
                max_processing_ms=0.0,
                effective_rate_hz=0.0,
                missed_samples=0,
                total_samples=self._count,
            )

        dt_array = np.array(self._dt_history)
        proc_array = np.array(self._processing_history) if self._processing_history else np.zeros(1)
        mean_dt = float(np.mean(dt_array))

        return PerformanceStats(
            mean_dt_ms=mean_dt,
            std_dt_ms=float(np.std(dt_array)),
            max_dt_ms=float(np.max(dt_array)),
            mean_processing_ms=float(np.mean(proc_array)),
            max_processing_ms=float(np.max(proc_array)),
            effective_rate_hz=1000.0 / mean_dt if mean_dt > 0 else 0.0,
            missed_samples=self._missed,
            total_samples=self._count,
        )

    def reset(self) -> None:
        """Reset all metrics."""
        self._dt_history.clear()
        self._processing_history.clear()
        self._count = 0
        self._missed = 0
        self._last_timestamp = None
        self._start = None
