"""Sample sources delivering (raw field, orientation) pairs.

Hardware acquisition lives outside this package; anything implementing
SampleSource can feed the pipeline. Two sources ship here: a synthetic
tumbling device for development, and a CSV replay of recorded sessions.
"""

import csv
import logging
import time
from pathlib import Path
from typing import Iterator, List, Optional, Protocol
import numpy as np

from ..core.config import Config
from ..core.errors import SensorUnavailable
from ..core.quaternion import QuaternionOps
from ..core.types import MotionSample, Quaternion, SourceStats, Vector3

logger = logging.getLogger(__name__)

RECORD_FIELDS = ["timestamp", "mx", "my", "mz", "qw", "qx", "qy", "qz"]


class SampleSource(Protocol):
    """Protocol for sample sources."""

    def open(self) -> None:
        """Start delivering samples.

        Raises:
            SensorUnavailable: If the source cannot be started.
        """
        ...

    def close(self) -> None:
        """Stop delivering samples."""
        ...

    def read_sample(self, timeout_s: float = 1.0) -> Optional[MotionSample]:
        """Return the next sample, or None on timeout."""
        ...

    def now(self) -> float:
        """Current time on the source's timestamp base."""
        ...


class MockSampleSource:
    """Synthetic device tumbling in the earth field.

    The device turns about three axes at incommensurate rates so a 30 s
    window covers most orientations. Raw readings carry a hard-iron
    offset, a diagonal soft-iron distortion and Gaussian noise. After
    `magnet_delay_s` a magnet adds a constant device-frame field.
    """

    ANGULAR_RATES = (0.9, 1.37, 0.61)  # rad/s about x, y, z

    def __init__(self, config: Config):
        """Initialize mock source.

        Args:
            config: System configuration.
        """
        cfg = config.mock
        self._config = config
        self._earth = Vector3(*cfg.earth_field_ut)
        self._hard_iron = np.array(cfg.hard_iron_ut, dtype=np.float64)
        self._soft_iron = np.array(cfg.soft_iron_scale, dtype=np.float64)
        self._magnet = np.array(cfg.magnet_field_ut, dtype=np.float64)
        self._magnet_delay = cfg.magnet_delay_s
        self._noise = cfg.noise_ut
        self._seed = cfg.seed
        self._realtime = cfg.realtime
        self._dt = 1.0 / config.sensor.sample_rate_hz

        self._rng = np.random.default_rng(cfg.seed)
        self._stats = SourceStats()
        self._seq = 0
        self._start_time = 0.0
        self._is_open = False

    def open(self) -> None:
        """Simulate opening the source."""
        self._rng = np.random.default_rng(self._seed)
        self._seq = 0
        self._start_time = time.monotonic() if self._realtime else 0.0
        self._is_open = True
        logger.info("Mock sample source opened")

    def close(self) -> None:
        """Simulate closing the source."""
        self._is_open = False
        logger.info("Mock sample source closed")

    def now(self) -> float:
        """Source time in seconds."""
        if self._realtime:
            return time.monotonic()
        return self._start_time + self._seq * self._dt

    def orientation_at(self, t: float) -> Quaternion:
        """Device orientation after t seconds of tumbling."""
        wx, wy, wz = self.ANGULAR_RATES
        qx = QuaternionOps.from_axis_angle(np.array([1.0, 0.0, 0.0]), wx * t)
        qy = QuaternionOps.from_axis_angle(np.array([0.0, 1.0, 0.0]), wy * t)
        qz = QuaternionOps.from_axis_angle(np.array([0.0, 0.0, 1.0]), wz * t)
        return QuaternionOps.multiply(qz, QuaternionOps.multiply(qy, qx))

    def read_sample(self, timeout_s: float = 1.0) -> Optional[MotionSample]:
        """Generate the next synthetic sample.

        Args:
            timeout_s: Ignored in mock.

        Raises:
            SensorUnavailable: If the source is not open.
        """
        if not self._is_open:
            raise SensorUnavailable("Mock sample source not open")

        if self._realtime:
            time.sleep(self._dt * 0.9)

        t = self._seq * self._dt
        self._seq += 1

        orientation = self.orientation_at(t)
        earth_device = QuaternionOps.rotate_inverse(self._earth, orientation).to_array()

        external = earth_device
        if self._magnet_delay is not None and t >= self._magnet_delay:
            external = external + self._magnet

        raw = (
            self._soft_iron * external
            + self._hard_iron
            + self._rng.normal(0.0, self._noise, 3)
        )

        timestamp = time.monotonic() if self._realtime else self._start_time + t
        self._stats.total_samples += 1
        self._stats.last_timestamp = timestamp

        return MotionSample(
            timestamp=timestamp,
            raw_field=Vector3.from_array(raw),
            orientation=orientation,
        )

    @property
    def stats(self) -> SourceStats:
        """Get source statistics."""
        return self._stats

    @property
    def is_open(self) -> bool:
        """Check if source is open."""
        return self._is_open

    def __enter__(self) -> "MockSampleSource":
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


class ReplaySampleSource:
    """Replays a CSV recording written by DataRecorder."""

    def __init__(self, path: str):
        """Initialize replay source.

        Args:
            path: Recording file with RECORD_FIELDS columns.
        """
        self._path = Path(path)
        self._samples: List[MotionSample] = []
        self._iter: Optional[Iterator[MotionSample]] = None
        self._stats = SourceStats()
        self._is_open = False

    def open(self) -> None:
        """Load the recording.

        Raises:
            SensorUnavailable: If the file is missing or malformed.
        """
        try:
            with open(self._path, "r", encoding="utf-8", newline="") as f:
                rows = [
                    row for row in csv.reader(f)
                    if row and not row[0].startswith("#")
                ]
        except OSError as e:
            raise SensorUnavailable(f"Cannot open recording {self._path}: {e}") from e

        if not rows or rows[0] != RECORD_FIELDS:
            raise SensorUnavailable(f"Not a sample recording: {self._path}")

        try:
            self._samples = [_parse_row(row) for row in rows[1:]]
        except (ValueError, IndexError) as e:
            raise SensorUnavailable(f"Malformed recording {self._path}: {e}") from e

        self._iter = iter(self._samples)
        self._is_open = True
        logger.info("Replaying %d samples from %s", len(self._samples), self._path)

    def close(self) -> None:
        """Release the recording."""
        self._iter = None
        self._is_open = False

    def now(self) -> float:
        """Timestamp of the last replayed sample."""
        return self._stats.last_timestamp or 0.0

    def read_sample(self, timeout_s: float = 1.0) -> Optional[MotionSample]:
        """Return the next recorded sample, or None at end of file.

        Raises:
            SensorUnavailable: If the source is not open.
        """
        if self._iter is None:
            raise SensorUnavailable("Replay source not open")

        sample = next(self._iter, None)
        if sample is None:
            self._stats.timeouts += 1
            return None

        self._stats.total_samples += 1
        self._stats.last_timestamp = sample.timestamp
        return sample

    @property
    def exhausted(self) -> bool:
        """Whether every recorded sample has been delivered."""
        return self._stats.total_samples >= len(self._samples)

    @property
    def stats(self) -> SourceStats:
        """Get source statistics."""
        return self._stats

    @property
    def is_open(self) -> bool:
        """Check if source is open."""
        return self._is_open

    def __enter__(self) -> "ReplaySampleSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _parse_row(row: List[str]) -> MotionSample:
    values = [float(v) for v in row[:8]]
    if len(values) != 8:
        raise ValueError(f"expected 8 columns, got {len(row)}")
    return MotionSample(
        timestamp=values[0],
        raw_field=Vector3(values[1], values[2], values[3]),
        orientation=Quaternion(values[4], values[5], values[6], values[7]),
    )
