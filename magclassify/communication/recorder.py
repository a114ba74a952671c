"""Raw sample recording for offline analysis and replay."""

import csv
import logging
from datetime import datetime
from pathlib import Path
from typing import IO, Optional

from ..core.types import Quaternion, Vector3
from .source import RECORD_FIELDS

logger = logging.getLogger(__name__)


class DataRecorder:
    """Writes raw (field, orientation) samples to timestamped CSV files.

    Each start() opens a new file in the log directory; the files can be
    fed back through ReplaySampleSource.
    """

    def __init__(self, log_dir: str = "mag_logs"):
        """Initialize recorder.

        Args:
            log_dir: Directory receiving recording files.
        """
        self.log_dir = Path(log_dir)
        self.log_file: Optional[Path] = None
        self.sample_count = 0

        self._file: Optional[IO[str]] = None
        self._writer = None

    @property
    def is_recording(self) -> bool:
        """Whether a recording file is open."""
        return self._file is not None

    def start(self) -> Path:
        """Open a new recording file.

        Returns:
            Path of the file being written.
        """
        if self._file is not None:
            return self.log_file

        self.log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.log_file = self.log_dir / f"mag_data_{stamp}.csv"

        self._file = open(self.log_file, "w", encoding="utf-8", newline="")
        self._file.write(f"# Magnetometer recording {datetime.now().isoformat()}\n")
        self._writer = csv.writer(self._file)
        self._writer.writerow(RECORD_FIELDS)
        self.sample_count = 0

        logger.info("Recording started: %s", self.log_file)
        return self.log_file

    def stop(self) -> None:
        """Close the current recording file."""
        if self._file is None:
            return
        self._file.close()
        self._file = None
        self._writer = None
        logger.info("Recording stopped: %s (%d samples)", self.log_file, self.sample_count)

    def toggle(self) -> bool:
        """Start or stop recording.

        Returns:
            New recording state.
        """
        if self.is_recording:
            self.stop()
        else:
            self.start()
        return self.is_recording

    def record(self, timestamp: float, field: Vector3, orientation: Quaternion) -> None:
        """Append one sample if recording."""
        if self._writer is None:
            return
        self._writer.writerow([
            f"{timestamp:.6f}",
            f"{field.x:.6f}", f"{field.y:.6f}", f"{field.z:.6f}",
            f"{orientation.w:.9f}", f"{orientation.x:.9f}",
            f"{orientation.y:.9f}", f"{orientation.z:.9f}",
        ])
        self.sample_count += 1
