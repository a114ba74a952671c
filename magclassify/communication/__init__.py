"""Sample sources and raw data recording."""

from .source import SampleSource, MockSampleSource, ReplaySampleSource, RECORD_FIELDS
from .recorder import DataRecorder

__all__ = [
    "SampleSource",
    "MockSampleSource",
    "ReplaySampleSource",
    "RECORD_FIELDS",
    "DataRecorder",
]
