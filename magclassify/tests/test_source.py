"""Tests for sample sources and the raw data recorder."""

import pytest
import numpy as np

from magclassify.communication import (
    DataRecorder,
    MockSampleSource,
    RECORD_FIELDS,
    ReplaySampleSource,
)
from magclassify.core.errors import SensorUnavailable
from magclassify.core.types import Quaternion, Vector3
from magclassify.processing.frames import FrameTransformer


@pytest.fixture
def mock_config(config):
    """Mock source running on simulated time."""
    config.mock.realtime = False
    return config


class TestMockSampleSource:
    """Tests for the synthetic source."""

    def test_read_requires_open(self, mock_config):
        source = MockSampleSource(mock_config)

        with pytest.raises(SensorUnavailable):
            source.read_sample()

    def test_timestamps_follow_sample_rate(self, mock_config):
        with MockSampleSource(mock_config) as source:
            stamps = [source.read_sample().timestamp for _ in range(5)]

        np.testing.assert_allclose(stamps, [0.0, 0.01, 0.02, 0.03, 0.04])

    def test_orientations_are_unit(self, mock_config):
        with MockSampleSource(mock_config) as source:
            for _ in range(200):
                assert source.read_sample().orientation.is_valid(tolerance=1e-9)

    def test_seeded_output_is_repeatable(self, mock_config):
        source = MockSampleSource(mock_config)
        with source:
            first = [source.read_sample() for _ in range(10)]
        with source:
            second = [source.read_sample() for _ in range(10)]

        assert first == second

    def test_noise_free_reading_model(self, mock_config):
        """Raw = soft-iron * earth in device frame + hard-iron."""
        mock_config.mock.noise_ut = 0.0
        with MockSampleSource(mock_config) as source:
            for _ in range(50):
                sample = source.read_sample()

        earth = Vector3(*mock_config.mock.earth_field_ut)
        device = FrameTransformer.to_device_frame(earth, sample.orientation).to_array()
        expected = (
            np.array(mock_config.mock.soft_iron_scale) * device
            + np.array(mock_config.mock.hard_iron_ut)
        )
        np.testing.assert_allclose(sample.raw_field.to_array(), expected, atol=1e-9)

    def test_magnet_appears_after_delay(self, mock_config):
        mock_config.mock.noise_ut = 0.0
        mock_config.mock.magnet_delay_s = 0.05
        mock_config.mock.soft_iron_scale = [1.0, 1.0, 1.0]
        mock_config.mock.hard_iron_ut = [0.0, 0.0, 0.0]

        with MockSampleSource(mock_config) as source:
            samples = [source.read_sample() for _ in range(10)]

        earth = Vector3(*mock_config.mock.earth_field_ut)
        magnet = np.array(mock_config.mock.magnet_field_ut)
        for sample in samples:
            residual = (
                sample.raw_field
                - FrameTransformer.to_device_frame(earth, sample.orientation)
            ).to_array()
            if sample.timestamp < 0.05 - 1e-9:
                np.testing.assert_allclose(residual, 0.0, atol=1e-9)
            else:
                np.testing.assert_allclose(residual, magnet, atol=1e-9)

    def test_stats(self, mock_config):
        with MockSampleSource(mock_config) as source:
            for _ in range(3):
                source.read_sample()
            assert source.stats.total_samples == 3
            assert abs(source.stats.last_timestamp - 0.02) < 1e-12
            assert abs(source.now() - 0.03) < 1e-12


class TestReplaySampleSource:
    """Tests for CSV replay."""

    def test_missing_file(self, tmp_path):
        source = ReplaySampleSource(str(tmp_path / "missing.csv"))

        with pytest.raises(SensorUnavailable):
            source.open()

    def test_bad_header(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("a,b,c\n1,2,3\n")

        with pytest.raises(SensorUnavailable):
            ReplaySampleSource(str(path)).open()

    def test_malformed_row(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(",".join(RECORD_FIELDS) + "\n0.0,1,2,3,1,0,0\n")

        with pytest.raises(SensorUnavailable):
            ReplaySampleSource(str(path)).open()

    def test_non_numeric_row(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text(",".join(RECORD_FIELDS) + "\n0.0,x,2,3,1,0,0,0\n")

        with pytest.raises(SensorUnavailable):
            ReplaySampleSource(str(path)).open()

    def test_comments_skipped(self, tmp_path):
        path = tmp_path / "ok.csv"
        path.write_text(
            "# recorded on the bench\n"
            + ",".join(RECORD_FIELDS) + "\n"
            + "0.5,10,20,30,1,0,0,0\n"
        )

        with ReplaySampleSource(str(path)) as source:
            sample = source.read_sample()
            assert sample.timestamp == 0.5
            assert sample.raw_field == Vector3(10.0, 20.0, 30.0)
            assert sample.orientation == Quaternion.identity()
            assert source.now() == 0.5
            assert source.read_sample() is None
            assert source.stats.timeouts == 1

    def test_read_requires_open(self, tmp_path):
        source = ReplaySampleSource(str(tmp_path / "x.csv"))

        with pytest.raises(SensorUnavailable):
            source.read_sample()


class TestDataRecorder:
    """Tests for DataRecorder."""

    def test_not_recording_by_default(self, tmp_path):
        recorder = DataRecorder(str(tmp_path / "logs"))
        recorder.record(0.0, Vector3(1.0, 2.0, 3.0), Quaternion.identity())

        assert not recorder.is_recording
        assert recorder.sample_count == 0
        assert not (tmp_path / "logs").exists()

    def test_toggle(self, tmp_path):
        recorder = DataRecorder(str(tmp_path / "logs"))

        assert recorder.toggle()
        assert recorder.log_file.name.startswith("mag_data_")
        assert not recorder.toggle()

    def test_mock_recording_replays(self, tmp_path, mock_config):
        recorder = DataRecorder(str(tmp_path / "logs"))
        recorder.start()
        with MockSampleSource(mock_config) as source:
            originals = [source.read_sample() for _ in range(20)]
        for s in originals:
            recorder.record(s.timestamp, s.raw_field, s.orientation)
        recorder.stop()

        assert recorder.sample_count == 20

        with ReplaySampleSource(str(recorder.log_file)) as replay:
            for original in originals:
                copy = replay.read_sample()
                np.testing.assert_allclose(
                    copy.raw_field.to_array(), original.raw_field.to_array(), atol=1e-6
                )
            assert replay.exhausted
