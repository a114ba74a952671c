"""Integration tests: mock source through the whole pipeline."""

import json

import numpy as np
import pytest

from magclassify import main as app
from magclassify.classification import Direction
from magclassify.communication import DataRecorder, MockSampleSource
from magclassify.core.quaternion import QuaternionOps
from magclassify.core.types import CalibrationStatus, Quaternion, Vector3
from magclassify.monitoring import PerformanceMonitor
from magclassify.pipeline import PipelineCoordinator
from magclassify.processing.frames import FrameTransformer


@pytest.fixture
def sim_config(sync_config, tmp_path):
    """Simulated-time mock source with the magnet arriving at 40 s."""
    sync_config.mock.realtime = False
    sync_config.output.record_dir = str(tmp_path / "logs")
    return sync_config


def run_mock(config, classifier, duration_s):
    coordinator = PipelineCoordinator(
        config,
        classifier=classifier,
        recorder=DataRecorder(config.output.record_dir),
    )
    history = []
    with coordinator, MockSampleSource(config) as source:
        coordinator.start_calibration()
        n = int(duration_s * config.sensor.sample_rate_hz)
        for _ in range(n):
            sample = source.read_sample()
            history.append((sample.timestamp, coordinator.process_sample(sample)))
    return coordinator, history


class TestMockPipeline:
    """End-to-end runs on the synthetic source."""

    def test_calibrates_then_detects_magnet(self, sim_config, centroid_classifier):
        coordinator, history = run_mock(sim_config, centroid_classifier, 45.0)

        params = coordinator.controller.active_parameters
        assert params is not None
        assert params.sample_count in (3000, 3001)

        calibrating = [s for t, s in history if t < 29.99]
        assert all(s.calibration_status is CalibrationStatus.CALIBRATING for s in calibrating)

        quiet = [s for t, s in history if 30.5 <= t < 39.99]
        assert quiet
        assert all(s.calibration_status is CalibrationStatus.CALIBRATED for s in quiet)
        assert not any(s.detection.magnet_present for s in quiet)
        assert all(s.detection.magnitude < 20.0 for s in quiet)
        assert all(s.classification.label is Direction.ORIGIN for s in quiet)

        magnet = [s for t, s in history if t >= 40.0]
        assert magnet
        assert all(s.detection.magnet_present for s in magnet)
        assert all(s.classification.label is Direction.TOP for s in magnet)

    def test_hard_iron_recovered(self, sim_config):
        coordinator, _ = run_mock(sim_config, None, 31.0)
        offset = coordinator.controller.active_parameters.hard_iron_offset

        assert abs(offset.x - 35.0) < 5.0
        assert abs(offset.y + 12.0) < 5.0
        assert abs(offset.z - 8.0) < 5.0

    def test_drifted_orientation_cancels_earth_field(self, sim_config):
        """A quaternion within the drift tolerance is normalized before use."""
        coordinator, history = run_mock(sim_config, None, 31.0)
        params = coordinator.controller.active_parameters
        assert params.reference_field.magnitude > 20.0

        unit_q = QuaternionOps.from_axis_angle(np.array([1.0, 2.0, 0.5]), 0.9)
        drifted = Quaternion.from_array(unit_q.to_array() * 1.05)
        assert abs(drifted.norm - 1.05) < 1e-9

        device = FrameTransformer.to_device_frame(params.reference_field, unit_q)
        raw = (
            device.to_array() / params.soft_iron_scale.to_array()
            + params.hard_iron_offset.to_array()
        )
        state = coordinator.process(
            Vector3.from_array(raw), drifted, now=history[-1][0] + 0.01
        )

        assert state.calibration_status is CalibrationStatus.CALIBRATED
        assert state.detection.magnitude < 1e-6


class TestRunPipeline:
    """Tests for the application loop."""

    @pytest.fixture
    def recording(self, sim_config, tmp_path):
        """35 s of mock data recorded to CSV."""
        recorder = DataRecorder(str(tmp_path / "rec"))
        recorder.start()
        with MockSampleSource(sim_config) as source:
            for _ in range(3500):
                s = source.read_sample()
                recorder.record(s.timestamp, s.raw_field, s.orientation)
        recorder.stop()
        return str(recorder.log_file)

    def test_replay_run(self, sim_config, recording, model_file, capsys):
        sim_config.output.emit_rate_hz = 1e9

        code = app.run_pipeline(
            sim_config, replay_path=recording, model_path=str(model_file)
        )

        assert code == 0
        lines = [json.loads(l) for l in capsys.readouterr().out.splitlines()]
        assert lines[0]["calibration_status"] == "calibrating"
        assert lines[-1]["calibration_status"] == "calibrated"
        assert lines[-1]["classifier_status"] == "Model ready"
        assert lines[-1]["samples_processed"] > 3000
        assert "magnitude" in lines[-1]

    def test_replay_ending_inside_window_closes_it(self, sim_config, tmp_path, capsys,
                                                   caplog):
        recorder = DataRecorder(str(tmp_path / "short"))
        recorder.start()
        with MockSampleSource(sim_config) as source:
            for _ in range(50):
                s = source.read_sample()
                recorder.record(s.timestamp, s.raw_field, s.orientation)
        recorder.stop()
        sim_config.output.emit_rate_hz = 1e9

        with caplog.at_level("INFO", logger="magclassify.main"):
            code = app.run_pipeline(sim_config, replay_path=str(recorder.log_file))

        assert code == 0
        last = json.loads(capsys.readouterr().out.splitlines()[-1])
        assert last["calibration_status"] == "failed"
        assert "try again" in last["status"]
        assert abs(last["timestamp"] - (0.49 + sim_config.calibration.window_s)) < 1e-6

        performance = [r.getMessage() for r in caplog.records
                       if r.getMessage().startswith("  Performance: ")]
        assert len(performance) == 1
        stats = json.loads(performance[0][len("  Performance: "):])
        assert stats["total_samples"] == 50

    def test_missing_replay_file(self, sim_config, tmp_path):
        code = app.run_pipeline(sim_config, replay_path=str(tmp_path / "none.csv"))
        assert code == 1

    def test_bad_model_is_not_fatal(self, sim_config, recording, tmp_path, capsys):
        sim_config.output.emit_rate_hz = 1e9

        code = app.run_pipeline(
            sim_config,
            replay_path=recording,
            model_path=str(tmp_path / "missing.json"),
            auto_calibrate=False,
        )

        assert code == 0
        last = json.loads(capsys.readouterr().out.splitlines()[-1])
        assert last["classifier_status"].startswith("Model load failed")
        assert last["calibration_status"] == "idle"

    def test_main_missing_config(self, tmp_path, monkeypatch):
        monkeypatch.setattr(app.signal, "signal", lambda signum, handler: None)
        monkeypatch.setattr(
            "sys.argv", ["magclassify", "-c", str(tmp_path / "missing.yaml")]
        )
        assert app.main() == 1


class TestPerformanceMonitor:
    """Tests for loop metrics."""

    def test_effective_rate(self, config):
        monitor = PerformanceMonitor(config)
        for i in range(101):
            monitor.start_sample()
            monitor.end_sample(i * 0.01)

        stats = monitor.get_stats()
        assert abs(stats.effective_rate_hz - 100.0) < 1e-6
        assert stats.total_samples == 101
        assert stats.missed_samples == 0

    def test_missed_samples(self, config):
        monitor = PerformanceMonitor(config)
        for t in [0.0, 0.01, 0.04, 0.05]:
            monitor.end_sample(t)

        assert monitor.get_stats().missed_samples == 2

    def test_empty_stats(self, config):
        stats = PerformanceMonitor(config).get_stats()
        assert stats.effective_rate_hz == 0.0
        assert stats.to_dict()["total_samples"] == 0

    def test_reset(self, config):
        monitor = PerformanceMonitor(config)
        monitor.end_sample(0.0)
        monitor.end_sample(0.01)
        monitor.reset()

        assert monitor.get_stats().total_samples == 0
