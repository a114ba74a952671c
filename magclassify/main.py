#!/usr/bin/env python3
"""Main entry point for magnet position sensing.

Runs the per-sample pipeline on a sample source and outputs
JSON-formatted state lines to stdout for display integration.
"""

import argparse
import json
import logging
import signal
import sys
import time
from typing import Optional

from .classification import CentroidClassifier
from .communication import DataRecorder, MockSampleSource, ReplaySampleSource
from .core import Config, load_config
from .core.errors import ClassifierUnavailable, SensorUnavailable
from .monitoring import PerformanceMonitor
from .pipeline import PipelineCoordinator

logger = logging.getLogger(__name__)

SHUTDOWN_REQUESTED = False


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    global SHUTDOWN_REQUESTED
    SHUTDOWN_REQUESTED = True
    logger.info("Shutdown requested")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def load_classifier(model_path: Optional[str]):
    """Load the position classifier.

    Returns:
        Tuple of (classifier or None, classifier status text).
    """
    if not model_path:
        return None, "No model configured"

    try:
        classifier = CentroidClassifier.load(model_path)
    except ClassifierUnavailable as e:
        logger.error("Classifier unavailable: %s", e)
        return None, f"Model load failed: {e}"

    return classifier, "Model ready"


def run_pipeline(
    config: Config,
    replay_path: Optional[str] = None,
    model_path: Optional[str] = None,
    record: bool = False,
    auto_calibrate: bool = True,
) -> int:
    """Run the main sample processing loop.

    Args:
        config: System configuration.
        replay_path: Recording to replay; the mock source is used if None.
        model_path: Classifier model file, overriding the configuration.
        record: If True, record raw samples from the start.
        auto_calibrate: If True, open a calibration window on startup.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    if replay_path is not None:
        source = ReplaySampleSource(replay_path)
    else:
        source = MockSampleSource(config)

    classifier, classifier_status = load_classifier(
        model_path or config.classifier.model_path
    )

    coordinator = PipelineCoordinator(
        config,
        classifier=classifier,
        classifier_status=classifier_status,
        recorder=DataRecorder(config.output.record_dir),
    )
    monitor = PerformanceMonitor(config)

    emit_interval = 1.0 / config.output.emit_rate_hz
    last_emit_time = 0.0
    timeout_s = config.sensor.read_timeout_s

    try:
        source.open()
    except SensorUnavailable as e:
        logger.error("Sample source unavailable: %s", e)
        return 1

    try:
        coordinator.start()
        logger.info("Starting magnet sensing")

        if record:
            coordinator.toggle_recording()
        if auto_calibrate:
            coordinator.start_calibration()

        while not SHUTDOWN_REQUESTED:
            sample = source.read_sample(timeout_s=timeout_s)
            if sample is None:
                if isinstance(source, ReplaySampleSource) and source.exhausted:
                    logger.info("Replay finished")
                    if coordinator.controller.is_calibrating:
                        # No more samples will come to close the window.
                        end_time = source.now() + config.calibration.window_s
                        output = coordinator.poll(end_time).to_dict()
                        output["timestamp"] = end_time
                        print(json.dumps(output), flush=True)
                    break
                coordinator.poll(source.now())
                continue

            monitor.start_sample()
            state = coordinator.process_sample(sample)
            monitor.end_sample(sample.timestamp)

            now = time.time()
            if now - last_emit_time >= emit_interval:
                output = state.to_dict()
                output["timestamp"] = sample.timestamp
                print(json.dumps(output), flush=True)
                last_emit_time = now

    except SensorUnavailable as e:
        logger.error("Sample source error: %s", e)
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    finally:
        coordinator.stop()
        source.close()
        stats = monitor.get_stats()
        state = coordinator.state
        dispatcher = coordinator.dispatcher

        logger.info("Final statistics:")
        logger.info("  Samples: %d processed, %d rejected",
                    state.samples_processed, state.samples_rejected)
        logger.info("  Effective rate: %.1f Hz", stats.effective_rate_hz)
        logger.info("  Missed samples: %d", stats.missed_samples)
        logger.info("  Performance: %s", json.dumps(stats.to_dict()))
        logger.info("  Calibration: %s", state.calibration_status.value)
        if dispatcher is not None:
            logger.info("  Classifier requests: %d submitted, %d dropped",
                        dispatcher.submitted, dispatcher.dropped)

    return 0


def main() -> int:
    """Application entry point.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        description="Magnet presence detection and position classification"
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument(
        "--mock",
        action="store_true",
        help="Use the synthetic sample source (default)",
    )
    source_group.add_argument(
        "--replay",
        type=str,
        default=None,
        metavar="FILE",
        help="Replay a recorded CSV session",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        metavar="FILE",
        help="Path to centroid classifier model (JSON)",
    )
    parser.add_argument(
        "--record",
        action="store_true",
        help="Record raw samples to the configured directory",
    )
    parser.add_argument(
        "--no-auto-calibrate",
        action="store_true",
        help="Do not open a calibration window on startup",
    )
    args = parser.parse_args()

    setup_logging(verbose=args.verbose)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except Exception as e:
        logger.error("Failed to load configuration: %s", e)
        return 1

    auto_calibrate = config.calibration.auto_start and not args.no_auto_calibrate

    return run_pipeline(
        config,
        replay_path=args.replay,
        model_path=args.model,
        record=args.record,
        auto_calibrate=auto_calibrate,
    )


if __name__ == "__main__":
    sys.exit(main())
