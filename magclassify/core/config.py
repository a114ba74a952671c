"""Configuration management for magnet sensing."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os

import yaml

CONFIG_ENV_VAR = "MAGCLASSIFY_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"


@dataclass
class SensorConfig:
    """Sample source configuration."""
    sample_rate_hz: float = 100.0
    read_timeout_s: float = 0.5
    range_ut: float = 4900.0


@dataclass
class CalibrationConfig:
    """Calibration window configuration."""
    window_s: float = 30.0
    min_samples: int = 100
    buffer_safety_factor: float = 2.0
    min_axis_range_ut: float = 1.0
    auto_start: bool = True


@dataclass
class DetectionConfig:
    """Magnet presence detection configuration."""
    threshold_ut: float = 100.0
    debounce_samples: int = 1


@dataclass
class ClassifierConfig:
    """Classifier adapter configuration."""
    model_path: Optional[str] = None
    async_dispatch: bool = True
    queue_size: int = 1


@dataclass
class OrientationValidationConfig:
    """Orientation quaternion validation configuration."""
    norm_tolerance: float = 0.01
    divergence_threshold: float = 0.1


@dataclass
class ValidationConfig:
    """Validation configuration."""
    orientation: OrientationValidationConfig = field(
        default_factory=OrientationValidationConfig
    )


@dataclass
class MockSourceConfig:
    """Synthetic sample source configuration."""
    earth_field_ut: List[float] = field(default_factory=lambda: [20.0, 0.0, -45.0])
    hard_iron_ut: List[float] = field(default_factory=lambda: [35.0, -12.0, 8.0])
    soft_iron_scale: List[float] = field(default_factory=lambda: [1.1, 0.95, 1.0])
    noise_ut: float = 0.3
    magnet_field_ut: List[float] = field(default_factory=lambda: [0.0, 180.0, -60.0])
    magnet_delay_s: Optional[float] = 40.0
    seed: Optional[int] = 0
    realtime: bool = True


@dataclass
class MonitoringConfig:
    """Performance monitoring configuration."""
    window_size: int = 1000
    log_interval_s: float = 10.0


@dataclass
class OutputConfig:
    """State output configuration."""
    emit_rate_hz: float = 10.0
    record_dir: str = "mag_logs"


@dataclass
class Config:
    """Complete configuration for magnet sensing."""
    sensor: SensorConfig = field(default_factory=SensorConfig)
    calibration: CalibrationConfig = field(default_factory=CalibrationConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    mock: MockSourceConfig = field(default_factory=MockSourceConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, the path in
            MAGCLASSIFY_CONFIG_PATH is used, then the packaged default.

    Returns:
        Configuration object with all settings.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            config_path = env_path
        elif DEFAULT_CONFIG_PATH.exists():
            config_path = str(DEFAULT_CONFIG_PATH)
        else:
            return Config()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return Config()

    return _build_config(data)


def _build_config(data: dict) -> Config:
    """Build Config object from dictionary."""
    val_data = data.get("validation", {})
    validation = ValidationConfig(
        orientation=OrientationValidationConfig(**val_data.get("orientation", {})),
    )

    return Config(
        sensor=SensorConfig(**data.get("sensor", {})),
        calibration=CalibrationConfig(**data.get("calibration", {})),
        detection=DetectionConfig(**data.get("detection", {})),
        classifier=ClassifierConfig(**data.get("classifier", {})),
        validation=validation,
        mock=MockSourceConfig(**data.get("mock", {})),
        monitoring=MonitoringConfig(**data.get("monitoring", {})),
        output=OutputConfig(**data.get("output", {})),
    )
