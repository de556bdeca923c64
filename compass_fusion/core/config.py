"""Configuration management for compass heading estimation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import os

import yaml

CONFIG_ENV_VAR = "COMPASS_CONFIG_PATH"


@dataclass
class ListenerConfig:
    """Compass listener configuration."""
    idle_timeout_ms: int = 30000
    rate_hint: int = 3


@dataclass
class SimulationConfig:
    """Simulated sensor source configuration."""
    sample_rate_hz: int = 50
    gravity: List[float] = field(default_factory=lambda: [0.0, 0.0, 9.81])
    magnetic: List[float] = field(default_factory=lambda: [20.0, 5.0, -45.0])
    gravity_noise: float = 0.02
    magnetic_noise: float = 0.3
    rotation_dps: float = 0.0


@dataclass
class ValidationConfig:
    """Sample plausibility thresholds."""
    gravity_nominal: float = 9.81
    gravity_tolerance: float = 2.0
    min_field_ut: float = 20.0
    max_field_ut: float = 100.0


@dataclass
class OutputConfig:
    """Command line output configuration."""
    poll_interval_s: float = 0.5


@dataclass
class Config:
    """Complete configuration for the compass service."""
    listener: ListenerConfig = field(default_factory=ListenerConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


def _dict_to_dataclass(data: dict, cls: type) -> object:
    """Recursively convert dictionary to dataclass, ignoring unknown keys."""
    if not hasattr(cls, "__dataclass_fields__"):
        return data

    field_types = {f.name: f.type for f in cls.__dataclass_fields__.values()}
    kwargs = {}

    for key, value in data.items():
        if key in field_types:
            field_type = field_types[key]
            if hasattr(field_type, "__dataclass_fields__") and isinstance(value, dict):
                kwargs[key] = _dict_to_dataclass(value, field_type)
            else:
                kwargs[key] = value

    return cls(**kwargs)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file. If None, uses the
            ``COMPASS_CONFIG_PATH`` environment variable, then the bundled
            ``config/default.yaml``, then built-in defaults.

    Returns:
        Configuration object with all settings.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
    """
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            config_path = env_path
        else:
            default_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"
            if default_path.exists():
                config_path = str(default_path)
            else:
                return Config()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return Config()

    return _dict_to_dataclass(data, Config)
