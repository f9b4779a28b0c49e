"""
Configuration Management for DemoGuard

Provides configuration loading from multiple sources:
- Default values
- Configuration files (YAML, TOML, JSON)
- Environment variables

Configuration precedence (highest to lowest):
1. Environment variables (DEMOGUARD_*)
2. Configuration file
3. Default values
"""

import json
import logging
import os
import tomllib
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Dataclasses
# ============================================================================


@dataclass
class DetectionConfig:
    """Tuning for the per-tick and per-event detectors."""

    # Aim snap: ring buffer of recent view angles (~0.6s at 64 tick)
    snap_buffer_size: int = 40
    # Adjacent samples closer than this (degrees) mean the aim had settled
    snap_settle_threshold_deg: float = 0.2
    # Kills with fewer buffered samples than this are not analyzed
    snap_min_samples: int = 5

    # Reaction time: full FOV cone angle (half-angle is used for the test)
    reaction_fov_degrees: float = 10.0
    reaction_max_ms: float = 2000.0
    reaction_min_samples: int = 5

    # Recoil control
    recoil_max_burst_gap_ticks: int = 6
    recoil_min_burst_size: int = 4
    recoil_max_bullet_index: int = 30
    recoil_min_bullets: int = 7
    recoil_min_bursts: int = 1
    # Mean angular error bands (degrees)
    recoil_perfect_error_deg: float = 0.3
    recoil_good_error_deg: float = 0.7
    recoil_poor_error_deg: float = 1.0


@dataclass
class ScoringConfig:
    """Weights, thresholds and sample guards for the composite scorer."""

    headshot_weight: float = 0.45
    snap_weight: float = 0.25
    reaction_weight: float = 0.15
    recoil_weight: float = 0.15

    # Headshot factor: 0 at 55%, 1 at 75%
    headshot_baseline_pct: float = 55.0
    headshot_extreme_pct: float = 75.0
    headshot_min_kills: int = 30

    # Snap factor: 0 at 2 deg/ms, 1 at 3.5 deg/ms
    snap_baseline: float = 2.0
    snap_extreme: float = 3.5
    snap_min_count: int = 5

    # Reaction factor: 0 at 120ms, 1 at 60ms
    reaction_baseline_ms: float = 120.0
    reaction_extreme_ms: float = 60.0
    reaction_min_samples: int = 5

    # Context boosts
    boost_multiplier: float = 1.2
    wingman_kill_threshold: int = 15
    competitive_kill_threshold: int = 39
    competitive_regulation_rounds: int = 30

    # Likelihood (0-100) at or above which a player is flagged
    cheater_threshold: float = 55.0

    def validate(self) -> None:
        """Raise ValueError if the component weights do not sum to 1.0."""
        total = self.headshot_weight + self.snap_weight + self.reaction_weight + self.recoil_weight
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Scoring weights must sum to 1.0, got {total:.4f}")


@dataclass
class ParserConfig:
    """Configuration for reading demos with demoparser2."""

    tick_props: list[str] = field(
        default_factory=lambda: [
            "X",
            "Y",
            "Z",
            "pitch",
            "yaw",
            "team_num",
            "is_alive",
            "active_weapon_name",
        ]
    )
    # Fallback when the header carries no tick rate
    default_tick_rate: float = 64.0


@dataclass
class ReportConfig:
    """Configuration for rendering and exporting results."""

    title: str = "DemoGuard Report"
    float_precision: int = 2
    hide_raw_counters: bool = True
    csv_delimiter: str = ","
    json_indent: int = 2


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5


@dataclass
class DemoGuardConfig:
    """Main configuration container."""

    detection: DetectionConfig = field(default_factory=DetectionConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    parser: ParserConfig = field(default_factory=ParserConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    # Version of the config format
    config_version: str = "1.0"


# ============================================================================
# Configuration Loading
# ============================================================================


def get_default_config_paths() -> list[Path]:
    """Get the default paths to search for configuration files."""
    paths = []

    # Current directory
    paths.append(Path.cwd() / "demoguard.yaml")
    paths.append(Path.cwd() / "demoguard.toml")
    paths.append(Path.cwd() / "demoguard.json")

    # User config directory
    home = Path.home()
    xdg_config = os.environ.get("XDG_CONFIG_HOME", str(home / ".config"))
    paths.append(Path(xdg_config) / "demoguard" / "config.yaml")
    paths.append(Path(xdg_config) / "demoguard" / "config.toml")

    return paths


def load_config_file(path: Path) -> dict[str, Any]:
    """Load configuration from a file, detecting format from extension."""
    if not path.exists():
        return {}

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        with open(path) as f:
            return yaml.safe_load(f) or {}
    elif suffix == ".toml":
        with open(path, "rb") as f:
            return tomllib.load(f)
    elif suffix == ".json":
        with open(path) as f:
            return json.load(f)
    else:
        logger.warning(f"Unknown config file format: {suffix}")
        return {}


def load_env_config() -> dict[str, Any]:
    """Load configuration from environment variables."""
    config: dict[str, Any] = {}

    env_mappings = {
        "DEMOGUARD_LOG_LEVEL": ("logging", "level"),
        "DEMOGUARD_LOG_FILE": ("logging", "file"),
        "DEMOGUARD_CHEATER_THRESHOLD": ("scoring", "cheater_threshold"),
        "DEMOGUARD_HEADSHOT_MIN_KILLS": ("scoring", "headshot_min_kills"),
        "DEMOGUARD_REACTION_FOV": ("detection", "reaction_fov_degrees"),
        "DEMOGUARD_SNAP_BUFFER_SIZE": ("detection", "snap_buffer_size"),
        "DEMOGUARD_BURST_GAP_TICKS": ("detection", "recoil_max_burst_gap_ticks"),
        "DEMOGUARD_TICK_RATE": ("parser", "default_tick_rate"),
    }

    for env_var, (section, key) in env_mappings.items():
        value = os.environ.get(env_var)
        if value is not None:
            if section not in config:
                config[section] = {}

            # Type conversion
            if value.lower() in ("true", "false"):
                value = value.lower() == "true"
            elif value.isdigit():
                value = int(value)
            else:
                try:
                    value = float(value)
                except ValueError:
                    pass

            config[section][key] = value

    return config


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge two configuration dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def dict_to_config(data: dict[str, Any]) -> DemoGuardConfig:
    """Convert a dictionary to DemoGuardConfig, ignoring unknown keys."""
    config = DemoGuardConfig()

    for section in fields(DemoGuardConfig):
        values = data.get(section.name)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section.name)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)
            else:
                logger.warning(f"Ignoring unknown config key: {section.name}.{key}")

    config.scoring.validate()
    return config


def load_config(config_file: Path | None = None, include_env: bool = True) -> DemoGuardConfig:
    """
    Load configuration from all sources.

    Args:
        config_file: Explicit path to a config file (optional)
        include_env: Whether to include environment variables

    Returns:
        Merged DemoGuardConfig
    """
    config_data: dict[str, Any] = {}

    if config_file:
        config_data = load_config_file(config_file)
        logger.info(f"Loaded config from: {config_file}")
    else:
        for path in get_default_config_paths():
            if path.exists():
                config_data = load_config_file(path)
                logger.info(f"Loaded config from: {path}")
                break

    if include_env:
        env_config = load_env_config()
        config_data = merge_configs(config_data, env_config)

    return dict_to_config(config_data)


# ============================================================================
# Configuration Saving
# ============================================================================


def config_to_dict(config: DemoGuardConfig) -> dict[str, Any]:
    """Convert DemoGuardConfig to a dictionary."""
    return asdict(config)


def save_config(config: DemoGuardConfig, path: Path) -> None:
    """
    Save configuration to a file.

    Args:
        config: Configuration to save
        path: Path to save to (.yaml, .yml or .json)
    """
    data = config_to_dict(config)
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
    elif suffix == ".json":
        with open(path, "w") as f:
            json.dump(data, f, indent=2)
    else:
        raise ValueError(f"Unknown config format: {suffix}")

    logger.info(f"Saved config to: {path}")


# ============================================================================
# Global Configuration
# ============================================================================

_global_config: DemoGuardConfig | None = None


def get_config() -> DemoGuardConfig:
    """Get the global configuration, loading it if necessary."""
    global _global_config

    if _global_config is None:
        _global_config = load_config()

    return _global_config


def set_config(config: DemoGuardConfig) -> None:
    """Set the global configuration."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset the global configuration to defaults."""
    global _global_config
    _global_config = None


# ============================================================================
# Configuration Templates
# ============================================================================

DEFAULT_CONFIG_YAML = """# DemoGuard Configuration

# Detector tuning
detection:
  snap_buffer_size: 40
  snap_settle_threshold_deg: 0.2
  reaction_fov_degrees: 10.0
  reaction_min_samples: 5
  recoil_max_burst_gap_ticks: 6
  recoil_min_bullets: 7
  recoil_min_bursts: 1

# Composite scorer (weights must sum to 1.0)
scoring:
  headshot_weight: 0.45
  snap_weight: 0.25
  reaction_weight: 0.15
  recoil_weight: 0.15
  headshot_min_kills: 30
  cheater_threshold: 55.0

# Demo reading
parser:
  default_tick_rate: 64.0

# Report output
report:
  float_precision: 2
  hide_raw_counters: true

# Logging settings
logging:
  level: INFO
  # file: /path/to/demoguard.log
"""


def generate_default_config(path: Path) -> None:
    """Generate a default configuration file."""
    suffix = path.suffix.lower()

    if suffix in (".yaml", ".yml"):
        path.write_text(DEFAULT_CONFIG_YAML)
    else:
        save_config(DemoGuardConfig(), path)

    logger.info(f"Generated default config at: {path}")
