"""
Configuration dataclasses for the progress table CLI.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class DisplayConfig:
    """Live table display settings."""

    refresh_interval: float = 1.0
    show_table: bool = True
    toggle_enabled: bool = False
    final_summary: bool = True


@dataclass
class SourceConfig:
    """Where profiling-event batches come from."""

    kind: str = "psutil"  # psutil, jsonl
    pid: Optional[int] = None
    sample_interval: float = 0.25
    path: str = "-"
    include_system_network: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration with component-level control."""

    level: str = "INFO"
    component_levels: Dict[str, str] = field(default_factory=dict)
    log_dir: str = "logs"
    rotate_mb: int = 10
    backup_count: int = 5
    console: bool = False
    sentry_dsn: Optional[str] = None


@dataclass
class AppConfig:
    """Complete application configuration."""

    display: DisplayConfig = field(default_factory=DisplayConfig)
    source: SourceConfig = field(default_factory=SourceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(default: str) -> str:
    """Resolve configuration file path."""
    env_path = os.getenv("PROGRESS_TABLE_CONFIG")
    if not env_path:
        env = os.getenv("PROGRESS_TABLE_ENV")
        if env:
            candidate = f"config.{env}.yaml"
            if Path(candidate).exists():
                env_path = candidate
    return env_path or default


def validate_config(cfg: AppConfig) -> None:
    """Validate configuration consistency and required fields."""
    if cfg.display.refresh_interval <= 0:
        raise ValueError("Refresh interval must be positive")
    if cfg.source.kind not in ["psutil", "jsonl"]:
        raise ValueError(f"Invalid source kind: {cfg.source.kind}")
    if cfg.source.sample_interval <= 0:
        raise ValueError("Sample interval must be positive")
    if cfg.source.kind == "jsonl" and not cfg.source.path:
        raise ValueError("JSON lines source requires a path")
    if cfg.logging.rotate_mb <= 0:
        raise ValueError("Log rotation size must be positive")
    for name, level in {"": cfg.logging.level, **cfg.logging.component_levels}.items():
        if level.upper() not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"Invalid log level for '{name or 'root'}': {level}")


def load_config(path: str = "progress_table.yaml") -> AppConfig:
    """Load configuration from YAML file."""
    path = _resolve_path(path)

    try:
        with open(path, "r") as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file: {e}")

    data = _substitute_env_vars(data)

    display_cfg = DisplayConfig(**data.get("display", {}))
    source_cfg = SourceConfig(**data.get("source", {}))

    logging_data = data.get("logging", {})
    logging_cfg = LoggingConfig(
        level=logging_data.get("level", "INFO"),
        component_levels=logging_data.get("component_levels", {}),
        log_dir=logging_data.get("log_dir", "logs"),
        rotate_mb=logging_data.get("rotate_mb", 10),
        backup_count=logging_data.get("backup_count", 5),
        console=logging_data.get("console", False),
        sentry_dsn=logging_data.get("sentry_dsn"),
    )

    cfg = AppConfig(display=display_cfg, source=source_cfg, logging=logging_cfg)
    apply_env_overrides(cfg)
    validate_config(cfg)
    return cfg


def apply_env_overrides(cfg: AppConfig) -> None:
    """Override selected settings from environment variables."""
    env_show = os.getenv("PROGRESS_TABLE_SHOW_TABLE")
    if env_show is not None:
        cfg.display.show_table = env_show.lower() == "true"

    env_interval = os.getenv("PROGRESS_TABLE_REFRESH_INTERVAL")
    if env_interval is not None:
        cfg.display.refresh_interval = float(env_interval)


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute environment variables in configuration data."""
    if isinstance(data, dict):
        return {key: _substitute_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        default_value = None

        # ${VAR_NAME:default_value}
        if ":" in env_var:
            env_var, default_value = env_var.split(":", 1)

        value = os.getenv(env_var, default_value)
        if value is None:
            raise ValueError(
                f"Environment variable '{env_var}' is required but not set"
            )

        if value.lower() in ("true", "false"):
            return value.lower() == "true"
        elif value.isdigit():
            return int(value)
        else:
            try:
                return float(value)
            except ValueError:
                return value
    else:
        return data


def create_default_config() -> AppConfig:
    """Create a default configuration for testing or initial setup."""
    return AppConfig(
        display=DisplayConfig(),
        source=SourceConfig(),
        logging=LoggingConfig(),
    )


def save_config(cfg: AppConfig, path: str = "progress_table.yaml") -> None:
    """Save configuration to YAML file."""
    config_dict = {
        "display": {
            "refresh_interval": cfg.display.refresh_interval,
            "show_table": cfg.display.show_table,
            "toggle_enabled": cfg.display.toggle_enabled,
            "final_summary": cfg.display.final_summary,
        },
        "source": {
            "kind": cfg.source.kind,
            "pid": cfg.source.pid,
            "sample_interval": cfg.source.sample_interval,
            "path": cfg.source.path,
            "include_system_network": cfg.source.include_system_network,
        },
        "logging": {
            "level": cfg.logging.level,
            "component_levels": cfg.logging.component_levels,
            "log_dir": cfg.logging.log_dir,
            "rotate_mb": cfg.logging.rotate_mb,
            "backup_count": cfg.logging.backup_count,
            "console": cfg.logging.console,
            "sentry_dsn": cfg.logging.sentry_dsn,
        },
    }

    with open(path, "w") as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, sort_keys=False)
