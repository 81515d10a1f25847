"""
recon_config -- single public entrypoint for engine configuration.

Responsibility:
    ``get_active_config()`` is the way to obtain settings at runtime.
    It reads one YAML file (the packaged ``sets/default.yaml`` unless a
    path is given) and returns a frozen ``SyncConfig``.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``InvalidConfigError`` -- unknown key or out-of-range value.
"""

from __future__ import annotations

from pathlib import Path

from recon_kernel.logging_config import get_logger

from recon_config.loader import load_yaml_file, parse_config
from recon_config.schema import SyncConfig

_logger = get_logger("config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: str | Path | None = None) -> SyncConfig:
    """Load and validate the configuration file at ``path`` (or the default)."""
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    config = parse_config(load_yaml_file(config_path))
    _logger.info(
        "config_loaded",
        extra={
            "path": str(config_path),
            "interval_minutes": config.interval_minutes,
            "amount_tolerance": config.amount_tolerance,
        },
    )
    return config


__all__ = [
    "SyncConfig",
    "get_active_config",
    "parse_config",
]
