"""
Configuration Loader (``recon_config.loader``).

Loads a YAML file and parses it into a ``SyncConfig``.  Callers go
through ``recon_config.get_active_config()``; this module is the parsing
layer underneath it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown key or out-of-range value  -> ``InvalidConfigError``.
"""

from __future__ import annotations

import math
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from recon_kernel.exceptions import InvalidConfigError

from recon_config.schema import SyncConfig

_LOG_LEVELS = frozenset({"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_config(data: dict[str, Any]) -> SyncConfig:
    """
    Parse a ``SyncConfig`` from a dict.

    Accepts either the settings at the top level or nested under a
    ``reconciliation:`` key.

    Raises:
        InvalidConfigError: on unknown keys or invalid values.
    """
    if not isinstance(data, dict):
        raise InvalidConfigError("<root>", "expected a mapping")
    section = data.get("reconciliation", data)
    if not isinstance(section, dict):
        raise InvalidConfigError("reconciliation", "expected a mapping")

    unknown = sorted(set(section) - SyncConfig.field_names())
    if unknown:
        raise InvalidConfigError(unknown[0], "unknown configuration key")

    values: dict[str, Any] = {}

    if "interval_minutes" in section:
        values["interval_minutes"] = _parse_interval(section["interval_minutes"])
    if "amount_tolerance" in section:
        values["amount_tolerance"] = _parse_tolerance(section["amount_tolerance"])
    for key in ("sale_category", "installment_category", "credit_payment_method"):
        if key in section:
            values[key] = _parse_text(key, section[key])
    if "log_level" in section:
        level = _parse_text("log_level", section["log_level"]).upper()
        if level not in _LOG_LEVELS:
            raise InvalidConfigError("log_level", f"unknown level {level!r}")
        values["log_level"] = level
    if section.get("database_url") is not None:
        values["database_url"] = _parse_text("database_url", section["database_url"])

    return SyncConfig(**values)


def _parse_interval(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigError("interval_minutes", "must be a number")
    if not math.isfinite(value):
        raise InvalidConfigError("interval_minutes", "must be finite")
    if value <= 0:
        raise InvalidConfigError("interval_minutes", "must be positive")
    return value


def _parse_tolerance(value: Any) -> Decimal:
    try:
        tolerance = Decimal(str(value))
    except InvalidOperation as exc:
        raise InvalidConfigError("amount_tolerance", "must be a decimal") from exc
    if not tolerance.is_finite():
        raise InvalidConfigError("amount_tolerance", "must be finite")
    if tolerance < 0:
        raise InvalidConfigError("amount_tolerance", "must not be negative")
    return tolerance


def _parse_text(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidConfigError(key, "must be a non-empty string")
    return value.strip()
