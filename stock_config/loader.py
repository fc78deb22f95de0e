"""
Configuration Loader (``stock_config.loader``).

Responsibility
--------------
Loads engine settings YAML files and parses them into the frozen
``stock_config.schema`` dataclasses.  The single public entry point for
runtime config is ``stock_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range precision or unknown rounding  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from stock_config.schema import EngineSettings, PrecisionSettings

_PRECISION_KEYS = ("quantity_places", "cost_places", "valuation_places", "rounding")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_precision(data: dict[str, Any] | None) -> PrecisionSettings:
    """Parse a PrecisionSettings block; absent keys keep their defaults."""
    if not data:
        return PrecisionSettings()
    unknown = set(data) - set(_PRECISION_KEYS)
    if unknown:
        raise ValueError(f"Unknown precision keys: {sorted(unknown)}")
    return PrecisionSettings(**{k: data[k] for k in _PRECISION_KEYS if k in data})


def parse_settings(data: dict[str, Any]) -> EngineSettings:
    """
    Parse ``EngineSettings`` from a dict.

    Preconditions:
        - ``data`` has a ``config_id`` key.
    Raises:
        KeyError: if ``config_id`` is missing.
        ValueError: if the precision block is invalid.
    """
    return EngineSettings(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        precision=parse_precision(data.get("precision")),
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def load_settings_file(path: Path) -> EngineSettings:
    """Load and parse one settings file."""
    return parse_settings(load_yaml_file(path))
