"""
stock_config -- single public entrypoint for stock engine configuration.

Responsibility:
    Provides the ONLY way to obtain engine settings at runtime through
    ``get_active_config()``.  YAML loading is internal tooling.

Failure modes:
    - ``FileNotFoundError`` -- no settings file for the requested name.
    - ``ValueError`` -- invalid precision settings.
    - ``yaml.YAMLError`` -- malformed YAML.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``STOCK_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying every processed movement to the precision in force.
"""

from __future__ import annotations

from pathlib import Path

from stock_config.loader import load_settings_file
from stock_config.schema import EngineSettings, PrecisionSettings
from stock_kernel.logging_config import get_logger

logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_active_config(
    config_name: str = "default",
    config_dir: Path | None = None,
) -> EngineSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_name: Settings file stem (``<config_dir>/<config_name>.yaml``).
        config_dir: Override directory; defaults to the bundled sets.

    Raises:
        FileNotFoundError: if the settings file does not exist.
    """
    directory = Path(config_dir) if config_dir is not None else _DEFAULT_CONFIG_DIR
    path = directory / f"{config_name}.yaml"
    if not path.is_file():
        raise FileNotFoundError(f"No stock engine settings at {path}")

    settings = load_settings_file(path)

    logger.info(
        "STOCK_CONFIG_TRACE",
        extra={
            "trace_type": "STOCK_CONFIG_TRACE",
            "config_id": settings.config_id,
            "config_version": settings.version,
            "checksum": settings.checksum,
            "quantity_places": settings.precision.quantity_places,
            "cost_places": settings.precision.cost_places,
            "valuation_places": settings.precision.valuation_places,
        },
    )
    return settings


__all__ = [
    "EngineSettings",
    "PrecisionSettings",
    "get_active_config",
]
