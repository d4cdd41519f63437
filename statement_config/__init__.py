"""
statement_config -- single public entrypoint for engine settings.

Responsibility:
    Provides the ONLY way to obtain engine settings at runtime through
    ``get_active_settings()``.  No other component reads settings files
    directly.  Listing configurations are loaded with
    ``load_listing_configs()``.

Architecture position:
    Configuration -- YAML-driven settings.  This package sits above
    ``statement_kernel`` / ``statement_engines`` and below
    ``statement_services``.  The kernel and engines MUST NEVER import from
    ``statement_config``; ``statement_config.bridges`` translates settings
    into engine inputs.

Invariants enforced:
    - Single entrypoint: all runtime settings flow through
      ``get_active_settings()``.
    - Deterministic: the same YAML always yields the same settings and
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- an explicit settings path does not exist.
    - ``ConfigurationError`` -- malformed YAML, unknown keys, bad values.

Audit relevance:
    Every successful ``get_active_settings()`` call emits a
    ``STATEMENT_CONFIG_TRACE`` log entry containing the source file, its
    checksum and the fee schedule, tying every statement to the settings
    that governed it.
"""

from __future__ import annotations

from pathlib import Path

from statement_config.loader import (
    compute_checksum,
    load_listing_configs,
    load_yaml_file,
    parse_listing_config,
    parse_settings,
)
from statement_config.schema import EngineSettings
from statement_kernel.logging_config import get_logger

_logger = get_logger("config")

# Packaged default settings
DEFAULT_SETTINGS_PATH = Path(__file__).parent / "settings.yaml"


def get_active_settings(path: Path | str | None = None) -> EngineSettings:
    """The ONLY public settings entrypoint.

    Args:
        path: Override path to a settings YAML file.  Defaults to the
            packaged ``statement_config/settings.yaml``.

    Returns:
        EngineSettings -- frozen, with ``source`` and ``checksum`` set.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ConfigurationError: If the file is malformed.
    """
    settings_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    settings = parse_settings(load_yaml_file(settings_path), source=str(settings_path))

    _logger.info(
        "STATEMENT_CONFIG_TRACE",
        extra={
            "trace_type": "STATEMENT_CONFIG_TRACE",
            "config_source": settings.source,
            "checksum": settings.checksum,
            "currency": settings.currency,
            "tech_fee_per_property": str(settings.tech_fee_per_property),
            "insurance_fee_per_property": str(settings.insurance_fee_per_property),
            "allow_default_configs": settings.allow_default_configs,
        },
    )
    return settings


__all__ = [
    "DEFAULT_SETTINGS_PATH",
    "EngineSettings",
    "compute_checksum",
    "get_active_settings",
    "load_listing_configs",
    "parse_listing_config",
    "parse_settings",
]
