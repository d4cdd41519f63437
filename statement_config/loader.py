"""
Configuration Loader (``statement_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into typed values: ``EngineSettings``
from a settings file and ``ListingConfig`` per property from a listing
file.  Runtime callers obtain settings through
``statement_config.get_active_settings()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on
``statement_kernel`` for the ListingConfig DTO and exception types only.

Invariants enforced
-------------------
* Every parse error raises ``ConfigurationError`` naming the source file
  and the offending key; unknown keys are rejected, not ignored.
* Money and percentages are parsed to ``Decimal`` from their string form;
  YAML floats are converted through ``str``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  content for configuration identity.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``ConfigurationError`` wrapping ``yaml.YAMLError``.
* Wrong shape, unknown key or unparseable value -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from statement_config.schema import LISTING_CONFIG_FIELDS, EngineSettings
from statement_kernel.domain.dtos import ListingConfig, coerce_property_id
from statement_kernel.exceptions import ConfigurationError

_SETTINGS_FIELDS = frozenset(
    f.name for f in fields(EngineSettings) if f.name not in ("source", "checksum")
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigurationError: if the file is not valid YAML or not a mapping.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(str(path), f"invalid YAML: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def parse_date(value: Any, source: str, key: str) -> date:
    """Parse a date from YAML (ISO string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    raise ConfigurationError(source, f"{key}: cannot parse date from {value!r}")


def parse_decimal(value: Any, source: str, key: str) -> Decimal:
    """Parse a Decimal from YAML (string, int or float)."""
    if isinstance(value, bool) or value is None:
        raise ConfigurationError(source, f"{key}: expected a number, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as e:
        raise ConfigurationError(source, f"{key}: expected a number, got {value!r}") from e
    if not result.is_finite():
        raise ConfigurationError(source, f"{key}: expected a finite number")
    return result


def parse_bool(value: Any, source: str, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(source, f"{key}: expected true/false, got {value!r}")
    return value


def _reject_unknown(data: dict[str, Any], allowed: frozenset[str] | set[str], source: str) -> None:
    unknown = sorted(str(k) for k in data if k not in allowed)
    if unknown:
        raise ConfigurationError(source, f"unknown keys: {', '.join(unknown)}")


def parse_settings(data: dict[str, Any], source: str = "<dict>") -> EngineSettings:
    """
    Parse ``EngineSettings`` from a dict.

    Missing keys fall back to the dataclass defaults.
    """
    _reject_unknown(data, _SETTINGS_FIELDS, source)
    defaults = EngineSettings()

    statuses = data.get("allowed_statuses", defaults.allowed_statuses)
    if not isinstance(statuses, (list, tuple)) or not statuses:
        raise ConfigurationError(source, "allowed_statuses: expected a non-empty list")

    workers = data.get("batch_max_workers", defaults.batch_max_workers)
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ConfigurationError(source, f"batch_max_workers: expected a positive integer, got {workers!r}")

    currency = str(data.get("currency", defaults.currency)).upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ConfigurationError(source, f"currency: invalid ISO 4217 code {currency!r}")

    def decimal_key(key: str) -> Decimal:
        if key not in data:
            return getattr(defaults, key)
        return parse_decimal(data[key], source, key)

    return EngineSettings(
        currency=currency,
        tech_fee_per_property=decimal_key("tech_fee_per_property"),
        insurance_fee_per_property=decimal_key("insurance_fee_per_property"),
        default_pm_fee_percentage=decimal_key("default_pm_fee_percentage"),
        allowed_statuses=tuple(str(s).strip().lower() for s in statuses),
        allow_default_configs=parse_bool(
            data.get("allow_default_configs", defaults.allow_default_configs),
            source,
            "allow_default_configs",
        ),
        batch_max_workers=workers,
        source=source,
        checksum=compute_checksum(data),
    )


def parse_listing_config(data: dict[str, Any], source: str = "<dict>") -> ListingConfig:
    """
    Parse one ``ListingConfig`` from a dict.

    Raises:
        ConfigurationError: on unknown keys or values of the wrong kind.
    """
    if not isinstance(data, dict):
        raise ConfigurationError(source, "listing entry must be a mapping")
    _reject_unknown(data, set(LISTING_CONFIG_FIELDS), source)

    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        kind = LISTING_CONFIG_FIELDS[key]
        if value is None:
            continue
        if kind == "bool":
            kwargs[key] = parse_bool(value, source, key)
        elif kind == "decimal":
            kwargs[key] = parse_decimal(value, source, key)
        elif kind == "date":
            kwargs[key] = parse_date(value, source, key)
        else:
            kwargs[key] = str(value)

    try:
        return ListingConfig(**kwargs)
    except ValueError as e:
        raise ConfigurationError(source, str(e)) from e


def load_listing_configs(path: Path) -> dict[int, ListingConfig]:
    """
    Load per-property listing configurations.

    The file maps property ids to listing entries, either at the top level
    or under a ``listings`` key::

        listings:
          101:
            pm_fee_percentage: "20"
            cleaning_fee_pass_through: true
    """
    source = str(path)
    data = load_yaml_file(path)
    listings = data["listings"] if "listings" in data else data
    if not isinstance(listings, dict):
        raise ConfigurationError(source, "listings must be a mapping")

    configs: dict[int, ListingConfig] = {}
    for raw_id, entry in listings.items():
        property_id = coerce_property_id(raw_id)
        if property_id is None:
            raise ConfigurationError(source, f"property id is not numeric: {raw_id!r}")
        configs[property_id] = parse_listing_config(entry or {}, f"{source}[{raw_id}]")
    return configs


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
