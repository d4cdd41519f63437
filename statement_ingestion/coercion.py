"""
Coercion: loosely-typed raw values to typed DTO fields.

Pure functions, ZERO I/O.  Upstream systems send dates as ISO strings or
timestamps, flags as 0/1/"true"/booleans and money as strings or numbers;
this module is the only place that interprets them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from statement_kernel.domain.dtos import LlCover

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y")

_TRUE_STRINGS = frozenset({"true", "yes", "1", "on"})
_FALSE_STRINGS = frozenset({"false", "no", "0", "off", ""})


# -----------------------------------------------------------------------------
# Result types
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class CoercionResult:
    """Result of coercing a raw value to a target type."""

    success: bool
    value: Any = None
    error: str | None = None


@dataclass(frozen=True)
class LlCoverReading:
    """Tri-state landlord-cover flag plus whether the raw value was non-canonical."""

    ll_cover: LlCover
    ambiguous: bool = False


# -----------------------------------------------------------------------------
# Scalars
# -----------------------------------------------------------------------------


def coerce_date(value: Any) -> CoercionResult:
    """
    Coerce a raw date.

    Accepts ``date``, ``datetime`` (date part), ISO date or datetime
    strings (``Z`` suffix allowed) and a few slash-separated formats.
    """
    if isinstance(value, datetime):
        return CoercionResult(success=True, value=value.date())
    if isinstance(value, date):
        return CoercionResult(success=True, value=value)
    if not isinstance(value, str) or not value.strip():
        return CoercionResult(success=False, error=f"Cannot parse date: {value!r}")

    s = value.strip()
    try:
        return CoercionResult(
            success=True, value=datetime.fromisoformat(s.replace("Z", "+00:00")).date()
        )
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return CoercionResult(success=True, value=datetime.strptime(s, fmt).date())
        except ValueError:
            continue
    return CoercionResult(success=False, error=f"Cannot parse date: {s!r}")


def coerce_bool(value: Any, default: bool = False) -> bool:
    """Database-style flags: booleans, 0/1 and common true/false strings."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, Decimal)):
        return value != 0
    if isinstance(value, float):
        return not math.isnan(value) and value != 0.0
    low = str(value).strip().lower()
    if low in _TRUE_STRINGS:
        return True
    if low in _FALSE_STRINGS:
        return False
    return default


def coerce_ll_cover(value: Any) -> LlCoverReading:
    """
    Read the expense system's ``llCover`` flag into the tri-state enum.

    Canonical values are 0/1 and booleans; absent or null is UNKNOWN.
    Anything else follows the upstream system's truthiness (any non-empty
    string, including "0", counts as covered) and is marked ambiguous so
    callers can surface it.
    """
    if value is None:
        return LlCoverReading(LlCover.UNKNOWN)
    if isinstance(value, bool):
        return LlCoverReading(LlCover.COVERED if value else LlCover.NOT_COVERED)
    if isinstance(value, (int, Decimal)):
        if value == 1:
            return LlCoverReading(LlCover.COVERED)
        if value == 0:
            return LlCoverReading(LlCover.NOT_COVERED)
        return LlCoverReading(LlCover.COVERED, ambiguous=True)
    if isinstance(value, float):
        if math.isnan(value):
            return LlCoverReading(LlCover.NOT_COVERED, ambiguous=True)
        if value == 1.0:
            return LlCoverReading(LlCover.COVERED)
        if value == 0.0:
            return LlCoverReading(LlCover.NOT_COVERED)
        return LlCoverReading(LlCover.COVERED, ambiguous=True)
    if isinstance(value, str):
        return LlCoverReading(
            LlCover.COVERED if value else LlCover.NOT_COVERED, ambiguous=True
        )
    return LlCoverReading(LlCover.COVERED, ambiguous=True)


def pick(record: dict[str, Any], *keys: str) -> Any:
    """First non-None value among ``keys`` (camelCase and snake_case aliases)."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None
