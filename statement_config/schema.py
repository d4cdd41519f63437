"""
Engine settings schema.

Typed, frozen form of ``settings.yaml``.  The loader parses YAML into
these types; ``get_active_settings()`` is the only runtime way to obtain
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from statement_kernel.domain.dtos import DEFAULT_PM_FEE_PERCENTAGE
from statement_kernel.domain.values import DEFAULT_CURRENCY

# ---------------------------------------------------------------------------
# Engine settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineSettings:
    """Fee schedule and defaults applied to every statement."""

    currency: str = DEFAULT_CURRENCY
    tech_fee_per_property: Decimal = Decimal("50")
    insurance_fee_per_property: Decimal = Decimal("25")
    default_pm_fee_percentage: Decimal = DEFAULT_PM_FEE_PERCENTAGE
    allowed_statuses: tuple[str, ...] = ("confirmed", "modified", "new", "accepted")
    allow_default_configs: bool = True
    batch_max_workers: int = 4
    source: str = "<defaults>"
    checksum: str = ""


# Keys accepted in a listing configuration entry, with their value kind.
LISTING_CONFIG_FIELDS: dict[str, str] = {
    "pm_fee_percentage": "decimal",
    "cleaning_fee_pass_through": "bool",
    "is_cohost_on_airbnb": "bool",
    "disregard_tax": "bool",
    "airbnb_pass_through_tax": "bool",
    "guest_paid_damage_coverage": "bool",
    "waive_commission": "bool",
    "waive_commission_until": "date",
    "new_pm_fee_enabled": "bool",
    "new_pm_fee_start_date": "date",
    "new_pm_fee_percentage": "decimal",
    "display_name": "str",
    "internal_notes": "str",
}
