"""
Config -> Engine Bridges.

Functions that convert ``EngineSettings`` into engine-compatible inputs.
These live in statement_config (the producer) because neither the kernel
nor the engines may import statement_config.

Usage:
    from statement_config.bridges import build_fee_schedule, build_default_listing_config

    settings = get_active_settings()
    fee_schedule = build_fee_schedule(settings)
"""

from __future__ import annotations

from statement_config.schema import EngineSettings
from statement_engines.statement import FeeSchedule
from statement_kernel.domain.dtos import ListingConfig


def build_fee_schedule(settings: EngineSettings) -> FeeSchedule:
    return FeeSchedule(
        tech_fee_per_property=settings.tech_fee_per_property,
        insurance_fee_per_property=settings.insurance_fee_per_property,
    )


def build_default_listing_config(settings: EngineSettings) -> ListingConfig:
    """Config used for properties whose listing settings have not synced."""
    return ListingConfig(pm_fee_percentage=settings.default_pm_fee_percentage)
