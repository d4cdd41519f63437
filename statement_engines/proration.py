"""
Module: statement_engines.proration
Responsibility:
    Rescale a long-stay reservation's money to the nights that fall inside
    a calendar-mode statement period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import statement_kernel and sibling engine modules.

Invariants enforced:
    - Applies only to calendar-mode periods, and only to stays that start
      before or end after the period.
    - ``nights_in_period`` is always within ``[0, total_nights]``.
    - A factor of exactly 1 is a no-op: amounts come back unchanged,
      without re-rounding.
    - Prorated amounts are rounded to cents, half-up.

Failure modes:
    - None.  A zero-night stay prorates to zero.

Usage:
    from statement_engines.proration import prorate_reservation

    prorated, proration = prorate_reservation(reservation, period)
    if proration is not None:
        print(proration.note)   # "15/61 nights in period"
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from statement_kernel.domain.dtos import Reservation, StatementPeriod
from statement_kernel.domain.values import ZERO, round_money
from statement_kernel.logging_config import get_logger
from statement_engines.period_window import extends_outside_period

logger = get_logger("engines.proration")

ONE = Decimal("1")

# Money fields rescaled by the proration factor.  The cleaning fee is a
# per-stay charge and is not prorated.
PRORATED_FIELDS: tuple[str, ...] = (
    "base_rate",
    "other_fees",
    "platform_fees",
    "gross_amount",
    "client_revenue",
    "client_tax_responsibility",
    "resort_fee",
)


@dataclass(frozen=True)
class Proration:
    """Share of a stay's nights that fall inside a statement period."""

    nights_in_period: int
    total_nights: int
    factor: Decimal

    def __post_init__(self) -> None:
        if self.total_nights < 0:
            raise ValueError("total_nights cannot be negative")
        if not 0 <= self.nights_in_period <= max(self.total_nights, 0):
            raise ValueError("nights_in_period must be within [0, total_nights]")

    @property
    def is_identity(self) -> bool:
        return self.factor == ONE

    @property
    def note(self) -> str:
        return f"{self.nights_in_period}/{self.total_nights} nights in period"


def needs_proration(reservation: Reservation, period: StatementPeriod) -> bool:
    """Calendar-mode stays that only partially overlap the period."""
    return period.is_calendar and extends_outside_period(
        reservation.check_in, reservation.check_out, period
    )


def calculate_proration(
    check_in: date,
    check_out: date,
    period: StatementPeriod,
) -> Proration:
    """
    Nights of ``[check_in, check_out)`` inside ``[period.start, period.end]``.

    The overlap end is capped at the day after ``period.end`` so the last
    night of the period is counted.
    """
    total_nights = max(0, (check_out - check_in).days)
    if total_nights == 0:
        return Proration(nights_in_period=0, total_nights=0, factor=ZERO)

    overlap_start = max(check_in, period.start)
    overlap_end = min(check_out, period.end_exclusive)
    nights_in_period = max(0, (overlap_end - overlap_start).days)

    factor = Decimal(nights_in_period) / Decimal(total_nights)
    return Proration(
        nights_in_period=nights_in_period,
        total_nights=total_nights,
        factor=factor,
    )


def prorate_amount(amount: Decimal, factor: Decimal) -> Decimal:
    """Scale an amount by ``factor``; factor 1 returns it untouched."""
    if factor == ONE:
        return amount
    return round_money(amount * factor)


def prorate_reservation(
    reservation: Reservation,
    period: StatementPeriod,
) -> tuple[Reservation, Proration | None]:
    """
    Return the reservation as seen by this period.

    Reservations that do not need proration come back as-is with ``None``.
    Otherwise a new Reservation is returned with every field in
    ``PRORATED_FIELDS`` scaled; the original is never mutated.
    """
    if not needs_proration(reservation, period):
        return reservation, None

    proration = calculate_proration(reservation.check_in, reservation.check_out, period)
    if proration.is_identity:
        return reservation, proration

    changes = {
        name: prorate_amount(getattr(reservation, name), proration.factor)
        for name in PRORATED_FIELDS
    }
    logger.debug("reservation_prorated", extra={
        "reservation_id": reservation.reservation_id,
        "nights_in_period": proration.nights_in_period,
        "total_nights": proration.total_nights,
        "factor": str(proration.factor),
    })
    return dataclasses.replace(reservation, **changes), proration
