"""
Module: statement_engines.conversion
Responsibility:
    Detect statements whose calculation type hides or reshapes revenue and
    produce the advisory notice shown to the user.  Also owns the
    "no activity" skip rule.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Checkout mode is flagged iff some stay overlaps the period but none
      checks out in it.
    - Calendar mode is flagged iff some overlapping stay extends beyond
      the period (and is therefore prorated).
    - Checkout and calendar advice is judged per property; combined
      statements name each flagged property.
    - A statement is skipped only when no stay is in the period set or
      overlaps it and no expense matched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from statement_kernel.domain.dtos import CalculationType
from statement_kernel.logging_config import get_logger
from statement_engines.period_window import ReservationWindow, extends_outside_period

logger = get_logger("engines.conversion")

CHECKOUT_NOTICE = (
    "This property has {count} reservation(s) during this period but no checkouts. "
    "Revenue shows $0 because checkout-based calculation is selected. "
    "Consider converting to calendar-based calculation to see prorated revenue."
)
CALENDAR_NOTICE = (
    "This property has long-stay reservation(s) spanning beyond the statement period. "
    "Prorated calendar calculation is applied."
)


@dataclass(frozen=True)
class ConversionAdvice:
    calculation_type: CalculationType
    overlap_count: int
    period_count: int
    long_stay_count: int
    notice: str | None = None
    property_ids: tuple[int, ...] = ()

    @property
    def flagged(self) -> bool:
        return self.notice is not None


def advise_conversion(window: ReservationWindow) -> ConversionAdvice:
    """Evaluate the window's overlap and period sets for a conversion notice."""
    period = window.period
    overlap_count = len(window.overlap_set)
    period_count = len(window.period_set)
    long_stay_count = sum(
        1
        for r in window.overlap_set
        if extends_outside_period(r.check_in, r.check_out, period)
    )

    notice = None
    if period.calculation_type is CalculationType.CHECKOUT:
        if overlap_count > 0 and period_count == 0:
            notice = CHECKOUT_NOTICE.format(count=overlap_count)
    elif long_stay_count > 0:
        notice = CALENDAR_NOTICE

    advice = ConversionAdvice(
        calculation_type=period.calculation_type,
        overlap_count=overlap_count,
        period_count=period_count,
        long_stay_count=long_stay_count,
        notice=notice,
        property_ids=window.property_ids,
    )
    if advice.flagged:
        logger.info("conversion_notice_raised", extra={
            "calculation_type": period.calculation_type.value,
            "property_ids": list(window.property_ids),
            "overlap_count": overlap_count,
            "period_count": period_count,
            "long_stay_count": long_stay_count,
        })
    return advice


def advise_by_property(window: ReservationWindow) -> tuple[ConversionAdvice, ...]:
    """
    Flagged advice for each property of the window, in property order.

    Each property is judged on its own stays, so a checkout at one
    property of a combined statement never hides another property's
    $0-revenue long stay.
    """
    advices = (advise_conversion(window.for_property(pid)) for pid in window.property_ids)
    return tuple(advice for advice in advices if advice.flagged)


def combine_notices(advices: Sequence[ConversionAdvice], combined: bool) -> str | None:
    """
    Statement-level notice from per-property advice.

    A single-property statement shows its notice as is; a combined
    statement prefixes each notice with the property it concerns.
    """
    if not advices:
        return None
    if not combined:
        return advices[0].notice
    return "\n".join(
        f"Property {advice.property_ids[0]}: {advice.notice}" for advice in advices
    )


def should_skip(window: ReservationWindow, has_expense_activity: bool) -> bool:
    """Nothing in the period set, nothing overlapping and no matched expense."""
    return not window.period_set and not window.overlap_set and not has_expense_activity
