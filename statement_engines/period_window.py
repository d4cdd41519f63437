"""
Module: statement_engines.period_window
Responsibility:
    Decide which reservations belong to a statement period.  Two
    independent predicates are provided: mode-dependent period membership
    and mode-independent overlap detection.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import statement_kernel.

Invariants enforced:
    - Checkout mode: in period iff ``start <= check_out <= end``.
    - Calendar mode: in period iff ``check_in <= end and check_out > start``.
    - Overlap detection always uses the calendar formula, whatever the
      statement's calculation type, so checkout-mode membership is a
      subset of overlap.
    - Only reservations with an allowed booking status participate.

Failure modes:
    - None; reservations that fail a filter are simply left out.

Usage:
    from statement_engines.period_window import resolve_window

    window = resolve_window(reservations, property_ids=[101], period=period)
    window.period_set    # reservations counted in the statement
    window.overlap_set   # every stay touching the period
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Sequence

from statement_kernel.domain.dtos import (
    CalculationType,
    Reservation,
    StatementPeriod,
    coerce_property_id,
)
from statement_kernel.logging_config import get_logger

logger = get_logger("engines.period_window")

ALLOWED_STATUSES: frozenset[str] = frozenset({"confirmed", "modified", "new", "accepted"})


def overlaps_period(check_in: date, check_out: date, period: StatementPeriod) -> bool:
    """True if any night of the stay touches the period, regardless of mode."""
    return check_in <= period.end and check_out > period.start


def is_in_period(check_in: date, check_out: date, period: StatementPeriod) -> bool:
    """Mode-dependent period membership."""
    if period.calculation_type is CalculationType.CALENDAR:
        return overlaps_period(check_in, check_out, period)
    return period.start <= check_out <= period.end


def extends_outside_period(check_in: date, check_out: date, period: StatementPeriod) -> bool:
    """True for stays that start before or end after the period (long stays)."""
    return check_in < period.start or check_out > period.end


def has_allowed_status(
    reservation: Reservation,
    allowed_statuses: Iterable[str] = ALLOWED_STATUSES,
) -> bool:
    return reservation.status in allowed_statuses


@dataclass(frozen=True)
class ReservationWindow:
    """
    Reservations of one or more properties, split by period relation.

    Contract:
        ``period_set`` uses the statement's calculation type;
        ``overlap_set`` always uses the calendar formula.  Both are sorted
        by check-in date, then reservation id, for deterministic output.
    """

    period: StatementPeriod
    property_ids: tuple[int, ...]
    period_set: tuple[Reservation, ...]
    overlap_set: tuple[Reservation, ...]

    def for_property(self, property_id: int) -> ReservationWindow:
        """Restrict the window to a single property."""
        return ReservationWindow(
            period=self.period,
            property_ids=(property_id,),
            period_set=tuple(
                r for r in self.period_set if coerce_property_id(r.property_id) == property_id
            ),
            overlap_set=tuple(
                r for r in self.overlap_set if coerce_property_id(r.property_id) == property_id
            ),
        )


def _sort_key(reservation: Reservation) -> tuple[date, str]:
    return reservation.check_in, str(reservation.reservation_id)


def resolve_window(
    reservations: Sequence[Reservation],
    property_ids: Iterable[int | str],
    period: StatementPeriod,
    allowed_statuses: Iterable[str] = ALLOWED_STATUSES,
) -> ReservationWindow:
    """
    Split reservations into the period set and the overlap set.

    Args:
        reservations: Candidate reservations (any property, any status).
        property_ids: Properties the statement is computed for; ids are
            compared after numeric coercion.
        period: Statement period, carrying the calculation type.
        allowed_statuses: Booking statuses that participate.

    Returns:
        ReservationWindow with both sets.
    """
    wanted = frozenset(coerce_property_id(p) for p in property_ids) - {None}
    statuses = frozenset(s.lower() for s in allowed_statuses)

    eligible = [
        r
        for r in reservations
        if coerce_property_id(r.property_id) in wanted and has_allowed_status(r, statuses)
    ]
    period_set = tuple(
        sorted(
            (r for r in eligible if is_in_period(r.check_in, r.check_out, period)),
            key=_sort_key,
        )
    )
    overlap_set = tuple(
        sorted(
            (r for r in eligible if overlaps_period(r.check_in, r.check_out, period)),
            key=_sort_key,
        )
    )

    logger.debug("reservation_window_resolved", extra={
        "calculation_type": period.calculation_type.value,
        "period_start": period.start.isoformat(),
        "period_end": period.end.isoformat(),
        "property_count": len(wanted),
        "candidate_count": len(reservations),
        "eligible_count": len(eligible),
        "period_count": len(period_set),
        "overlap_count": len(overlap_set),
    })

    return ReservationWindow(
        period=period,
        property_ids=tuple(sorted(wanted)),
        period_set=period_set,
        overlap_set=overlap_set,
    )
