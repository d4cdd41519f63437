"""
Module: statement_engines.statement
Responsibility:
    The statement computation entry point.  Resolves the period window,
    normalizes every in-period reservation, filters expenses per property,
    and reduces the computed lines into owner-statement totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Composes the sibling engines; callers go through ``compute_statement``.

Invariants enforced:
    - Every monetary total is a sum of per-line (or per-expense)
      contributions; there is no shared accumulator.
    - Co-hosted Airbnb lines contribute to neither revenue nor commission.
    - ``tech_fees = n * tech_fee_per_property`` and
      ``insurance_fees = n * insurance_fee_per_property`` for n properties.
    - ``owner_payout = total_revenue - total_expenses - pm_commission
      + pm_commission_waived - tech_fees - insurance_fees + adjustments``.
    - ``property_ids`` is sorted and de-duplicated, so regeneration with the
      same set in any order yields the same statement.

Failure modes:
    - EmptyPropertySetError: no property ids requested.
    - InvalidPropertyIdError: a requested id is not numeric.
    - MissingListingConfigError: a property has no config and defaults
      are disabled.
    - "No activity" is not a failure: StatementSkipped is returned.

Usage:
    from statement_engines.statement import compute_statement

    outcome = compute_statement(statement_input)
    if isinstance(outcome, StatementSkipped):
        ...
    outcome.owner_payout
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable

from statement_kernel.domain.dtos import (
    CalculationType,
    Expense,
    ListingConfig,
    StatementInput,
    StatementPeriod,
    coerce_property_id,
)
from statement_kernel.domain.values import ZERO, Money, round_money
from statement_kernel.exceptions import (
    EmptyPropertySetError,
    InvalidPropertyIdError,
    MissingListingConfigError,
)
from statement_kernel.logging_config import get_logger
from statement_engines.conversion import advise_by_property, combine_notices, should_skip
from statement_engines.expenses import (
    CleaningMismatchWarning,
    ExpenseSummary,
    check_cleaning_mismatch,
    filter_expenses,
)
from statement_engines.period_window import ALLOWED_STATUSES, resolve_window
from statement_engines.reservation_financials import (
    ComputedReservationLine,
    normalize_reservation,
)
from statement_engines.tracer import traced_engine

logger = get_logger("engines.statement")

NO_ACTIVITY_REASON = "No reservations or expenses in period"


@dataclass(frozen=True)
class FeeSchedule:
    """Flat per-property fees charged on every statement."""

    tech_fee_per_property: Decimal = Decimal("50")
    insurance_fee_per_property: Decimal = Decimal("25")


DEFAULT_FEE_SCHEDULE = FeeSchedule()


@dataclass(frozen=True)
class StatementSkipped:
    """Nothing to report for these properties in this period."""

    property_ids: tuple[int, ...]
    period: StatementPeriod
    reason: str = NO_ACTIVITY_REASON


@dataclass(frozen=True)
class StatementResult:
    """
    Computed owner statement.

    Frozen: a correction is a new computation, never a patch of an old
    result.
    """

    property_ids: tuple[int, ...]
    period: StatementPeriod
    currency: str
    lines: tuple[ComputedReservationLine, ...]
    expenses: tuple[Expense, ...]
    total_revenue: Money
    total_expenses: Money
    pm_commission: Money
    pm_commission_waived: Money
    tech_fees: Money
    insurance_fees: Money
    adjustments: Money
    owner_payout: Money
    total_upsells: Money
    total_cleaning_fee: Money
    gross_payout_sum: Money
    pm_percentage: Decimal
    resort_fee_total: Money | None = None
    ll_cover_expenses: tuple[Expense, ...] = ()
    cleaning_mismatch: tuple[CleaningMismatchWarning, ...] = ()
    conversion_notice: str | None = None
    conversion_property_ids: tuple[int, ...] = ()

    @property
    def is_combined_statement(self) -> bool:
        return len(self.property_ids) > 1

    @property
    def calculation_type(self) -> CalculationType:
        return self.period.calculation_type

    @property
    def period_start(self) -> date:
        return self.period.start

    @property
    def period_end(self) -> date:
        return self.period.end

    @property
    def upsells(self) -> tuple[Expense, ...]:
        return tuple(e for e in self.expenses if e.is_upsell)


def resolve_property_ids(property_ids: Iterable[int | str]) -> tuple[int, ...]:
    """Coerce, validate and canonically order a requested property set."""
    resolved: set[int] = set()
    for raw in property_ids:
        property_id = coerce_property_id(raw)
        if property_id is None:
            raise InvalidPropertyIdError(str(raw))
        resolved.add(property_id)
    if not resolved:
        raise EmptyPropertySetError()
    return tuple(sorted(resolved))


def resolve_listing_config(statement_input: StatementInput, property_id: int) -> ListingConfig:
    """Configured settings for a property, or defaults when allowed."""
    config = statement_input.listing_configs.get(property_id)
    if config is not None:
        return config
    if not statement_input.allow_default_configs:
        raise MissingListingConfigError(property_id)
    logger.warning("listing_config_defaulted", extra={
        "property_id": property_id,
        "pm_fee_percentage": str(statement_input.default_config.pm_fee_percentage),
    })
    return statement_input.default_config


def weighted_pm_percentage(
    lines: Iterable[ComputedReservationLine],
    default: Decimal,
) -> Decimal:
    """Revenue-weighted PM %; ``default`` when there is no revenue."""
    weighted = ZERO
    revenue = ZERO
    for line in lines:
        weighted += line.revenue.amount * line.pm_fee_percentage
        revenue += line.revenue.amount
    if revenue == ZERO:
        return default
    return round_money(weighted / revenue)


@traced_engine(
    "statement",
    "1.0",
    fingerprint_fields=(
        "statement_input.period",
        "statement_input.property_ids",
        "statement_input.adjustments",
    ),
)
def compute_statement(
    statement_input: StatementInput,
    fee_schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
    allowed_statuses: Iterable[str] = ALLOWED_STATUSES,
) -> StatementResult | StatementSkipped:
    """
    Compute an owner statement for one or more properties.

    Args:
        statement_input: Reservations, expenses, listing configs, period,
            requested property ids and manual adjustments.
        fee_schedule: Per-property tech and insurance fees.
        allowed_statuses: Booking statuses that participate.

    Returns:
        StatementResult, or StatementSkipped when no reservation overlaps
        the period and no expense matched.
    """
    period = statement_input.period
    currency = statement_input.currency
    property_ids = resolve_property_ids(statement_input.property_ids)

    logger.info("statement_computation_started", extra={
        "property_ids": list(property_ids),
        "period_start": period.start.isoformat(),
        "period_end": period.end.isoformat(),
        "calculation_type": period.calculation_type.value,
    })

    configs = {pid: resolve_listing_config(statement_input, pid) for pid in property_ids}
    window = resolve_window(
        statement_input.reservations, property_ids, period, allowed_statuses
    )
    summaries: tuple[ExpenseSummary, ...] = tuple(
        filter_expenses(statement_input.expenses, pid, period, configs[pid], currency)
        for pid in property_ids
    )

    if should_skip(window, any(s.has_activity for s in summaries)):
        logger.info("statement_skipped", extra={
            "property_ids": list(property_ids),
            "reason": NO_ACTIVITY_REASON,
        })
        return StatementSkipped(property_ids=property_ids, period=period)

    lines = tuple(
        normalize_reservation(
            r, configs[coerce_property_id(r.property_id)], period, currency
        )
        for r in window.period_set
    )
    owner_lines = [line for line in lines if not line.is_cohost_airbnb]

    total_revenue = Money.sum((line.revenue for line in owner_lines), currency)
    pm_commission = Money.sum((line.pm_fee for line in owner_lines), currency)
    pm_commission_waived = Money.sum(
        (line.commission_waived for line in owner_lines), currency
    )
    total_expenses = Money.sum((s.total_expenses for s in summaries), currency)
    total_upsells = Money.sum((s.total_upsells for s in summaries), currency)

    property_count = len(property_ids)
    tech_fees = Money(fee_schedule.tech_fee_per_property * property_count, currency)
    insurance_fees = Money(fee_schedule.insurance_fee_per_property * property_count, currency)
    adjustments = Money(round_money(statement_input.adjustments), currency)

    owner_payout = (
        total_revenue
        - total_expenses
        - pm_commission
        + pm_commission_waived
        - tech_fees
        - insurance_fees
        + adjustments
    )

    damage_covered = {pid for pid, config in configs.items() if config.guest_paid_damage_coverage}
    resort_fee_total = None
    if damage_covered:
        resort_fee_total = Money.sum(
            (line.resort_fee for line in lines if line.property_id in damage_covered),
            currency,
        )

    mismatches = tuple(
        warning
        for warning in (
            check_cleaning_mismatch(
                summary,
                len(window.for_property(summary.property_id).period_set),
                configs[summary.property_id],
            )
            for summary in summaries
        )
        if warning is not None
    )

    advices = advise_by_property(window)

    result = StatementResult(
        property_ids=property_ids,
        period=period,
        currency=currency,
        lines=lines,
        expenses=tuple(e for s in summaries for e in s.expenses),
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        pm_commission=pm_commission,
        pm_commission_waived=pm_commission_waived,
        tech_fees=tech_fees,
        insurance_fees=insurance_fees,
        adjustments=adjustments,
        owner_payout=owner_payout,
        total_upsells=total_upsells,
        total_cleaning_fee=Money.sum(
            (line.cleaning_fee_pass_through for line in lines), currency
        ),
        gross_payout_sum=Money.sum((line.gross_payout for line in lines), currency),
        pm_percentage=weighted_pm_percentage(
            owner_lines, statement_input.default_config.pm_fee_percentage
        ),
        resort_fee_total=resort_fee_total,
        ll_cover_expenses=tuple(e for s in summaries for e in s.ll_cover_expenses),
        cleaning_mismatch=mismatches,
        conversion_notice=combine_notices(advices, combined=property_count > 1),
        conversion_property_ids=tuple(a.property_ids[0] for a in advices),
    )

    logger.info("statement_computed", extra={
        "property_ids": list(property_ids),
        "line_count": len(lines),
        "expense_count": len(result.expenses),
        "total_revenue": str(total_revenue.amount),
        "total_expenses": str(total_expenses.amount),
        "pm_commission": str(pm_commission.amount),
        "owner_payout": str(owner_payout.amount),
        "conversion_property_ids": list(result.conversion_property_ids),
    })
    return result
