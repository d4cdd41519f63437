"""
Module: statement_engines.expenses
Responsibility:
    Select the expenses that belong on one property's owner statement and
    total them.  Also checks pass-through cleaning charges against the
    cleaning expenses they replace.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import statement_kernel.

Invariants enforced:
    - Company-covered expenses (``LlCover.COVERED``) never reach the
      owner's totals.
    - An expense matches a property by its direct or alternate listing id,
      and its date falls within ``[period.start, period.end]``.
    - With cleaning pass-through, cleaning expenses are suppressed so the
      owner is not charged twice.
    - ``total_expenses`` is the sum of absolute values of non-upsell
      amounts; upsells are reported separately and never netted.

Failure modes:
    - None.  Unmatched expenses are simply left out.

Usage:
    from statement_engines.expenses import filter_expenses

    summary = filter_expenses(expenses, property_id=101, period=period, config=config)
    summary.total_expenses   # Money, positive
    summary.upsells          # shown on the statement, not netted
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from statement_kernel.domain.dtos import Expense, ListingConfig, StatementPeriod
from statement_kernel.domain.values import DEFAULT_CURRENCY, Money, round_money
from statement_kernel.logging_config import get_logger

logger = get_logger("engines.expenses")


def is_cleaning_expense(expense: Expense) -> bool:
    """Category or type mentions cleaning, or the description starts with it."""
    return (
        "cleaning" in expense.category.lower()
        or "cleaning" in expense.expense_type.lower()
        or expense.description.lower().startswith("cleaning")
    )


def matches_property_and_period(
    expense: Expense,
    property_id: int,
    period: StatementPeriod,
) -> bool:
    return expense.references_property(property_id) and period.contains(expense.date)


@dataclass(frozen=True)
class ExpenseSummary:
    """
    Expenses of one property for one period, after filtering.

    ``expenses`` holds what the statement displays (costs and upsells).
    ``ll_cover_expenses`` and ``suppressed_cleaning`` are what the filter
    removed, kept for display and reconciliation.
    """

    property_id: int
    expenses: tuple[Expense, ...]
    ll_cover_expenses: tuple[Expense, ...]
    suppressed_cleaning: tuple[Expense, ...]
    total_expenses: Money
    total_upsells: Money
    has_activity: bool

    @property
    def upsells(self) -> tuple[Expense, ...]:
        return tuple(e for e in self.expenses if e.is_upsell)

    @property
    def costs(self) -> tuple[Expense, ...]:
        return tuple(e for e in self.expenses if not e.is_upsell)


def filter_expenses(
    expenses: Iterable[Expense],
    property_id: int,
    period: StatementPeriod,
    config: ListingConfig,
    currency: str = DEFAULT_CURRENCY,
) -> ExpenseSummary:
    """
    Apply the owner-statement expense rules for one property.

    Args:
        expenses: Candidate expenses (any property, any date).
        property_id: Numeric property id.
        period: Statement period; bounds are inclusive.
        config: The property's listing configuration (cleaning pass-through).
        currency: ISO 4217 code for the totals.

    Returns:
        ExpenseSummary.  ``has_activity`` is True when any expense matched
        the property and period, including ones later excluded.
    """
    matched = [e for e in expenses if matches_property_and_period(e, property_id, period)]

    covered = tuple(e for e in matched if e.ll_cover.excludes_from_owner_statement)
    owner_borne = [e for e in matched if not e.ll_cover.excludes_from_owner_statement]

    if config.cleaning_fee_pass_through:
        suppressed = tuple(e for e in owner_borne if is_cleaning_expense(e))
        kept = tuple(e for e in owner_borne if not is_cleaning_expense(e))
    else:
        suppressed = ()
        kept = tuple(owner_borne)

    total_expenses = Money.sum(
        (Money(round_money(abs(e.amount)), currency) for e in kept if not e.is_upsell),
        currency,
    )
    total_upsells = Money.sum(
        (Money(round_money(e.amount), currency) for e in kept if e.is_upsell),
        currency,
    )

    for expense in matched:
        if expense.ll_cover_ambiguous:
            logger.warning("ll_cover_ambiguous_expense", extra={
                "expense_id": expense.expense_id,
                "property_id": property_id,
                "ll_cover": expense.ll_cover.value,
            })

    logger.debug("expenses_filtered", extra={
        "property_id": property_id,
        "matched_count": len(matched),
        "ll_cover_count": len(covered),
        "suppressed_cleaning_count": len(suppressed),
        "kept_count": len(kept),
        "total_expenses": str(total_expenses.amount),
        "total_upsells": str(total_upsells.amount),
    })

    return ExpenseSummary(
        property_id=property_id,
        expenses=kept,
        ll_cover_expenses=covered,
        suppressed_cleaning=suppressed,
        total_expenses=total_expenses,
        total_upsells=total_upsells,
        has_activity=bool(matched),
    )


@dataclass(frozen=True)
class CleaningMismatchWarning:
    """Pass-through cleaning charges and cleaning expenses disagree in count."""

    property_id: int
    reservation_count: int
    cleaning_expense_count: int

    @property
    def message(self) -> str:
        return (
            f"Property {self.property_id}: {self.reservation_count} reservation(s) "
            f"with pass-through cleaning but {self.cleaning_expense_count} "
            "cleaning expense(s) in period"
        )


def check_cleaning_mismatch(
    summary: ExpenseSummary,
    reservation_count: int,
    config: ListingConfig,
) -> CleaningMismatchWarning | None:
    """
    Compare in-period reservations with the cleaning expenses they replace.

    Only meaningful for pass-through properties; returns None otherwise or
    when the counts agree.
    """
    if not config.cleaning_fee_pass_through:
        return None
    cleaning_count = len(summary.suppressed_cleaning)
    if cleaning_count == reservation_count:
        return None

    warning = CleaningMismatchWarning(
        property_id=summary.property_id,
        reservation_count=reservation_count,
        cleaning_expense_count=cleaning_count,
    )
    logger.warning("cleaning_mismatch_detected", extra={
        "property_id": warning.property_id,
        "reservation_count": warning.reservation_count,
        "cleaning_expense_count": warning.cleaning_expense_count,
    })
    return warning
