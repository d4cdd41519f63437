"""
Module: statement_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    statement calculation engines.  This is the canonical import surface
    for higher layers (statement_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import statement_kernel (and sibling engine modules).
    MUST NOT import statement_config, statement_ingestion or
    statement_services.

Invariants enforced:
    - Purity: engines NEVER call ``date.today()``; the statement period is
      always passed in explicitly.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``; floats
      are rejected by ``Money``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    ``compute_statement`` is traced via ``@traced_engine`` (see
    ``statement_engines.tracer``), emitting STATEMENT_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from statement_engines import compute_statement, StatementSkipped
    from statement_engines.period_window import resolve_window
    from statement_engines.reservation_financials import resolve_payout_rule
"""

from statement_kernel.logging_config import get_logger

logger = get_logger("engines")

from statement_engines.conversion import (
    ConversionAdvice,
    advise_by_property,
    advise_conversion,
    combine_notices,
    should_skip,
)
from statement_engines.expenses import (
    CleaningMismatchWarning,
    ExpenseSummary,
    check_cleaning_mismatch,
    filter_expenses,
    is_cleaning_expense,
)
from statement_engines.period_window import (
    ALLOWED_STATUSES,
    ReservationWindow,
    is_in_period,
    overlaps_period,
    resolve_window,
)
from statement_engines.proration import (
    Proration,
    calculate_proration,
    needs_proration,
    prorate_reservation,
)
from statement_engines.reservation_financials import (
    AmountClass,
    Channel,
    ComputedReservationLine,
    FeeBreakdown,
    PayoutRule,
    classify_channel,
    effective_pm_fee_percentage,
    normalize_reservation,
    resolve_payout_rule,
    split_fee_line_items,
)
from statement_engines.statement import (
    DEFAULT_FEE_SCHEDULE,
    FeeSchedule,
    StatementResult,
    StatementSkipped,
    compute_statement,
)
from statement_engines.tracer import traced_engine

__all__ = [
    # Period window
    "ALLOWED_STATUSES",
    "ReservationWindow",
    "is_in_period",
    "overlaps_period",
    "resolve_window",
    # Reservation financials
    "AmountClass",
    "Channel",
    "ComputedReservationLine",
    "FeeBreakdown",
    "PayoutRule",
    "classify_channel",
    "effective_pm_fee_percentage",
    "normalize_reservation",
    "resolve_payout_rule",
    "split_fee_line_items",
    # Proration
    "Proration",
    "calculate_proration",
    "needs_proration",
    "prorate_reservation",
    # Expenses
    "CleaningMismatchWarning",
    "ExpenseSummary",
    "check_cleaning_mismatch",
    "filter_expenses",
    "is_cleaning_expense",
    # Conversion
    "ConversionAdvice",
    "advise_by_property",
    "advise_conversion",
    "combine_notices",
    "should_skip",
    # Statement
    "DEFAULT_FEE_SCHEDULE",
    "FeeSchedule",
    "StatementResult",
    "StatementSkipped",
    "compute_statement",
    # Tracer
    "traced_engine",
]
