"""
Pure domain layer.

This module contains pure data transfer objects and value objects
with NO dependencies on:
- Persistence
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from statement_kernel.domain.dtos import (
    DEFAULT_PM_FEE_PERCENTAGE,
    CalculationType,
    Expense,
    FeeLineItem,
    ListingConfig,
    LlCover,
    Reservation,
    StatementInput,
    StatementPeriod,
    coerce_property_id,
)
from statement_kernel.domain.values import (
    DEFAULT_CURRENCY,
    Money,
    round_money,
    to_decimal,
)

__all__ = [
    "DEFAULT_CURRENCY",
    "DEFAULT_PM_FEE_PERCENTAGE",
    "CalculationType",
    "Expense",
    "FeeLineItem",
    "ListingConfig",
    "LlCover",
    "Money",
    "Reservation",
    "StatementInput",
    "StatementPeriod",
    "coerce_property_id",
    "round_money",
    "to_decimal",
]
