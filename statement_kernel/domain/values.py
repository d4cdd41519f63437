"""
Values -- Immutable, self-validating monetary value objects.

Responsibility:
    Provides ``Money``, the single representation of monetary amounts in
    statement computation, and ``round_money``, the one documented rounding
    boundary (2 decimal places, half-up on cents).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine. No outward dependencies.

Invariants enforced:
    - Amounts are always ``Decimal``; floats are rejected so binary
      floating-point drift never enters proration or aggregation.
    - Arithmetic never silently mixes currencies.
    - Rounding happens only where a caller applies ``round_money``.

Failure modes:
    - TypeError on float amounts.
    - ValueError on unparseable amounts or malformed currency codes.
    - CurrencyMismatchError when arithmetic mixes currencies.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

from statement_kernel.exceptions import CurrencyMismatchError

DEFAULT_CURRENCY = "USD"
CENTS = Decimal("0.01")
ZERO = Decimal("0")


def round_money(amount: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: object) -> Decimal:
    """
    Coerce a loosely-typed monetary value to Decimal.

    ``None``, empty strings and unparseable values become zero: malformed
    monetary fields never abort a statement. Floats go through ``str`` so
    ``0.1`` becomes ``Decimal("0.1")`` rather than its binary expansion.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    if isinstance(value, int):
        return Decimal(value)
    text = str(value).strip()
    if not text:
        return ZERO
    try:
        result = Decimal(text)
    except InvalidOperation:
        return ZERO
    return result if result.is_finite() else ZERO


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount value object.

    Contract:
        Pairs a Decimal amount with an ISO 4217 currency code.

    Guarantees:
        - Immutable and hashable
        - amount is always a Decimal (never float)
        - Addition and subtraction enforce the same-currency constraint

    Non-goals:
        - Does NOT format amounts for display
        - Does NOT auto-round; engines round with ``round_money`` first
        - Only addition and subtraction; scaling happens on Decimal amounts
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise TypeError("Money amount must not be a float; use str or Decimal")
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e

        code = self.currency.upper().strip() if isinstance(self.currency, str) else ""
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Invalid ISO 4217 currency code: {self.currency}")
        object.__setattr__(self, "currency", code)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> Money:
        """Create a zero amount in the given currency."""
        return cls(amount=ZERO, currency=currency)

    @classmethod
    def sum(cls, values: Iterable[Money], currency: str = DEFAULT_CURRENCY) -> Money:
        """Sum Money values; an empty iterable sums to zero."""
        total = cls.zero(currency)
        for value in values:
            total = total + value
        return total

    @property
    def is_zero(self) -> bool:
        return self.amount == ZERO

    def _check_currency(self, other: Money, operation: str) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency, operation)

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
