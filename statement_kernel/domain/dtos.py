"""
DTOs -- Pure domain data transfer objects for statement computation.

Responsibility:
    Defines the immutable inputs that flow into the statement engines:
    Reservation, Expense, ListingConfig and StatementPeriod, plus the
    supporting enums (CalculationType, LlCover) and raw fee line items.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Created by the ingestion boundary (``statement_ingestion``) or directly
    by callers; consumed read-only by ``statement_engines``.

Invariants enforced:
    - Every DTO is frozen; the engines never mutate their inputs.
    - Monetary fields are Decimal; null or malformed values become zero.
    - A StatementPeriod never has start after end.

Failure modes:
    - InvalidPeriodError on a period whose start is after its end.
    - ValueError on an unknown calculation type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from statement_kernel.domain.values import ZERO, to_decimal
from statement_kernel.exceptions import InvalidPeriodError

DEFAULT_PM_FEE_PERCENTAGE = Decimal("15")


def coerce_property_id(value: object) -> int | None:
    """
    Numeric coercion applied to property ids before any comparison.

    Returns None when the value has no integer reading, so that a
    non-numeric id never matches anything.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, Decimal):
        return int(value) if value.is_finite() and value == value.to_integral_value() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


class CalculationType(str, Enum):
    """Which period-membership rule a statement uses."""

    CHECKOUT = "checkout"  # reservation belongs to the period containing its checkout
    CALENDAR = "calendar"  # reservation belongs to every period it overlaps (prorated)


class LlCover(str, Enum):
    """
    Whether the company ("landlord cover") pays an expense.

    UNKNOWN is the absent/null case and behaves as NOT_COVERED.
    """

    COVERED = "covered"
    NOT_COVERED = "not_covered"
    UNKNOWN = "unknown"

    @property
    def excludes_from_owner_statement(self) -> bool:
        return self is LlCover.COVERED


@dataclass(frozen=True)
class StatementPeriod:
    """
    Inclusive calendar-day billing period.

    ``end_exclusive`` is the day after ``end``; it is the upper bound used
    when counting nights.
    """

    start: date
    end: date
    calculation_type: CalculationType = CalculationType.CHECKOUT

    def __post_init__(self) -> None:
        if not isinstance(self.calculation_type, CalculationType):
            object.__setattr__(
                self, "calculation_type", CalculationType(str(self.calculation_type).lower())
            )
        if self.start > self.end:
            raise InvalidPeriodError(self.start.isoformat(), self.end.isoformat())

    @property
    def end_exclusive(self) -> date:
        return self.end + timedelta(days=1)

    @property
    def is_calendar(self) -> bool:
        return self.calculation_type is CalculationType.CALENDAR

    def contains(self, day: date) -> bool:
        """True if ``day`` falls within [start, end]."""
        return self.start <= day <= self.end


@dataclass(frozen=True)
class FeeLineItem:
    """One raw fee entry from a channel manager's fee breakdown."""

    name: str
    fee_type: str
    amount: Decimal = ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "name", self.name or "")
        object.__setattr__(self, "fee_type", self.fee_type or "")


_RESERVATION_MONEY_FIELDS = (
    "base_rate",
    "cleaning_fee",
    "other_fees",
    "platform_fees",
    "gross_amount",
    "client_revenue",
    "client_tax_responsibility",
    "resort_fee",
)


@dataclass(frozen=True)
class Reservation:
    """
    A booking as fetched from the channel manager.

    ``has_detailed_finance`` selects whether ``client_revenue`` and
    ``client_tax_responsibility`` (detailed finance report) or the coarser
    ``gross_amount`` is authoritative.
    """

    reservation_id: str
    property_id: int | str
    source: str
    check_in: date
    check_out: date
    status: str
    base_rate: Decimal = ZERO
    cleaning_fee: Decimal = ZERO
    other_fees: Decimal = ZERO
    platform_fees: Decimal = ZERO
    gross_amount: Decimal = ZERO
    client_revenue: Decimal = ZERO
    client_tax_responsibility: Decimal = ZERO
    resort_fee: Decimal = ZERO
    has_detailed_finance: bool = False
    guest_name: str = ""
    created_at: date | None = None
    fee_line_items: tuple[FeeLineItem, ...] = ()

    def __post_init__(self) -> None:
        for name in _RESERVATION_MONEY_FIELDS:
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        object.__setattr__(self, "source", self.source or "")
        object.__setattr__(self, "status", (self.status or "").strip().lower())
        object.__setattr__(self, "fee_line_items", tuple(self.fee_line_items or ()))

    @property
    def total_nights(self) -> int:
        return (self.check_out - self.check_in).days


@dataclass(frozen=True)
class Expense:
    """
    An owner-statement expense or upsell line.

    Negative amounts are costs, positive amounts are upsells/credits. The
    property may be referenced by the channel-manager id or by the expense
    system's own listing id; either may match.
    """

    expense_id: str
    amount: Decimal
    date: date
    property_id: int | str | None = None
    alternate_listing_id: int | str | None = None
    description: str = ""
    category: str = ""
    expense_type: str = ""
    vendor: str = ""
    ll_cover: LlCover = LlCover.UNKNOWN
    ll_cover_ambiguous: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        for name in ("description", "category", "expense_type", "vendor"):
            object.__setattr__(self, name, getattr(self, name) or "")
        if not isinstance(self.ll_cover, LlCover):
            object.__setattr__(self, "ll_cover", LlCover(self.ll_cover))

    @property
    def is_upsell(self) -> bool:
        """Upsells are credits to the owner, never costs."""
        return (
            self.amount > ZERO
            or self.expense_type.lower() == "upsell"
            or self.category.lower() == "upsell"
        )

    def references_property(self, property_id: int) -> bool:
        return property_id in (
            coerce_property_id(self.property_id),
            coerce_property_id(self.alternate_listing_id),
        )


@dataclass(frozen=True)
class ListingConfig:
    """
    Per-property statement settings.

    Defaults (15 % PM fee, every flag off) are what a property gets when its
    configuration has not synced yet.
    """

    pm_fee_percentage: Decimal = DEFAULT_PM_FEE_PERCENTAGE
    cleaning_fee_pass_through: bool = False
    is_cohost_on_airbnb: bool = False
    disregard_tax: bool = False
    airbnb_pass_through_tax: bool = False
    guest_paid_damage_coverage: bool = False

    # Commission waiver: PM fee shown but not charged until the given date
    waive_commission: bool = False
    waive_commission_until: date | None = None

    # PM fee transition for reservations created on/after the start date
    new_pm_fee_enabled: bool = False
    new_pm_fee_start_date: date | None = None
    new_pm_fee_percentage: Decimal | None = None

    display_name: str = ""
    internal_notes: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "pm_fee_percentage", to_decimal(self.pm_fee_percentage))
        if self.new_pm_fee_percentage is not None:
            object.__setattr__(
                self, "new_pm_fee_percentage", to_decimal(self.new_pm_fee_percentage)
            )
        if self.pm_fee_percentage < ZERO:
            raise ValueError("pm_fee_percentage must be non-negative")


@dataclass(frozen=True)
class StatementInput:
    """
    Everything one statement computation needs.

    ``adjustments`` are manual, signed corrections added to the owner payout.
    """

    reservations: tuple[Reservation, ...]
    expenses: tuple[Expense, ...]
    listing_configs: dict[int, ListingConfig]
    period: StatementPeriod
    property_ids: tuple[int | str, ...]
    adjustments: Decimal = ZERO
    currency: str = "USD"
    allow_default_configs: bool = True
    default_config: ListingConfig = field(default_factory=ListingConfig)

    def __post_init__(self) -> None:
        object.__setattr__(self, "reservations", tuple(self.reservations))
        object.__setattr__(self, "expenses", tuple(self.expenses))
        object.__setattr__(self, "property_ids", tuple(self.property_ids))
        object.__setattr__(self, "adjustments", to_decimal(self.adjustments))
        object.__setattr__(
            self,
            "listing_configs",
            {coerce_property_id(key): config for key, config in self.listing_configs.items()},
        )
