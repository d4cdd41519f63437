"""
Module: statement_engines.reservation_financials
Responsibility:
    Turn one reservation plus its property's ListingConfig into a
    ComputedReservationLine: revenue, PM fee, tax treatment, cleaning
    pass-through, resort fee and gross payout.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import statement_kernel and sibling engine modules.

Invariants enforced:
    - Channel is classified exactly once per reservation (``classify_channel``).
    - Flag precedence is a single decision table (``resolve_payout_rule``):
      co-hosted Airbnb overrides the tax rules entirely, and
      ``disregard_tax`` overrides ``airbnb_pass_through_tax``.
    - Resort fee is informational: never part of gross payout.
    - Every monetary result is rounded to cents, half-up; gross payout is
      the signed sum of its rounded components.

Failure modes:
    - None for business data; malformed money was zeroed at the DTO
      boundary.

Usage:
    from statement_engines.reservation_financials import normalize_reservation

    line = normalize_reservation(reservation, config, period)
    line.gross_payout        # Money
    line.tax_treatment       # AmountClass.REVENUE or AmountClass.INFORMATIONAL
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable

from statement_kernel.domain.dtos import (
    FeeLineItem,
    ListingConfig,
    Reservation,
    StatementPeriod,
    coerce_property_id,
)
from statement_kernel.domain.values import DEFAULT_CURRENCY, ZERO, Money, round_money
from statement_kernel.logging_config import get_logger
from statement_engines.proration import Proration, prorate_amount, prorate_reservation

logger = get_logger("engines.reservation_financials")

_HUNDRED = Decimal("100")


# ============================================================================
# Classification
# ============================================================================


class Channel(str, Enum):
    """Sales channel, as far as statement rules care."""

    AIRBNB = "airbnb"
    OTHER = "other"


def classify_channel(source: str | None) -> Channel:
    """Airbnb iff the source string contains "airbnb" (any case)."""
    if source and "airbnb" in source.lower():
        return Channel.AIRBNB
    return Channel.OTHER


class PayoutRule(str, Enum):
    """Which gross payout formula a reservation follows."""

    COHOST_AIRBNB = "cohost_airbnb"  # -pm_fee - cleaning
    ADD_TAX = "add_tax"  # revenue - pm_fee + tax - cleaning
    EXCLUDE_TAX = "exclude_tax"  # revenue - pm_fee - cleaning


class AmountClass(str, Enum):
    """Visual class of an amount on the rendered statement."""

    REVENUE = "revenue"
    EXPENSE = "expense"
    INFORMATIONAL = "informational"


def should_add_tax(channel: Channel, config: ListingConfig) -> bool:
    """Tax counts toward payout unless disregarded, or Airbnb without pass-through."""
    return not config.disregard_tax and (
        channel is Channel.OTHER or config.airbnb_pass_through_tax
    )


def resolve_payout_rule(channel: Channel, config: ListingConfig) -> PayoutRule:
    """
    Decision table for the payout-affecting flags.

    channel | is_cohost | disregard_tax | airbnb_pass_through | rule
    --------|-----------|---------------|---------------------|--------------
    AIRBNB  | True      | any           | any                 | COHOST_AIRBNB
    AIRBNB  | False     | True          | any                 | EXCLUDE_TAX
    AIRBNB  | False     | False         | True                | ADD_TAX
    AIRBNB  | False     | False         | False               | EXCLUDE_TAX
    OTHER   | any       | True          | any                 | EXCLUDE_TAX
    OTHER   | any       | False         | any                 | ADD_TAX
    """
    if channel is Channel.AIRBNB and config.is_cohost_on_airbnb:
        return PayoutRule.COHOST_AIRBNB
    if should_add_tax(channel, config):
        return PayoutRule.ADD_TAX
    return PayoutRule.EXCLUDE_TAX


# ============================================================================
# Fee line items
# ============================================================================

EXCLUDED_FEE_NAMES: tuple[str, ...] = ("claims fee", "resort fee", "management fee")


@dataclass(frozen=True)
class FeeBreakdown:
    """Guest-paid fees split into cleaning, other and resort buckets."""

    cleaning_fee: Decimal = ZERO
    other_fees: Decimal = ZERO
    resort_fee: Decimal = ZERO

    @property
    def total_fees(self) -> Decimal:
        """Guest-paid fees excluding the separately-reported resort fee."""
        return self.cleaning_fee + self.other_fees


def split_fee_line_items(items: Iterable[FeeLineItem]) -> FeeBreakdown:
    """
    Split raw fee items into buckets.

    Only items of type "fee" count.  Resort fees (positive amounts) are
    pulled out and summed on their own; claims, resort and management fees
    never enter the general buckets, so nothing is double counted.
    """
    cleaning = ZERO
    other = ZERO
    resort = ZERO
    for item in items:
        if item.fee_type.lower() != "fee":
            continue
        name = item.name.lower()
        if "resort fee" in name:
            if item.amount > ZERO:
                resort += item.amount
            continue
        if any(excluded in name for excluded in EXCLUDED_FEE_NAMES):
            continue
        if "cleaning" in name:
            cleaning += item.amount
        else:
            other += item.amount
    return FeeBreakdown(cleaning_fee=cleaning, other_fees=other, resort_fee=resort)


def resolve_resort_fee(reservation: Reservation) -> Decimal:
    """Resort fee from the fee items when present, else the reservation field."""
    if reservation.fee_line_items:
        return split_fee_line_items(reservation.fee_line_items).resort_fee
    return reservation.resort_fee


# ============================================================================
# PM fee
# ============================================================================


def effective_pm_fee_percentage(config: ListingConfig, created_at: date | None) -> Decimal:
    """
    PM fee % for a reservation, honoring a configured fee transition.

    Reservations created on or after ``new_pm_fee_start_date`` pay the new
    percentage; older ones (and those with no creation date) keep the base.
    """
    if (
        not config.new_pm_fee_enabled
        or config.new_pm_fee_start_date is None
        or config.new_pm_fee_percentage is None
        or created_at is None
    ):
        return config.pm_fee_percentage
    if created_at >= config.new_pm_fee_start_date:
        return config.new_pm_fee_percentage
    return config.pm_fee_percentage


def is_commission_waiver_active(config: ListingConfig, period_end: date) -> bool:
    """A waiver with no end date is indefinite; otherwise it covers statements ending on/before it."""
    if not config.waive_commission:
        return False
    if config.waive_commission_until is None:
        return True
    return period_end <= config.waive_commission_until


# ============================================================================
# Computed line
# ============================================================================


@dataclass(frozen=True)
class ComputedReservationLine:
    """
    Normalized, possibly prorated, financial breakdown of one reservation.

    ``pm_fee`` is the commission as displayed; ``pm_fee_deducted`` is what
    gross payout actually subtracts (zero under a commission waiver).
    """

    reservation_id: str
    property_id: int
    guest_name: str
    source: str
    channel: Channel
    check_in: date
    check_out: date
    payout_rule: PayoutRule
    pm_fee_percentage: Decimal
    base_rate: Money
    cleaning_fee: Money
    other_fees: Money
    platform_fees: Money
    revenue: Money
    pm_fee: Money
    pm_fee_deducted: Money
    tax_responsibility: Money
    tax_treatment: AmountClass
    cleaning_fee_pass_through: Money
    resort_fee: Money
    gross_payout: Money
    gross_payout_class: AmountClass
    proration: Proration | None = None

    @property
    def is_cohost_airbnb(self) -> bool:
        return self.payout_rule is PayoutRule.COHOST_AIRBNB

    @property
    def is_prorated(self) -> bool:
        return self.proration is not None and not self.proration.is_identity

    @property
    def commission_waived(self) -> Money:
        return self.pm_fee - self.pm_fee_deducted


def _cleaning_charge(
    reservation: Reservation,
    config: ListingConfig,
    period: StatementPeriod,
) -> Decimal:
    if not config.cleaning_fee_pass_through:
        return ZERO
    # Calendar mode charges cleaning once, in the period holding the checkout.
    if period.is_calendar and reservation.check_out > period.end:
        return ZERO
    return reservation.cleaning_fee


def normalize_reservation(
    reservation: Reservation,
    config: ListingConfig,
    period: StatementPeriod,
    currency: str = DEFAULT_CURRENCY,
) -> ComputedReservationLine:
    """
    Compute the statement line for one in-period reservation.

    Args:
        reservation: The reservation as fetched (never mutated).
        config: Its property's listing configuration.
        period: Statement period; drives proration, the calendar-mode
            cleaning rule and the commission waiver.
        currency: ISO 4217 code for every Money on the line.

    Returns:
        ComputedReservationLine.
    """
    seen, proration = prorate_reservation(reservation, period)

    channel = classify_channel(reservation.source)
    rule = resolve_payout_rule(channel, config)
    add_tax = should_add_tax(channel, config)

    raw_revenue = seen.client_revenue if seen.has_detailed_finance else seen.gross_amount
    revenue = round_money(raw_revenue)
    pm_percentage = effective_pm_fee_percentage(config, reservation.created_at)
    pm_fee = round_money(revenue * pm_percentage / _HUNDRED)
    pm_fee_deducted = ZERO if is_commission_waiver_active(config, period.end) else pm_fee
    tax = round_money(seen.client_tax_responsibility) if seen.has_detailed_finance else ZERO
    cleaning = round_money(_cleaning_charge(reservation, config, period))

    if rule is PayoutRule.COHOST_AIRBNB:
        gross_payout = -pm_fee_deducted - cleaning
    elif rule is PayoutRule.ADD_TAX:
        gross_payout = revenue - pm_fee_deducted + tax - cleaning
    else:
        gross_payout = revenue - pm_fee_deducted - cleaning

    resort_fee = resolve_resort_fee(reservation)
    if proration is not None:
        resort_fee = prorate_amount(resort_fee, proration.factor)

    def money(amount: Decimal) -> Money:
        return Money(amount=round_money(amount), currency=currency)

    line = ComputedReservationLine(
        reservation_id=reservation.reservation_id,
        property_id=coerce_property_id(reservation.property_id),
        guest_name=reservation.guest_name,
        source=reservation.source,
        channel=channel,
        check_in=reservation.check_in,
        check_out=reservation.check_out,
        payout_rule=rule,
        pm_fee_percentage=pm_percentage,
        base_rate=money(seen.base_rate),
        cleaning_fee=money(seen.cleaning_fee),
        other_fees=money(seen.other_fees),
        platform_fees=money(seen.platform_fees),
        revenue=money(revenue),
        pm_fee=money(pm_fee),
        pm_fee_deducted=money(pm_fee_deducted),
        tax_responsibility=money(tax),
        tax_treatment=AmountClass.REVENUE if add_tax else AmountClass.INFORMATIONAL,
        cleaning_fee_pass_through=money(cleaning),
        resort_fee=money(resort_fee),
        gross_payout=money(gross_payout),
        gross_payout_class=AmountClass.REVENUE if gross_payout >= ZERO else AmountClass.EXPENSE,
        proration=proration,
    )

    logger.debug("reservation_normalized", extra={
        "reservation_id": line.reservation_id,
        "property_id": line.property_id,
        "channel": channel.value,
        "payout_rule": rule.value,
        "revenue": str(line.revenue.amount),
        "pm_fee": str(line.pm_fee.amount),
        "gross_payout": str(line.gross_payout.amount),
        "prorated": line.is_prorated,
    })
    return line
