"""
Raw record -> DTO builders.

Responsibility:
    Convert reservation, expense, fee and listing records as delivered by
    the channel manager and the expense system (JSON dicts, camelCase keys)
    into the kernel DTOs.  snake_case aliases are accepted as well.

Architecture position:
    Ingestion -- boundary layer, ZERO I/O.  Depends on statement_kernel.

Invariants enforced:
    - Money fields never fail: null or malformed amounts become zero.
    - Ids and dates the engine needs (reservation id, check-in/out,
      expense date) must parse; otherwise InvalidRecordError.
    - ``llCover`` is read into the tri-state enum with its ambiguity
      preserved.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from statement_kernel.domain.dtos import (
    DEFAULT_PM_FEE_PERCENTAGE,
    Expense,
    FeeLineItem,
    ListingConfig,
    Reservation,
)
from statement_kernel.domain.values import to_decimal
from statement_kernel.exceptions import InvalidRecordError
from statement_kernel.logging_config import get_logger
from statement_ingestion.coercion import coerce_bool, coerce_date, coerce_ll_cover, pick

logger = get_logger("ingestion.records")


def _required_date(record: dict[str, Any], record_type: str, *keys: str) -> date:
    raw = pick(record, *keys)
    result = coerce_date(raw)
    if not result.success:
        raise InvalidRecordError(record_type, keys[0], raw)
    return result.value


def _optional_date(record: dict[str, Any], *keys: str) -> date | None:
    raw = pick(record, *keys)
    if raw is None:
        return None
    result = coerce_date(raw)
    return result.value if result.success else None


def _required_id(record: dict[str, Any], record_type: str, *keys: str) -> str:
    raw = pick(record, *keys)
    if raw is None or not str(raw).strip():
        raise InvalidRecordError(record_type, keys[0], raw)
    return str(raw).strip()


def fee_line_items_from_record(items: Iterable[dict[str, Any]] | None) -> tuple[FeeLineItem, ...]:
    """
    Parse a channel manager fee array.

    Items are either nested (``{"fee": {"name", "type"}, "amount_gross"}``)
    or flat (``{"name", "type", "amount"}``).
    """
    parsed: list[FeeLineItem] = []
    for item in items or ():
        if not isinstance(item, dict):
            continue
        fee = item.get("fee") if isinstance(item.get("fee"), dict) else item
        parsed.append(
            FeeLineItem(
                name=str(fee.get("name") or ""),
                fee_type=str(fee.get("type") or fee.get("fee_type") or ""),
                amount=to_decimal(pick(item, "amount_gross", "amountGross", "amount")),
            )
        )
    return tuple(parsed)


def reservation_from_record(record: dict[str, Any]) -> Reservation:
    """Build a Reservation from a raw channel-manager record."""
    reservation_id = _required_id(record, "reservation", "id", "reservationId", "reservation_id", "hostifyId")
    property_id = pick(record, "propertyId", "property_id", "listingId", "listing_id")
    if property_id is None:
        raise InvalidRecordError("reservation", "propertyId", None)

    other_fees = pick(record, "otherFees", "other_fees")
    if other_fees is None and pick(record, "cleaningAndOtherFees") is not None:
        other_fees = to_decimal(record["cleaningAndOtherFees"]) - to_decimal(
            pick(record, "cleaningFee", "cleaning_fee")
        )

    return Reservation(
        reservation_id=reservation_id,
        property_id=property_id,
        source=str(pick(record, "source", "channel", "platform") or ""),
        check_in=_required_date(record, "reservation", "checkInDate", "check_in", "arrivalDate"),
        check_out=_required_date(record, "reservation", "checkOutDate", "check_out", "departureDate"),
        status=str(pick(record, "status") or ""),
        base_rate=pick(record, "baseRate", "base_rate"),
        cleaning_fee=pick(record, "cleaningFee", "cleaning_fee"),
        other_fees=other_fees,
        platform_fees=pick(record, "platformFees", "platform_fees"),
        gross_amount=pick(record, "grossAmount", "gross_amount"),
        client_revenue=pick(record, "clientRevenue", "client_revenue"),
        client_tax_responsibility=pick(record, "clientTaxResponsibility", "client_tax_responsibility"),
        resort_fee=pick(record, "resortFee", "resort_fee"),
        has_detailed_finance=coerce_bool(pick(record, "hasDetailedFinance", "has_detailed_finance")),
        guest_name=str(pick(record, "guestName", "guest_name") or ""),
        created_at=_optional_date(record, "createdAt", "created_at", "bookedAt"),
        fee_line_items=fee_line_items_from_record(pick(record, "fees", "fee_line_items")),
    )


def expense_from_record(record: dict[str, Any]) -> Expense:
    """Build an Expense from a raw expense-system record."""
    raw_ll_cover = pick(record, "llCover", "ll_cover")
    reading = coerce_ll_cover(raw_ll_cover)
    expense_id = _required_id(record, "expense", "id", "expenseId", "expense_id")
    if reading.ambiguous:
        logger.debug("ll_cover_coerced", extra={
            "expense_id": expense_id,
            "raw_ll_cover": repr(raw_ll_cover),
            "ll_cover": reading.ll_cover.value,
        })

    return Expense(
        expense_id=expense_id,
        amount=to_decimal(pick(record, "amount")),
        date=_required_date(record, "expense", "date", "dateOfWork"),
        property_id=pick(record, "propertyId", "property_id"),
        alternate_listing_id=pick(record, "secureStayListingId", "alternate_listing_id"),
        description=str(pick(record, "description") or ""),
        category=str(pick(record, "category") or ""),
        expense_type=str(pick(record, "type", "expense_type") or ""),
        vendor=str(pick(record, "vendor", "contractorName") or ""),
        ll_cover=reading.ll_cover,
        ll_cover_ambiguous=reading.ambiguous,
    )


def listing_config_from_record(record: dict[str, Any]) -> ListingConfig:
    """
    Build a ListingConfig from a raw listing record.

    A null ``pmFeePercentage`` falls back to the default percentage.
    """
    pm_fee = pick(record, "pmFeePercentage", "pm_fee_percentage")
    new_pm_fee = pick(record, "newPmFeePercentage", "new_pm_fee_percentage")
    return ListingConfig(
        pm_fee_percentage=DEFAULT_PM_FEE_PERCENTAGE if pm_fee is None else to_decimal(pm_fee),
        cleaning_fee_pass_through=coerce_bool(pick(record, "cleaningFeePassThrough", "cleaning_fee_pass_through")),
        is_cohost_on_airbnb=coerce_bool(pick(record, "isCohostOnAirbnb", "is_cohost_on_airbnb")),
        disregard_tax=coerce_bool(pick(record, "disregardTax", "disregard_tax")),
        airbnb_pass_through_tax=coerce_bool(pick(record, "airbnbPassThroughTax", "airbnb_pass_through_tax")),
        guest_paid_damage_coverage=coerce_bool(pick(record, "guestPaidDamageCoverage", "guest_paid_damage_coverage")),
        waive_commission=coerce_bool(pick(record, "waiveCommission", "waive_commission")),
        waive_commission_until=_optional_date(record, "waiveCommissionUntil", "waive_commission_until"),
        new_pm_fee_enabled=coerce_bool(pick(record, "newPmFeeEnabled", "new_pm_fee_enabled")),
        new_pm_fee_start_date=_optional_date(record, "newPmFeeStartDate", "new_pm_fee_start_date"),
        new_pm_fee_percentage=None if new_pm_fee is None else to_decimal(new_pm_fee),
        display_name=str(pick(record, "displayName", "display_name", "nickname", "name") or ""),
        internal_notes=str(pick(record, "internalNotes", "internal_notes") or ""),
    )


def listing_configs_from_records(records: Iterable[dict[str, Any]]) -> dict[int | str, ListingConfig]:
    """Listing configs keyed by the record's ``id``; records without one are skipped."""
    configs: dict[int | str, ListingConfig] = {}
    for record in records:
        listing_id = pick(record, "id", "propertyId", "property_id")
        if listing_id is None:
            logger.warning("listing_record_without_id", extra={"keys": sorted(record)})
            continue
        configs[listing_id] = listing_config_from_record(record)
    return configs
