"""Ingestion boundary: raw reservation, expense and listing records to kernel DTOs."""

from statement_ingestion.coercion import (
    CoercionResult,
    LlCoverReading,
    coerce_bool,
    coerce_date,
    coerce_ll_cover,
)
from statement_ingestion.records import (
    expense_from_record,
    fee_line_items_from_record,
    listing_config_from_record,
    listing_configs_from_records,
    reservation_from_record,
)

__all__ = [
    "CoercionResult",
    "LlCoverReading",
    "coerce_bool",
    "coerce_date",
    "coerce_ll_cover",
    "expense_from_record",
    "fee_line_items_from_record",
    "listing_config_from_record",
    "listing_configs_from_records",
    "reservation_from_record",
]
