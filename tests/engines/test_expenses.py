"""
Tests for the expense filter.

Covers:
- Landlord-cover exclusion (tri-state)
- Property (direct/alternate id) and inclusive date matching
- Cleaning suppression under cleaning pass-through
- Upsell separation and totals
- Cleaning mismatch warning
"""

from datetime import date
from decimal import Decimal

import pytest

from statement_kernel.domain.dtos import Expense, ListingConfig, LlCover
from statement_engines.expenses import (
    check_cleaning_mismatch,
    filter_expenses,
    is_cleaning_expense,
)


def _expense(
    expense_id: str = "e1",
    amount: str = "-100",
    day: date = date(2025, 11, 10),
    property_id: int | str | None = 101,
    **kwargs,
) -> Expense:
    return Expense(
        expense_id=expense_id,
        amount=Decimal(amount),
        date=day,
        property_id=property_id,
        **kwargs,
    )


class TestLandlordCover:
    def test_covered_expense_excluded_regardless_of_category(self, november):
        covered = _expense("e1", "-500", category="Repairs", ll_cover=LlCover.COVERED)
        summary = filter_expenses([covered], 101, november, ListingConfig())
        assert summary.expenses == ()
        assert summary.ll_cover_expenses == (covered,)
        assert summary.total_expenses.is_zero
        assert summary.has_activity

    @pytest.mark.parametrize("ll_cover", [LlCover.NOT_COVERED, LlCover.UNKNOWN])
    def test_uncovered_or_absent_included(self, november, ll_cover):
        expense = _expense("e1", "-500", ll_cover=ll_cover)
        summary = filter_expenses([expense], 101, november, ListingConfig())
        assert summary.expenses == (expense,)
        assert summary.total_expenses.amount == Decimal("500.00")

    def test_ambiguous_flag_logged(self, november, captured_logs):
        expense = _expense("e1", "-20", ll_cover=LlCover.COVERED, ll_cover_ambiguous=True)
        filter_expenses([expense], 101, november, ListingConfig())
        warnings = [r for r in captured_logs() if r["message"] == "ll_cover_ambiguous_expense"]
        assert warnings and warnings[0]["expense_id"] == "e1"


class TestMatching:
    def test_alternate_listing_id_matches(self, november):
        expense = _expense(property_id=None, alternate_listing_id="101")
        summary = filter_expenses([expense], 101, november, ListingConfig())
        assert summary.expenses == (expense,)

    def test_expense_without_property_not_matched(self, november):
        summary = filter_expenses([_expense(property_id=None)], 101, november, ListingConfig())
        assert summary.expenses == ()
        assert not summary.has_activity

    def test_other_property_not_matched(self, november):
        summary = filter_expenses([_expense(property_id=202)], 101, november, ListingConfig())
        assert not summary.has_activity

    def test_period_bounds_inclusive(self, november):
        first = _expense("first", day=date(2025, 11, 1))
        last = _expense("last", day=date(2025, 11, 30))
        outside = _expense("outside", day=date(2025, 12, 1))
        summary = filter_expenses([first, last, outside], 101, november, ListingConfig())
        assert [e.expense_id for e in summary.expenses] == ["first", "last"]


class TestCleaningSuppression:
    @pytest.mark.parametrize(
        "fields",
        [
            {"category": "Cleaning"},
            {"expense_type": "Deep cleaning"},
            {"description": "Cleaning Service"},
            {"description": "cleaning after checkout"},
        ],
    )
    def test_cleaning_expense_recognized(self, fields):
        assert is_cleaning_expense(_expense(**fields))

    def test_description_mentioning_cleaning_later_is_not_cleaning(self):
        assert not is_cleaning_expense(_expense(description="Carpet cleaning supplies"))

    def test_cleaning_expense_suppressed_with_pass_through(self, november):
        cleaning = _expense("clean", "-150", description="Cleaning Service")
        repair = _expense("repair", "-80", category="Repairs")
        config = ListingConfig(cleaning_fee_pass_through=True)
        summary = filter_expenses([cleaning, repair], 101, november, config)
        assert summary.expenses == (repair,)
        assert summary.suppressed_cleaning == (cleaning,)
        assert summary.total_expenses.amount == Decimal("80.00")

    def test_cleaning_expense_kept_without_pass_through(self, november):
        cleaning = _expense("clean", "-150", description="Cleaning Service")
        summary = filter_expenses([cleaning], 101, november, ListingConfig())
        assert summary.expenses == (cleaning,)
        assert summary.total_expenses.amount == Decimal("150.00")


class TestUpsells:
    def test_upsells_reported_not_netted(self, november):
        cost = _expense("cost", "-100")
        upsell = _expense("upsell", "30", description="Early checkin")
        typed = _expense("typed", "-25", expense_type="upsell")
        summary = filter_expenses([cost, upsell, typed], 101, november, ListingConfig())
        assert summary.total_expenses.amount == Decimal("100.00")
        assert summary.upsells == (upsell, typed)
        assert summary.costs == (cost,)
        assert summary.total_upsells.amount == Decimal("5.00")
        assert summary.expenses == (cost, upsell, typed)

    def test_positive_non_upsell_never_reduces_expenses(self, november):
        refund = _expense("refund", "50", category="Refund")
        summary = filter_expenses([refund], 101, november, ListingConfig())
        assert summary.total_expenses.is_zero


class TestCleaningMismatch:
    def test_no_warning_without_pass_through(self, november):
        summary = filter_expenses([], 101, november, ListingConfig())
        assert check_cleaning_mismatch(summary, 3, ListingConfig()) is None

    def test_matching_counts(self, november):
        config = ListingConfig(cleaning_fee_pass_through=True)
        cleanings = [_expense(f"c{i}", "-150", category="Cleaning") for i in range(2)]
        summary = filter_expenses(cleanings, 101, november, config)
        assert check_cleaning_mismatch(summary, 2, config) is None

    def test_mismatch_reported(self, november, captured_logs):
        config = ListingConfig(cleaning_fee_pass_through=True)
        summary = filter_expenses(
            [_expense("c1", "-150", category="Cleaning")], 101, november, config
        )
        warning = check_cleaning_mismatch(summary, 3, config)
        assert warning is not None
        assert warning.reservation_count == 3
        assert warning.cleaning_expense_count == 1
        assert "3 reservation(s)" in warning.message
        assert any(r["message"] == "cleaning_mismatch_detected" for r in captured_logs())
