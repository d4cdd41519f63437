"""
Tests for the period window resolver.

Covers:
- Checkout-mode and calendar-mode membership boundaries
- Overlap detection independent of the calculation type
- Status and property filtering (numeric coercion)
- Deterministic ordering
"""

from datetime import date

import pytest

from statement_kernel.domain.dtos import CalculationType, Reservation, StatementPeriod
from statement_engines.period_window import (
    extends_outside_period,
    is_in_period,
    overlaps_period,
    resolve_window,
)


def _reservation(
    reservation_id: str = "r1",
    check_in: date = date(2025, 11, 10),
    check_out: date = date(2025, 11, 15),
    property_id: int | str = 101,
    status: str = "confirmed",
) -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        property_id=property_id,
        source="VRBO",
        check_in=check_in,
        check_out=check_out,
        status=status,
    )


# ============================================================================
# Predicates
# ============================================================================


class TestCheckoutMembership:
    """Checkout mode: start <= check_out <= end."""

    @pytest.fixture
    def period(self):
        return StatementPeriod(date(2025, 11, 1), date(2025, 11, 30))

    def test_checkout_on_first_day_included(self, period):
        assert is_in_period(date(2025, 10, 28), date(2025, 11, 1), period)

    def test_checkout_on_last_day_included(self, period):
        assert is_in_period(date(2025, 11, 25), date(2025, 11, 30), period)

    def test_checkout_after_period_excluded(self, period):
        assert not is_in_period(date(2025, 11, 25), date(2025, 12, 1), period)

    def test_checkout_before_period_excluded(self, period):
        assert not is_in_period(date(2025, 10, 20), date(2025, 10, 31), period)

    def test_long_stay_spanning_period_excluded(self, period):
        assert not is_in_period(date(2025, 10, 15), date(2025, 12, 15), period)


class TestCalendarMembership:
    """Calendar mode: check_in <= end and check_out > start."""

    @pytest.fixture
    def period(self):
        return StatementPeriod(date(2025, 11, 1), date(2025, 11, 30), CalculationType.CALENDAR)

    def test_checkout_on_start_excluded(self, period):
        """The checkout day itself is not a night in the period."""
        assert not is_in_period(date(2025, 10, 28), date(2025, 11, 1), period)

    def test_check_in_on_last_day_included(self, period):
        assert is_in_period(date(2025, 11, 30), date(2025, 12, 3), period)

    def test_long_stay_spanning_period_included(self, period):
        assert is_in_period(date(2025, 10, 15), date(2025, 12, 15), period)

    def test_check_in_after_period_excluded(self, period):
        assert not is_in_period(date(2025, 12, 1), date(2025, 12, 3), period)


class TestOverlap:
    def test_overlap_ignores_calculation_type(self):
        checkout = StatementPeriod(date(2025, 11, 1), date(2025, 11, 30))
        calendar = StatementPeriod(date(2025, 11, 1), date(2025, 11, 30), CalculationType.CALENDAR)
        stay = (date(2025, 10, 15), date(2025, 12, 15))
        assert overlaps_period(*stay, checkout)
        assert overlaps_period(*stay, calendar)

    def test_extends_outside(self):
        period = StatementPeriod(date(2025, 11, 1), date(2025, 11, 30))
        assert extends_outside_period(date(2025, 10, 31), date(2025, 11, 5), period)
        assert extends_outside_period(date(2025, 11, 28), date(2025, 12, 1), period)
        assert not extends_outside_period(date(2025, 11, 1), date(2025, 11, 30), period)


# ============================================================================
# resolve_window
# ============================================================================


class TestResolveWindow:
    def test_long_stay_in_overlap_but_not_period_set(self, november):
        long_stay = _reservation("long", date(2025, 10, 15), date(2025, 12, 15))
        window = resolve_window([long_stay], [101], november)
        assert window.period_set == ()
        assert window.overlap_set == (long_stay,)

    def test_status_filter_case_insensitive(self, november):
        kept = [_reservation(f"r-{s}", status=s) for s in ("Confirmed", "MODIFIED", "new", "accepted")]
        dropped = [_reservation(f"r-{s}", status=s) for s in ("cancelled", "inquiry", "")]
        window = resolve_window(kept + dropped, [101], november)
        assert {r.reservation_id for r in window.period_set} == {r.reservation_id for r in kept}

    def test_property_ids_coerced_on_both_sides(self, november):
        as_string = _reservation("a", property_id="101")
        as_int = _reservation("b", property_id=101)
        other = _reservation("c", property_id=202)
        window = resolve_window([as_string, as_int, other], ["101"], november)
        assert [r.reservation_id for r in window.period_set] == ["a", "b"]
        assert window.property_ids == (101,)

    def test_non_numeric_property_never_matches(self, november):
        weird = _reservation("w", property_id="abc")
        window = resolve_window([weird], ["abc", 101], november)
        assert window.period_set == ()
        assert window.property_ids == (101,)

    def test_sorted_by_check_in_then_id(self, november):
        later = _reservation("a", date(2025, 11, 20), date(2025, 11, 22))
        earlier_b = _reservation("b", date(2025, 11, 2), date(2025, 11, 4))
        earlier_a = _reservation("a0", date(2025, 11, 2), date(2025, 11, 5))
        window = resolve_window([later, earlier_b, earlier_a], [101], november)
        assert [r.reservation_id for r in window.period_set] == ["a0", "b", "a"]

    def test_for_property_restricts_both_sets(self, november):
        first = _reservation("a", property_id=101)
        second = _reservation("b", property_id=202)
        window = resolve_window([first, second], [101, 202], november)
        only_second = window.for_property(202)
        assert only_second.period_set == (second,)
        assert only_second.overlap_set == (second,)
        assert only_second.property_ids == (202,)

    def test_checkout_membership_subset_of_overlap(self, november):
        reservations = [
            _reservation("in", date(2025, 11, 3), date(2025, 11, 6)),
            _reservation("spanning", date(2025, 10, 20), date(2025, 12, 2)),
            _reservation("before", date(2025, 10, 1), date(2025, 10, 5)),
        ]
        window = resolve_window(reservations, [101], november)
        assert set(window.period_set) <= set(window.overlap_set)
