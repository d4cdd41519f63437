"""
Hypothesis-based property tests for the statement engines.

Properties checked:
- Checkout-mode membership implies calendar overlap for stays with nights
  in the period; the overlap set does not depend on the calculation type
- Proration nights stay within [0, total_nights]; fully contained stays
  are never scaled
- Owner payout is linear in manual adjustments
- Per-property fees scale with the number of requested properties
- Statements do not depend on the order property ids are given in
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from statement_kernel.domain.dtos import (
    CalculationType,
    Expense,
    ListingConfig,
    Reservation,
    StatementInput,
    StatementPeriod,
)
from statement_engines.period_window import is_in_period, overlaps_period, resolve_window
from statement_engines.proration import calculate_proration
from statement_engines.statement import StatementResult, compute_statement

CHECKOUT_PERIOD = StatementPeriod(date(2025, 11, 1), date(2025, 11, 30))
CALENDAR_PERIOD = StatementPeriod(date(2025, 11, 1), date(2025, 11, 30), CalculationType.CALENDAR)


@st.composite
def stays(draw):
    check_in = draw(st.dates(min_value=date(2025, 8, 1), max_value=date(2026, 2, 28)))
    nights = draw(st.integers(min_value=0, max_value=120))
    return check_in, check_in + timedelta(days=nights)


@st.composite
def reservations(draw, property_ids=(101, 202, 303)):
    check_in, check_out = draw(stays())
    return Reservation(
        reservation_id=str(draw(st.integers(min_value=1, max_value=10**6))),
        property_id=draw(st.sampled_from(property_ids)),
        source=draw(st.sampled_from(["Airbnb", "VRBO", "Booking.com", "Direct"])),
        check_in=check_in,
        check_out=check_out,
        status="confirmed",
        client_revenue=draw(st.decimals(min_value=0, max_value=20000, places=2)),
        client_tax_responsibility=draw(st.decimals(min_value=0, max_value=2000, places=2)),
        cleaning_fee=draw(st.decimals(min_value=0, max_value=500, places=2)),
        has_detailed_finance=True,
    )


class TestPeriodMembership:
    @given(stay=stays())
    @settings(max_examples=300)
    def test_checkout_membership_implies_overlap(self, stay):
        check_in, check_out = stay
        if is_in_period(check_in, check_out, CHECKOUT_PERIOD) and check_out > CHECKOUT_PERIOD.start:
            assert overlaps_period(check_in, check_out, CHECKOUT_PERIOD)

    @given(stay=stays())
    @settings(max_examples=300)
    def test_calendar_membership_is_overlap(self, stay):
        check_in, check_out = stay
        assert is_in_period(check_in, check_out, CALENDAR_PERIOD) == overlaps_period(
            check_in, check_out, CALENDAR_PERIOD
        )

    @given(batch=st.lists(reservations(), max_size=15))
    @settings(max_examples=100)
    def test_overlap_set_independent_of_mode(self, batch):
        checkout = resolve_window(batch, [101, 202, 303], CHECKOUT_PERIOD)
        calendar = resolve_window(batch, [101, 202, 303], CALENDAR_PERIOD)
        assert checkout.overlap_set == calendar.overlap_set
        assert calendar.period_set == calendar.overlap_set


class TestProrationBounds:
    @given(stay=stays())
    @settings(max_examples=300)
    def test_nights_within_bounds(self, stay):
        proration = calculate_proration(stay[0], stay[1], CALENDAR_PERIOD)
        assert 0 <= proration.nights_in_period <= proration.total_nights
        assert Decimal("0") <= proration.factor <= Decimal("1")

    @given(
        start_offset=st.integers(min_value=0, max_value=28),
        nights=st.integers(min_value=1, max_value=29),
    )
    def test_contained_stay_factor_exactly_one(self, start_offset, nights):
        check_in = CALENDAR_PERIOD.start + timedelta(days=start_offset)
        check_out = min(check_in + timedelta(days=nights), CALENDAR_PERIOD.end_exclusive)
        proration = calculate_proration(check_in, check_out, CALENDAR_PERIOD)
        assert proration.factor == Decimal("1")
        assert proration.nights_in_period == proration.total_nights


def _statement_input(batch, property_ids, adjustments="0", period=CHECKOUT_PERIOD) -> StatementInput:
    anchor = Expense(
        expense_id="anchor",
        amount=Decimal("-10"),
        date=date(2025, 11, 15),
        property_id=property_ids[0],
    )
    return StatementInput(
        reservations=batch,
        expenses=(anchor,),
        listing_configs={pid: ListingConfig() for pid in property_ids},
        period=period,
        property_ids=property_ids,
        adjustments=adjustments,
    )


class TestStatementProperties:
    @given(
        batch=st.lists(reservations(), max_size=10),
        adjustment=st.decimals(min_value=-5000, max_value=5000, places=2),
    )
    @settings(max_examples=100)
    def test_payout_linear_in_adjustments(self, batch, adjustment):
        base = compute_statement(_statement_input(batch, (101, 202)))
        adjusted = compute_statement(_statement_input(batch, (101, 202), adjustments=adjustment))
        assert adjusted.owner_payout.amount - base.owner_payout.amount == adjustment

    @given(property_ids=st.lists(st.integers(min_value=1, max_value=9999), min_size=1, max_size=8, unique=True))
    @settings(max_examples=50)
    def test_fees_scale_with_property_count(self, property_ids):
        result = compute_statement(_statement_input((), tuple(property_ids)))
        assert isinstance(result, StatementResult)
        assert result.tech_fees.amount == Decimal("50") * len(property_ids)
        assert result.insurance_fees.amount == Decimal("25") * len(property_ids)

    @given(
        batch=st.lists(reservations(), max_size=10),
        order=st.permutations([101, 202, 303]),
        calendar=st.booleans(),
    )
    @settings(max_examples=100)
    def test_property_order_invariance(self, batch, order, calendar):
        period = CALENDAR_PERIOD if calendar else CHECKOUT_PERIOD
        canonical = compute_statement(_statement_input(batch, (101, 202, 303), period=period))
        reordered = compute_statement(_statement_input(batch, tuple(order), period=period))
        assert reordered.property_ids == canonical.property_ids
        assert reordered.owner_payout == canonical.owner_payout
        assert [line.reservation_id for line in reordered.lines] == [
            line.reservation_id for line in canonical.lines
        ]
