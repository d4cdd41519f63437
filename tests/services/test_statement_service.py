"""
Tests for the statement service layer.

Covers:
- Single and combined generation, from DTOs and from raw records
- Batch generation keyed by property id
- Regeneration against the previous property set
- Internal notes aggregation and owner resolution
"""

from datetime import date
from decimal import Decimal

import pytest

from statement_config.schema import EngineSettings
from statement_kernel.domain.dtos import Expense, ListingConfig, Reservation, StatementPeriod
from statement_kernel.exceptions import (
    MissingListingConfigError,
    OwnerNotFoundError,
    PropertySetMismatchError,
)
from statement_engines.statement import StatementResult, StatementSkipped
from statement_services import (
    Owner,
    StatementService,
    build_internal_notes,
    resolve_owner,
)


def _reservation(reservation_id: str, property_id: int, revenue: str = "1000") -> Reservation:
    return Reservation(
        reservation_id=reservation_id,
        property_id=property_id,
        source="VRBO",
        check_in=date(2025, 11, 10),
        check_out=date(2025, 11, 15),
        status="confirmed",
        client_revenue=Decimal(revenue),
        has_detailed_finance=True,
    )


RESERVATIONS = (_reservation("a", 101), _reservation("b", 202, revenue="2000"))
EXPENSES = (
    Expense(expense_id="e1", amount=Decimal("-100"), date=date(2025, 11, 12), property_id=101),
)
CONFIGS = {
    101: ListingConfig(display_name="Ocean View"),
    202: ListingConfig(pm_fee_percentage=Decimal("20")),
    303: ListingConfig(),
}


@pytest.fixture
def service():
    return StatementService(EngineSettings())


class TestGenerate:
    def test_single_property(self, service, november):
        result = service.generate(
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
            period=november,
            property_ids=["101"],
            adjustments="5",
        )
        assert isinstance(result, StatementResult)
        assert result.property_ids == (101,)
        # 1000 - 100 - 150 - 50 - 25 + 5
        assert result.owner_payout.amount == Decimal("680.00")

    def test_combined(self, service, november):
        result = service.generate(
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
            period=november,
            property_ids=[202, 101],
        )
        assert result.is_combined_statement
        assert result.property_ids == (101, 202)
        assert result.total_revenue.amount == Decimal("3000.00")
        assert result.tech_fees.amount == Decimal("100")
        assert result.insurance_fees.amount == Decimal("50")

    def test_skip_when_no_activity(self, service, november):
        outcome = service.generate(
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
            period=november,
            property_ids=[303],
        )
        assert isinstance(outcome, StatementSkipped)

    def test_settings_fee_schedule_applied(self, november):
        service = StatementService(EngineSettings(tech_fee_per_property=Decimal("70")))
        result = service.generate(
            reservations=RESERVATIONS,
            expenses=(),
            listing_configs=CONFIGS,
            period=november,
            property_ids=[101],
        )
        assert result.tech_fees.amount == Decimal("70")

    def test_defaults_disallowed(self, november):
        service = StatementService(EngineSettings(allow_default_configs=False))
        with pytest.raises(MissingListingConfigError):
            service.generate(
                reservations=RESERVATIONS,
                expenses=(),
                listing_configs={},
                period=november,
                property_ids=[101],
            )

    def test_context_bound_in_logs(self, service, november, captured_logs):
        service.generate(
            reservations=RESERVATIONS,
            expenses=(),
            listing_configs=CONFIGS,
            period=november,
            property_ids=[101],
            statement_id="stmt-42",
            actor_id="ops",
        )
        generated = [r for r in captured_logs() if r["message"] == "statement_generated"]
        assert generated[0]["statement_id"] == "stmt-42"
        assert generated[0]["actor_id"] == "ops"
        assert generated[0]["outcome"] == "computed"
        assert "correlation_id" in generated[0]

    def test_from_records(self, service, november):
        result = service.generate_from_records(
            reservation_records=[{
                "id": 1,
                "propertyId": 101,
                "source": "VRBO",
                "checkInDate": "2025-11-03",
                "checkOutDate": "2025-11-06",
                "status": "Confirmed",
                "clientRevenue": "500",
                "hasDetailedFinance": True,
            }],
            expense_records=[{
                "id": 9, "amount": "-40", "date": "2025-11-04",
                "secureStayListingId": "101", "llCover": 0,
            }],
            listing_records=[{"id": 101, "pmFeePercentage": 10}],
            period=november,
            property_ids=[101],
        )
        assert result.total_revenue.amount == Decimal("500.00")
        assert result.pm_commission.amount == Decimal("50.00")
        assert result.total_expenses.amount == Decimal("40.00")


class TestGenerateBatch:
    def test_outcomes_keyed_by_property(self, service, november):
        outcomes = service.generate_batch(
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
            period=november,
            property_ids=["303", 101, 202],
        )
        assert list(outcomes) == [101, 202, 303]
        assert outcomes[101].total_revenue.amount == Decimal("1000.00")
        assert outcomes[202].pm_commission.amount == Decimal("400.00")
        assert isinstance(outcomes[303], StatementSkipped)

    def test_batch_matches_individual(self, service, november):
        outcomes = service.generate_batch(
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
            period=november,
            property_ids=[101, 202],
        )
        single = service.generate(
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
            period=november,
            property_ids=[202],
        )
        assert outcomes[202].owner_payout == single.owner_payout


class TestRegenerate:
    def _previous(self, service, period):
        return service.generate(
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
            period=period,
            property_ids=[101, 202],
            adjustments="25",
        )

    def test_same_inputs_same_totals(self, service, november):
        previous = self._previous(service, november)
        regenerated = service.regenerate(
            previous,
            reservations=RESERVATIONS,
            expenses=EXPENSES,
            listing_configs=CONFIGS,
        )
        assert regenerated.owner_payout == previous.owner_payout
        assert regenerated.adjustments.amount == Decimal("25.00")
        assert regenerated.period == previous.period

    def test_updated_inputs_recomputed(self, service, november):
        previous = self._previous(service, november)
        extra = Expense(expense_id="e2", amount=Decimal("-60"), date=date(2025, 11, 20), property_id=202)
        regenerated = service.regenerate(
            previous,
            reservations=RESERVATIONS,
            expenses=EXPENSES + (extra,),
            listing_configs=CONFIGS,
            property_ids=["202", "101"],
        )
        assert regenerated.owner_payout.amount == previous.owner_payout.amount - Decimal("60")

    def test_property_set_change_rejected(self, service, november):
        previous = self._previous(service, november)
        with pytest.raises(PropertySetMismatchError):
            service.regenerate(
                previous,
                reservations=RESERVATIONS,
                expenses=EXPENSES,
                listing_configs=CONFIGS,
                property_ids=[101],
            )


class TestInternalNotes:
    def test_blocks_ordered_by_id(self):
        notes = build_internal_notes({
            "202": ListingConfig(internal_notes="Gate code changes monthly"),
            101: ListingConfig(display_name="Ocean View", internal_notes="Owner prefers email"),
            303: ListingConfig(),
        })
        assert notes == (
            "[Ocean View]: Owner prefers email\n\n"
            "[Property 202]: Gate code changes monthly"
        )

    def test_empty(self):
        assert build_internal_notes({}) == ""


class TestResolveOwner:
    OWNERS = (
        Owner(owner_id=7, name="Pat Rivera"),
        Owner(owner_id="default", name="Default"),
        Owner(owner_id=12, name="Sam Okafor"),
    )

    @pytest.mark.parametrize("requested", [1, "1", "default", None, ""])
    def test_default_aliases(self, requested):
        assert resolve_owner(requested, self.OWNERS).owner_id == "default"

    def test_known_owner_numeric_match(self):
        assert resolve_owner("12", self.OWNERS).name == "Sam Okafor"

    def test_unknown_owner_falls_back(self, captured_logs):
        assert resolve_owner(99, self.OWNERS).owner_id == 7
        assert any(r["message"] == "owner_fallback_to_default" for r in captured_logs())

    def test_no_default_uses_first(self):
        owners = (Owner(owner_id=5, name="Alex"),)
        assert resolve_owner("default", owners).owner_id == 5

    def test_no_owners(self):
        with pytest.raises(OwnerNotFoundError):
            resolve_owner(1, ())
