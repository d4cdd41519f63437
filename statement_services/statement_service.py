"""
statement_services.statement_service -- Owner statement generation.

Responsibility:
    The calling layer around the pure statement engine.  Binds settings
    (fee schedule, default listing config, allowed statuses), log context
    and raw-record ingestion, then delegates every computation to
    ``compute_statement``.

Architecture position:
    Services layer.  May import from statement_engines, statement_config,
    statement_ingestion and statement_kernel.

Invariants enforced:
    - Thin coordinator: no money arithmetic happens here.
    - Regeneration recomputes from inputs with the previous statement's
      property set and period; it never patches a previous result.
    - Batch generation computes each property independently; one
      property's outcome never depends on another's.
"""

from __future__ import annotations

import contextvars
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any, Iterable, Mapping, Sequence
from uuid import uuid4

from statement_config import EngineSettings, get_active_settings
from statement_config.bridges import build_default_listing_config, build_fee_schedule
from statement_engines.statement import (
    StatementResult,
    StatementSkipped,
    compute_statement,
    resolve_property_ids,
)
from statement_ingestion import (
    expense_from_record,
    listing_configs_from_records,
    reservation_from_record,
)
from statement_kernel.domain.dtos import (
    Expense,
    ListingConfig,
    Reservation,
    StatementInput,
    StatementPeriod,
    coerce_property_id,
)
from statement_kernel.domain.values import ZERO
from statement_kernel.exceptions import PropertySetMismatchError
from statement_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.statement_service")

StatementOutcome = StatementResult | StatementSkipped


def build_internal_notes(configs: Mapping[int | str, ListingConfig]) -> str:
    """
    Internal notes of every property, one ``[name]: notes`` block each.

    Properties without notes are left out; blocks are separated by a blank
    line and ordered by property id.
    """
    def order(property_id: int | str) -> tuple[bool, int, str]:
        numeric = coerce_property_id(property_id)
        return numeric is None, numeric or 0, str(property_id)

    blocks = []
    for property_id in sorted(configs, key=order):
        config = configs[property_id]
        notes = config.internal_notes.strip()
        if not notes:
            continue
        name = config.display_name.strip() or f"Property {property_id}"
        blocks.append(f"[{name}]: {notes}")
    return "\n\n".join(blocks)


class StatementService:
    """Generate, batch and regenerate owner statements."""

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self._settings = settings if settings is not None else get_active_settings()
        self._fee_schedule = build_fee_schedule(self._settings)
        self._default_config = build_default_listing_config(self._settings)

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def _build_input(
        self,
        reservations: Sequence[Reservation],
        expenses: Sequence[Expense],
        listing_configs: Mapping[int | str, ListingConfig],
        period: StatementPeriod,
        property_ids: Iterable[int | str],
        adjustments: Decimal | str | int,
    ) -> StatementInput:
        return StatementInput(
            reservations=tuple(reservations),
            expenses=tuple(expenses),
            listing_configs=dict(listing_configs),
            period=period,
            property_ids=tuple(property_ids),
            adjustments=adjustments,
            currency=self._settings.currency,
            allow_default_configs=self._settings.allow_default_configs,
            default_config=self._default_config,
        )

    def generate(
        self,
        *,
        reservations: Sequence[Reservation],
        expenses: Sequence[Expense],
        listing_configs: Mapping[int | str, ListingConfig],
        period: StatementPeriod,
        property_ids: Iterable[int | str],
        adjustments: Decimal | str | int = ZERO,
        statement_id: str | None = None,
        actor_id: str | None = None,
    ) -> StatementOutcome:
        """
        Compute a single-property or combined statement.

        Returns:
            StatementResult, or StatementSkipped when there is no activity.
        """
        property_ids = tuple(property_ids)
        statement_input = self._build_input(
            reservations, expenses, listing_configs, period, property_ids, adjustments
        )
        with LogContext.for_statement(
            property_ids=property_ids,
            statement_id=statement_id,
            actor_id=actor_id,
            correlation_id=str(uuid4()),
        ):
            outcome = compute_statement(
                statement_input,
                fee_schedule=self._fee_schedule,
                allowed_statuses=self._settings.allowed_statuses,
            )
            logger.info("statement_generated", extra={
                "outcome": "skipped" if isinstance(outcome, StatementSkipped) else "computed",
                "combined": isinstance(outcome, StatementResult) and outcome.is_combined_statement,
            })
        return outcome

    def generate_from_records(
        self,
        *,
        reservation_records: Iterable[dict[str, Any]],
        expense_records: Iterable[dict[str, Any]],
        listing_records: Iterable[dict[str, Any]],
        period: StatementPeriod,
        property_ids: Iterable[int | str],
        adjustments: Decimal | str | int = ZERO,
        statement_id: str | None = None,
        actor_id: str | None = None,
    ) -> StatementOutcome:
        """Same as ``generate``, from raw upstream records."""
        return self.generate(
            reservations=[reservation_from_record(r) for r in reservation_records],
            expenses=[expense_from_record(e) for e in expense_records],
            listing_configs=listing_configs_from_records(listing_records),
            period=period,
            property_ids=property_ids,
            adjustments=adjustments,
            statement_id=statement_id,
            actor_id=actor_id,
        )

    def generate_batch(
        self,
        *,
        reservations: Sequence[Reservation],
        expenses: Sequence[Expense],
        listing_configs: Mapping[int | str, ListingConfig],
        period: StatementPeriod,
        property_ids: Iterable[int | str],
        actor_id: str | None = None,
    ) -> dict[int, StatementOutcome]:
        """
        One statement per property, computed concurrently.

        Returns:
            Outcomes keyed by numeric property id, skips included.
        """
        ids = resolve_property_ids(property_ids)
        reservations = tuple(reservations)
        expenses = tuple(expenses)

        def run(property_id: int) -> StatementOutcome:
            return self.generate(
                reservations=reservations,
                expenses=expenses,
                listing_configs=listing_configs,
                period=period,
                property_ids=(property_id,),
                actor_id=actor_id,
            )

        with ThreadPoolExecutor(max_workers=self._settings.batch_max_workers) as pool:
            futures = {
                pid: pool.submit(contextvars.copy_context().run, run, pid) for pid in ids
            }
            outcomes = {pid: future.result() for pid, future in futures.items()}

        logger.info("statement_batch_generated", extra={
            "property_count": len(ids),
            "skipped_count": sum(1 for o in outcomes.values() if isinstance(o, StatementSkipped)),
        })
        return outcomes

    def regenerate(
        self,
        previous: StatementOutcome,
        *,
        reservations: Sequence[Reservation],
        expenses: Sequence[Expense],
        listing_configs: Mapping[int | str, ListingConfig],
        property_ids: Iterable[int | str] | None = None,
        adjustments: Decimal | str | int | None = None,
        statement_id: str | None = None,
        actor_id: str | None = None,
    ) -> StatementOutcome:
        """
        Recompute a statement for the same property set and period.

        ``adjustments`` default to the previous statement's.  When
        ``property_ids`` is given it must name the same set as before, in
        any order.

        Raises:
            PropertySetMismatchError: the property set changed.
        """
        if property_ids is not None:
            requested = resolve_property_ids(property_ids)
            if requested != previous.property_ids:
                raise PropertySetMismatchError(previous.property_ids, requested)
        if adjustments is None:
            adjustments = (
                previous.adjustments.amount if isinstance(previous, StatementResult) else ZERO
            )

        outcome = self.generate(
            reservations=reservations,
            expenses=expenses,
            listing_configs=listing_configs,
            period=previous.period,
            property_ids=previous.property_ids,
            adjustments=adjustments,
            statement_id=statement_id,
            actor_id=actor_id,
        )
        if outcome.property_ids != previous.property_ids:
            raise PropertySetMismatchError(previous.property_ids, outcome.property_ids)
        return outcome
