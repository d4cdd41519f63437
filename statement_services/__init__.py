"""
statement_services -- Calling layer around the statement engine.

Usage:
    from statement_services import StatementService

    service = StatementService()
    outcome = service.generate(
        reservations=reservations,
        expenses=expenses,
        listing_configs=configs,
        period=StatementPeriod(date(2025, 11, 1), date(2025, 11, 30)),
        property_ids=[101],
    )
"""

from statement_services.owners import Owner, resolve_owner
from statement_services.statement_service import (
    StatementOutcome,
    StatementService,
    build_internal_notes,
)

__all__ = [
    "Owner",
    "StatementOutcome",
    "StatementService",
    "build_internal_notes",
    "resolve_owner",
]
