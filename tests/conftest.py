"""
Pytest fixtures for the statement engine test suite.

Provides:
- Structured logging configuration for the whole session
- LogContext cleanup between tests
- ``captured_logs`` for asserting on emitted log records
- Common statement periods
"""

import json
import logging
from datetime import date
from io import StringIO

import pytest

from statement_kernel.domain.dtos import CalculationType, StatementPeriod
from statement_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture statement_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_statement(statement_input)
            logs = captured_logs()
            assert any(r["message"] == "statement_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("statement_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Periods
# =============================================================================


@pytest.fixture
def november():
    """Checkout-mode November 2025 statement period."""
    return StatementPeriod(date(2025, 11, 1), date(2025, 11, 30))


@pytest.fixture
def november_calendar():
    """Calendar-mode November 2025 statement period."""
    return StatementPeriod(date(2025, 11, 1), date(2025, 11, 30), CalculationType.CALENDAR)
