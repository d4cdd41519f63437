"""
Structured JSON logging for the statement engine.

Every record is a single JSON line carrying the statement context bound by
the calling layer (``correlation_id``, ``statement_id``, ``property_id``,
``actor_id``, ``trace_id``), the ``extra`` fields of the log call and, for
errors, the ``code`` and structured attributes of a StatementEngineError.

Decimal amounts, ``Money``, dates and enums in ``extra`` are serialised
losslessly (amounts as strings, never floats).
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable

from statement_kernel.domain.values import Money

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "statement_id",
    "property_id",
    "actor_id",
    "trace_id",
)

_CONTEXT_VARS: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"statement_log_{name}", default=None) for name in CONTEXT_FIELDS
}


def _context_var(name: str) -> ContextVar[str | None]:
    try:
        return _CONTEXT_VARS[name]
    except KeyError:
        raise TypeError(f"Unknown log context field: {name!r}") from None


# ---------------------------------------------------------------------------
# Statement context
# ---------------------------------------------------------------------------


class LogContext:
    """Context-local statement fields added to every log record."""

    @classmethod
    def set(cls, **fields: str | None) -> None:
        """Set context fields. None values leave the current value in place."""
        for name, value in fields.items():
            var = _context_var(name)
            if value is not None:
                var.set(value)

    @classmethod
    def get_all(cls) -> dict[str, str]:
        """All fields that currently have a value."""
        return {
            name: value
            for name, value in ((n, _CONTEXT_VARS[n].get()) for n in CONTEXT_FIELDS)
            if value is not None
        }

    @classmethod
    def clear(cls) -> None:
        for var in _CONTEXT_VARS.values():
            var.set(None)

    @classmethod
    def bind(cls, **fields: str | None) -> "_BoundContext":
        """Set fields for the duration of a ``with`` block, then restore them."""
        for name in fields:
            _context_var(name)
        return _BoundContext(fields)

    @classmethod
    def for_statement(
        cls,
        *,
        property_ids: Iterable[int | str],
        statement_id: str | None = None,
        actor_id: str | None = None,
        correlation_id: str | None = None,
    ) -> "_BoundContext":
        """Bind the context of one statement computation.

        ``property_id`` holds the comma-joined requested ids, so a combined
        statement is traceable to each of its properties.
        """
        return cls.bind(
            correlation_id=correlation_id,
            statement_id=statement_id,
            property_id=",".join(str(p) for p in property_ids),
            actor_id=actor_id,
        )


class _BoundContext:
    def __init__(self, fields: dict[str, str | None]):
        self._fields = {name: value for name, value in fields.items() if value is not None}
        self._tokens: list[tuple[ContextVar[str | None], Token[str | None]]] = []

    def __enter__(self) -> type[LogContext]:
        self._tokens = [
            (_CONTEXT_VARS[name], _CONTEXT_VARS[name].set(value))
            for name, value in self._fields.items()
        ]
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


def _to_json(obj: Any) -> Any:
    if isinstance(obj, Money):
        return {"amount": str(obj.amount), "currency": obj.currency}
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """Type, message, error code and public attributes of an exception."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

_ROOT_LOGGER = "statement_kernel"

_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``statement_kernel`` namespace, e.g. ``engines.statement``."""
    return logging.getLogger(f"{_ROOT_LOGGER}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``statement_kernel`` logger. Idempotent."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())

    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(target)


def reset_logging() -> None:
    """Drop handlers and the configured flag. FOR TESTING ONLY."""
    global _configured
    with _lock:
        _configured = False
    root = logging.getLogger(_ROOT_LOGGER)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
