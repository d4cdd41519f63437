"""
Typed exception hierarchy for the statement engine.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
(not just a message string).

    StatementEngineError (base)
    |
    +-- PeriodError
    |   +-- InvalidPeriodError
    |
    +-- PropertySetError
    |   +-- EmptyPropertySetError
    |   +-- InvalidPropertyIdError
    |   +-- PropertySetMismatchError
    |
    +-- ListingConfigError
    |   +-- MissingListingConfigError
    |
    +-- CurrencyError
    |   +-- CurrencyMismatchError
    |
    +-- IngestionError
    |   +-- InvalidRecordError
    |
    +-- ConfigurationError
    |
    +-- OwnerError
        +-- OwnerNotFoundError

Code            | When raised
----------------|-----------------------------------------------------------
INVALID_PERIOD  | Statement period start is after its end
EMPTY_PROPERTY_SET | No property ids supplied for a statement
INVALID_PROPERTY_ID | A requested property id is not numeric
PROPERTY_SET_MISMATCH | Regeneration was asked for a different property set
MISSING_LISTING_CONFIG | No config for a property and defaults are disabled
CURRENCY_MISMATCH | Money arithmetic across currencies
INVALID_RECORD  | A raw record lacks a parseable id or date
INVALID_CONFIGURATION | Settings or listing YAML is malformed
OWNER_NOT_FOUND | Owner lookup with an empty owner list

"No activity" is not an error: the engine returns ``StatementSkipped``.
"""


class StatementEngineError(Exception):
    """
    Base exception for all statement engine errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "STATEMENT_ENGINE_ERROR"


# Period-related exceptions


class PeriodError(StatementEngineError):
    """Base exception for statement period errors."""

    code: str = "PERIOD_ERROR"


class InvalidPeriodError(PeriodError):
    """Statement period start is after its end."""

    code: str = "INVALID_PERIOD"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(
            f"Invalid statement period: start {start} is after end {end}"
        )


# Property set exceptions


class PropertySetError(StatementEngineError):
    """Base exception for property-set errors."""

    code: str = "PROPERTY_SET_ERROR"


class EmptyPropertySetError(PropertySetError):
    """A statement was requested without any property ids."""

    code: str = "EMPTY_PROPERTY_SET"

    def __init__(self):
        super().__init__("A statement requires at least one property id")


class InvalidPropertyIdError(PropertySetError):
    """A requested property id cannot be coerced to an integer."""

    code: str = "INVALID_PROPERTY_ID"

    def __init__(self, property_id: str):
        self.property_id = property_id
        super().__init__(f"Property id is not numeric: {property_id!r}")


class PropertySetMismatchError(PropertySetError):
    """Regeneration was requested for a different set of properties."""

    code: str = "PROPERTY_SET_MISMATCH"

    def __init__(self, expected: tuple[int, ...], actual: tuple[int, ...]):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Regenerated statement property set {list(actual)} "
            f"does not match original {list(expected)}"
        )


# Listing configuration exceptions


class ListingConfigError(StatementEngineError):
    """Base exception for listing configuration errors."""

    code: str = "LISTING_CONFIG_ERROR"


class MissingListingConfigError(ListingConfigError):
    """No configuration exists for a contributing property."""

    code: str = "MISSING_LISTING_CONFIG"

    def __init__(self, property_id: int):
        self.property_id = property_id
        super().__init__(
            f"No listing configuration for property {property_id} "
            "and default configurations are disabled"
        )


# Currency exceptions


class CurrencyError(StatementEngineError):
    """Base exception for currency errors."""

    code: str = "CURRENCY_ERROR"


class CurrencyMismatchError(CurrencyError):
    """Operation mixes two currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str, operation: str):
        self.left = left
        self.right = right
        self.operation = operation
        super().__init__(
            f"Cannot {operation} Money with different currencies: {left} and {right}"
        )


# Ingestion exceptions


class IngestionError(StatementEngineError):
    """Base exception for raw-record ingestion errors."""

    code: str = "INGESTION_ERROR"


class InvalidRecordError(IngestionError):
    """A raw record is missing a required, parseable field."""

    code: str = "INVALID_RECORD"

    def __init__(self, record_type: str, field: str, value: object):
        self.record_type = record_type
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid {record_type} record: field {field!r} has unusable value {value!r}"
        )


# Configuration exceptions


class ConfigurationError(StatementEngineError):
    """Engine settings or listing configuration file is malformed."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid configuration in {source}: {reason}")


# Owner exceptions


class OwnerError(StatementEngineError):
    """Base exception for owner lookup errors."""

    code: str = "OWNER_ERROR"


class OwnerNotFoundError(OwnerError):
    """No owners are known, so not even the default owner can be used."""

    code: str = "OWNER_NOT_FOUND"

    def __init__(self, owner_id: object):
        self.owner_id = owner_id
        super().__init__(f"No owner found for {owner_id!r} and no default owner exists")
