"""
Value objects for the domain.

Value objects are immutable and compared by value. The ledger keeps
its error taxonomy here so the domain, application and API layers
share one vocabulary.
"""
from enum import Enum


class ErrorKind(Enum):
    """Machine-readable kinds for ledger failures and rejections."""

    # Configuration / availability
    SCHEMA_MISSING = "SCHEMA_MISSING"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    # Not-found outcomes
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    SERIAL_NOT_FOUND = "SERIAL_NOT_FOUND"
    RECORD_NOT_FOUND = "RECORD_NOT_FOUND"

    # Policy violations
    ALREADY_ACTIVATED = "ALREADY_ACTIVATED"
    ALREADY_TERMINATED = "ALREADY_TERMINATED"
    INSUFFICIENT_TOKENS = "INSUFFICIENT_TOKENS"
    INVALID_AMOUNT = "INVALID_AMOUNT"

    # Write failures
    PARTIAL_UPDATE = "PARTIAL_UPDATE"

    # Completion relay
    ACCESS_DENIED = "ACCESS_DENIED"
    COMPLETION_FAILED = "COMPLETION_FAILED"

    def __str__(self) -> str:
        """Return kind as string."""
        return self.value

    @property
    def is_not_found(self) -> bool:
        """True for outcomes that mean 'entity absent' rather than failure."""
        return self in (ErrorKind.ORDER_NOT_FOUND, ErrorKind.SERIAL_NOT_FOUND)
