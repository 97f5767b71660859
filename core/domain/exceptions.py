"""
Domain exceptions.

Domain exceptions represent hard failures of the ledger: a store that
cannot be reached, a sheet missing a mandatory column, or a multi-cell
update that only partly landed. Expected business outcomes (not found,
already activated, insufficient tokens) are returned as rejection values
by the handlers instead.
"""
from typing import Optional, Sequence, Tuple

from core.domain.value_objects import ErrorKind


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class LedgerException(DomainException):
    """Base exception for ledger errors."""

    kind: ErrorKind = None

    def __init__(self, message: str):
        super().__init__(message, code=self.kind.value if self.kind else None)


class SchemaMissingError(LedgerException):
    """Raised when the sheet header lacks a column an operation needs."""

    kind = ErrorKind.SCHEMA_MISSING

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Could not find a '{field}' column in the sheet header")


class StoreUnavailableError(LedgerException):
    """
    Raised when the tabular store cannot be reached or answers with an error.

    Always retryable from the caller's point of view; the service itself
    never retries.
    """

    kind = ErrorKind.STORE_UNAVAILABLE
    retryable = True

    def __init__(
        self,
        message: str = "Tabular store unavailable",
        operation: Optional[str] = None,
        status: Optional[int] = None,
    ):
        self.operation = operation
        self.status = status
        super().__init__(message)


class RecordNotFoundError(LedgerException):
    """Raised when a claim finds the order but no row carries the serial."""

    kind = ErrorKind.RECORD_NOT_FOUND

    def __init__(self, serial_id: str):
        self.serial_id = serial_id
        super().__init__(f"Serial number {serial_id} not found in spreadsheet")


class PartialUpdateError(LedgerException):
    """
    Raised when a multi-cell update fails after some writes succeeded.

    The sheet is left partially applied and needs manual reconciliation,
    so the error names exactly which writes landed.
    """

    kind = ErrorKind.PARTIAL_UPDATE

    def __init__(
        self,
        completed_writes: Sequence[str],
        failed_write: str,
        cause: Optional[Exception] = None,
    ):
        self.completed_writes: Tuple[str, ...] = tuple(completed_writes)
        self.failed_write = failed_write
        self.cause = cause
        super().__init__(
            f"Write '{failed_write}' failed after {', '.join(self.completed_writes)} "
            f"succeeded; record is partially updated"
        )


class AccountAccessDeniedError(DomainException):
    """Raised when an account may not use the completion relay."""

    def __init__(self, message: str = "API access denied", serial_id: Optional[str] = None):
        super().__init__(message, code=ErrorKind.ACCESS_DENIED.value)
        self.serial_id = serial_id


class CompletionGatewayError(DomainException):
    """Raised when the upstream completion API fails or times out."""

    def __init__(self, message: str, status: Optional[int] = None, details=None):
        super().__init__(message, code=ErrorKind.COMPLETION_FAILED.value)
        self.status = status
        self.details = details
