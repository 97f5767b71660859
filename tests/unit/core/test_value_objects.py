"""
Unit tests for core value objects and domain exceptions.
"""
from core.domain.exceptions import (
    AccountAccessDeniedError,
    CompletionGatewayError,
    DomainException,
    PartialUpdateError,
    RecordNotFoundError,
    SchemaMissingError,
    StoreUnavailableError,
)
from core.domain.value_objects import ErrorKind


class TestErrorKind:
    """Tests for ErrorKind value object."""

    def test_str_is_value(self):
        """Test string form is the wire code."""
        assert str(ErrorKind.INSUFFICIENT_TOKENS) == "INSUFFICIENT_TOKENS"

    def test_not_found_kinds(self):
        """Test only lookup misses count as not found."""
        assert ErrorKind.ORDER_NOT_FOUND.is_not_found
        assert ErrorKind.SERIAL_NOT_FOUND.is_not_found
        assert not ErrorKind.RECORD_NOT_FOUND.is_not_found
        assert not ErrorKind.ALREADY_ACTIVATED.is_not_found


class TestLedgerExceptions:
    """Tests for ledger exception codes and payloads."""

    def test_schema_missing_names_field(self):
        """Test SchemaMissingError carries the missing field."""
        error = SchemaMissingError("token")
        assert isinstance(error, DomainException)
        assert error.field == "token"
        assert error.code == "SCHEMA_MISSING"
        assert "token" in error.message

    def test_store_unavailable_is_retryable(self):
        """Test StoreUnavailableError is flagged retryable."""
        error = StoreUnavailableError(operation="read", status=503)
        assert error.retryable is True
        assert error.operation == "read"
        assert error.status == 503
        assert error.code == "STORE_UNAVAILABLE"

    def test_record_not_found(self):
        """Test RecordNotFoundError carries the serial."""
        error = RecordNotFoundError("S9")
        assert error.serial_id == "S9"
        assert error.code == "RECORD_NOT_FOUND"

    def test_partial_update_lists_writes(self):
        """Test PartialUpdateError reports completed and failed writes."""
        cause = StoreUnavailableError()
        error = PartialUpdateError(["token_balance"], "activated", cause=cause)
        assert error.completed_writes == ("token_balance",)
        assert error.failed_write == "activated"
        assert error.cause is cause
        assert error.code == "PARTIAL_UPDATE"

    def test_relay_error_codes(self):
        """Test relay errors use their error kinds as codes."""
        assert AccountAccessDeniedError(serial_id="S1").code == "ACCESS_DENIED"
        assert CompletionGatewayError("boom", status=529).code == "COMPLETION_FAILED"
