"""
Unit tests for ClaimTokensHandler.
"""
import pytest

from core.domain.exceptions import (
    PartialUpdateError,
    RecordNotFoundError,
    SchemaMissingError,
    StoreUnavailableError,
)
from core.domain.value_objects import ErrorKind
from ledger.application.commands.claim_tokens import ClaimTokensCommand
from ledger.application.commands.consume_tokens import ConsumeTokensCommand
from ledger.application.handlers.claim_tokens_handler import ClaimTokensHandler
from ledger.application.handlers.consume_tokens_handler import ConsumeTokensHandler
from ledger.domain.events import TokensClaimed
from ledger.infrastructure.repositories.sheet_persistence_writer import SheetPersistenceWriter
from ledger.infrastructure.repositories.sheet_record_locator import SheetRecordLocator

from conftest import HEADER, SHEET_NAME, FlakyTabularStore, cell

GRANT = 500000


def make_handler(store, locks, event_bus):
    return ClaimTokensHandler(
        SheetRecordLocator(store, SHEET_NAME),
        SheetPersistenceWriter(store, SHEET_NAME),
        locks,
        GRANT,
        event_bus=event_bus,
    )


@pytest.mark.asyncio
class TestClaimTokensHandler:
    """Tests for ClaimTokensHandler."""

    async def test_claim_funds_serial_and_activates_order(
        self, memory_store, locator, writer, locks, event_bus, recorder
    ):
        """Test a claim sets the balance and marks the order activated."""
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        result = await handler.handle(
            ClaimTokensCommand(order_id="100", serial_id="S1", device_id="mac-1")
        )

        assert result.success is True
        assert result.granted_tokens == GRANT
        assert result.new_balance == GRANT
        assert result.previous_balance == 0
        assert result.row_index == 2
        assert cell(memory_store, 2, 2) == "500000"
        assert cell(memory_store, 2, 3) == "TRUE"

        events = recorder.of_type(TokensClaimed)
        assert len(events) == 1
        assert events[0].serial_id == "S1"
        assert events[0].granted_tokens == GRANT

    async def test_claim_sets_rather_than_adds(self, memory_store, locator, writer, locks, event_bus):
        """Test the grant overwrites an existing balance on the serial row."""
        memory_store.replace_sheet(
            SHEET_NAME,
            [HEADER, ["S1", "#100", "0", "FALSE", "FALSE"], ["S7", "#700", "42", "FALSE", "FALSE"]],
        )
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        result = await handler.handle(ClaimTokensCommand(order_id="#100", serial_id="S7"))

        assert result.previous_balance == 42
        assert cell(memory_store, 3, 2) == "500000"
        # activation goes on the order row, funding on the serial row
        assert cell(memory_store, 2, 3) == "TRUE"
        assert cell(memory_store, 3, 3) == "FALSE"

    async def test_double_claim_rejected(self, memory_store, locator, writer, locks, event_bus):
        """Test a second claim of the same order is refused without writes."""
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)
        await handler.handle(ClaimTokensCommand(order_id="#100", serial_id="S1"))
        await ConsumeTokensHandler(locator, writer, locks, event_bus=event_bus).handle(
            ConsumeTokensCommand(serial_id="S1", amount=100)
        )

        result = await handler.handle(ClaimTokensCommand(order_id="100", serial_id="S1"))

        assert result.success is False
        assert result.kind == ErrorKind.ALREADY_ACTIVATED
        assert result.activated is True
        assert cell(memory_store, 2, 2) == "499900"

    async def test_already_activated(self, locator, writer, locks, event_bus, recorder):
        """Test claiming an activated order."""
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        result = await handler.handle(ClaimTokensCommand(order_id="200", serial_id="S2"))

        assert result.kind == ErrorKind.ALREADY_ACTIVATED
        assert result.state()["order_number"] == "200"
        assert recorder.events == []

    async def test_terminated_order_never_reactivates(self, memory_store, locator, writer, locks, event_bus):
        """Test a terminated order is refused even if not marked activated."""
        memory_store.replace_sheet(
            SHEET_NAME, [HEADER, ["S4", "#400", "0", "FALSE", "TRUE"]]
        )
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        result = await handler.handle(ClaimTokensCommand(order_id="400", serial_id="S4"))

        assert result.kind == ErrorKind.ALREADY_TERMINATED
        assert result.terminated is True
        assert cell(memory_store, 2, 2) == "0"

    async def test_terminated_serial_is_not_refunded(
        self, memory_store, locator, writer, locks, event_bus, recorder
    ):
        """Test a fresh order cannot credit a serial whose own row is terminated."""
        memory_store.replace_sheet(
            SHEET_NAME,
            [
                HEADER,
                ["S9", "#900", "0", "TRUE", "TRUE"],
                ["", "#100", "", "FALSE", "FALSE"],
            ],
        )
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        result = await handler.handle(ClaimTokensCommand(order_id="100", serial_id="S9"))

        assert result.success is False
        assert result.kind == ErrorKind.ALREADY_TERMINATED
        assert result.message == "Serial has been terminated"
        assert result.terminated is True
        assert result.current_balance == 0
        assert memory_store.snapshot(SHEET_NAME)[1] == ["S9", "#900", "0", "TRUE", "TRUE"]
        # the order stays claimable by a live serial
        assert cell(memory_store, 3, 3) == "FALSE"
        assert recorder.of_type(TokensClaimed) == []

    async def test_order_not_found(self, locator, writer, locks, event_bus):
        """Test an unknown order is a rejection, not an error."""
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        result = await handler.handle(ClaimTokensCommand(order_id="999", serial_id="S1"))

        assert result.kind == ErrorKind.ORDER_NOT_FOUND
        assert result.kind.is_not_found
        assert result.message == "Order number not found"

    async def test_unknown_serial(self, memory_store, locator, writer, locks, event_bus):
        """Test a claim naming an unknown serial raises and writes nothing."""
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        with pytest.raises(RecordNotFoundError) as exc_info:
            await handler.handle(ClaimTokensCommand(order_id="100", serial_id="S9"))

        assert exc_info.value.serial_id == "S9"
        assert cell(memory_store, 2, 3) == "FALSE"

    async def test_missing_token_column(self, memory_store, locator, writer, locks, event_bus):
        """Test claims need a token column."""
        memory_store.replace_sheet(SHEET_NAME, [["Serial", "Order"], ["S1", "100"]])
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        with pytest.raises(SchemaMissingError):
            await handler.handle(ClaimTokensCommand(order_id="100", serial_id="S1"))

    async def test_missing_activated_column(self, memory_store, locator, writer, locks, event_bus):
        """Test a sheet without an activated column only gets the balance write."""
        memory_store.replace_sheet(SHEET_NAME, [["Serial", "Order", "Token"], ["S1", "100", "0"]])
        handler = ClaimTokensHandler(locator, writer, locks, GRANT, event_bus=event_bus)

        result = await handler.handle(ClaimTokensCommand(order_id="100", serial_id="S1"))

        assert result.success is True
        assert memory_store.snapshot(SHEET_NAME)[1] == ["S1", "100", "500000"]

    async def test_activation_write_failure_is_partial(self, sheet_rows, locks, event_bus, recorder):
        """Test a failing activation write reports the landed balance write."""
        store = FlakyTabularStore({SHEET_NAME: sheet_rows}, fail_ranges={"'Sheet1'!D2"})
        handler = make_handler(store, locks, event_bus)

        with pytest.raises(PartialUpdateError) as exc_info:
            await handler.handle(ClaimTokensCommand(order_id="100", serial_id="S1"))

        assert exc_info.value.completed_writes == ("token_balance",)
        assert exc_info.value.failed_write == "activated"
        assert cell(store, 2, 2) == "500000"
        assert cell(store, 2, 3) == "FALSE"
        assert recorder.events == []

    async def test_balance_write_failure_changes_nothing(self, sheet_rows, locks, event_bus):
        """Test a failing first write surfaces as store unavailable."""
        store = FlakyTabularStore({SHEET_NAME: sheet_rows}, fail_ranges={"'Sheet1'!C2"})
        handler = make_handler(store, locks, event_bus)

        with pytest.raises(StoreUnavailableError):
            await handler.handle(ClaimTokensCommand(order_id="100", serial_id="S1"))

        assert store.writes == []
        assert cell(store, 2, 3) == "FALSE"
