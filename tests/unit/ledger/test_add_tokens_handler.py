"""
Unit tests for AddTokensHandler.
"""
import asyncio

import pytest

from core.domain.exceptions import SchemaMissingError
from core.domain.value_objects import ErrorKind
from ledger.application.commands.add_tokens import AddTokensCommand
from ledger.application.handlers.add_tokens_handler import AddTokensHandler
from ledger.domain.events import TokensAdded
from ledger.infrastructure.in_memory_store import InMemoryTabularStore
from ledger.infrastructure.repositories.sheet_persistence_writer import SheetPersistenceWriter
from ledger.infrastructure.repositories.sheet_record_locator import SheetRecordLocator

from conftest import SHEET_NAME, cell


class SlowReadStore(InMemoryTabularStore):
    """In-memory store whose reads take long enough for requests to overlap."""

    async def read_rows(self, a1_range):
        rows = await super().read_rows(a1_range)
        await asyncio.sleep(0.05)
        return rows


@pytest.fixture
def handler(locator, writer, locks, event_bus):
    return AddTokensHandler(locator, writer, locks, event_bus=event_bus)


@pytest.mark.asyncio
class TestAddTokensHandler:
    """Tests for AddTokensHandler."""

    async def test_add_to_existing_serial(self, handler, memory_store, recorder):
        """Test tokens are credited to an existing row."""
        result = await handler.handle(AddTokensCommand(serial_id="S2", amount=300))

        assert result.success is True
        assert result.created is False
        assert result.previous_balance == 1200
        assert result.new_balance == 1500
        assert result.row_index == 3
        assert cell(memory_store, 3, 2) == "1500"

        events = recorder.of_type(TokensAdded)
        assert len(events) == 1
        assert events[0].created_row is False

    async def test_unknown_serial_gets_new_row(self, handler, memory_store, recorder):
        """Test an unknown serial is appended as a new row."""
        result = await handler.handle(AddTokensCommand(serial_id="S9", amount=250))

        assert result.created is True
        assert result.previous_balance == 0
        assert result.new_balance == 250
        assert result.row_index == 5
        assert memory_store.snapshot(SHEET_NAME)[4] == ["S9", "", "250"]
        assert recorder.of_type(TokensAdded)[0].created_row is True

    async def test_new_row_is_found_next_time(self, handler, memory_store):
        """Test a created row is credited in place afterwards."""
        await handler.handle(AddTokensCommand(serial_id="S9", amount=250))

        result = await handler.handle(AddTokensCommand(serial_id="S9", amount=50))

        assert result.created is False
        assert result.new_balance == 300
        assert len(memory_store.snapshot(SHEET_NAME)) == 5

    async def test_terminated_serial_rejected(self, handler, memory_store, recorder):
        """Test terminated accounts cannot be topped up."""
        result = await handler.handle(AddTokensCommand(serial_id="S3", amount=10))

        assert result.kind == ErrorKind.ALREADY_TERMINATED
        assert result.current_balance == 75
        assert cell(memory_store, 4, 2) == "75"
        assert recorder.events == []

    @pytest.mark.parametrize("amount", [0, -1, 2.5])
    async def test_invalid_amount(self, handler, amount):
        """Test invalid amounts are refused."""
        result = await handler.handle(AddTokensCommand(serial_id="S2", amount=amount))
        assert result.kind == ErrorKind.INVALID_AMOUNT

    async def test_blank_serial(self, handler):
        """Test a blank serial is a programming error."""
        with pytest.raises(ValueError):
            await handler.handle(AddTokensCommand(serial_id="", amount=1))

    async def test_missing_token_column(self, handler, memory_store):
        """Test crediting needs a token column."""
        memory_store.replace_sheet(SHEET_NAME, [["Serial", "Order"], ["S1", "1"]])

        with pytest.raises(SchemaMissingError):
            await handler.handle(AddTokensCommand(serial_id="S1", amount=1))

    async def test_concurrent_new_serials_get_distinct_rows(self, sheet_rows, locks, event_bus):
        """Test two unknown serials credited at once never share the appended row."""
        store = SlowReadStore({SHEET_NAME: sheet_rows})
        handler = AddTokensHandler(
            SheetRecordLocator(store, SHEET_NAME),
            SheetPersistenceWriter(store, SHEET_NAME),
            locks,
            event_bus=event_bus,
        )

        first, second = await asyncio.gather(
            handler.handle(AddTokensCommand(serial_id="NEW-A", amount=10)),
            handler.handle(AddTokensCommand(serial_id="NEW-B", amount=20)),
        )

        assert first.created is True and second.created is True
        assert sorted([first.row_index, second.row_index]) == [5, 6]
        rows = store.snapshot(SHEET_NAME)
        assert len(rows) == 6
        credited = {row[0]: row[2] for row in rows[4:]}
        assert credited == {"NEW-A": "10", "NEW-B": "20"}
