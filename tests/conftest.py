"""
Pytest configuration and shared fixtures.
"""

from typing import List

import pytest
from django.apps import apps
from django.conf import settings

from core.domain.events import DomainEvent, EventHandler
from core.domain.exceptions import StoreUnavailableError
from core.infrastructure.events import InMemoryEventBus
from ledger.infrastructure.container import build_ledger_services
from ledger.infrastructure.in_memory_store import InMemoryTabularStore
from ledger.infrastructure.repositories.sheet_persistence_writer import SheetPersistenceWriter
from ledger.infrastructure.repositories.sheet_record_locator import SheetRecordLocator
from ledger.infrastructure.serial_locks import SerialLockRegistry
from ledger.ports.completion_gateway import CompletionGateway, CompletionResult

SHEET_NAME = "Sheet1"

HEADER = ["Serial", "ClientOrder", "Token", "Activated", "Terminated"]

CLIENT_AGENT = "SecureJUCEClient/2.1 (macOS)"


class RecordingEventHandler(EventHandler):
    """Event handler that keeps every event it receives."""

    def __init__(self):
        self.events: List[DomainEvent] = []

    async def handle(self, event: DomainEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type):
        return [event for event in self.events if isinstance(event, event_type)]


class FakeCompletionGateway(CompletionGateway):
    """Completion gateway returning a canned answer."""

    def __init__(self, text="Hello from the model", usage=None):
        self.text = text
        self.usage = usage or {"input": 12, "output": 30, "cache_creation": 0, "cache_read": 4}
        self.prompts = []

    async def complete(self, prompt: str, model: str) -> CompletionResult:
        self.prompts.append((prompt, model))
        return CompletionResult(text=self.text, model=model, usage=dict(self.usage))


class FlakyTabularStore(InMemoryTabularStore):
    """In-memory store that records writes and fails chosen ranges."""

    def __init__(self, sheets=None, fail_ranges=()):
        super().__init__(sheets)
        self.fail_ranges = set(fail_ranges)
        self.writes = []

    async def write_range(self, a1_range, values):
        if a1_range in self.fail_ranges:
            raise StoreUnavailableError(f"Write to {a1_range} failed", operation="write")
        await super().write_range(a1_range, values)
        self.writes.append(a1_range)


def cell(store: InMemoryTabularStore, row_index: int, column_index: int) -> str:
    """Read one cell of the ledger sheet; 1-based row, zero-based column."""
    rows = store.snapshot(SHEET_NAME)
    if row_index > len(rows) or column_index >= len(rows[row_index - 1]):
        return ""
    return rows[row_index - 1][column_index]


@pytest.fixture
def sheet_rows():
    """Ledger rows: one unclaimed, one active and one terminated order."""
    return [
        HEADER,
        ["S1", "#100", "0", "FALSE", "FALSE"],
        ["S2", "200", "1200", "TRUE", "FALSE"],
        ["S3", "#300", "75", "TRUE", "TRUE"],
    ]


@pytest.fixture
def memory_store(sheet_rows):
    """Fixture for an in-memory tabular store holding ``sheet_rows``."""
    return InMemoryTabularStore({SHEET_NAME: sheet_rows})


@pytest.fixture
def locator(memory_store):
    """Fixture for RecordLocator."""
    return SheetRecordLocator(memory_store, SHEET_NAME, fallback_token_balance=1000)


@pytest.fixture
def writer(memory_store):
    """Fixture for PersistenceWriter."""
    return SheetPersistenceWriter(memory_store, SHEET_NAME)


@pytest.fixture
def locks():
    """Fixture for SerialLockRegistry."""
    return SerialLockRegistry(timeout=5.0)


@pytest.fixture
def recorder():
    """Fixture for an event recorder."""
    return RecordingEventHandler()


@pytest.fixture
def event_bus(recorder):
    """Fixture for an isolated event bus recording ledger events."""
    from ledger.domain.events import AccountTerminated, TokensAdded, TokensClaimed, TokensConsumed

    bus = InMemoryEventBus()
    for event_type in (TokensClaimed, TokensConsumed, AccountTerminated, TokensAdded):
        bus.subscribe(event_type, recorder)
    return bus


@pytest.fixture
def completion_gateway():
    """Fixture for a fake completion gateway."""
    return FakeCompletionGateway()


@pytest.fixture
def ledger_services(monkeypatch, memory_store, completion_gateway, event_bus):
    """Install fresh ledger services backed by the in-memory store."""
    services = build_ledger_services(
        settings, store=memory_store, gateway=completion_gateway, event_bus=event_bus
    )
    monkeypatch.setattr(apps.get_app_config("ledger"), "services", services)
    return services


@pytest.fixture
def api_client():
    """Fixture for DRF API client identifying as the desktop client."""
    from rest_framework.test import APIClient

    return APIClient(HTTP_USER_AGENT=CLIENT_AGENT)
