"""
Service container for the ledger.

Wires the tabular store, locator, writer, lock registry and completion
gateway from Django settings and builds application handlers on demand.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from core.domain.events import EventBus
from core.infrastructure.events import event_bus as default_event_bus
from ledger.application.handlers.add_tokens_handler import AddTokensHandler
from ledger.application.handlers.claim_tokens_handler import ClaimTokensHandler
from ledger.application.handlers.consume_tokens_handler import ConsumeTokensHandler
from ledger.application.handlers.relay_prompt_handler import RelayPromptHandler
from ledger.application.handlers.validate_serial_handler import ValidateSerialHandler
from ledger.domain.schema import DEFAULT_ORDER_PATTERNS
from ledger.infrastructure.anthropic_gateway import AnthropicCompletionGateway
from ledger.infrastructure.google_sheets_store import GoogleSheetsStore
from ledger.infrastructure.in_memory_store import InMemoryTabularStore
from ledger.infrastructure.repositories.sheet_persistence_writer import SheetPersistenceWriter
from ledger.infrastructure.repositories.sheet_record_locator import SheetRecordLocator
from ledger.infrastructure.serial_locks import SerialLockRegistry
from ledger.ports.completion_gateway import CompletionGateway
from ledger.ports.record_repository import PersistenceWriter, RecordLocator
from ledger.ports.tabular_store import TabularStore

logger = logging.getLogger(__name__)

STORE_BACKEND_GOOGLE = "google"
STORE_BACKEND_MEMORY = "memory"


@dataclass
class LedgerServices:
    """Long-lived ledger collaborators for one process."""

    store: TabularStore
    locator: RecordLocator
    writer: PersistenceWriter
    locks: SerialLockRegistry
    gateway: CompletionGateway
    grant_amount: int = 500000
    default_model: str = "claude-sonnet-4-20250514"
    event_bus: EventBus = field(default_factory=lambda: default_event_bus)

    def claim_handler(self) -> ClaimTokensHandler:
        return ClaimTokensHandler(
            self.locator, self.writer, self.locks, self.grant_amount, event_bus=self.event_bus
        )

    def consume_handler(self) -> ConsumeTokensHandler:
        return ConsumeTokensHandler(self.locator, self.writer, self.locks, event_bus=self.event_bus)

    def add_tokens_handler(self) -> AddTokensHandler:
        return AddTokensHandler(self.locator, self.writer, self.locks, event_bus=self.event_bus)

    def validate_handler(self) -> ValidateSerialHandler:
        return ValidateSerialHandler(self.locator)

    def relay_handler(self) -> RelayPromptHandler:
        return RelayPromptHandler(self.validate_handler(), self.gateway)

    def close(self) -> None:
        """Release the store and gateway clients."""
        self.store.close()
        self.gateway.close()


def build_store(settings) -> TabularStore:
    """
    Create the tabular store selected by ``LEDGER_STORE_BACKEND``.

    Raises:
        ValueError: For an unknown backend name
    """
    backend = getattr(settings, "LEDGER_STORE_BACKEND", STORE_BACKEND_GOOGLE)

    if backend == STORE_BACKEND_MEMORY:
        logger.info("Using in-memory ledger store")
        return InMemoryTabularStore()

    if backend == STORE_BACKEND_GOOGLE:
        return GoogleSheetsStore(
            spreadsheet_id=settings.GOOGLE_SPREADSHEET_ID,
            client_email=settings.GOOGLE_CLIENT_EMAIL,
            private_key=settings.GOOGLE_PRIVATE_KEY,
            sheet_name=settings.LEDGER_SHEET_NAME,
            timeout=settings.LEDGER_STORE_TIMEOUT_SECONDS,
        )

    raise ValueError(f"Unknown LEDGER_STORE_BACKEND: {backend}")


def build_ledger_services(
    settings,
    store: Optional[TabularStore] = None,
    gateway: Optional[CompletionGateway] = None,
    event_bus: Optional[EventBus] = None,
) -> LedgerServices:
    """
    Build the ledger services from Django settings.

    Args:
        settings: Django settings (or any object with the same attributes)
        store: Store to use instead of the configured backend
        gateway: Completion gateway to use instead of the Anthropic one
        event_bus: Event bus to publish to instead of the global one

    Returns:
        LedgerServices
    """
    store = store or build_store(settings)
    sheet_name = settings.LEDGER_SHEET_NAME

    return LedgerServices(
        store=store,
        locator=SheetRecordLocator(
            store,
            sheet_name,
            order_patterns=getattr(settings, "LEDGER_ORDER_COLUMN_PATTERNS", DEFAULT_ORDER_PATTERNS),
            fallback_token_balance=settings.LEDGER_FALLBACK_TOKEN_BALANCE,
        ),
        writer=SheetPersistenceWriter(store, sheet_name),
        locks=SerialLockRegistry(timeout=settings.LEDGER_STORE_TIMEOUT_SECONDS),
        gateway=gateway
        or AnthropicCompletionGateway(
            api_key=settings.CLAUDE_API_KEY,
            max_tokens=settings.COMPLETION_MAX_TOKENS,
            timeout=settings.COMPLETION_TIMEOUT_SECONDS,
        ),
        grant_amount=settings.LEDGER_GRANT_AMOUNT,
        default_model=settings.COMPLETION_MODEL,
        event_bus=event_bus or default_event_bus,
    )
