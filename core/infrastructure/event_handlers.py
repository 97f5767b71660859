"""
Event handlers for domain events.

These handlers process ledger events for side effects: an audit trail
in the structured log and Prometheus counters.
"""

import logging
from typing import Optional

from core.domain.events import DomainEvent, EventBus, EventHandler
from core.metrics import (
    accounts_terminated_total,
    tokens_added_total,
    tokens_consumed_total,
    tokens_granted_total,
)
from ledger.domain.events import AccountTerminated, TokensAdded, TokensClaimed, TokensConsumed

logger = logging.getLogger(__name__)

LEDGER_EVENTS = (TokensClaimed, TokensConsumed, AccountTerminated, TokensAdded)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    The sheet keeps only current balances, so the log is the only record
    of how a balance got there.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra=event.to_dict(),
        )


class LedgerMetricsEventHandler(EventHandler):
    """Event handler that feeds token and termination counters."""

    async def handle(self, event: DomainEvent) -> None:
        if isinstance(event, TokensClaimed):
            tokens_granted_total.inc(event.granted_tokens)
        elif isinstance(event, TokensConsumed):
            tokens_consumed_total.inc(event.amount)
        elif isinstance(event, AccountTerminated):
            accounts_terminated_total.inc()
        elif isinstance(event, TokensAdded):
            tokens_added_total.inc(event.amount)


def register_event_handlers(bus: Optional[EventBus] = None) -> None:
    """Register all event handlers with the event bus."""
    if bus is None:
        from core.infrastructure.events import event_bus as bus

    audit_handler = AuditLogEventHandler()
    metrics_handler = LedgerMetricsEventHandler()

    for event_type in LEDGER_EVENTS:
        bus.subscribe(event_type, audit_handler)
        bus.subscribe(event_type, metrics_handler)

    logger.info("Event handlers registered")
