"""
Ledger domain events.

Published after the sheet writes they describe have been committed.
The aggregate of every ledger event is the device serial.
"""
from dataclasses import dataclass
from typing import Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class TokensClaimed(DomainEvent):
    """Event raised when an order is activated and its serial funded."""

    order_id: str
    serial_id: str
    granted_tokens: int
    previous_balance: int
    row_index: int


@dataclass(frozen=True, kw_only=True)
class TokensConsumed(DomainEvent):
    """Event raised when tokens are deducted from a serial."""

    serial_id: str
    amount: int
    new_balance: int
    device_id: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class AccountTerminated(DomainEvent):
    """Event raised when a deduction exhausts a serial and terminates it."""

    serial_id: str
    row_index: int
    final_balance: int


@dataclass(frozen=True, kw_only=True)
class TokensAdded(DomainEvent):
    """Event raised when tokens are credited through the add-tokens path."""

    serial_id: str
    amount: int
    new_balance: int
    created_row: bool
