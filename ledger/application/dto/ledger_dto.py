"""
Ledger DTOs for API responses.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional

from core.domain.value_objects import ErrorKind


@dataclass
class LedgerRejection:
    """
    DTO for an expected, non-exceptional refusal.

    Carries whatever record state was known when the operation was
    refused so that clients can show it.
    """

    kind: ErrorKind
    message: str
    serial_id: Optional[str] = None
    order_id: Optional[str] = None
    current_balance: Optional[int] = None
    requested: Optional[int] = None
    activated: Optional[bool] = None
    terminated: Optional[bool] = None

    success = False

    def state(self) -> Dict[str, object]:
        """Known record state, without empty fields."""
        values = {
            "serial_number": self.serial_id,
            "order_number": self.order_id,
            "current_tokens": self.current_balance,
            "requested_tokens": self.requested,
            "activated": self.activated,
            "terminated": self.terminated,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass
class ClaimResultDTO:
    """DTO for a successful claim."""

    order_id: str
    serial_id: str
    granted_tokens: int
    new_balance: int
    previous_balance: int
    row_index: int

    success = True


@dataclass
class ConsumeResultDTO:
    """DTO for a successful consumption."""

    serial_id: str
    consumed: int
    new_balance: int
    previous_balance: int
    was_terminated: bool

    success = True


@dataclass
class ValidationResultDTO:
    """DTO for a validation query."""

    serial_id: str
    valid: bool
    tokens_remaining: int
    terminated: bool
    found: bool
    row_index: Optional[int] = None


@dataclass
class AddTokensResultDTO:
    """DTO for a successful credit."""

    serial_id: str
    added: int
    new_balance: int
    previous_balance: int
    created: bool
    row_index: int

    success = True


@dataclass
class RelayResultDTO:
    """DTO for a relayed completion."""

    serial_id: str
    text: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    total_tokens: int = 0
