"""
ClaimTokensCommand.

Command to activate an order and fund the serial it was bought for.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ClaimTokensCommand:
    """Command to claim the one-time token grant of an order."""

    order_id: str
    serial_id: str
    device_id: Optional[str] = None
