"""
ConsumeTokensCommand.

Command to deduct used tokens from a serial.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ConsumeTokensCommand:
    """Command to consume tokens."""

    serial_id: str
    amount: int
    device_id: Optional[str] = None
