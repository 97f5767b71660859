"""
AddTokensCommand.

Command to credit tokens to a serial, creating its row if needed.
"""

from dataclasses import dataclass


@dataclass
class AddTokensCommand:
    """Command to add tokens."""

    serial_id: str
    amount: int
