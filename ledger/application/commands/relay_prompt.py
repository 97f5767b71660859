"""
RelayPromptCommand.

Command to forward a prompt upstream on behalf of a valid account.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RelayPromptCommand:
    """Command to relay a prompt to the completion API."""

    serial_id: str
    prompt: str
    model: str
    device_id: Optional[str] = None
