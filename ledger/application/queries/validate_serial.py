"""
ValidateSerialQuery.

Query to check whether a serial may still use the service.
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class ValidateSerialQuery:
    """Query to validate a serial."""

    serial_id: str
    device_id: Optional[str] = None
