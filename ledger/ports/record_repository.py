"""
Record repository ports (interfaces).

``RecordLocator`` reads the ledger sheet and finds records;
``PersistenceWriter`` commits cell updates. Implementations are in the
infrastructure layer.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from ledger.domain.record import LedgerSnapshot, LicenseRecord


@dataclass(frozen=True)
class CellUpdate:
    """A single-cell write, labelled for partial-update reporting."""

    label: str
    row_index: int
    column_index: int
    value: Any


class RecordLocator(ABC):
    """Abstract locator for license records."""

    @abstractmethod
    async def load(self) -> LedgerSnapshot:
        """
        Read the sheet once and resolve its header.

        Returns:
            Snapshot to locate records in
        """

    async def find_by_order(self, order_id: str) -> Optional[LicenseRecord]:
        """
        Find a record by order identifier.

        Args:
            order_id: Order identifier, with or without a leading ``#``

        Returns:
            LicenseRecord or None if not found
        """
        snapshot = await self.load()
        return snapshot.find_by_order(order_id)

    async def find_by_serial(self, serial_id: str) -> Optional[LicenseRecord]:
        """
        Find a record by device serial.

        Args:
            serial_id: Serial, matched exactly

        Returns:
            LicenseRecord or None if not found
        """
        snapshot = await self.load()
        return snapshot.find_by_serial(serial_id)


class PersistenceWriter(ABC):
    """Abstract writer for ledger cells."""

    @abstractmethod
    async def write_cell(self, row_index: int, column_index: int, value: Any) -> None:
        """
        Overwrite one cell.

        Args:
            row_index: 1-based sheet row
            column_index: Zero-based column
            value: New cell value
        """

    @abstractmethod
    async def append_row(self, values: Sequence[Any], row_index: int) -> int:
        """
        Write a brand-new row starting at column A.

        Args:
            values: Cells of the new row
            row_index: 1-based trailing row to write

        Returns:
            The row index written
        """

    @abstractmethod
    async def apply(self, updates: Sequence[CellUpdate]) -> None:
        """
        Commit updates as independent writes, in order.

        Raises:
            PartialUpdateError: If a write fails after an earlier one succeeded
        """
