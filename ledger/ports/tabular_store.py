"""
Tabular store port (interface).

This defines the contract for the remote row/column store backing the
ledger. Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Sequence


class TabularStore(ABC):
    """
    Abstract client for a spreadsheet-like store addressed in A1 notation.

    This is a port in hexagonal architecture - the ledger only ever
    reads whole ranges and writes contiguous cells.
    """

    @abstractmethod
    async def read_rows(self, a1_range: str) -> List[List[str]]:
        """
        Read every row of a rectangular range.

        Args:
            a1_range: Range in A1 notation, e.g. ``'Sheet1'``

        Returns:
            Rows as lists of cell strings; trailing empty cells may be omitted

        Raises:
            StoreUnavailableError: On timeout or transport failure
        """

    @abstractmethod
    async def write_range(self, a1_range: str, values: Sequence[Sequence[Any]]) -> None:
        """
        Overwrite a contiguous range of cells.

        Args:
            a1_range: Range in A1 notation, e.g. ``'Sheet1'!C4``
            values: Row-major cell values

        Raises:
            StoreUnavailableError: On timeout or transport failure
        """

    @abstractmethod
    async def ping(self) -> None:
        """
        Check the store is reachable.

        Raises:
            StoreUnavailableError: If it is not
        """

    def close(self) -> None:
        """Release client resources at shutdown."""
