"""
In-memory implementation of the TabularStore port.

Used for local development (``LEDGER_STORE_BACKEND=memory``) and tests.
Cells are kept as strings, the way the Sheets API returns formatted
values, and reads trim trailing empty cells and rows like the API does.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from ledger.infrastructure.a1_notation import parse_range
from ledger.ports.tabular_store import TabularStore

logger = logging.getLogger(__name__)


def _to_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def _trim(row: List[str]) -> List[str]:
    end = len(row)
    while end and row[end - 1] == "":
        end -= 1
    return row[:end]


class InMemoryTabularStore(TabularStore):
    """
    In-memory store keyed by sheet name.

    Each call yields to the event loop once, so interleavings between
    concurrent handlers resemble a remote store.
    """

    def __init__(self, sheets: Optional[Dict[str, Sequence[Sequence[Any]]]] = None):
        """
        Initialize the store.

        Args:
            sheets: Optional initial rows per sheet name
        """
        self._sheets: Dict[str, List[List[str]]] = {}
        for name, rows in (sheets or {}).items():
            self.replace_sheet(name, rows)

    def replace_sheet(self, sheet_name: str, rows: Sequence[Sequence[Any]]) -> None:
        """Replace every row of a sheet."""
        self._sheets[sheet_name] = [[_to_cell(value) for value in row] for row in rows]

    def snapshot(self, sheet_name: str) -> List[List[str]]:
        """Copy of a sheet's rows, untrimmed."""
        return [list(row) for row in self._sheets.get(sheet_name, [])]

    async def read_rows(self, a1_range: str) -> List[List[str]]:
        """
        Read every row of a sheet.

        Args:
            a1_range: Whole-sheet range

        Returns:
            Trimmed rows
        """
        parsed = parse_range(a1_range)
        rows = [_trim(row) for row in self._sheets.get(parsed.sheet_name, [])]
        while rows and not rows[-1]:
            rows.pop()
        await asyncio.sleep(0)
        return rows

    async def write_range(self, a1_range: str, values: Sequence[Sequence[Any]]) -> None:
        """
        Overwrite a contiguous range, growing the sheet as needed.

        Args:
            a1_range: Cell or row range
            values: Row-major values
        """
        parsed = parse_range(a1_range)
        if parsed.start is None:
            raise ValueError(f"Write range must name cells: {a1_range}")

        await asyncio.sleep(0)
        rows = self._sheets.setdefault(parsed.sheet_name, [])
        first_row, first_column = parsed.start
        for row_offset, row_values in enumerate(values):
            row_number = first_row + row_offset
            while len(rows) < row_number:
                rows.append([])
            row = rows[row_number - 1]
            for column_offset, value in enumerate(row_values):
                column = first_column + column_offset
                while len(row) <= column:
                    row.append("")
                row[column] = _to_cell(value)

        logger.debug("Wrote %s", a1_range)

    async def ping(self) -> None:
        """The in-memory store is always reachable."""
        await asyncio.sleep(0)
