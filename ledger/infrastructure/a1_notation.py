"""
A1 notation helpers for spreadsheet ranges.

Columns are zero-based in the ledger and lettered bijectively in the
sheet: 0 -> A, 25 -> Z, 26 -> AA.
"""
import re
from dataclasses import dataclass
from typing import Optional, Tuple

_CELL = re.compile(r"^([A-Z]+)(\d+)$")


def column_letter(index: int) -> str:
    """Convert a zero-based column index to its letters."""
    if index < 0:
        raise ValueError(f"Column index must be non-negative: {index}")
    letters = ""
    number = index + 1
    while number:
        number, remainder = divmod(number - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def column_index(letters: str) -> int:
    """Convert column letters back to a zero-based index."""
    if not letters or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    number = 0
    for char in letters.upper():
        number = number * 26 + (ord(char) - ord("A") + 1)
    return number - 1


def quote_sheet_name(sheet_name: str) -> str:
    """Single-quote a sheet name, doubling embedded quotes."""
    return "'" + sheet_name.replace("'", "''") + "'"


def sheet_range(sheet_name: str) -> str:
    """Range covering the whole sheet."""
    return quote_sheet_name(sheet_name)


def cell_range(sheet_name: str, row_index: int, column: int) -> str:
    """Range of a single cell; ``row_index`` is 1-based."""
    return f"{quote_sheet_name(sheet_name)}!{column_letter(column)}{row_index}"


def row_range(sheet_name: str, row_index: int, first_column: int, last_column: int) -> str:
    """Range of a contiguous run of cells on one row."""
    return (
        f"{quote_sheet_name(sheet_name)}!"
        f"{column_letter(first_column)}{row_index}:{column_letter(last_column)}{row_index}"
    )


@dataclass(frozen=True)
class ParsedRange:
    """A parsed A1 range; ``start`` is None for a whole-sheet range."""

    sheet_name: str
    start: Optional[Tuple[int, int]] = None
    end: Optional[Tuple[int, int]] = None


def parse_range(a1_range: str) -> ParsedRange:
    """
    Parse ranges produced by this module.

    Supports ``'Sheet'``, ``'Sheet'!B3`` and ``'Sheet'!B3:D3``; cell
    coordinates come back as (1-based row, zero-based column).
    """
    sheet_part, _, cells = a1_range.rpartition("!") if "!" in a1_range else (a1_range, "", "")
    if sheet_part.startswith("'") and sheet_part.endswith("'") and len(sheet_part) >= 2:
        sheet_name = sheet_part[1:-1].replace("''", "'")
    else:
        sheet_name = sheet_part

    if not cells:
        return ParsedRange(sheet_name=sheet_name)

    first, _, last = cells.partition(":")
    start = _parse_cell(first)
    end = _parse_cell(last) if last else start
    return ParsedRange(sheet_name=sheet_name, start=start, end=end)


def _parse_cell(cell: str) -> Tuple[int, int]:
    match = _CELL.match(cell.upper())
    if not match:
        raise ValueError(f"Unsupported A1 cell reference: {cell!r}")
    letters, row = match.groups()
    return int(row), column_index(letters)
