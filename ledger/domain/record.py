"""
License record domain entities.

A ``LicenseRecord`` is the resolved view of one sheet row; a
``LedgerSnapshot`` is one read of the whole sheet that records are
located in.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence, Tuple

from ledger.domain.schema import LedgerField, Schema

TRUE_FLAG = "TRUE"

# Header occupies sheet row 1.
FIRST_DATA_ROW = 2

_LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")


class LedgerState(Enum):
    """Lifecycle state of an order record."""

    UNCLAIMED = "unclaimed"
    ACTIVE = "active"
    TERMINATED = "terminated"

    def __str__(self) -> str:
        return self.value


def decode_flag(cell: Optional[str]) -> bool:
    """A flag cell is set only when it holds the literal ``TRUE``."""
    return cell == TRUE_FLAG


def parse_token_balance(cell: Optional[str]) -> int:
    """
    Parse a token cell.

    Takes the leading (optionally signed) integer of the cell text, so
    ``"1200 tokens"`` reads as 1200. Anything else reads as 0.
    """
    if cell is None:
        return 0
    match = _LEADING_INTEGER.match(str(cell))
    return int(match.group(1)) if match else 0


def normalize_order_id(value: Optional[str]) -> str:
    """Strip surrounding whitespace and one leading ``#``."""
    text = str(value or "").strip()
    return text[1:] if text.startswith("#") else text


def cell_at(row: Sequence[str], index: int) -> str:
    """Cell value at ``index``; short rows and missing columns read as ``""``."""
    if index < 0 or index >= len(row):
        return ""
    value = row[index]
    return "" if value is None else str(value)


@dataclass(frozen=True)
class LicenseRecord:
    """
    License record domain entity.

    Carries the schema it was resolved with so that callers can write
    back to the same row without resolving the header again.
    """

    order_id: str
    serial_id: str
    token_balance: int
    activated: bool
    terminated: bool
    row_index: int
    columns: Schema

    @property
    def state(self) -> LedgerState:
        """Current lifecycle state; termination wins over activation."""
        if self.terminated:
            return LedgerState.TERMINATED
        if self.activated:
            return LedgerState.ACTIVE
        return LedgerState.UNCLAIMED


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    One read of the ledger sheet.

    Lookups scan data rows in sheet order and the first match wins; the
    sheet does not enforce uniqueness of orders or serials.
    """

    schema: Schema
    rows: Tuple[Tuple[str, ...], ...]
    fallback_token_balance: int

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[str]],
        schema: Schema,
        fallback_token_balance: int,
    ) -> "LedgerSnapshot":
        """Build a snapshot from raw rows, header row included."""
        data = tuple(tuple(row) for row in rows[1:])
        return cls(schema=schema, rows=data, fallback_token_balance=fallback_token_balance)

    @property
    def next_row_index(self) -> int:
        """Sheet row number just past the last row read."""
        return len(self.rows) + FIRST_DATA_ROW

    def find_by_order(self, order_id: str) -> Optional[LicenseRecord]:
        """
        Find the first record whose order matches, ignoring a leading ``#``.

        Raises:
            SchemaMissingError: If the sheet has no order column
        """
        column = self.schema.require(LedgerField.ORDER)
        wanted = normalize_order_id(order_id)
        if not wanted:
            return None
        for offset, row in enumerate(self.rows):
            if normalize_order_id(cell_at(row, column)) == wanted:
                return self._to_record(row, offset)
        return None

    def find_by_serial(self, serial_id: str) -> Optional[LicenseRecord]:
        """
        Find the first record whose serial matches exactly.

        Raises:
            SchemaMissingError: If the sheet has no serial column
        """
        column = self.schema.require(LedgerField.SERIAL)
        if not serial_id:
            return None
        for offset, row in enumerate(self.rows):
            if cell_at(row, column) == serial_id:
                return self._to_record(row, offset)
        return None

    def _to_record(self, row: Sequence[str], offset: int) -> LicenseRecord:
        schema = self.schema
        if schema.has(LedgerField.TOKENS):
            balance = parse_token_balance(cell_at(row, schema.tokens))
        else:
            balance = self.fallback_token_balance

        return LicenseRecord(
            order_id=cell_at(row, schema.order),
            serial_id=cell_at(row, schema.serial),
            token_balance=balance,
            activated=decode_flag(cell_at(row, schema.activated)),
            terminated=decode_flag(cell_at(row, schema.terminated)),
            row_index=offset + FIRST_DATA_ROW,
            columns=schema,
        )
