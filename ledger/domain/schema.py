"""
Column resolution for the ledger sheet.

The sheet has no fixed column order. Each logical field is located by a
case-insensitive substring match against the header row, once per
operation, and the result travels with every record as a ``Schema``.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from core.domain.exceptions import SchemaMissingError

NOT_FOUND = -1

DEFAULT_ORDER_PATTERNS = ("clientorder", "order")


class LedgerField(Enum):
    """Logical fields of an order record."""

    ORDER = "order"
    SERIAL = "serial"
    TOKENS = "token"
    ACTIVATED = "activated"
    TERMINATED = "terminated"

    def __str__(self) -> str:
        return self.value


def find_column(headers: Sequence[Optional[str]], substring: str) -> int:
    """
    Return the index of the first header containing ``substring``.

    Matching is case-insensitive; empty or missing headers never match.

    Args:
        headers: Header row cells
        substring: Lower-case text to look for

    Returns:
        Zero-based column index, or NOT_FOUND
    """
    needle = substring.lower()
    for index, header in enumerate(headers):
        if header and needle in str(header).lower():
            return index
    return NOT_FOUND


@dataclass(frozen=True)
class Schema:
    """Resolved column indices of the ledger sheet."""

    order: int = NOT_FOUND
    serial: int = NOT_FOUND
    tokens: int = NOT_FOUND
    activated: int = NOT_FOUND
    terminated: int = NOT_FOUND
    width: int = 0

    @classmethod
    def resolve(
        cls,
        headers: Sequence[Optional[str]],
        order_patterns: Sequence[str] = DEFAULT_ORDER_PATTERNS,
    ) -> "Schema":
        """
        Resolve every logical field against a header row.

        The order column is searched with each of ``order_patterns`` in
        turn and the first pattern that matches anything wins, so a
        ``ClientOrder`` header beats an earlier ``Order Date`` one.

        Args:
            headers: Header row cells
            order_patterns: Substrings for the order column, by priority

        Returns:
            Schema with NOT_FOUND for absent columns
        """
        order = NOT_FOUND
        for pattern in order_patterns:
            order = find_column(headers, pattern)
            if order != NOT_FOUND:
                break

        return cls(
            order=order,
            serial=find_column(headers, LedgerField.SERIAL.value),
            tokens=find_column(headers, LedgerField.TOKENS.value),
            activated=find_column(headers, LedgerField.ACTIVATED.value),
            terminated=find_column(headers, LedgerField.TERMINATED.value),
            width=len(headers),
        )

    def index(self, field: LedgerField) -> int:
        """Column index for a field, possibly NOT_FOUND."""
        return {
            LedgerField.ORDER: self.order,
            LedgerField.SERIAL: self.serial,
            LedgerField.TOKENS: self.tokens,
            LedgerField.ACTIVATED: self.activated,
            LedgerField.TERMINATED: self.terminated,
        }[field]

    def has(self, field: LedgerField) -> bool:
        """True when the field's column was found."""
        return self.index(field) != NOT_FOUND

    def require(self, field: LedgerField) -> int:
        """
        Column index for a mandatory field.

        Raises:
            SchemaMissingError: If the column is absent
        """
        index = self.index(field)
        if index == NOT_FOUND:
            raise SchemaMissingError(field.value)
        return index
