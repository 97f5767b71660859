"""
Sheet-backed implementation of RecordLocator.
"""

import logging
from typing import Sequence

from ledger.domain.record import LedgerSnapshot
from ledger.domain.schema import DEFAULT_ORDER_PATTERNS, Schema
from ledger.infrastructure.a1_notation import sheet_range
from ledger.ports.record_repository import RecordLocator
from ledger.ports.tabular_store import TabularStore

logger = logging.getLogger(__name__)


class SheetRecordLocator(RecordLocator):
    """Locates records by reading the whole ledger sheet."""

    def __init__(
        self,
        store: TabularStore,
        sheet_name: str,
        order_patterns: Sequence[str] = DEFAULT_ORDER_PATTERNS,
        fallback_token_balance: int = 1000,
    ):
        self.store = store
        self.sheet_name = sheet_name
        self.order_patterns = tuple(order_patterns)
        self.fallback_token_balance = fallback_token_balance

    async def load(self) -> LedgerSnapshot:
        """Read every row once and resolve the header row."""
        rows = await self.store.read_rows(sheet_range(self.sheet_name))
        headers = rows[0] if rows else []
        schema = Schema.resolve(headers, self.order_patterns)

        logger.debug(
            "Loaded ledger sheet",
            extra={"sheet": self.sheet_name, "rows": len(rows), "columns": len(headers)},
        )
        return LedgerSnapshot.from_rows(rows, schema, self.fallback_token_balance)
