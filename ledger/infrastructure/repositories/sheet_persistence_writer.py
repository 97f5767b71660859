"""
Sheet-backed implementation of PersistenceWriter.

Every cell update is its own store call. The store has no transactions,
so a multi-cell update that fails halfway is reported as a
``PartialUpdateError`` and left for manual reconciliation.
"""

import logging
from typing import Any, List, Sequence

from core.domain.exceptions import PartialUpdateError
from core.metrics import partial_updates_total
from ledger.infrastructure.a1_notation import cell_range, row_range
from ledger.ports.record_repository import CellUpdate, PersistenceWriter
from ledger.ports.tabular_store import TabularStore

logger = logging.getLogger(__name__)


class SheetPersistenceWriter(PersistenceWriter):
    """Writes ledger cells into one sheet."""

    def __init__(self, store: TabularStore, sheet_name: str):
        self.store = store
        self.sheet_name = sheet_name

    async def write_cell(self, row_index: int, column_index: int, value: Any) -> None:
        await self.store.write_range(
            cell_range(self.sheet_name, row_index, column_index), [[value]]
        )

    async def append_row(self, values: Sequence[Any], row_index: int) -> int:
        if not values:
            raise ValueError("Cannot append an empty row")
        await self.store.write_range(
            row_range(self.sheet_name, row_index, 0, len(values) - 1), [list(values)]
        )
        logger.info("Appended ledger row %s", row_index)
        return row_index

    async def apply(self, updates: Sequence[CellUpdate]) -> None:
        """
        Commit updates in order.

        Raises:
            StoreUnavailableError: If the first write fails (nothing changed)
            PartialUpdateError: If a later write fails
        """
        completed: List[str] = []
        for update in updates:
            try:
                await self.write_cell(update.row_index, update.column_index, update.value)
            except Exception as exc:
                if not completed:
                    raise
                partial_updates_total.labels(failed_write=update.label).inc()
                logger.error(
                    "Partial ledger update needs manual reconciliation",
                    extra={
                        "completed_writes": completed,
                        "failed_write": update.label,
                        "row_index": update.row_index,
                        "error": str(exc),
                    },
                )
                raise PartialUpdateError(completed, update.label, cause=exc) from exc
            completed.append(update.label)
