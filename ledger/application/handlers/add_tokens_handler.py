"""
AddTokensHandler.

Handler for crediting tokens to a serial. Serials that have never been
seen get a new trailing row.
"""

import logging
from typing import Optional, Union

from core.domain.events import EventBus
from core.domain.value_objects import ErrorKind
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import ledger_rejections_total
from ledger.application.commands.add_tokens import AddTokensCommand
from ledger.application.dto.ledger_dto import AddTokensResultDTO, LedgerRejection
from ledger.domain.events import TokensAdded
from ledger.domain.schema import LedgerField
from ledger.domain.services import TokenLedgerPolicy
from ledger.infrastructure.serial_locks import (
    APPEND_LOCK_KEY,
    SerialLockRegistry,
    serial_lock_key,
)
from ledger.ports.record_repository import PersistenceWriter, RecordLocator

logger = logging.getLogger(__name__)


class AddTokensHandler:
    """Handler for AddTokensCommand."""

    def __init__(
        self,
        locator: RecordLocator,
        writer: PersistenceWriter,
        locks: SerialLockRegistry,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with its collaborators."""
        self.locator = locator
        self.writer = writer
        self.locks = locks
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: AddTokensCommand) -> Union[AddTokensResultDTO, LedgerRejection]:
        """
        Handle add tokens command.

        Args:
            command: AddTokensCommand

        Returns:
            AddTokensResultDTO, or LedgerRejection for an invalid amount or
            a terminated serial

        Raises:
            ValueError: If the serial is blank
            SchemaMissingError: If the serial or token column is absent
            StoreUnavailableError: If the store cannot be reached
        """
        if not command.serial_id:
            raise ValueError("Serial number is required")

        if not TokenLedgerPolicy.is_valid_amount(command.amount):
            return self._reject(
                ErrorKind.INVALID_AMOUNT, "Token amount must be a positive integer", command
            )

        # Whether a row gets appended is only known after the read, so the
        # append key is always taken; two new serials must not share a row.
        async with self.locks.hold(serial_lock_key(command.serial_id), APPEND_LOCK_KEY):
            snapshot = await self.locator.load()
            schema = snapshot.schema
            serial_column = schema.require(LedgerField.SERIAL)
            tokens_column = schema.require(LedgerField.TOKENS)

            record = snapshot.find_by_serial(command.serial_id)
            if record is None:
                values = [""] * (max(serial_column, tokens_column) + 1)
                values[serial_column] = command.serial_id
                values[tokens_column] = command.amount
                row_index = await self.writer.append_row(values, snapshot.next_row_index)
                previous_balance = 0
                created = True
            else:
                if record.terminated:
                    return self._reject(
                        ErrorKind.ALREADY_TERMINATED,
                        "Account has been terminated",
                        command,
                        current_balance=record.token_balance,
                        terminated=True,
                    )
                row_index = record.row_index
                previous_balance = record.token_balance
                await self.writer.write_cell(
                    row_index, tokens_column, previous_balance + command.amount
                )
                created = False

        new_balance = previous_balance + command.amount
        logger.info(
            "Tokens added",
            extra={
                "serial_id": command.serial_id,
                "amount": command.amount,
                "new_balance": new_balance,
                "created_row": created,
            },
        )

        await self.event_bus.publish(
            TokensAdded(
                aggregate_id=command.serial_id,
                serial_id=command.serial_id,
                amount=command.amount,
                new_balance=new_balance,
                created_row=created,
            )
        )

        return AddTokensResultDTO(
            serial_id=command.serial_id,
            added=command.amount,
            new_balance=new_balance,
            previous_balance=previous_balance,
            created=created,
            row_index=row_index,
        )

    @staticmethod
    def _reject(kind: ErrorKind, message: str, command: AddTokensCommand, **state) -> LedgerRejection:
        ledger_rejections_total.labels(operation="add_tokens", kind=kind.value).inc()
        logger.info("Add tokens rejected: %s", kind, extra={"serial_id": command.serial_id})
        return LedgerRejection(kind=kind, message=message, serial_id=command.serial_id, **state)
