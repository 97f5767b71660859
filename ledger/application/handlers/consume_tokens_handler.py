"""
ConsumeTokensHandler.

Handler for deducting used tokens and terminating exhausted accounts.
"""

import logging
from typing import Optional, Union

from core.domain.events import EventBus
from core.domain.value_objects import ErrorKind
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import ledger_rejections_total
from ledger.application.commands.consume_tokens import ConsumeTokensCommand
from ledger.application.dto.ledger_dto import ConsumeResultDTO, LedgerRejection
from ledger.domain.events import AccountTerminated, TokensConsumed
from ledger.domain.record import TRUE_FLAG
from ledger.domain.schema import LedgerField
from ledger.domain.services import TokenLedgerPolicy
from ledger.infrastructure.serial_locks import SerialLockRegistry, serial_lock_key
from ledger.ports.record_repository import CellUpdate, PersistenceWriter, RecordLocator

logger = logging.getLogger(__name__)


class ConsumeTokensHandler:
    """Handler for ConsumeTokensCommand."""

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

    async def handle(
        self, command: ConsumeTokensCommand
    ) -> Union[ConsumeResultDTO, LedgerRejection]:
        """
        Handle consume tokens command.

        Args:
            command: ConsumeTokensCommand

        Returns:
            ConsumeResultDTO, or LedgerRejection for an invalid amount,
            an unknown serial or an insufficient balance

        Raises:
            SchemaMissingError: If the serial or token column is absent
            StoreUnavailableError: If the store cannot be reached
            PartialUpdateError: If the terminated flag write fails
        """
        if not TokenLedgerPolicy.is_valid_amount(command.amount):
            return self._reject(
                ErrorKind.INVALID_AMOUNT,
                "Token amount must be a positive integer",
                command,
            )

        async with self.locks.hold(serial_lock_key(command.serial_id)):
            snapshot = await self.locator.load()

            record = snapshot.find_by_serial(command.serial_id)
            if record is None:
                return self._reject(
                    ErrorKind.SERIAL_NOT_FOUND, "Serial number not found", command
                )

            schema = snapshot.schema
            tokens_column = schema.require(LedgerField.TOKENS)

            if TokenLedgerPolicy.consume_rejection(record, command.amount):
                return self._reject(
                    ErrorKind.INSUFFICIENT_TOKENS,
                    "Insufficient tokens",
                    command,
                    current_balance=record.token_balance,
                    requested=command.amount,
                    terminated=record.terminated,
                )

            new_balance = record.token_balance - command.amount
            updates = [
                CellUpdate(
                    label="token_balance",
                    row_index=record.row_index,
                    column_index=tokens_column,
                    value=new_balance,
                )
            ]

            terminate = TokenLedgerPolicy.should_terminate(record, new_balance)
            if terminate and not schema.has(LedgerField.TERMINATED):
                logger.warning(
                    "Sheet has no terminated column; serial %s exhausted but not terminated",
                    command.serial_id,
                )
                terminate = False
            if terminate:
                updates.append(
                    CellUpdate(
                        label="terminated",
                        row_index=record.row_index,
                        column_index=schema.terminated,
                        value=TRUE_FLAG,
                    )
                )

            await self.writer.apply(updates)

        logger.info(
            "Tokens consumed",
            extra={
                "serial_id": command.serial_id,
                "device_id": command.device_id,
                "amount": command.amount,
                "new_balance": new_balance,
                "terminated": terminate,
            },
        )

        await self.event_bus.publish(
            TokensConsumed(
                aggregate_id=command.serial_id,
                serial_id=command.serial_id,
                amount=command.amount,
                new_balance=new_balance,
                device_id=command.device_id,
            )
        )
        if terminate:
            await self.event_bus.publish(
                AccountTerminated(
                    aggregate_id=command.serial_id,
                    serial_id=command.serial_id,
                    row_index=record.row_index,
                    final_balance=new_balance,
                )
            )

        return ConsumeResultDTO(
            serial_id=command.serial_id,
            consumed=command.amount,
            new_balance=new_balance,
            previous_balance=record.token_balance,
            was_terminated=terminate,
        )

    @staticmethod
    def _reject(
        kind: ErrorKind, message: str, command: ConsumeTokensCommand, **state
    ) -> LedgerRejection:
        ledger_rejections_total.labels(operation="consume", kind=kind.value).inc()
        logger.info("Consume rejected: %s", kind, extra={"serial_id": command.serial_id})
        return LedgerRejection(kind=kind, message=message, serial_id=command.serial_id, **state)
