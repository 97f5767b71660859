"""
ClaimTokensHandler.

Handler for the one-time activation of an order.
"""

import logging
from typing import Optional, Union

from core.domain.events import EventBus
from core.domain.exceptions import RecordNotFoundError
from core.domain.value_objects import ErrorKind
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import ledger_rejections_total
from ledger.application.commands.claim_tokens import ClaimTokensCommand
from ledger.application.dto.ledger_dto import ClaimResultDTO, LedgerRejection
from ledger.domain.events import TokensClaimed
from ledger.domain.record import TRUE_FLAG
from ledger.domain.schema import LedgerField
from ledger.domain.services import TokenLedgerPolicy
from ledger.infrastructure.serial_locks import (
    SerialLockRegistry,
    order_lock_key,
    serial_lock_key,
)
from ledger.ports.record_repository import CellUpdate, PersistenceWriter, RecordLocator

logger = logging.getLogger(__name__)

REJECTION_MESSAGES = {
    ErrorKind.ORDER_NOT_FOUND: "Order number not found",
    ErrorKind.ALREADY_ACTIVATED: "Order has already been activated",
    ErrorKind.ALREADY_TERMINATED: "Order has been terminated",
}

SERIAL_TERMINATED_MESSAGE = "Serial has been terminated"


class ClaimTokensHandler:
    """Handler for ClaimTokensCommand."""

    def __init__(
        self,
        locator: RecordLocator,
        writer: PersistenceWriter,
        locks: SerialLockRegistry,
        grant_amount: int,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with its collaborators."""
        self.locator = locator
        self.writer = writer
        self.locks = locks
        self.grant_amount = grant_amount
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: ClaimTokensCommand) -> Union[ClaimResultDTO, LedgerRejection]:
        """
        Handle claim tokens command.

        The serial row's balance is written before the order row is
        marked activated. If the second write fails the serial is funded
        but the order can be claimed again; this is reported as a
        ``PartialUpdateError``.

        Args:
            command: ClaimTokensCommand

        Returns:
            ClaimResultDTO, or LedgerRejection for an unknown, activated
            or terminated order, or for a terminated serial

        Raises:
            RecordNotFoundError: If no row carries the serial
            SchemaMissingError: If the order, serial or token column is absent
            StoreUnavailableError: If the store cannot be reached
            PartialUpdateError: If the activation flag write fails
        """
        async with self.locks.hold(
            order_lock_key(command.order_id), serial_lock_key(command.serial_id)
        ):
            snapshot = await self.locator.load()

            order = snapshot.find_by_order(command.order_id)
            if order is None:
                return self._reject(ErrorKind.ORDER_NOT_FOUND, command)

            rejection = TokenLedgerPolicy.claim_rejection(order)
            if rejection:
                return self._reject(
                    rejection,
                    command,
                    activated=order.activated,
                    terminated=order.terminated,
                )

            serial = snapshot.find_by_serial(command.serial_id)
            if serial is None:
                logger.warning(
                    "Claim for order %s names unknown serial %s",
                    command.order_id,
                    command.serial_id,
                )
                raise RecordNotFoundError(command.serial_id)

            # A terminated serial is never credited again, whichever order funds it.
            if serial.terminated:
                return self._reject(
                    ErrorKind.ALREADY_TERMINATED,
                    command,
                    message=SERIAL_TERMINATED_MESSAGE,
                    current_balance=serial.token_balance,
                    terminated=True,
                )

            schema = snapshot.schema
            updates = [
                CellUpdate(
                    label="token_balance",
                    row_index=serial.row_index,
                    column_index=schema.require(LedgerField.TOKENS),
                    value=self.grant_amount,
                )
            ]
            if schema.has(LedgerField.ACTIVATED):
                updates.append(
                    CellUpdate(
                        label="activated",
                        row_index=order.row_index,
                        column_index=schema.activated,
                        value=TRUE_FLAG,
                    )
                )
            else:
                logger.warning(
                    "Sheet has no activated column; order %s stays claimable",
                    command.order_id,
                )

            await self.writer.apply(updates)

        logger.info(
            "Tokens claimed",
            extra={
                "order_id": command.order_id,
                "serial_id": command.serial_id,
                "device_id": command.device_id,
                "granted_tokens": self.grant_amount,
                "previous_balance": serial.token_balance,
            },
        )

        await self.event_bus.publish(
            TokensClaimed(
                aggregate_id=command.serial_id,
                order_id=command.order_id,
                serial_id=command.serial_id,
                granted_tokens=self.grant_amount,
                previous_balance=serial.token_balance,
                row_index=serial.row_index,
            )
        )

        return ClaimResultDTO(
            order_id=command.order_id,
            serial_id=command.serial_id,
            granted_tokens=self.grant_amount,
            new_balance=self.grant_amount,
            previous_balance=serial.token_balance,
            row_index=serial.row_index,
        )

    @staticmethod
    def _reject(
        kind: ErrorKind, command: ClaimTokensCommand, message: Optional[str] = None, **state
    ) -> LedgerRejection:
        ledger_rejections_total.labels(operation="claim", kind=kind.value).inc()
        logger.info(
            "Claim rejected: %s", kind, extra={"order_id": command.order_id}
        )
        return LedgerRejection(
            kind=kind,
            message=message or REJECTION_MESSAGES[kind],
            serial_id=command.serial_id,
            order_id=command.order_id,
            **state,
        )
