"""
ValidateSerialHandler.

Handler for checking whether a serial may still use the service.
"""

from ledger.application.dto.ledger_dto import ValidationResultDTO
from ledger.application.queries.validate_serial import ValidateSerialQuery
from ledger.domain.services import TokenLedgerPolicy
from ledger.ports.record_repository import RecordLocator


class ValidateSerialHandler:
    """Handler for ValidateSerialQuery."""

    def __init__(self, locator: RecordLocator):
        """Initialize handler with the record locator."""
        self.locator = locator

    async def handle(self, query: ValidateSerialQuery) -> ValidationResultDTO:
        """
        Handle validate serial query.

        An unknown serial is reported as invalid rather than as an error.

        Args:
            query: ValidateSerialQuery

        Returns:
            ValidationResultDTO
        """
        record = await self.locator.find_by_serial(query.serial_id)

        if record is None:
            return ValidationResultDTO(
                serial_id=query.serial_id,
                valid=False,
                tokens_remaining=0,
                terminated=False,
                found=False,
            )

        return ValidationResultDTO(
            serial_id=query.serial_id,
            valid=TokenLedgerPolicy.is_account_valid(record),
            tokens_remaining=record.token_balance,
            terminated=record.terminated,
            found=True,
            row_index=record.row_index,
        )
