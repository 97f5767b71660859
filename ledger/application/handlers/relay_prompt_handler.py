"""
RelayPromptHandler.

Handler that gates a completion request on the account's validity.
"""

import logging

from core.domain.exceptions import AccountAccessDeniedError
from ledger.application.commands.relay_prompt import RelayPromptCommand
from ledger.application.dto.ledger_dto import RelayResultDTO
from ledger.application.handlers.validate_serial_handler import ValidateSerialHandler
from ledger.application.queries.validate_serial import ValidateSerialQuery
from ledger.ports.completion_gateway import CompletionGateway

logger = logging.getLogger(__name__)


class RelayPromptHandler:
    """Handler for RelayPromptCommand."""

    def __init__(self, validator: ValidateSerialHandler, gateway: CompletionGateway):
        self.validator = validator
        self.gateway = gateway

    async def handle(self, command: RelayPromptCommand) -> RelayResultDTO:
        """
        Handle relay prompt command.

        Usage is reported back, not debited; clients settle it through
        the consume operation.

        Raises:
            AccountAccessDeniedError: If the serial is unknown, terminated
                or out of tokens
            CompletionGatewayError: If the upstream call fails
        """
        validation = await self.validator.handle(
            ValidateSerialQuery(serial_id=command.serial_id, device_id=command.device_id)
        )

        if not validation.found:
            raise AccountAccessDeniedError(
                "Account not found - API access denied", serial_id=command.serial_id
            )
        if validation.terminated:
            raise AccountAccessDeniedError(
                "Account is terminated - API access denied", serial_id=command.serial_id
            )
        if not validation.valid:
            raise AccountAccessDeniedError(
                "Insufficient tokens - API access denied", serial_id=command.serial_id
            )

        result = await self.gateway.complete(command.prompt, command.model)

        logger.info(
            "Completion relayed",
            extra={
                "serial_id": command.serial_id,
                "device_id": command.device_id,
                "model": result.model,
                "total_tokens": result.total_tokens,
            },
        )

        return RelayResultDTO(
            serial_id=command.serial_id,
            text=result.text,
            model=result.model,
            usage=dict(result.usage),
            total_tokens=result.total_tokens,
        )
