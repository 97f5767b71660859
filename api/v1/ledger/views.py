"""
Ledger API views.

These endpoints are used by the licensed desktop client to:
- Claim the token grant of a purchased order
- Report token consumption
- Validate its serial
- Relay completion prompts while its account is valid
"""

from datetime import datetime, timezone

from asgiref.sync import async_to_sync
from django.apps import apps
from django.conf import settings
from django.http import Http404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.ledger.serializers import (
    AddTokensRequestSerializer,
    AddTokensResponseSerializer,
    ClaimTokensRequestSerializer,
    ClaimTokensResponseSerializer,
    CompletionRequestSerializer,
    CompletionResponseSerializer,
    ConsumeTokensRequestSerializer,
    ConsumeTokensResponseSerializer,
    LedgerRejectionSerializer,
    ValidateSerialRequestSerializer,
    ValidationResponseSerializer,
)
from core.domain.value_objects import ErrorKind
from core.instrumentation import Status, StatusCode, get_tracer
from ledger.application.commands.add_tokens import AddTokensCommand
from ledger.application.commands.claim_tokens import ClaimTokensCommand
from ledger.application.commands.consume_tokens import ConsumeTokensCommand
from ledger.application.commands.relay_prompt import RelayPromptCommand
from ledger.application.dto.ledger_dto import LedgerRejection
from ledger.application.queries.validate_serial import ValidateSerialQuery

tracer = get_tracer(__name__)

REJECTION_STATUS_CODES = {
    ErrorKind.ORDER_NOT_FOUND: status.HTTP_200_OK,
    ErrorKind.SERIAL_NOT_FOUND: status.HTTP_200_OK,
    ErrorKind.ALREADY_ACTIVATED: status.HTTP_409_CONFLICT,
    ErrorKind.ALREADY_TERMINATED: status.HTTP_409_CONFLICT,
    ErrorKind.INSUFFICIENT_TOKENS: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_AMOUNT: status.HTTP_400_BAD_REQUEST,
}


def _services():
    return apps.get_app_config("ledger").services


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _validation_error(serializer, span) -> Response:
    span.set_attribute("error", "validation_failed")
    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
    return Response(
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request body",
                "fields": serializer.errors,
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def _rejection_response(rejection: LedgerRejection, span, **extra) -> Response:
    span.set_attribute("ledger.rejection", rejection.kind.value)
    body = {
        "success": False,
        "error": {"code": rejection.kind.value, "message": rejection.message},
        **rejection.state(),
        **extra,
        "timestamp": _timestamp(),
    }
    return Response(body, status=REJECTION_STATUS_CODES[rejection.kind])


def _success_response(data, span, **extra) -> Response:
    span.set_status(Status(StatusCode.OK))
    return Response({**data, **extra, "timestamp": _timestamp()}, status=status.HTTP_200_OK)


class ClaimTokensView(APIView):
    """View for claiming the token grant of an order."""

    @extend_schema(
        operation_id="claim_tokens",
        summary="Claim Tokens",
        description=(
            "Activate a purchased order and set the balance of the device serial "
            "to the fixed grant. An order can be claimed once; terminated orders "
            "are never reactivated."
        ),
        tags=["Ledger API"],
        request=ClaimTokensRequestSerializer,
        responses={
            200: ClaimTokensResponseSerializer,
            400: {"description": "Bad Request"},
            404: {"description": "Serial number not found in the ledger"},
            409: LedgerRejectionSerializer,
            503: {"description": "Ledger store unavailable"},
        },
    )
    def post(self, request: Request) -> Response:
        """Claim tokens for an order."""
        return async_to_sync(self._handle_claim)(request)

    async def _handle_claim(self, request: Request) -> Response:
        """Async handler for claim tokens."""
        with tracer.start_as_current_span("claim_tokens") as span:
            span.set_attribute("operation", "claim_tokens")

            serializer = ClaimTokensRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(serializer, span)

            data = serializer.validated_data
            span.set_attribute("order_number", data["order_number"])
            span.set_attribute("serial_number", data["serial_number"])

            result = await _services().claim_handler().handle(
                ClaimTokensCommand(
                    order_id=data["order_number"],
                    serial_id=data["serial_number"],
                    device_id=data["device_id"],
                )
            )

            if isinstance(result, LedgerRejection):
                return _rejection_response(result, span, device_id=data["device_id"])

            return _success_response(
                ClaimTokensResponseSerializer(result).data, span, device_id=data["device_id"]
            )


class ConsumeTokensView(APIView):
    """View for reporting token consumption."""

    @extend_schema(
        operation_id="consume_tokens",
        summary="Consume Tokens",
        description=(
            "Deduct tokens from a serial. The account is terminated when its "
            "balance reaches zero."
        ),
        tags=["Ledger API"],
        request=ConsumeTokensRequestSerializer,
        responses={
            200: ConsumeTokensResponseSerializer,
            400: LedgerRejectionSerializer,
            503: {"description": "Ledger store unavailable"},
        },
    )
    def post(self, request: Request) -> Response:
        """Consume tokens for a serial."""
        return async_to_sync(self._handle_consume)(request)

    async def _handle_consume(self, request: Request) -> Response:
        """Async handler for consume tokens."""
        with tracer.start_as_current_span("consume_tokens") as span:
            span.set_attribute("operation", "consume_tokens")

            serializer = ConsumeTokensRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(serializer, span)

            data = serializer.validated_data
            span.set_attribute("serial_number", data["serial_number"])
            span.set_attribute("tokens_to_consume", data["tokens_to_consume"])

            result = await _services().consume_handler().handle(
                ConsumeTokensCommand(
                    serial_id=data["serial_number"],
                    amount=data["tokens_to_consume"],
                    device_id=data["device_id"],
                )
            )

            if isinstance(result, LedgerRejection):
                return _rejection_response(result, span, device_id=data["device_id"])

            span.set_attribute("was_terminated", result.was_terminated)
            return _success_response(
                ConsumeTokensResponseSerializer(result).data, span, device_id=data["device_id"]
            )


class ValidateSerialView(APIView):
    """View for validating a serial."""

    @extend_schema(
        operation_id="validate_serial",
        summary="Validate Serial",
        description=(
            "Report whether a serial may use the service: it must exist, not be "
            "terminated and hold a positive balance."
        ),
        tags=["Ledger API"],
        request=ValidateSerialRequestSerializer,
        responses={
            200: ValidationResponseSerializer,
            400: {"description": "Bad Request"},
            503: {"description": "Ledger store unavailable"},
        },
    )
    def post(self, request: Request) -> Response:
        """Validate a serial."""
        return async_to_sync(self._handle_validate)(request)

    async def _handle_validate(self, request: Request) -> Response:
        """Async handler for validate."""
        with tracer.start_as_current_span("validate_serial") as span:
            span.set_attribute("operation", "validate_serial")

            serializer = ValidateSerialRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(serializer, span)

            data = serializer.validated_data
            span.set_attribute("serial_number", data["serial_number"])

            result = await _services().validate_handler().handle(
                ValidateSerialQuery(serial_id=data["serial_number"], device_id=data["device_id"])
            )

            span.set_attribute("valid", result.valid)
            return _success_response(
                ValidationResponseSerializer(result).data, span, device_id=data["device_id"]
            )


class AddTokensView(APIView):
    """
    View for crediting tokens to a serial.

    Crediting bypasses the purchase and claim flow, so the route answers
    404 unless ``LEDGER_ADD_TOKENS_ENABLED`` is set.
    """

    @extend_schema(
        operation_id="add_tokens",
        summary="Add Tokens",
        description=(
            "Credit tokens to a serial. Unknown serials get a new ledger row; "
            "terminated serials are refused. Disabled unless LEDGER_ADD_TOKENS_ENABLED is set."
        ),
        tags=["Ledger API"],
        request=AddTokensRequestSerializer,
        responses={
            200: AddTokensResponseSerializer,
            400: LedgerRejectionSerializer,
            404: {"description": "Endpoint disabled"},
            409: LedgerRejectionSerializer,
            503: {"description": "Ledger store unavailable"},
        },
    )
    def post(self, request: Request) -> Response:
        """Add tokens to a serial."""
        if not settings.LEDGER_ADD_TOKENS_ENABLED:
            raise Http404("Add tokens endpoint is disabled")
        return async_to_sync(self._handle_add_tokens)(request)

    async def _handle_add_tokens(self, request: Request) -> Response:
        """Async handler for add tokens."""
        with tracer.start_as_current_span("add_tokens") as span:
            span.set_attribute("operation", "add_tokens")

            serializer = AddTokensRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(serializer, span)

            data = serializer.validated_data
            span.set_attribute("serial_number", data["serial_number"])

            result = await _services().add_tokens_handler().handle(
                AddTokensCommand(serial_id=data["serial_number"], amount=data["tokens_to_add"])
            )

            if isinstance(result, LedgerRejection):
                return _rejection_response(result, span)

            return _success_response(AddTokensResponseSerializer(result).data, span)


class CompletionView(APIView):
    """View for relaying completion prompts."""

    @extend_schema(
        operation_id="create_completion",
        summary="Relay Completion",
        description=(
            "Forward a prompt to the upstream language model on behalf of a valid "
            "account. Token usage is reported back but not deducted; clients "
            "settle it through consume-tokens."
        ),
        tags=["Completions"],
        request=CompletionRequestSerializer,
        responses={
            200: CompletionResponseSerializer,
            400: {"description": "Bad Request"},
            403: {"description": "Account unknown, terminated or out of tokens"},
            502: {"description": "Upstream completion API failed"},
            503: {"description": "Ledger store unavailable"},
        },
    )
    def post(self, request: Request) -> Response:
        """Relay a completion prompt."""
        return async_to_sync(self._handle_completion)(request)

    async def _handle_completion(self, request: Request) -> Response:
        """Async handler for completions."""
        with tracer.start_as_current_span("relay_completion") as span:
            span.set_attribute("operation", "relay_completion")

            serializer = CompletionRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return _validation_error(serializer, span)

            data = serializer.validated_data
            services = _services()
            model = data.get("model") or services.default_model
            span.set_attribute("serial_number", data["serial_number"])
            span.set_attribute("model", model)

            result = await services.relay_handler().handle(
                RelayPromptCommand(
                    serial_id=data["serial_number"],
                    prompt=data["message"],
                    model=model,
                    device_id=data.get("device_id"),
                )
            )

            span.set_attribute("total_tokens", result.total_tokens)
            return _success_response(
                CompletionResponseSerializer(result).data,
                span,
                device_id=data.get("device_id"),
                status="success",
            )
