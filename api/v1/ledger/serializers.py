"""
Serializers for Ledger API endpoints.

Field names follow the wire format of the desktop client.
"""

from rest_framework import serializers


class ClaimTokensRequestSerializer(serializers.Serializer):
    """Serializer for claim tokens request."""

    order_number = serializers.CharField(required=True, max_length=200)
    serial_number = serializers.CharField(required=True, max_length=200)
    device_id = serializers.CharField(required=True, max_length=500)


class ConsumeTokensRequestSerializer(serializers.Serializer):
    """Serializer for consume tokens request."""

    serial_number = serializers.CharField(required=True, max_length=200)
    device_id = serializers.CharField(required=True, max_length=500)
    # Range is checked by the ledger so that it answers with INVALID_AMOUNT
    tokens_to_consume = serializers.IntegerField(required=True)


class ValidateSerialRequestSerializer(serializers.Serializer):
    """Serializer for validate request."""

    serial_number = serializers.CharField(required=True, max_length=200)
    device_id = serializers.CharField(required=True, max_length=500)


class AddTokensRequestSerializer(serializers.Serializer):
    """Serializer for add tokens request."""

    serial_number = serializers.CharField(required=True, max_length=200)
    tokens_to_add = serializers.IntegerField(required=True)


class CompletionRequestSerializer(serializers.Serializer):
    """Serializer for completion relay request."""

    serial_number = serializers.CharField(required=True, max_length=200)
    message = serializers.CharField(required=True, trim_whitespace=False)
    model = serializers.CharField(required=False, max_length=200)
    device_id = serializers.CharField(required=False, allow_blank=True, max_length=500)


class LedgerErrorSerializer(serializers.Serializer):
    """Serializer for the error part of a rejection."""

    code = serializers.CharField()
    message = serializers.CharField()


class LedgerRejectionSerializer(serializers.Serializer):
    """Serializer for an expected refusal; state fields appear when known."""

    success = serializers.BooleanField()
    error = LedgerErrorSerializer()
    serial_number = serializers.CharField(required=False)
    order_number = serializers.CharField(required=False)
    current_tokens = serializers.IntegerField(required=False)
    requested_tokens = serializers.IntegerField(required=False)
    activated = serializers.BooleanField(required=False)
    terminated = serializers.BooleanField(required=False)
    timestamp = serializers.DateTimeField()


class ClaimTokensResponseSerializer(serializers.Serializer):
    """Serializer for ClaimResultDTO."""

    success = serializers.BooleanField()
    order_number = serializers.CharField(source="order_id")
    serial_number = serializers.CharField(source="serial_id")
    tokens_set = serializers.IntegerField(source="granted_tokens")
    new_token_balance = serializers.IntegerField(source="new_balance")
    previous_balance = serializers.IntegerField()
    was_activated = serializers.SerializerMethodField()

    def get_was_activated(self, _obj) -> bool:
        return True


class ConsumeTokensResponseSerializer(serializers.Serializer):
    """Serializer for ConsumeResultDTO."""

    success = serializers.BooleanField()
    serial_number = serializers.CharField(source="serial_id")
    consumed = serializers.IntegerField()
    new_tokens = serializers.IntegerField(source="new_balance")
    previous_tokens = serializers.IntegerField(source="previous_balance")
    was_terminated = serializers.BooleanField()


class ValidationResponseSerializer(serializers.Serializer):
    """Serializer for ValidationResultDTO."""

    valid = serializers.BooleanField()
    serial_number = serializers.CharField(source="serial_id")
    tokens_remaining = serializers.IntegerField()
    is_terminated = serializers.BooleanField(source="terminated")
    found = serializers.BooleanField()
    row_index = serializers.IntegerField(allow_null=True)


class AddTokensResponseSerializer(serializers.Serializer):
    """Serializer for AddTokensResultDTO."""

    success = serializers.BooleanField()
    serial_number = serializers.CharField(source="serial_id")
    tokens_added = serializers.IntegerField(source="added")
    new_token_balance = serializers.IntegerField(source="new_balance")
    previous_balance = serializers.IntegerField()
    created = serializers.BooleanField()


class CompletionResponseSerializer(serializers.Serializer):
    """Serializer for RelayResultDTO."""

    response = serializers.CharField(source="text")
    model = serializers.CharField()
    serial_number = serializers.CharField(source="serial_id")
    tokens = serializers.DictField(child=serializers.IntegerField(), source="usage")
    total_tokens_consumed = serializers.IntegerField(source="total_tokens")
