from django.conf import settings
from rest_framework import serializers


class EscrowHoldSerializer(serializers.Serializer):

    amount = serializers.IntegerField(min_value=1)
    currency = serializers.CharField(required=False, max_length=3)
    metadata = serializers.DictField(child=serializers.CharField(), required=False)
    payment_method = serializers.CharField(required=False)

    def validate_currency(self, value):
        return value.lower() if value else settings.ESCROW_CURRENCY
