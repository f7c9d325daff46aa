from rest_framework import status, viewsets
from rest_framework.response import Response

from core.utils import escrow

from .. import funding
from ..serializers.escrow import EscrowHoldSerializer


class EscrowHoldViewSet(viewsets.ViewSet):
    """Authorize a manual-capture hold the client then confirms."""

    def create(self, request):
        serializer = EscrowHoldSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        intent = funding.authorize_hold(
            escrow.get_escrow_gateway(),
            request.user.pk,
            data['amount'],
            metadata=data.get('metadata'),
            payment_method=data.get('payment_method'),
            currency=data.get('currency'),
        )
        return Response({
            'escrow_intent_id': intent.intent_id,
            'client_secret': intent.client_secret,
            'status': intent.status,
        }, status=status.HTTP_201_CREATED)
