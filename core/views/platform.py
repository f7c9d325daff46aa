from django.conf import settings
from django.utils import timezone
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from ..exceptions import FailedPrecondition


class HealthView(APIView):

    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return Response({'status': 'healthy', 'timestamp': timezone.now().isoformat()})


class EscrowConfigView(APIView):

    def get(self, request):
        if not settings.STRIPE_PUBLISHABLE_KEY:
            raise FailedPrecondition("Missing STRIPE_PUBLISHABLE_KEY setting")
        return Response({'publishable_key': settings.STRIPE_PUBLISHABLE_KEY})
