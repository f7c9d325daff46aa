from django.urls import path

from .views.platform import EscrowConfigView, HealthView


urlpatterns = [
    path('health', HealthView.as_view(), name='health'),
    path('escrow/config', EscrowConfigView.as_view(), name='escrow-config'),
]
