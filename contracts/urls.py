from rest_framework.routers import SimpleRouter

from .views.challenges import ChallengeViewSet
from .views.escrow import EscrowHoldViewSet


router = SimpleRouter(trailing_slash=False)
router.register('challenges', ChallengeViewSet, basename='challenge')
router.register('escrow/holds', EscrowHoldViewSet, basename='escrow-hold')
