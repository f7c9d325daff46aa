import uuid

from django.db import models
from django.conf import settings

from core.shortcuts import convert_to_decimal

from ..records import ChallengeStatus, ChallengeType


class Challenge(models.Model):

    uuid = models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True)

    type = models.CharField(max_length=16, choices=ChallengeType.choices)
    description = models.TextField()
    deadline = models.DateTimeField()

    status = models.CharField(max_length=32, choices=ChallengeStatus.choices, default=ChallengeStatus.PENDING)

    challenger = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.DO_NOTHING, related_name='challenges_created')
    challengee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.DO_NOTHING, blank=True, null=True, related_name='challenges_received')
    supporters = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name='challenges_supported')

    # Historical total staked, in cents. Only ever incremented by the ledger.
    pot_amount = models.BigIntegerField(default=0)

    proof_url = models.CharField(max_length=1024, blank=True, default='')
    escrow_intent_id = models.CharField(max_length=255, blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def get_decimal_pot_amount(self):
        return convert_to_decimal(self.pot_amount)

    def __str__(self):
        return f"Type: {self.type}; Pot: {self.get_decimal_pot_amount()}; Status: {self.status}"
