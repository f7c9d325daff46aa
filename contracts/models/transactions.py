import uuid

from django.db import models
from django.conf import settings

from core.shortcuts import convert_to_decimal

from ..records import TransactionStatus
from .challenges import Challenge


class Transaction(models.Model):

    uuid = models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True)

    challenge = models.ForeignKey(Challenge, on_delete=models.DO_NOTHING, related_name='transactions')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.DO_NOTHING, related_name='stakes')

    amount = models.BigIntegerField()
    escrow_intent_id = models.CharField(max_length=255, unique=True)

    status = models.CharField(max_length=16, choices=TransactionStatus.choices, default=TransactionStatus.HELD)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def get_decimal_amount(self):
        return convert_to_decimal(self.amount)

    def __str__(self):
        return f'{self.escrow_intent_id} | {self.get_decimal_amount()} | {self.status}'
