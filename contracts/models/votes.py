from django.db import models
from django.conf import settings

from ..records import VoteValue
from .challenges import Challenge


class Vote(models.Model):

    challenge = models.ForeignKey(Challenge, on_delete=models.CASCADE, related_name='votes')
    voter = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='votes')

    value = models.CharField(max_length=16, choices=VoteValue.choices)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=['challenge', 'voter'], name='unique_vote_per_voter'),
        ]

    def __str__(self):
        return f"Voter: {self.voter_id}; Vote: {self.value}"
