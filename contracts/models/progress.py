import uuid

from django.db import models
from django.conf import settings

from ..records import ProgressKind
from .challenges import Challenge


class ProgressReport(models.Model):

    uuid = models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True)

    challenge = models.ForeignKey(Challenge, on_delete=models.CASCADE, related_name='progress_reports')
    author = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.DO_NOTHING, related_name='progress_reports')

    kind = models.CharField(max_length=16, choices=ProgressKind.choices, default=ProgressKind.TEXT)
    text = models.TextField(blank=True, default='')
    external_url = models.URLField(max_length=1024, blank=True, default='')
    media_url = models.CharField(max_length=1024, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.kind} report by {self.author_id}"
