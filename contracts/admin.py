from django.contrib import admin

from .models.challenges import Challenge
from .models.progress import ProgressReport
from .models.transactions import Transaction
from .models.votes import Vote


admin.site.register(Challenge)
admin.site.register(Transaction)
admin.site.register(Vote)
admin.site.register(ProgressReport)
