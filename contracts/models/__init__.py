from .challenges import Challenge
from .progress import ProgressReport
from .transactions import Transaction
from .votes import Vote

__all__ = ['Challenge', 'ProgressReport', 'Transaction', 'Vote']
