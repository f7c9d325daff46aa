"""
Typed records for challenges, ledger entries, votes and progress reports.

Stores hand these out instead of loosely typed rows or documents. Every
constructor validates its input and raises InvalidArgument for a state the
domain cannot represent.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, FrozenSet, Optional

from django.db import models

from core.exceptions import InvalidArgument


class ChallengeType(models.TextChoices):
    SELF = 'self', 'Self'
    FRIEND = 'friend', 'Friend'


class ChallengeStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    ACTIVE = 'active', 'Active'
    AWAITING_VERIFICATION = 'awaiting_verification', 'Awaiting verification'
    COMPLETED = 'completed', 'Completed'
    FAILED = 'failed', 'Failed'


TERMINAL_STATUSES = frozenset({ChallengeStatus.COMPLETED, ChallengeStatus.FAILED})


class TransactionStatus(models.TextChoices):
    HELD = 'held', 'Held'
    RELEASED = 'released', 'Released'
    REFUNDED = 'refunded', 'Refunded'


class VoteValue(models.TextChoices):
    PASS = 'pass', 'Pass'
    FAIL = 'fail', 'Fail'


class Outcome(models.TextChoices):
    PASS = 'pass', 'Pass'
    FAIL = 'fail', 'Fail'


class ProgressKind(models.TextChoices):
    TEXT = 'text', 'Text'
    LINK = 'link', 'Link'
    MEDIA = 'media', 'Media'


def validate_amount(amount, name='amount', allow_zero=False):
    """Return amount if it is a positive integer number of cents."""

    # bool is an int subclass; True is not a stake.
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidArgument(f"{name} must be an integer number of cents", {name: repr(amount)})
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidArgument(f"{name} must be positive", {name: amount})
    return amount


def coerce_choice(choices, value, name):

    try:
        return choices(value)
    except ValueError:
        raise InvalidArgument(f"Unknown {name}: {value!r}") from None


def _require(value, name):

    if value is None or value == '':
        raise InvalidArgument(f"{name} is required")
    return value


@dataclass(frozen=True)
class ChallengeRecord:
    id: str
    type: ChallengeType
    description: str
    deadline: datetime
    status: ChallengeStatus
    challenger_id: Any
    challengee_id: Any = None
    pot_amount: int = 0
    supporter_ids: FrozenSet[Any] = field(default_factory=frozenset)
    proof_url: str = ''
    escrow_intent_id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        _require(self.id, 'id')
        _require(self.challenger_id, 'challenger_id')
        object.__setattr__(self, 'type', coerce_choice(ChallengeType, self.type, 'challenge type'))
        object.__setattr__(self, 'status', coerce_choice(ChallengeStatus, self.status, 'challenge status'))
        object.__setattr__(self, 'supporter_ids', frozenset(self.supporter_ids))
        object.__setattr__(self, 'proof_url', self.proof_url or '')
        validate_amount(self.pot_amount, 'pot_amount', allow_zero=True)

        if self.type == ChallengeType.FRIEND and self.challengee_id is None:
            raise InvalidArgument("A friend challenge needs a challengee")
        if self.type == ChallengeType.SELF and self.challengee_id is not None:
            raise InvalidArgument("A self challenge cannot have a challengee")

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def involves(self, user_id):
        return user_id in (self.challenger_id, self.challengee_id) or user_id in self.supporter_ids


@dataclass(frozen=True)
class TransactionRecord:
    id: str
    challenge_id: str
    user_id: Any
    amount: int
    escrow_intent_id: str
    status: TransactionStatus = TransactionStatus.HELD
    created_at: Optional[datetime] = None

    def __post_init__(self):
        _require(self.id, 'id')
        _require(self.challenge_id, 'challenge_id')
        _require(self.user_id, 'user_id')
        _require(self.escrow_intent_id, 'escrow_intent_id')
        validate_amount(self.amount)
        object.__setattr__(self, 'status', coerce_choice(TransactionStatus, self.status, 'transaction status'))

    @property
    def is_held(self):
        return self.status == TransactionStatus.HELD


@dataclass(frozen=True)
class VoteRecord:
    challenge_id: str
    voter_id: Any
    value: VoteValue
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        _require(self.challenge_id, 'challenge_id')
        _require(self.voter_id, 'voter_id')
        object.__setattr__(self, 'value', coerce_choice(VoteValue, self.value, 'vote'))


@dataclass(frozen=True)
class ProgressReportRecord:
    id: str
    challenge_id: str
    author_id: Any
    text: str = ''
    external_url: str = ''
    media_url: str = ''
    created_at: Optional[datetime] = None

    def __post_init__(self):
        _require(self.id, 'id')
        _require(self.challenge_id, 'challenge_id')
        _require(self.author_id, 'author_id')
        if not (self.text or self.external_url or self.media_url):
            raise InvalidArgument("A progress report needs text, a link or a media reference")

    @property
    def kind(self):
        if self.external_url:
            return ProgressKind.LINK
        if self.media_url:
            return ProgressKind.MEDIA
        return ProgressKind.TEXT
