"""
Funding, acceptance, proof, votes and progress reports.

Friend challenges are persisted only once their hold is authorized, so a
challenge never exists without money behind it. Self challenges start empty
and collect one hold per supporter.
"""

import datetime
import logging
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.utils import timezone

from core.exceptions import FailedPrecondition, GatewayError, InvalidArgument, PermissionDenied

from . import ledger, state
from .records import ChallengeStatus, ChallengeType, coerce_choice, validate_amount, VoteValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChallengeDraft:
    challengee_id: object
    description: str
    deadline: datetime.datetime
    escrow_intent_id: Optional[str] = None
    payment_method: Optional[str] = None


@dataclass(frozen=True)
class FundingResult:
    challenge_id: str
    escrow_intent_id: str
    transaction_id: str


def authorize_hold(gateway, caller_id, amount, metadata=None, payment_method=None, currency=None):

    validate_amount(amount)
    metadata = dict(metadata or {})
    metadata['uid'] = caller_id
    return gateway.authorize(amount, currency or settings.ESCROW_CURRENCY, metadata, payment_method)


def fund_friend_challenge(store, gateway, caller_id, amount, draft):
    """
    Authorize (or verify) the challenger's hold, then persist the challenge.

    Nothing is written unless the hold is authorized for exactly amount.
    """
    validate_amount(amount)
    deadline = _validate_details(draft.description, draft.deadline)
    if draft.challengee_id is None or draft.challengee_id == '':
        raise InvalidArgument("challengee_id is required")
    if draft.challengee_id == caller_id:
        raise InvalidArgument("You cannot challenge yourself; create a self challenge instead")

    if draft.escrow_intent_id:
        intent = _require_hold(gateway, draft.escrow_intent_id, amount)
    elif draft.payment_method:
        intent = authorize_hold(gateway, caller_id, amount, {'purpose': 'challenge_escrow'}, draft.payment_method)
        if not intent.is_held:
            _release_unconfirmed(gateway, intent)
            raise FailedPrecondition(
                f"Hold {intent.intent_id} was not authorized",
                {'escrow_status': intent.status},
            )
    else:
        raise InvalidArgument("escrow_intent_id or payment_method is required")

    with store.atomic():
        challenge = store.create_challenge(
            type=ChallengeType.FRIEND,
            description=draft.description,
            deadline=deadline,
            status=ChallengeStatus.PENDING,
            challenger_id=caller_id,
            challengee_id=draft.challengee_id,
            escrow_intent_id=intent.intent_id,
        )
        transaction_id = ledger.record_held(store, challenge.id, caller_id, amount, intent.intent_id)

    logger.info("Friend challenge %s funded with %s cents", challenge.id, amount)
    return FundingResult(challenge.id, intent.intent_id, transaction_id)


def create_self_challenge(store, caller_id, description, deadline):

    deadline = _validate_details(description, deadline)
    challenge = store.create_challenge(
        type=ChallengeType.SELF,
        description=description,
        deadline=deadline,
        status=ChallengeStatus.ACTIVE,
        challenger_id=caller_id,
    )
    logger.info("Self challenge %s created", challenge.id)
    return challenge


def fund_self_challenge(store, gateway, caller_id, challenge_id, amount, escrow_intent_id):

    validate_amount(amount)
    if not escrow_intent_id:
        raise InvalidArgument("escrow_intent_id is required")

    challenge = store.get_challenge(challenge_id)
    if challenge.type != ChallengeType.SELF:
        raise FailedPrecondition("Only self challenges take supporter stakes")
    state.require_status(challenge, ChallengeStatus.ACTIVE)

    _require_hold(gateway, escrow_intent_id, amount)
    return ledger.record_held(store, challenge.id, caller_id, amount, escrow_intent_id)


def accept_challenge(store, caller_id, challenge_id):

    challenge = store.get_challenge(challenge_id)
    if challenge.type != ChallengeType.FRIEND:
        raise FailedPrecondition("Only friend challenges are accepted")
    if challenge.challengee_id != caller_id:
        raise PermissionDenied("Only the challengee can accept")
    return state.transition(store, challenge, ChallengeStatus.ACTIVE)


def submit_proof(store, caller_id, challenge_id, proof_url):

    if not proof_url or not isinstance(proof_url, str):
        raise InvalidArgument("proof_url is required")

    challenge = store.get_challenge(challenge_id)
    submitter_id = challenge.challengee_id if challenge.type == ChallengeType.FRIEND else challenge.challenger_id
    if submitter_id != caller_id:
        raise PermissionDenied("You cannot submit proof for this challenge")

    return state.transition(store, challenge, ChallengeStatus.AWAITING_VERIFICATION, proof_url=proof_url)


def cast_vote(store, caller_id, challenge_id, value):

    value = coerce_choice(VoteValue, value, 'vote')
    challenge = store.get_challenge(challenge_id)
    if challenge.type != ChallengeType.SELF:
        raise FailedPrecondition("Only self challenges are decided by vote")
    state.require_status(challenge, ChallengeStatus.AWAITING_VERIFICATION)
    return store.put_vote(challenge.id, caller_id, value)


def add_progress_report(store, caller_id, challenge_id, text='', external_url='', media_url=''):

    challenge = store.get_challenge(challenge_id)
    if caller_id not in (challenge.challenger_id, challenge.challengee_id):
        raise PermissionDenied("Only the challenger or challengee can post progress")
    return store.add_progress_report(
        challenge_id=challenge.id,
        author_id=caller_id,
        text=text or '',
        external_url=external_url or '',
        media_url=media_url or '',
    )


def view_challenge(store, caller_id, challenge_id):
    """Return the challenge if the caller is its challenger, challengee or a supporter."""

    challenge = store.get_challenge(challenge_id)
    if not challenge.involves(caller_id):
        raise PermissionDenied("You are not part of this challenge")
    return challenge


def list_progress_reports(store, caller_id, challenge_id):

    challenge = view_challenge(store, caller_id, challenge_id)
    return store.list_progress_reports(challenge.id)


def _validate_details(description, deadline):

    if not description or not str(description).strip():
        raise InvalidArgument("description is required")
    if not isinstance(deadline, datetime.datetime):
        raise InvalidArgument("deadline must be a timestamp")
    if timezone.is_naive(deadline):
        deadline = timezone.make_aware(deadline, datetime.timezone.utc)
    if deadline <= timezone.now():
        raise InvalidArgument("deadline must be in the future")
    return deadline


def _require_hold(gateway, escrow_intent_id, amount):

    intent = gateway.retrieve(escrow_intent_id)
    if not intent.is_held:
        raise FailedPrecondition(
            f"Hold {escrow_intent_id} is not authorized",
            {'escrow_status': intent.status},
        )
    if intent.amount != amount:
        raise InvalidArgument(
            f"Hold {escrow_intent_id} is for {intent.amount} cents, not {amount}",
            {'amount': amount},
        )
    return intent


def _release_unconfirmed(gateway, intent):

    # The intent never reached requires_capture and nothing will capture it.
    try:
        gateway.cancel(intent.intent_id)
    except GatewayError as e:
        logger.warning("Could not cancel unconfirmed intent %s: %s", intent.intent_id, e)
