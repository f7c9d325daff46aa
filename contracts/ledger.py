"""
Transaction ledger: append-only record of stakes and how they settled.

Entries are created held and move exactly once, to released or refunded.
"""

import logging
from dataclasses import replace

from core.exceptions import InvalidArgument, InvalidState, NotFound

from .records import ChallengeType, TransactionStatus, validate_amount

logger = logging.getLogger(__name__)


def record_held(store, challenge_id, user_id, amount, escrow_intent_id):
    """
    Record an authorized hold against a challenge and return the entry id.

    The entry, the pot increment and (for self challenges) the supporter
    set-union are written in one atomic block.
    """
    validate_amount(amount)
    if not challenge_id:
        raise InvalidArgument("challenge_id is required")
    if user_id is None or user_id == '':
        raise InvalidArgument("user_id is required")
    if not escrow_intent_id:
        raise InvalidArgument("escrow_intent_id is required")

    with store.atomic():
        challenge = store.get_challenge(challenge_id)
        entry = store.create_transaction(
            challenge_id=challenge.id,
            user_id=user_id,
            amount=amount,
            escrow_intent_id=escrow_intent_id,
        )
        store.increment_pot(challenge.id, amount)
        if challenge.type == ChallengeType.SELF:
            store.add_supporter(challenge.id, user_id)

    logger.info("Recorded held %s (%s cents) on challenge %s", escrow_intent_id, amount, challenge.id)
    return entry.id


def mark_released(store, transaction_id):
    return _settle(store, transaction_id, TransactionStatus.RELEASED)


def mark_refunded(store, transaction_id):
    return _settle(store, transaction_id, TransactionStatus.REFUNDED)


def _settle(store, transaction_id, target):

    try:
        entry = store.get_transaction(transaction_id)
    except NotFound:
        raise InvalidState(f"Transaction {transaction_id} does not exist") from None

    if not entry.is_held:
        # Terminal already; never transition twice.
        return entry

    if store.compare_and_set_transaction_status(entry.id, TransactionStatus.HELD, target):
        logger.info("Transaction %s %s", entry.id, target.value)
        return replace(entry, status=target)

    return store.get_transaction(entry.id)


def collected_amount(store, challenge_id):
    """Sum of the entries still held or released; refunds do not count."""

    return sum(entry.amount for entry in store.list_transactions(challenge_id)
               if entry.status in (TransactionStatus.HELD, TransactionStatus.RELEASED))
