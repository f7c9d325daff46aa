"""
Settlement engine.

The only code that captures or cancels escrow holds. It keeps the provider's
holds, the transaction ledger and the challenge status moving together:

    approve  - friend challenge: capture the hold, release, complete
    reject   - friend challenge: cancel the hold, refund, fail
    finalize - self challenge: tally votes, then capture or cancel every held
               stake independently and move to the outcome's terminal status

Single-hold settlement is all or nothing: a provider failure leaves the
ledger and the challenge untouched. Multi-hold settlement is best effort: a
failing hold is logged and reported in the batch, the others carry on, and
the status is written only after every hold has been attempted.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from core.exceptions import ContractError, FailedPrecondition, PermissionDenied

from . import ledger, state
from .records import ChallengeStatus, ChallengeType, Outcome, TransactionStatus, VoteValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HoldResult:
    transaction_id: str
    escrow_intent_id: str
    ok: bool
    error: Optional[str] = None
    detail: Optional[str] = None


@dataclass(frozen=True)
class SettlementBatch:
    outcome: Outcome
    pass_count: int
    fail_count: int
    processed: int
    results: Tuple[HoldResult, ...] = ()

    @property
    def failures(self):
        return tuple(result for result in self.results if not result.ok)

    @property
    def complete(self):
        return not self.failures


def tally_votes(values: Iterable) -> Tuple[int, int]:
    """Count pass and fail votes; anything else is ignored."""

    pass_count = fail_count = 0
    for value in values:
        if value == VoteValue.PASS:
            pass_count += 1
        elif value == VoteValue.FAIL:
            fail_count += 1
    return pass_count, fail_count


def decide_outcome(pass_count, fail_count):
    # Ties pass.
    return Outcome.PASS if pass_count >= fail_count else Outcome.FAIL


class SettlementEngine:

    def __init__(self, store, gateway):
        self.store = store
        self.gateway = gateway

    def approve(self, challenge_id, caller_id):
        return self._settle_single(challenge_id, caller_id, Outcome.PASS)

    def reject(self, challenge_id, caller_id):
        return self._settle_single(challenge_id, caller_id, Outcome.FAIL)

    def finalize_self_challenge(self, challenge_id, caller_id):

        challenge = self.store.get_challenge(challenge_id)
        if challenge.type != ChallengeType.SELF:
            raise FailedPrecondition("Only self challenges are finalized by vote")
        if challenge.challenger_id != caller_id:
            raise PermissionDenied("Only the challenger can finalize")
        state.require_status(challenge, ChallengeStatus.AWAITING_VERIFICATION)

        pass_count, fail_count = tally_votes(vote.value for vote in self.store.list_votes(challenge.id))
        outcome = decide_outcome(pass_count, fail_count)

        results = self._settle_holds(challenge, outcome)

        state.transition(self.store, challenge, _terminal_status(outcome))
        batch = SettlementBatch(outcome, pass_count, fail_count, len(results), results)

        logger.info("Finalized challenge %s: %s (%d pass / %d fail), %d of %d holds settled",
                    challenge.id, outcome.value, pass_count, fail_count,
                    len(results) - len(batch.failures), len(results))
        return batch

    def retry_holds(self, challenge_id):
        """
        Settle holds left behind by an earlier best-effort settlement.

        The challenge must already be terminal; its status decides whether the
        remaining holds are captured or cancelled.
        """
        challenge = self.store.get_challenge(challenge_id)
        if not challenge.is_terminal:
            raise FailedPrecondition(
                f"Challenge {challenge.id} is {challenge.status.value}; only settled challenges can be retried",
                {'status': challenge.status.value},
            )

        outcome = Outcome.PASS if challenge.status == ChallengeStatus.COMPLETED else Outcome.FAIL
        pass_count, fail_count = tally_votes(vote.value for vote in self.store.list_votes(challenge.id))
        results = self._settle_holds(challenge, outcome)
        return SettlementBatch(outcome, pass_count, fail_count, len(results), results)

    def _settle_single(self, challenge_id, caller_id, outcome):

        challenge = self.store.get_challenge(challenge_id)
        if challenge.challenger_id != caller_id:
            raise PermissionDenied("Only the challenger can verify proof")
        if challenge.type != ChallengeType.FRIEND:
            raise FailedPrecondition("Self challenges are settled by vote")
        state.require_status(challenge, ChallengeStatus.AWAITING_VERIFICATION)
        if not challenge.escrow_intent_id:
            raise FailedPrecondition(f"Challenge {challenge.id} has no escrow hold")

        entries = [entry for entry in self.store.list_transactions(challenge.id, TransactionStatus.HELD)
                   if entry.escrow_intent_id == challenge.escrow_intent_id]

        # A provider failure propagates before anything local is written.
        self._move_hold(challenge.escrow_intent_id, outcome)

        for entry in entries:
            _mark(self.store, entry.id, outcome)
        target = _terminal_status(outcome)
        state.transition(self.store, challenge, target)

        logger.info("Challenge %s %s by challenger", challenge.id, target.value)
        return target

    def _settle_holds(self, challenge, outcome):

        results = []
        for entry in self.store.list_transactions(challenge.id, TransactionStatus.HELD):
            try:
                self._move_hold(entry.escrow_intent_id, outcome)
                _mark(self.store, entry.id, outcome)
            except ContractError as e:
                logger.error("Could not settle hold %s on challenge %s: %s",
                             entry.escrow_intent_id, challenge.id, e)
                results.append(HoldResult(entry.id, entry.escrow_intent_id, False, e.code, e.message))
            else:
                results.append(HoldResult(entry.id, entry.escrow_intent_id, True))
        return tuple(results)

    def _move_hold(self, escrow_intent_id, outcome):

        if outcome == Outcome.PASS:
            logger.info("Capturing hold %s", escrow_intent_id)
            return self.gateway.capture(escrow_intent_id)
        logger.info("Cancelling hold %s", escrow_intent_id)
        return self.gateway.cancel(escrow_intent_id)


def _mark(store, transaction_id, outcome):

    if outcome == Outcome.PASS:
        return ledger.mark_released(store, transaction_id)
    return ledger.mark_refunded(store, transaction_id)


def _terminal_status(outcome):

    return ChallengeStatus.COMPLETED if outcome == Outcome.PASS else ChallengeStatus.FAILED
