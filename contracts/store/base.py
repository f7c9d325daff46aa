"""
Ledger store interface.

The settlement workflow only talks to storage through this interface, so it
runs unchanged against the database or the in-memory store. Implementations
must provide:

    - strongly consistent single-record reads
    - atomic pot increments and idempotent supporter set-union
    - compare-and-swap status writes (write only if the stored status still
      equals the expected one); this closes the read-then-act race on
      settlement and is required, not optional
    - an atomic() block that applies several writes all-or-nothing
"""

import logging
from typing import Iterable, List, Optional

from core.exceptions import InvalidArgument

from ..records import (
    ChallengeRecord,
    ChallengeStatus,
    ProgressReportRecord,
    TransactionRecord,
    TransactionStatus,
    VoteRecord,
    VoteValue,
)

logger = logging.getLogger(__name__)


class LedgerStore:

    def atomic(self):
        raise NotImplementedError

    # Challenges

    def create_challenge(self, *, type, description, deadline, status, challenger_id,
                         challengee_id=None, escrow_intent_id=None) -> ChallengeRecord:
        raise NotImplementedError

    def get_challenge(self, challenge_id) -> ChallengeRecord:
        """Return the challenge or raise NotFound."""
        raise NotImplementedError

    def list_challenges_for(self, user_id) -> List[ChallengeRecord]:
        raise NotImplementedError

    def increment_pot(self, challenge_id, amount: int) -> None:
        raise NotImplementedError

    def add_supporter(self, challenge_id, user_id) -> None:
        raise NotImplementedError

    def compare_and_set_status(self, challenge_id, expected: ChallengeStatus,
                               new: ChallengeStatus, **fields) -> bool:
        raise NotImplementedError

    # Transactions

    def create_transaction(self, *, challenge_id, user_id, amount, escrow_intent_id) -> TransactionRecord:
        """Append a held entry; a reused escrow_intent_id raises InvalidArgument."""
        raise NotImplementedError

    def get_transaction(self, transaction_id) -> TransactionRecord:
        """Return the entry or raise NotFound."""
        raise NotImplementedError

    def list_transactions(self, challenge_id, status: Optional[TransactionStatus] = None) -> List[TransactionRecord]:
        raise NotImplementedError

    def compare_and_set_transaction_status(self, transaction_id, expected: TransactionStatus,
                                           new: TransactionStatus) -> bool:
        raise NotImplementedError

    # Votes

    def put_vote(self, challenge_id, voter_id, value: VoteValue) -> VoteRecord:
        raise NotImplementedError

    def list_votes(self, challenge_id) -> List[VoteRecord]:
        raise NotImplementedError

    # Progress reports

    def add_progress_report(self, *, challenge_id, author_id, text='', external_url='',
                            media_url='') -> ProgressReportRecord:
        raise NotImplementedError

    def list_progress_reports(self, challenge_id) -> List[ProgressReportRecord]:
        raise NotImplementedError

    @staticmethod
    def _valid_votes(challenge_id, rows: Iterable[tuple]) -> List[VoteRecord]:
        """Build vote records from (voter_id, value, updated_at) rows, skipping unknown values."""

        votes = []
        for voter_id, value, updated_at in rows:
            try:
                votes.append(VoteRecord(challenge_id=challenge_id, voter_id=voter_id, value=value, updated_at=updated_at))
            except InvalidArgument:
                logger.warning("Ignoring vote %r by %s on challenge %s", value, voter_id, challenge_id)
        return votes
