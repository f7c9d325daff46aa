import copy
import threading
import uuid
from contextlib import contextmanager

from django.utils import timezone

from core.exceptions import InvalidArgument, NotFound

from ..records import (
    ChallengeRecord,
    ProgressReportRecord,
    TransactionRecord,
    TransactionStatus,
    VoteRecord,
)
from .base import LedgerStore


class InMemoryLedgerStore(LedgerStore):
    """
    Document store kept in process memory.

    Documents are plain dicts, as a document database would hold them, and
    records are built on every read. A re-entrant lock serializes access;
    atomic() snapshots the documents and restores them if the block raises.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._documents = {
            'challenges': {},
            'transactions': {},
            'votes': {},
            'progress_reports': [],
        }

    @property
    def challenges(self):
        return self._documents['challenges']

    @property
    def transactions(self):
        return self._documents['transactions']

    @property
    def votes(self):
        return self._documents['votes']

    @property
    def progress_reports(self):
        return self._documents['progress_reports']

    @contextmanager
    def atomic(self):
        with self._lock:
            snapshot = copy.deepcopy(self._documents)
            try:
                yield self
            except BaseException:
                self._documents = snapshot
                raise

    # Challenges

    def create_challenge(self, *, type, description, deadline, status, challenger_id,
                         challengee_id=None, escrow_intent_id=None):

        document = {
            'id': str(uuid.uuid4()),
            'type': type,
            'description': description,
            'deadline': deadline,
            'status': status,
            'challenger_id': challenger_id,
            'challengee_id': challengee_id,
            'pot_amount': 0,
            'supporter_ids': set(),
            'proof_url': '',
            'escrow_intent_id': escrow_intent_id,
            'created_at': timezone.now(),
        }
        record = ChallengeRecord(**document)
        with self._lock:
            self.challenges[record.id] = document
        return record

    def get_challenge(self, challenge_id):
        with self._lock:
            return ChallengeRecord(**self._challenge_document(challenge_id))

    def list_challenges_for(self, user_id):
        with self._lock:
            records = [ChallengeRecord(**document) for document in self.challenges.values()]
        return sorted((r for r in records if r.involves(user_id)), key=lambda r: r.created_at, reverse=True)

    def increment_pot(self, challenge_id, amount):
        with self._lock:
            self._challenge_document(challenge_id)['pot_amount'] += amount

    def add_supporter(self, challenge_id, user_id):
        with self._lock:
            self._challenge_document(challenge_id)['supporter_ids'].add(user_id)

    def compare_and_set_status(self, challenge_id, expected, new, **fields):
        with self._lock:
            document = self._challenge_document(challenge_id)
            if document['status'] != expected:
                return False
            document['status'] = new
            document.update(fields)
            return True

    def _challenge_document(self, challenge_id):
        try:
            return self.challenges[challenge_id]
        except KeyError:
            raise NotFound(f"Challenge {challenge_id} not found") from None

    # Transactions

    def create_transaction(self, *, challenge_id, user_id, amount, escrow_intent_id):

        with self._lock:
            if any(t['escrow_intent_id'] == escrow_intent_id for t in self.transactions.values()):
                raise InvalidArgument(f"Hold {escrow_intent_id} is already recorded")
            document = {
                'id': str(uuid.uuid4()),
                'challenge_id': challenge_id,
                'user_id': user_id,
                'amount': amount,
                'escrow_intent_id': escrow_intent_id,
                'status': TransactionStatus.HELD,
                'created_at': timezone.now(),
            }
            record = TransactionRecord(**document)
            self.transactions[record.id] = document
        return record

    def get_transaction(self, transaction_id):
        with self._lock:
            try:
                return TransactionRecord(**self.transactions[transaction_id])
            except KeyError:
                raise NotFound(f"Transaction {transaction_id} not found") from None

    def list_transactions(self, challenge_id, status=None):
        with self._lock:
            records = [TransactionRecord(**t) for t in self.transactions.values() if t['challenge_id'] == challenge_id]
        if status is not None:
            records = [r for r in records if r.status == status]
        return sorted(records, key=lambda r: r.created_at)

    def compare_and_set_transaction_status(self, transaction_id, expected, new):
        with self._lock:
            document = self.transactions.get(transaction_id)
            if document is None or document['status'] != expected:
                return False
            document['status'] = new
            return True

    # Votes

    def put_vote(self, challenge_id, voter_id, value):
        record = VoteRecord(challenge_id=challenge_id, voter_id=voter_id, value=value, updated_at=timezone.now())
        with self._lock:
            self._challenge_document(challenge_id)
            self.votes[(challenge_id, voter_id)] = {'value': record.value.value, 'updated_at': record.updated_at}
        return record

    def list_votes(self, challenge_id):
        with self._lock:
            rows = [(voter_id, vote['value'], vote['updated_at'])
                    for (vote_challenge_id, voter_id), vote in self.votes.items()
                    if vote_challenge_id == challenge_id]
        return self._valid_votes(challenge_id, rows)

    # Progress reports

    def add_progress_report(self, *, challenge_id, author_id, text='', external_url='', media_url=''):
        record = ProgressReportRecord(
            id=str(uuid.uuid4()),
            challenge_id=challenge_id,
            author_id=author_id,
            text=text,
            external_url=external_url,
            media_url=media_url,
            created_at=timezone.now(),
        )
        with self._lock:
            self._challenge_document(challenge_id)
            self.progress_reports.append(record)
        return record

    def list_progress_reports(self, challenge_id):
        with self._lock:
            reports = [r for r in self.progress_reports if r.challenge_id == challenge_id]
        return sorted(reports, key=lambda r: r.created_at, reverse=True)
