from django.core.exceptions import ObjectDoesNotExist, ValidationError
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from core.exceptions import InvalidArgument, NotFound

from ..models import Challenge, ProgressReport, Transaction, Vote
from ..records import ChallengeRecord, ProgressReportRecord, TransactionRecord, VoteRecord
from .base import LedgerStore


class OrmLedgerStore(LedgerStore):
    """
    Ledger store backed by the Django ORM.

    Increments are F() expressions and status changes are conditional
    UPDATE ... WHERE status = expected statements, so neither is a
    read-modify-write in Python.
    """

    def atomic(self):
        return transaction.atomic()

    # Challenges

    def create_challenge(self, *, type, description, deadline, status, challenger_id,
                         challengee_id=None, escrow_intent_id=None):

        challenge = Challenge.objects.create(
            type=type,
            description=description,
            deadline=deadline,
            status=status,
            challenger_id=challenger_id,
            challengee_id=challengee_id,
            escrow_intent_id=escrow_intent_id,
        )
        return self._challenge_record(challenge, supporter_ids=())

    def get_challenge(self, challenge_id):
        return self._challenge_record(self._get(Challenge.objects.prefetch_related('supporters'), challenge_id, 'Challenge'))

    def list_challenges_for(self, user_id):
        challenges = (Challenge.objects
                      .filter(Q(challenger_id=user_id) | Q(challengee_id=user_id) | Q(supporters__pk=user_id))
                      .distinct()
                      .prefetch_related('supporters')
                      .order_by('-created_at'))
        return [self._challenge_record(challenge) for challenge in challenges]

    def increment_pot(self, challenge_id, amount):
        updated = Challenge.objects.filter(pk=challenge_id).update(pot_amount=F('pot_amount') + amount, updated_at=timezone.now())
        if not updated:
            raise NotFound(f"Challenge {challenge_id} not found")

    def add_supporter(self, challenge_id, user_id):
        # add() skips users that are already supporters.
        self._get(Challenge.objects, challenge_id, 'Challenge').supporters.add(user_id)

    def compare_and_set_status(self, challenge_id, expected, new, **fields):
        updated = (Challenge.objects
                   .filter(pk=challenge_id, status=expected)
                   .update(status=new, updated_at=timezone.now(), **fields))
        return updated == 1

    # Transactions

    def create_transaction(self, *, challenge_id, user_id, amount, escrow_intent_id):

        if Transaction.objects.filter(escrow_intent_id=escrow_intent_id).exists():
            raise InvalidArgument(f"Hold {escrow_intent_id} is already recorded")
        try:
            with transaction.atomic():
                entry = Transaction.objects.create(
                    challenge_id=challenge_id,
                    user_id=user_id,
                    amount=amount,
                    escrow_intent_id=escrow_intent_id,
                )
        except IntegrityError as e:
            raise InvalidArgument(f"Hold {escrow_intent_id} is already recorded") from e
        return self._transaction_record(entry)

    def get_transaction(self, transaction_id):
        return self._transaction_record(self._get(Transaction.objects, transaction_id, 'Transaction'))

    def list_transactions(self, challenge_id, status=None):
        entries = Transaction.objects.filter(challenge_id=challenge_id)
        if status is not None:
            entries = entries.filter(status=status)
        return [self._transaction_record(entry) for entry in entries.order_by('created_at')]

    def compare_and_set_transaction_status(self, transaction_id, expected, new):
        updated = (Transaction.objects
                   .filter(pk=transaction_id, status=expected)
                   .update(status=new, updated_at=timezone.now()))
        return updated == 1

    # Votes

    def put_vote(self, challenge_id, voter_id, value):
        record = VoteRecord(challenge_id=challenge_id, voter_id=voter_id, value=value)
        vote, created = Vote.objects.update_or_create(
            challenge_id=challenge_id,
            voter_id=voter_id,
            defaults={'value': record.value},
        )
        return VoteRecord(challenge_id=str(vote.challenge_id), voter_id=vote.voter_id, value=vote.value, updated_at=vote.updated_at)

    def list_votes(self, challenge_id):
        rows = Vote.objects.filter(challenge_id=challenge_id).values_list('voter_id', 'value', 'updated_at')
        return self._valid_votes(str(challenge_id), rows)

    # Progress reports

    def add_progress_report(self, *, challenge_id, author_id, text='', external_url='', media_url=''):
        self._get(Challenge.objects, challenge_id, 'Challenge')
        report = ProgressReport(
            challenge_id=challenge_id,
            author_id=author_id,
            text=text,
            external_url=external_url,
            media_url=media_url,
        )
        # Validate before writing; the record derives the kind.
        record = self._progress_record(report)
        report.kind = record.kind
        report.save()
        return self._progress_record(report)

    def list_progress_reports(self, challenge_id):
        return [self._progress_record(report) for report in ProgressReport.objects.filter(challenge_id=challenge_id)]

    # Mapping

    @staticmethod
    def _get(queryset, pk, label):
        try:
            return queryset.get(pk=pk)
        except (ObjectDoesNotExist, ValidationError, ValueError):
            raise NotFound(f"{label} {pk} not found") from None

    @staticmethod
    def _challenge_record(challenge, supporter_ids=None):
        if supporter_ids is None:
            supporter_ids = [user.pk for user in challenge.supporters.all()]
        return ChallengeRecord(
            id=str(challenge.pk),
            type=challenge.type,
            description=challenge.description,
            deadline=challenge.deadline,
            status=challenge.status,
            challenger_id=challenge.challenger_id,
            challengee_id=challenge.challengee_id,
            pot_amount=challenge.pot_amount,
            supporter_ids=supporter_ids,
            proof_url=challenge.proof_url,
            escrow_intent_id=challenge.escrow_intent_id,
            created_at=challenge.created_at,
        )

    @staticmethod
    def _transaction_record(entry):
        return TransactionRecord(
            id=str(entry.pk),
            challenge_id=str(entry.challenge_id),
            user_id=entry.user_id,
            amount=entry.amount,
            escrow_intent_id=entry.escrow_intent_id,
            status=entry.status,
            created_at=entry.created_at,
        )

    @staticmethod
    def _progress_record(report):
        return ProgressReportRecord(
            id=str(report.pk),
            challenge_id=str(report.challenge_id),
            author_id=report.author_id,
            text=report.text,
            external_url=report.external_url,
            media_url=report.media_url,
            created_at=report.created_at,
        )
