from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from core.utils import escrow

from .. import funding
from ..records import TransactionStatus
from ..serializers.challenges import (
    ChallengeDetailSerializer,
    ChallengeSerializer,
    FriendChallengeSerializer,
    FundSerializer,
    ProofSerializer,
    SelfChallengeSerializer,
    SettlementBatchSerializer,
    TransactionSerializer,
    VoteSerializer,
)
from ..serializers.progress import ProgressReportSerializer
from ..settlement import SettlementEngine
from ..store import get_ledger_store

UUID_PATTERN = '[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'


class ChallengeViewSet(viewsets.ViewSet):

    lookup_value_regex = UUID_PATTERN

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.store = get_ledger_store()

    @property
    def gateway(self):
        return escrow.get_escrow_gateway()

    def engine(self):
        return SettlementEngine(self.store, self.gateway)

    def validated(self, serializer_class):
        serializer = serializer_class(data=self.request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def list(self, request):
        challenges = self.store.list_challenges_for(request.user.pk)
        return Response(ChallengeSerializer(challenges, many=True).data)

    def retrieve(self, request, pk=None):
        challenge = funding.view_challenge(self.store, request.user.pk, pk)
        return Response(ChallengeDetailSerializer(challenge, context={'store': self.store}).data)

    @action(detail=False, methods=['post'], url_path='friend')
    def create_friend(self, request):
        data = self.validated(FriendChallengeSerializer)
        draft = funding.ChallengeDraft(
            challengee_id=data['challengee'].pk,
            description=data['description'],
            deadline=data['deadline'],
            escrow_intent_id=data.get('escrow_intent_id'),
            payment_method=data.get('payment_method'),
        )
        result = funding.fund_friend_challenge(self.store, self.gateway, request.user.pk, data['amount'], draft)
        return Response({
            'challenge_id': result.challenge_id,
            'escrow_intent_id': result.escrow_intent_id,
            'transaction_id': result.transaction_id,
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'], url_path='self')
    def create_self(self, request):
        data = self.validated(SelfChallengeSerializer)
        challenge = funding.create_self_challenge(self.store, request.user.pk, data['description'], data['deadline'])
        return Response(ChallengeSerializer(challenge).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def fund(self, request, pk=None):
        data = self.validated(FundSerializer)
        transaction_id = funding.fund_self_challenge(
            self.store, self.gateway, request.user.pk, pk, data['amount'], data['escrow_intent_id'],
        )
        return Response({'transaction_id': transaction_id}, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def accept(self, request, pk=None):
        challenge = funding.accept_challenge(self.store, request.user.pk, pk)
        return Response({'status': str(challenge.status)})

    @action(detail=True, methods=['post'])
    def proof(self, request, pk=None):
        data = self.validated(ProofSerializer)
        challenge = funding.submit_proof(self.store, request.user.pk, pk, data['proof_url'])
        return Response({'status': str(challenge.status)})

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        return Response({'status': str(self.engine().approve(pk, request.user.pk))})

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        return Response({'status': str(self.engine().reject(pk, request.user.pk))})

    @action(detail=True, methods=['post'])
    def vote(self, request, pk=None):
        data = self.validated(VoteSerializer)
        vote = funding.cast_vote(self.store, request.user.pk, pk, data['value'])
        return Response({'value': str(vote.value)})

    @action(detail=True, methods=['post'])
    def finalize(self, request, pk=None):
        batch = self.engine().finalize_self_challenge(pk, request.user.pk)
        return Response(SettlementBatchSerializer(batch).data)

    @action(detail=True, methods=['get'])
    def transactions(self, request, pk=None):
        challenge = funding.view_challenge(self.store, request.user.pk, pk)
        held_only = request.query_params.get('status') == TransactionStatus.HELD
        entries = self.store.list_transactions(challenge.id, TransactionStatus.HELD if held_only else None)
        return Response(TransactionSerializer(entries, many=True).data)

    @action(detail=True, methods=['get', 'post'])
    def progress(self, request, pk=None):
        if request.method == 'GET':
            reports = funding.list_progress_reports(self.store, request.user.pk, pk)
            return Response(ProgressReportSerializer(reports, many=True).data)

        data = self.validated(ProgressReportSerializer)
        report = funding.add_progress_report(self.store, request.user.pk, pk, **data)
        return Response(ProgressReportSerializer(report).data, status=status.HTTP_201_CREATED)
