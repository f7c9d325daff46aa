import humanize
from django.contrib.auth import get_user_model
from rest_framework import serializers

from core.shortcuts import convert_to_decimal

from .. import ledger
from ..records import VoteValue


class ChallengeSerializer(serializers.Serializer):

    id = serializers.CharField()
    type = serializers.CharField()
    description = serializers.CharField()
    deadline = serializers.DateTimeField()
    deadline_natural = serializers.SerializerMethodField()
    status = serializers.CharField()
    challenger_id = serializers.CharField()
    challengee_id = serializers.CharField(allow_null=True)
    pot_amount = serializers.IntegerField()
    pot_display = serializers.SerializerMethodField()
    supporter_ids = serializers.SerializerMethodField()
    proof_url = serializers.CharField()
    escrow_intent_id = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()

    def get_deadline_natural(self, obj):
        return humanize.naturalday(obj.deadline)

    def get_pot_display(self, obj):
        return f"{convert_to_decimal(obj.pot_amount):.2f}"

    def get_supporter_ids(self, obj):
        return sorted(str(supporter_id) for supporter_id in obj.supporter_ids)


class ChallengeDetailSerializer(ChallengeSerializer):

    collected_amount = serializers.SerializerMethodField()

    def get_collected_amount(self, obj):
        return ledger.collected_amount(self.context['store'], obj.id)


class TransactionSerializer(serializers.Serializer):

    id = serializers.CharField()
    user_id = serializers.CharField()
    amount = serializers.IntegerField()
    escrow_intent_id = serializers.CharField()
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class FriendChallengeSerializer(serializers.Serializer):

    amount = serializers.IntegerField(min_value=1)
    challengee = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.all())
    description = serializers.CharField()
    deadline = serializers.DateTimeField()
    escrow_intent_id = serializers.CharField(required=False, allow_blank=False)
    payment_method = serializers.CharField(required=False, allow_blank=False)

    def validate(self, attrs):
        if not attrs.get('escrow_intent_id') and not attrs.get('payment_method'):
            raise serializers.ValidationError("Provide escrow_intent_id or payment_method.")
        return attrs


class SelfChallengeSerializer(serializers.Serializer):

    description = serializers.CharField()
    deadline = serializers.DateTimeField()


class FundSerializer(serializers.Serializer):

    amount = serializers.IntegerField(min_value=1)
    escrow_intent_id = serializers.CharField()


class ProofSerializer(serializers.Serializer):

    proof_url = serializers.CharField(max_length=1024)


class VoteSerializer(serializers.Serializer):

    value = serializers.ChoiceField(choices=VoteValue.choices)


class HoldResultSerializer(serializers.Serializer):

    transaction_id = serializers.CharField()
    escrow_intent_id = serializers.CharField()
    ok = serializers.BooleanField()
    error = serializers.CharField(allow_null=True)
    detail = serializers.CharField(allow_null=True)


class SettlementBatchSerializer(serializers.Serializer):

    outcome = serializers.CharField()
    pass_count = serializers.IntegerField()
    fail_count = serializers.IntegerField()
    processed = serializers.IntegerField()
    results = HoldResultSerializer(many=True)
