"""
Shared fixtures.

Domain tests run against InMemoryLedgerStore and FakeEscrowGateway with
plain string user ids; API and ORM tests use the database and real users.
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from contracts import funding
from contracts.records import ChallengeStatus
from contracts.settlement import SettlementEngine
from contracts.store.memory import InMemoryLedgerStore
from core.utils import escrow

from .fakes import FakeEscrowGateway


@pytest.fixture
def store():
    return InMemoryLedgerStore()


@pytest.fixture
def gateway():
    return FakeEscrowGateway()


@pytest.fixture
def engine(store, gateway):
    return SettlementEngine(store, gateway)


@pytest.fixture
def deadline():
    return timezone.now() + timedelta(days=7)


@pytest.fixture
def friend_challenge(store, gateway, deadline):
    """A funded friend challenge (5000 cents) awaiting verification of bob's proof."""
    intent_id = gateway.add_hold(5000)
    draft = funding.ChallengeDraft('bob', 'Run a marathon', deadline, escrow_intent_id=intent_id)
    result = funding.fund_friend_challenge(store, gateway, 'alice', 5000, draft)
    funding.accept_challenge(store, 'bob', result.challenge_id)
    funding.submit_proof(store, 'bob', result.challenge_id, 'https://example.com/proof.jpg')
    return store.get_challenge(result.challenge_id)


def stake(store, gateway, challenge_id, supporter_id, amount):
    intent_id = gateway.add_hold(amount)
    return funding.fund_self_challenge(store, gateway, supporter_id, challenge_id, amount, intent_id)


def awaiting_self_challenge(store, gateway, deadline, stakes=(), votes=()):
    """Create alice's self challenge, stake into it, submit proof and cast votes."""
    challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)
    transaction_ids = [stake(store, gateway, challenge.id, supporter, amount) for supporter, amount in stakes]
    funding.submit_proof(store, 'alice', challenge.id, 'https://example.com/books.jpg')
    for voter, value in votes:
        funding.cast_vote(store, voter, challenge.id, value)
    challenge = store.get_challenge(challenge.id)
    assert challenge.status == ChallengeStatus.AWAITING_VERIFICATION
    return challenge, transaction_ids


@pytest.fixture
def api_gateway(monkeypatch):
    fake = FakeEscrowGateway()
    monkeypatch.setattr(escrow, 'get_escrow_gateway', lambda: fake)
    return fake


@pytest.fixture
def users(django_user_model):
    return {
        name: django_user_model.objects.create_user(username=name, password='password')
        for name in ('alice', 'bob', 'carol', 'dave')
    }


@pytest.fixture
def client_for():
    def make(user):
        client = APIClient()
        client.force_authenticate(user)
        return client
    return make
