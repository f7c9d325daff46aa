import io

import pytest
from django.core.management import CommandError, call_command

from contracts import funding
from contracts.management.commands import settle_holds
from contracts.records import TransactionStatus
from contracts.settlement import SettlementEngine
from contracts.store.orm import OrmLedgerStore

pytestmark = pytest.mark.django_db


@pytest.fixture
def command_gateway(monkeypatch, gateway):
    monkeypatch.setattr(settle_holds, 'get_escrow_gateway', lambda: gateway)
    return gateway


@pytest.fixture
def settled_with_leftover(command_gateway, users, deadline):
    """A self challenge finalized as passed while carol's hold failed to capture."""
    store = OrmLedgerStore()
    challenge = funding.create_self_challenge(store, users['alice'].pk, 'Read 12 books', deadline)
    for name, amount in (('bob', 1000), ('carol', 2000)):
        funding.fund_self_challenge(
            store, command_gateway, users[name].pk, challenge.id, amount, command_gateway.add_hold(amount),
        )
    funding.submit_proof(store, users['alice'].pk, challenge.id, 'proofs/books.jpg')

    stuck = store.list_transactions(challenge.id)
    stuck = next(entry for entry in stuck if entry.user_id == users['carol'].pk)
    command_gateway.fail_on.add(stuck.escrow_intent_id)
    SettlementEngine(store, command_gateway).finalize_self_challenge(challenge.id, users['alice'].pk)
    return store, challenge, stuck


def test_retries_leftover_holds(command_gateway, settled_with_leftover):
    store, challenge, stuck = settled_with_leftover
    command_gateway.fail_on.clear()
    out = io.StringIO()

    call_command('settle_holds', challenge.id, stdout=out)

    assert f'{stuck.escrow_intent_id}: settled' in out.getvalue()
    assert 'Outcome pass: 1 of 1 holds settled' in out.getvalue()
    assert store.get_transaction(stuck.id).status == TransactionStatus.RELEASED


def test_reports_holds_that_still_fail(command_gateway, settled_with_leftover):
    store, challenge, stuck = settled_with_leftover

    with pytest.raises(CommandError, match='1 holds are still held'):
        call_command('settle_holds', challenge.id, stdout=io.StringIO())

    assert store.get_transaction(stuck.id).status == TransactionStatus.HELD


def test_open_challenge_is_refused(command_gateway, users, deadline):
    challenge = funding.create_self_challenge(OrmLedgerStore(), users['alice'].pk, 'Read 12 books', deadline)

    with pytest.raises(CommandError, match='only settled challenges can be retried'):
        call_command('settle_holds', challenge.id)


def test_unknown_challenge(command_gateway):
    with pytest.raises(CommandError, match='not found'):
        call_command('settle_holds', '00000000-0000-0000-0000-000000000000')
