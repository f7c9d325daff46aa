from datetime import timedelta

import pytest
from django.utils import timezone

from contracts import funding
from contracts.records import ChallengeStatus, ChallengeType, ProgressKind, VoteValue
from core.exceptions import FailedPrecondition, GatewayError, InvalidArgument, InvalidState, NotFound, PermissionDenied

from .conftest import awaiting_self_challenge, stake


def draft_for(deadline, **kwargs):
    kwargs.setdefault('payment_method', 'pm_card_visa')
    return funding.ChallengeDraft('bob', 'Run a marathon', deadline, **kwargs)


class TestFriendFunding:

    def test_verified_hold_creates_pending_challenge(self, store, gateway, deadline):
        intent_id = gateway.add_hold(2500)

        result = funding.fund_friend_challenge(
            store, gateway, 'alice', 2500, draft_for(deadline, escrow_intent_id=intent_id, payment_method=None),
        )

        challenge = store.get_challenge(result.challenge_id)
        assert challenge.type == ChallengeType.FRIEND
        assert challenge.status == ChallengeStatus.PENDING
        assert challenge.challengee_id == 'bob'
        assert challenge.escrow_intent_id == intent_id
        assert challenge.pot_amount == 2500
        assert gateway.calls_to('authorize') == []
        [entry] = store.list_transactions(challenge.id)
        assert (entry.id, entry.user_id, entry.amount) == (result.transaction_id, 'alice', 2500)

    def test_authorizes_with_payment_method(self, store, gateway, deadline):
        result = funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft_for(deadline))

        intent = gateway.intents[result.escrow_intent_id]
        assert intent.is_held
        assert intent.metadata == {'purpose': 'challenge_escrow', 'uid': 'alice'}

    def test_declined_payment_persists_nothing(self, store, gateway, deadline):
        with pytest.raises(FailedPrecondition) as excinfo:
            funding.fund_friend_challenge(
                store, gateway, 'alice', 1000, draft_for(deadline, payment_method='pm_card_declined'),
            )

        assert excinfo.value.details == {'escrow_status': 'requires_payment_method'}
        assert store.challenges == {}
        assert store.transactions == {}

    def test_declined_intent_is_cancelled(self, store, gateway, deadline):
        with pytest.raises(FailedPrecondition):
            funding.fund_friend_challenge(
                store, gateway, 'alice', 1000, draft_for(deadline, payment_method='pm_card_declined'),
            )

        [intent_id] = gateway.intents
        assert gateway.calls_to('cancel') == [intent_id]
        assert gateway.intents[intent_id].status == 'canceled'

    def test_cancel_failure_still_reports_declined_hold(self, store, gateway, deadline):
        gateway.fail_on.add('pi_1')

        with pytest.raises(FailedPrecondition):
            funding.fund_friend_challenge(
                store, gateway, 'alice', 1000, draft_for(deadline, payment_method='pm_card_declined'),
            )
        assert store.challenges == {}

    @pytest.mark.parametrize('amount', [0, -100, 10.5, '1000', True])
    def test_rejects_bad_stakes(self, store, gateway, deadline, amount):
        with pytest.raises(InvalidArgument):
            funding.fund_friend_challenge(store, gateway, 'alice', amount, draft_for(deadline))
        assert gateway.calls == []

    def test_one_cent_stake_is_accepted(self, store, gateway, deadline):
        result = funding.fund_friend_challenge(store, gateway, 'alice', 1, draft_for(deadline))
        assert store.get_challenge(result.challenge_id).pot_amount == 1

    def test_rejects_self_as_challengee(self, store, gateway, deadline):
        draft = funding.ChallengeDraft('alice', 'Run a marathon', deadline, payment_method='pm_card_visa')
        with pytest.raises(InvalidArgument):
            funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft)

    def test_requires_hold_or_payment_method(self, store, gateway, deadline):
        with pytest.raises(InvalidArgument):
            funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft_for(deadline, payment_method=None))

    @pytest.mark.parametrize('description', ['', '   ', None])
    def test_requires_description(self, store, gateway, deadline, description):
        draft = funding.ChallengeDraft('bob', description, deadline, payment_method='pm_card_visa')
        with pytest.raises(InvalidArgument):
            funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft)

    def test_rejects_past_deadline(self, store, gateway):
        with pytest.raises(InvalidArgument):
            funding.fund_friend_challenge(
                store, gateway, 'alice', 1000, draft_for(timezone.now() - timedelta(minutes=1)),
            )

    def test_naive_deadline_is_read_as_utc(self, store, gateway):
        naive = (timezone.now() + timedelta(days=1)).replace(tzinfo=None)
        result = funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft_for(naive))
        assert timezone.is_aware(store.get_challenge(result.challenge_id).deadline)

    def test_hold_amount_must_match(self, store, gateway, deadline):
        intent_id = gateway.add_hold(900)
        with pytest.raises(InvalidArgument):
            funding.fund_friend_challenge(
                store, gateway, 'alice', 1000, draft_for(deadline, escrow_intent_id=intent_id, payment_method=None),
            )
        assert store.challenges == {}

    def test_unauthorized_hold_is_refused(self, store, gateway, deadline):
        intent_id = gateway.add_hold(1000, status='requires_payment_method')
        with pytest.raises(FailedPrecondition):
            funding.fund_friend_challenge(
                store, gateway, 'alice', 1000, draft_for(deadline, escrow_intent_id=intent_id, payment_method=None),
            )

    def test_unknown_hold_surfaces_gateway_error(self, store, gateway, deadline):
        with pytest.raises(GatewayError):
            funding.fund_friend_challenge(
                store, gateway, 'alice', 1000, draft_for(deadline, escrow_intent_id='pi_missing', payment_method=None),
            )

    def test_hold_cannot_fund_two_challenges(self, store, gateway, deadline):
        intent_id = gateway.add_hold(1000)
        draft = draft_for(deadline, escrow_intent_id=intent_id, payment_method=None)
        funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft)

        with pytest.raises(InvalidArgument):
            funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft)
        assert len(store.challenges) == 1


class TestSelfFunding:

    def test_create_self_challenge_starts_active(self, store, deadline):
        challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)

        assert challenge.type == ChallengeType.SELF
        assert challenge.status == ChallengeStatus.ACTIVE
        assert challenge.challengee_id is None
        assert challenge.pot_amount == 0

    def test_supporters_stake_independently(self, store, gateway, deadline):
        challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)

        stake(store, gateway, challenge.id, 'bob', 1000)
        stake(store, gateway, challenge.id, 'carol', 2000)
        stake(store, gateway, challenge.id, 'bob', 500)

        challenge = store.get_challenge(challenge.id)
        assert challenge.pot_amount == 3500
        assert challenge.supporter_ids == {'bob', 'carol'}
        assert len(store.list_transactions(challenge.id)) == 3

    def test_small_stakes_are_recorded(self, store, gateway, deadline):
        challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)

        stake(store, gateway, challenge.id, 'bob', 1)
        stake(store, gateway, challenge.id, 'carol', 50)

        assert store.get_challenge(challenge.id).pot_amount == 51

    def test_friend_challenge_takes_no_stakes(self, store, gateway, friend_challenge):
        with pytest.raises(FailedPrecondition):
            stake(store, gateway, friend_challenge.id, 'carol', 1000)

    def test_stakes_close_after_proof(self, store, gateway, deadline):
        challenge, _ = awaiting_self_challenge(store, gateway, deadline)
        with pytest.raises(FailedPrecondition):
            stake(store, gateway, challenge.id, 'bob', 1000)

    def test_unknown_challenge(self, store, gateway):
        with pytest.raises(NotFound):
            stake(store, gateway, 'missing', 'bob', 1000)

    def test_requires_intent_id(self, store, gateway, deadline):
        challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)
        with pytest.raises(InvalidArgument):
            funding.fund_self_challenge(store, gateway, 'bob', challenge.id, 1000, '')


class TestLifecycle:

    def test_only_challengee_accepts(self, store, gateway, deadline):
        result = funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft_for(deadline))
        with pytest.raises(PermissionDenied):
            funding.accept_challenge(store, 'alice', result.challenge_id)

        funding.accept_challenge(store, 'bob', result.challenge_id)
        with pytest.raises(FailedPrecondition):
            funding.accept_challenge(store, 'bob', result.challenge_id)

    def test_proof_needs_active_challenge(self, store, gateway, deadline):
        result = funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft_for(deadline))
        with pytest.raises(FailedPrecondition):
            funding.submit_proof(store, 'bob', result.challenge_id, 'https://example.com/p.jpg')

    def test_proof_submitter_depends_on_type(self, store, gateway, deadline):
        result = funding.fund_friend_challenge(store, gateway, 'alice', 1000, draft_for(deadline))
        funding.accept_challenge(store, 'bob', result.challenge_id)
        with pytest.raises(PermissionDenied):
            funding.submit_proof(store, 'alice', result.challenge_id, 'https://example.com/p.jpg')

        challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)
        with pytest.raises(PermissionDenied):
            funding.submit_proof(store, 'bob', challenge.id, 'https://example.com/p.jpg')

    def test_proof_is_recorded(self, store, gateway, friend_challenge):
        assert friend_challenge.proof_url == 'https://example.com/proof.jpg'

    def test_proof_after_settlement_is_invalid_state(self, store, engine, friend_challenge):
        engine.approve(friend_challenge.id, 'alice')
        with pytest.raises(InvalidState):
            funding.submit_proof(store, 'bob', friend_challenge.id, 'https://example.com/late.jpg')

    def test_proof_url_required(self, store, deadline):
        challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)
        with pytest.raises(InvalidArgument):
            funding.submit_proof(store, 'alice', challenge.id, '')

    def test_vote_needs_awaiting_self_challenge(self, store, gateway, deadline, friend_challenge):
        with pytest.raises(FailedPrecondition):
            funding.cast_vote(store, 'carol', friend_challenge.id, 'pass')

        challenge = funding.create_self_challenge(store, 'alice', 'Read 12 books', deadline)
        with pytest.raises(FailedPrecondition):
            funding.cast_vote(store, 'carol', challenge.id, 'pass')

    def test_vote_value_is_validated(self, store, gateway, deadline):
        challenge, _ = awaiting_self_challenge(store, gateway, deadline)
        with pytest.raises(InvalidArgument):
            funding.cast_vote(store, 'carol', challenge.id, 'abstain')

        vote = funding.cast_vote(store, 'carol', challenge.id, 'fail')
        assert vote.value == VoteValue.FAIL


class TestProgressReports:

    def test_participants_post_progress(self, store, friend_challenge):
        funding.add_progress_report(store, 'bob', friend_challenge.id, text='Mile 10 done')
        funding.add_progress_report(store, 'alice', friend_challenge.id, external_url='https://strava.com/a/1')

        reports = funding.list_progress_reports(store, 'alice', friend_challenge.id)
        assert {(r.author_id, r.kind) for r in reports} == {('alice', ProgressKind.LINK), ('bob', ProgressKind.TEXT)}

    def test_outsiders_cannot_post(self, store, friend_challenge):
        with pytest.raises(PermissionDenied):
            funding.add_progress_report(store, 'carol', friend_challenge.id, text='Go bob')

    def test_empty_report_rejected(self, store, friend_challenge):
        with pytest.raises(InvalidArgument):
            funding.add_progress_report(store, 'bob', friend_challenge.id)

    def test_unknown_challenge(self, store):
        with pytest.raises(NotFound):
            funding.list_progress_reports(store, 'alice', 'missing')

    def test_outsiders_cannot_read_progress(self, store, friend_challenge):
        with pytest.raises(PermissionDenied):
            funding.list_progress_reports(store, 'carol', friend_challenge.id)


class TestViewChallenge:

    def test_participants_can_read(self, store, gateway, deadline):
        challenge, _ = awaiting_self_challenge(store, gateway, deadline, stakes=[('bob', 1000)])

        assert funding.view_challenge(store, 'alice', challenge.id).id == challenge.id
        assert funding.view_challenge(store, 'bob', challenge.id).id == challenge.id

    def test_challengee_can_read(self, store, friend_challenge):
        assert funding.view_challenge(store, 'bob', friend_challenge.id).id == friend_challenge.id

    def test_outsiders_cannot_read(self, store, friend_challenge):
        with pytest.raises(PermissionDenied):
            funding.view_challenge(store, 'carol', friend_challenge.id)

    def test_unknown_challenge(self, store):
        with pytest.raises(NotFound):
            funding.view_challenge(store, 'alice', 'missing')
