from dataclasses import replace

from core.exceptions import FailedPrecondition, InvalidState

from .records import ChallengeStatus

ALLOWED_TRANSITIONS = {
    ChallengeStatus.PENDING: {ChallengeStatus.ACTIVE},
    ChallengeStatus.ACTIVE: {ChallengeStatus.AWAITING_VERIFICATION},
    # Re-submitting proof replaces the previous one.
    ChallengeStatus.AWAITING_VERIFICATION: {
        ChallengeStatus.AWAITING_VERIFICATION,
        ChallengeStatus.COMPLETED,
        ChallengeStatus.FAILED,
    },
    ChallengeStatus.COMPLETED: set(),
    ChallengeStatus.FAILED: set(),
}


def can_transition(current, target):
    return target in ALLOWED_TRANSITIONS[current]


def require_status(challenge, *statuses):

    if challenge.status not in statuses:
        expected = ', '.join(s.value for s in statuses)
        raise FailedPrecondition(
            f"Challenge {challenge.id} is {challenge.status.value}, expected {expected}",
            {'status': challenge.status.value},
        )


def transition(store, challenge, target, **fields):
    """
    Move challenge to target with a compare-and-swap write.

    Returns the updated record. Leaving a terminal state raises InvalidState;
    any other disallowed edge, or losing the race to a concurrent writer,
    raises FailedPrecondition.
    """
    if challenge.is_terminal:
        raise InvalidState(
            f"Challenge {challenge.id} is {challenge.status.value} and cannot change",
            {'status': challenge.status.value},
        )
    if not can_transition(challenge.status, target):
        raise FailedPrecondition(
            f"Challenge {challenge.id} cannot move from {challenge.status.value} to {target.value}",
            {'status': challenge.status.value},
        )
    if not store.compare_and_set_status(challenge.id, challenge.status, target, **fields):
        raise FailedPrecondition(f"Challenge {challenge.id} was changed concurrently")

    return replace(challenge, status=target, **fields)
