"""Contest lifecycles as explicit transition tables.

Challenges (played asynchronously) and live matches (played head to head in
real time) each have a fixed set of states. Every action is looked up in a
table keyed by ``(current_state, action)`` which yields the roles allowed to
perform it and the resulting state. Routes and socket handlers never inspect
status strings themselves; they call :func:`apply_transition`.
"""

import enum
from dataclasses import dataclass
from typing import Dict, FrozenSet, Tuple

from sudoku_api.errors import AuthorizationError, StateTransitionError


class Role(str, enum.Enum):
    CHALLENGER = 'challenger'
    CHALLENGED = 'challenged'


BOTH = frozenset({Role.CHALLENGER, Role.CHALLENGED})


class ChallengeStatus(str, enum.Enum):
    CHALLENGER_PLAYING = 'challenger_playing'
    PENDING = 'pending'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    COMPLETED = 'completed'


class MatchStatus(str, enum.Enum):
    PENDING = 'pending'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class Outcome(str, enum.Enum):
    CHALLENGER = 'challenger'
    CHALLENGED = 'challenged'
    DRAW = 'draw'


@dataclass(frozen=True)
class Transition:
    actors: FrozenSet[Role]
    target: str


CHALLENGE_TRANSITIONS: Dict[Tuple[str, str], Transition] = {
    (ChallengeStatus.CHALLENGER_PLAYING.value, 'submit'): Transition(frozenset({Role.CHALLENGER}), ChallengeStatus.PENDING.value),
    (ChallengeStatus.PENDING.value, 'accept'): Transition(frozenset({Role.CHALLENGED}), ChallengeStatus.ACCEPTED.value),
    (ChallengeStatus.PENDING.value, 'reject'): Transition(frozenset({Role.CHALLENGED}), ChallengeStatus.REJECTED.value),
    (ChallengeStatus.ACCEPTED.value, 'complete'): Transition(frozenset({Role.CHALLENGED}), ChallengeStatus.COMPLETED.value),
}

# start, progress and half of complete keep the match active
MATCH_TRANSITIONS: Dict[Tuple[str, str], Transition] = {
    (MatchStatus.PENDING.value, 'accept'): Transition(frozenset({Role.CHALLENGED}), MatchStatus.ACTIVE.value),
    (MatchStatus.PENDING.value, 'cancel'): Transition(BOTH, MatchStatus.CANCELLED.value),
    (MatchStatus.ACTIVE.value, 'start'): Transition(BOTH, MatchStatus.ACTIVE.value),
    (MatchStatus.ACTIVE.value, 'progress'): Transition(BOTH, MatchStatus.ACTIVE.value),
    (MatchStatus.ACTIVE.value, 'complete'): Transition(BOTH, MatchStatus.COMPLETED.value),
    (MatchStatus.ACTIVE.value, 'cancel'): Transition(BOTH, MatchStatus.CANCELLED.value),
}


def role_of(contest, player_id: int) -> Role:
    """Return the role ``player_id`` plays in ``contest``.

    Raises AuthorizationError for anyone who is not one of the two named
    participants.
    """
    if player_id == contest.challenger_id:
        return Role.CHALLENGER
    if player_id == contest.challenged_id:
        return Role.CHALLENGED
    raise AuthorizationError('You are not a participant in this contest')


def apply_transition(table, contest, action: str, player_id: int) -> str:
    """Validate ``action`` by ``player_id`` and return the target state.

    The caller is responsible for persisting the returned state; keeping
    that separate lets half-completed matches stay ``active``.
    """
    role = role_of(contest, player_id)
    transition = table.get((contest.status, action))
    if transition is None:
        raise StateTransitionError(f"Cannot {action} while {contest.status}")
    if role not in transition.actors:
        raise AuthorizationError(f"Only the {' or '.join(sorted(r.value for r in transition.actors))} may {action}")
    return transition.target


def decide_outcome(challenger_score: int, challenged_score: int) -> Outcome:
    """Strict score comparison; equal scores are a draw."""
    if challenged_score > challenger_score:
        return Outcome.CHALLENGED
    if challenger_score > challenged_score:
        return Outcome.CHALLENGER
    return Outcome.DRAW
