from flask import current_app

from sudoku_api import db
from sudoku_api.errors import GroupRecordError, NotFoundError, ValidationError
from sudoku_api.models import GroupMember
from sudoku_api.services.lifecycle import Outcome
from sudoku_api.services.persistence import transaction


def _increment(group_id: int, player_id: int, column) -> None:
    updated = GroupMember.query.filter_by(group_id=group_id, player_id=player_id).update(
        {column: column + 1}, synchronize_session=False
    )
    if updated != 1:
        raise NotFoundError(f"Player {player_id} is not a member of group {group_id}")


def apply_outcome(group_id: int, challenger_id: int, challenged_id: int, winner) -> None:
    """Increment the win/loss (or both draw) counters inside the current transaction.

    Raises before anything is committed when either membership row is
    missing; the caller's transaction then rolls both updates back.
    """
    try:
        winner = Outcome(winner)
    except ValueError:
        raise ValidationError(f"Unknown outcome: {winner!r}") from None
    if winner is Outcome.DRAW:
        _increment(group_id, challenger_id, GroupMember.draws)
        _increment(group_id, challenged_id, GroupMember.draws)
    elif winner is Outcome.CHALLENGER:
        _increment(group_id, challenger_id, GroupMember.wins)
        _increment(group_id, challenged_id, GroupMember.losses)
    else:
        _increment(group_id, challenged_id, GroupMember.wins)
        _increment(group_id, challenger_id, GroupMember.losses)
    current_app.logger.info(
        f"[group-record] group={group_id} challenger={challenger_id} challenged={challenged_id} winner={winner.value}"
    )


def resolve(group_id: int, challenger_id: int, challenged_id: int, winner) -> None:
    """Apply a contest outcome to the group's records as its own transaction."""
    with transaction('Group record update', GroupRecordError):
        apply_outcome(group_id, challenger_id, challenged_id, winner)
