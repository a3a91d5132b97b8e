"""Live (online) matches.

Both players race on the same puzzle at the same time. Each side reports
its own start and completion; the match resolves once both sides have
completed and, unlike challenges, the row is kept afterwards.
"""

import json
from datetime import datetime, timezone
from typing import Dict, Tuple

from flask import current_app

from sudoku_api import db
from sudoku_api.errors import NotFoundError, StateTransitionError
from sudoku_api.models import LiveMatch
from sudoku_api.services.contests import validate_contestants
from sudoku_api.services.group_records import apply_outcome
from sudoku_api.services.ledger import merge_completed_game
from sudoku_api.services.lifecycle import (
    MATCH_TRANSITIONS, MatchStatus, Role, apply_transition, decide_outcome, role_of,
)
from sudoku_api.services.persistence import transaction
from sudoku_api.services.puzzles import generate_puzzle


def _now():
    return datetime.now(timezone.utc)


def opponent_of(match: LiveMatch, player_id: int) -> int:
    return match.challenged_id if role_of(match, player_id) is Role.CHALLENGER else match.challenger_id


def get_match(match_id: int, lock: bool = False) -> LiveMatch:
    query = LiveMatch.query.filter_by(id=match_id)
    if lock:
        query = query.with_for_update()
    match = query.first()
    if not match:
        raise NotFoundError('Match not found')
    return match


def get_match_for(match_id: int, player_id: int) -> LiveMatch:
    match = get_match(match_id)
    role_of(match, player_id)
    return match


def create_match(challenger_id: int, challenged_id: int, group_id: int, difficulty: str) -> LiveMatch:
    validate_contestants(challenger_id, challenged_id, group_id, difficulty)
    with transaction('Create live match'):
        match = LiveMatch(
            challenger_id=challenger_id,
            challenged_id=challenged_id,
            group_id=group_id,
            difficulty=difficulty,
            puzzle_data=json.dumps(generate_puzzle(difficulty)),
            status=MatchStatus.PENDING.value,
        )
        db.session.add(match)
    current_app.logger.info(f"[match] created id={match.id} challenger={challenger_id} challenged={challenged_id}")
    return match


def accept_match(match_id: int, player_id: int) -> LiveMatch:
    with transaction('Accept live match'):
        match = get_match(match_id, lock=True)
        match.status = apply_transition(MATCH_TRANSITIONS, match, 'accept', player_id)
    current_app.logger.info(f"[match] id={match_id} accepted")
    return match


def cancel_match(match_id: int, player_id: int) -> LiveMatch:
    with transaction('Cancel live match'):
        match = get_match(match_id, lock=True)
        match.status = apply_transition(MATCH_TRANSITIONS, match, 'cancel', player_id)
    current_app.logger.info(f"[match] id={match_id} cancelled by player={player_id}")
    return match


def start_match(match_id: int, player_id: int) -> Tuple[LiveMatch, datetime]:
    """Stamp the player's start time; a repeated start keeps the first stamp."""
    with transaction('Start live match'):
        match = get_match(match_id, lock=True)
        apply_transition(MATCH_TRANSITIONS, match, 'start', player_id)
        side = role_of(match, player_id).value
        started_at = getattr(match, f'{side}_started_at')
        if started_at is None:
            started_at = _now()
            setattr(match, f'{side}_started_at', started_at)
    return match, started_at


def report_progress(match_id: int, player_id: int) -> int:
    """Check the player may report progress and return the opponent to relay to."""
    match = get_match(match_id)
    apply_transition(MATCH_TRANSITIONS, match, 'progress', player_id)
    return opponent_of(match, player_id)


def complete_match(match_id: int, player_id: int, time_seconds: int, mistakes: int) -> Dict:
    """Record one side's finish.

    Returns ``status`` ``'waiting'`` while the opponent is still playing and
    ``'completed'`` with the winner once both sides have finished.
    """
    with transaction('Complete live match'):
        match = get_match(match_id, lock=True)
        target = apply_transition(MATCH_TRANSITIONS, match, 'complete', player_id)
        side = role_of(match, player_id)
        other = Role.CHALLENGED if side is Role.CHALLENGER else Role.CHALLENGER
        if getattr(match, f'{side.value}_completed_at') is not None:
            raise StateTransitionError('You have already completed this match')

        score = merge_completed_game(player_id, time_seconds, match.difficulty, mistakes)
        setattr(match, f'{side.value}_completed_at', _now())
        setattr(match, f'{side.value}_time', time_seconds)
        setattr(match, f'{side.value}_mistakes', mistakes)
        setattr(match, f'{side.value}_score', score)

        status = 'waiting'
        if getattr(match, f'{other.value}_completed_at') is not None:
            outcome = decide_outcome(match.challenger_score, match.challenged_score)
            apply_outcome(match.group_id, match.challenger_id, match.challenged_id, outcome)
            match.winner = outcome.value
            match.status = target
            status = target
        result = {
            'match_id': match.id,
            'status': status,
            'winner': match.winner,
            'challenger_id': match.challenger_id,
            'challenged_id': match.challenged_id,
            'challenger_time': match.challenger_time,
            'challenged_time': match.challenged_time,
            'challenger_score': match.challenger_score,
            'challenged_score': match.challenged_score,
        }
    current_app.logger.info(f"[match] id={match_id} player={player_id} finished score={score} status={status}")
    return result
