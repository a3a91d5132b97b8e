"""Asynchronous (offline) challenges.

The challenger plays first; the challenged player then accepts or rejects
and, once accepted, plays the same puzzle. Resolution updates the daily
ledger and the group records and deletes the challenge row in one
transaction.
"""

import json
from typing import Dict, List

from flask import current_app
from sqlalchemy import or_

from sudoku_api import db
from sudoku_api.errors import NotFoundError
from sudoku_api.models import Challenge
from sudoku_api.services.contests import validate_contestants
from sudoku_api.services.group_records import apply_outcome
from sudoku_api.services.ledger import merge_completed_game
from sudoku_api.services.lifecycle import (
    CHALLENGE_TRANSITIONS, ChallengeStatus, apply_transition, decide_outcome, role_of,
)
from sudoku_api.services.persistence import transaction
from sudoku_api.services.puzzles import generate_puzzle


def get_challenge(challenge_id: int, lock: bool = False) -> Challenge:
    query = Challenge.query.filter_by(id=challenge_id)
    if lock:
        query = query.with_for_update()
    challenge = query.first()
    if not challenge:
        raise NotFoundError('Challenge not found')
    return challenge


def get_challenge_for(challenge_id: int, player_id: int) -> Challenge:
    challenge = get_challenge(challenge_id)
    role_of(challenge, player_id)
    return challenge


def list_challenges(player_id: int) -> List[Challenge]:
    return (
        Challenge.query
        .filter(or_(Challenge.challenger_id == player_id, Challenge.challenged_id == player_id))
        .order_by(Challenge.created_at.desc(), Challenge.id.desc())
        .all()
    )


def create_challenge(challenger_id: int, challenged_id: int, group_id: int, difficulty: str) -> Challenge:
    validate_contestants(challenger_id, challenged_id, group_id, difficulty)
    with transaction('Create challenge'):
        challenge = Challenge(
            challenger_id=challenger_id,
            challenged_id=challenged_id,
            group_id=group_id,
            difficulty=difficulty,
            puzzle_data=json.dumps(generate_puzzle(difficulty)),
            status=ChallengeStatus.CHALLENGER_PLAYING.value,
        )
        db.session.add(challenge)
    current_app.logger.info(
        f"[challenge] created id={challenge.id} challenger={challenger_id} challenged={challenged_id} group={group_id}"
    )
    return challenge


def submit_challenger_result(challenge_id: int, player_id: int, time_seconds: int, mistakes: int) -> Challenge:
    """Record the challenger's run and hand the challenge to the opponent."""
    with transaction('Submit challenger result'):
        challenge = get_challenge(challenge_id, lock=True)
        target = apply_transition(CHALLENGE_TRANSITIONS, challenge, 'submit', player_id)
        score = merge_completed_game(player_id, time_seconds, challenge.difficulty, mistakes)
        challenge.challenger_time = time_seconds
        challenge.challenger_mistakes = mistakes
        challenge.challenger_score = score
        challenge.status = target
    current_app.logger.info(f"[challenge] id={challenge_id} challenger finished score={score}")
    return challenge


def _respond(challenge_id: int, player_id: int, action: str) -> Challenge:
    with transaction(f'{action.capitalize()} challenge'):
        challenge = get_challenge(challenge_id, lock=True)
        challenge.status = apply_transition(CHALLENGE_TRANSITIONS, challenge, action, player_id)
    current_app.logger.info(f"[challenge] id={challenge_id} {action} by player={player_id}")
    return challenge


def accept_challenge(challenge_id: int, player_id: int) -> Challenge:
    return _respond(challenge_id, player_id, 'accept')


def reject_challenge(challenge_id: int, player_id: int) -> Challenge:
    return _respond(challenge_id, player_id, 'reject')


def complete_challenge(challenge_id: int, player_id: int, time_seconds: int, mistakes: int) -> Dict:
    """Resolve an accepted challenge with the challenged player's run.

    Returns the final result; the challenge row no longer exists afterwards.
    """
    with transaction('Complete challenge'):
        challenge = get_challenge(challenge_id, lock=True)
        apply_transition(CHALLENGE_TRANSITIONS, challenge, 'complete', player_id)
        score = merge_completed_game(player_id, time_seconds, challenge.difficulty, mistakes)
        outcome = decide_outcome(challenge.challenger_score or 0, score)
        apply_outcome(challenge.group_id, challenge.challenger_id, challenge.challenged_id, outcome)
        result = {
            'challenge_id': challenge.id,
            'group_id': challenge.group_id,
            'challenger_id': challenge.challenger_id,
            'challenged_id': challenge.challenged_id,
            'winner': outcome.value,
            'challenger_time': challenge.challenger_time,
            'challenger_score': challenge.challenger_score,
            'challenged_time': time_seconds,
            'challenged_score': score,
            'status': ChallengeStatus.COMPLETED.value,
        }
        db.session.delete(challenge)
    current_app.logger.info(f"[challenge] id={challenge_id} completed winner={result['winner']}")
    return result
