"""Daily score ledger.

Each player has at most one ``daily_score`` row per calendar day. Every
completed game is merged into that row with a single
``INSERT ... ON CONFLICT DO UPDATE`` statement so that concurrent
submissions from the same player cannot lose an update.
"""

from datetime import date
from typing import Optional

from flask import current_app
from sqlalchemy import case, and_, or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError

from sudoku_api import db
from sudoku_api.errors import LedgerWriteError, ValidationError
from sudoku_api.models import DailyScore, DIFFICULTIES
from sudoku_api.services.persistence import transaction
from sudoku_api.services.scoring import calculate_score

_UPSERT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def _dialect_insert():
    dialect = db.session.get_bind().dialect.name
    try:
        return _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise LedgerWriteError(f"Atomic upsert is not supported on {dialect}") from None


def _build_upsert(player_id: int, play_date: date, time_seconds: int, difficulty: str, mistakes: int, score: int):
    table = DailyScore.__table__
    best = f'best_time_{difficulty}'
    best_clean = f'best_time_{difficulty}_no_mistakes'
    games = f'games_completed_{difficulty}'
    games_clean = f'games_completed_{difficulty}_no_mistakes'
    clean = mistakes == 0

    stmt = _dialect_insert()(table).values({
        'player_id': player_id,
        'play_date': play_date,
        best: time_seconds,
        best_clean: time_seconds if clean else None,
        games: 1,
        games_clean: 1 if clean else 0,
        'daily_score': score,
    })
    new = stmt.excluded
    return stmt.on_conflict_do_update(
        index_elements=['player_id', 'play_date'],
        set_={
            best: case(
                (or_(table.c[best].is_(None), new[best] < table.c[best]), new[best]),
                else_=table.c[best],
            ),
            best_clean: case(
                (and_(new[best_clean].isnot(None),
                      or_(table.c[best_clean].is_(None), new[best_clean] < table.c[best_clean])),
                 new[best_clean]),
                else_=table.c[best_clean],
            ),
            games: table.c[games] + 1,
            games_clean: table.c[games_clean] + new[games_clean],
            'daily_score': table.c.daily_score + new.daily_score,
        },
    )


def merge_completed_game(player_id: int, time_seconds: int, difficulty: str, mistakes: int,
                         played_on: Optional[date] = None) -> int:
    """Merge one game into today's row without committing.

    Used directly when the game is part of a larger unit of work such as a
    challenge resolution. Returns the score awarded for the game.
    """
    if difficulty not in DIFFICULTIES:
        raise ValidationError('Difficulty must be easy, medium, or hard')
    if time_seconds < 0 or mistakes < 0:
        raise ValidationError('Time and mistakes must be non-negative')
    play_date = played_on or date.today()
    score = calculate_score(difficulty, time_seconds, mistakes)
    try:
        db.session.execute(_build_upsert(player_id, play_date, time_seconds, difficulty, mistakes, score))
    except SQLAlchemyError as exc:
        current_app.logger.exception(f"[ledger] write failed player={player_id} difficulty={difficulty}")
        raise LedgerWriteError('Ledger write failed') from exc
    current_app.logger.info(
        f"[ledger] player={player_id} date={play_date} difficulty={difficulty} time={time_seconds}s mistakes={mistakes} score={score}"
    )
    return score


def record_completed_game(player_id: int, time_seconds: int, difficulty: str, mistakes: int,
                          played_on: Optional[date] = None) -> int:
    """Record a finished game in its own transaction and return its score."""
    with transaction('Ledger write', LedgerWriteError):
        score = merge_completed_game(player_id, time_seconds, difficulty, mistakes, played_on)
    return score


def get_daily_record(player_id: int, played_on: Optional[date] = None) -> Optional[DailyScore]:
    return DailyScore.query.filter_by(player_id=player_id, play_date=played_on or date.today()).first()
