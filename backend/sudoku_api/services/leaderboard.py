"""Read-side rollups over the daily score ledger."""

from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy import and_, case, func

from sudoku_api import db
from sudoku_api.errors import ValidationError
from sudoku_api.models import DailyScore, GroupMember, Player, DIFFICULTIES
from sudoku_api.services.ledger import get_daily_record

PERIODS = ('all', 'day', 'week', 'month')


def period_start(period: str, today: Optional[date] = None) -> Optional[date]:
    """First calendar day included in ``period``; None for all time.

    Weeks start on Sunday.
    """
    if period not in PERIODS:
        raise ValidationError('periodType must be one of all, day, week, month')
    today = today or date.today()
    if period == 'day':
        return today
    if period == 'week':
        return today - timedelta(days=(today.weekday() + 1) % 7)
    if period == 'month':
        return today.replace(day=1)
    return None


def _row_best_time():
    """Fastest non-zero time in one daily row across all difficulties."""
    # zero is treated the same as "no time recorded"
    easy, medium, hard = (func.nullif(getattr(DailyScore, f'best_time_{d}'), 0) for d in DIFFICULTIES)
    return case(
        (and_(easy <= func.coalesce(medium, easy), easy <= func.coalesce(hard, easy)), easy),
        (medium <= func.coalesce(hard, medium), medium),
        else_=hard,
    )


def top_players(group_id: Optional[int] = None, period: str = 'all', limit: int = 10,
                today: Optional[date] = None) -> List[Dict]:
    """Rank players by total score over ``period``.

    Scoped to the members of ``group_id`` when given. Ties on score are
    broken by the fastest single best time across difficulties, players with
    no recorded time last.
    """
    start = period_start(period, today)
    total_score = func.sum(DailyScore.daily_score)
    best_overall = func.min(_row_best_time())
    query = db.session.query(
        Player.id.label('player_id'),
        Player.username,
        total_score.label('total_score'),
        func.sum(
            DailyScore.games_completed_easy
            + DailyScore.games_completed_medium
            + DailyScore.games_completed_hard
        ).label('total_games'),
        best_overall.label('best_overall_time'),
    ).join(DailyScore, DailyScore.player_id == Player.id)

    if group_id is not None:
        query = query.join(GroupMember, GroupMember.player_id == Player.id).filter(GroupMember.group_id == group_id)
    if start is not None:
        query = query.filter(DailyScore.play_date >= start)

    rows = (
        query.group_by(Player.id, Player.username)
        .having(total_score > 0)
        .order_by(
            total_score.desc(),
            case((best_overall.is_(None), 1), else_=0),
            best_overall.asc(),
            Player.id,
        )
        .limit(limit)
        .all()
    )

    return [
        {
            'rank': rank,
            'player_id': row.player_id,
            'username': row.username,
            'total_score': int(row.total_score),
            'total_games': int(row.total_games or 0),
            'best_overall_time': row.best_overall_time,
        }
        for rank, row in enumerate(rows, start=1)
    ]


def player_statistics(player_id: int, today: Optional[date] = None) -> Dict:
    """All-time totals and per-difficulty bests for one player."""
    today = today or date.today()
    columns = [
        func.coalesce(func.sum(DailyScore.daily_score), 0).label('total_score'),
        func.count(DailyScore.id).label('days_played'),
    ]
    for d in DIFFICULTIES:
        columns.extend([
            func.coalesce(func.sum(getattr(DailyScore, f'games_completed_{d}')), 0).label(f'games_{d}'),
            func.coalesce(func.sum(getattr(DailyScore, f'games_completed_{d}_no_mistakes')), 0).label(f'games_{d}_no_mistakes'),
            func.min(getattr(DailyScore, f'best_time_{d}')).label(f'best_{d}'),
            func.min(getattr(DailyScore, f'best_time_{d}_no_mistakes')).label(f'best_{d}_no_mistakes'),
        ])
    row = db.session.query(*columns).filter(DailyScore.player_id == player_id).one()

    today_row = get_daily_record(player_id, today)
    stats = {
        'total_score': int(row.total_score),
        'days_played': int(row.days_played),
        'today_score': today_row.daily_score if today_row else 0,
        'difficulties': {},
    }
    total_games = 0
    for d in DIFFICULTIES:
        games = int(getattr(row, f'games_{d}'))
        total_games += games
        stats['difficulties'][d] = {
            'games_completed': games,
            'games_completed_no_mistakes': int(getattr(row, f'games_{d}_no_mistakes')),
            'best_time': getattr(row, f'best_{d}'),
            'best_time_no_mistakes': getattr(row, f'best_{d}_no_mistakes'),
        }
    stats['total_games'] = total_games
    return stats
