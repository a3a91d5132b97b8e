from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sudoku_api import db
from sudoku_api.errors import NotFoundError, ValidationError
from sudoku_api.models import Medal, Player
from sudoku_api.services.ledger import record_completed_game
from sudoku_api.services.leaderboard import PERIODS, player_statistics, top_players
from sudoku_api.services.persistence import transaction
from sudoku_api.validation import parse_limit, require_difficulty, require_int

games = Blueprint('games', __name__)

TOP_LIMIT = 100


@games.route('/health', methods=['GET'])
def health():
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as exc:
        current_app.logger.error(f"[health] database unreachable: {exc}")
        return jsonify({'status': 'error', 'database': 'disconnected'}), 500
    return jsonify({'status': 'healthy', 'database': 'connected'})


@games.route('/submit-game', methods=['POST'])
@login_required
def submit_game():
    data = request.get_json(silent=True) or {}
    time_seconds = require_int(data, 'timeSeconds', 'Time')
    difficulty = require_difficulty(data.get('difficulty'))
    mistakes = require_int(data, 'numberOfMistakes', 'numberOfMistakes')

    score = record_completed_game(current_user.id, time_seconds, difficulty, mistakes)
    return jsonify({'message': 'Game submitted successfully', 'score': score})


@games.route('/stats', methods=['GET'])
@login_required
def get_player_stats():
    return jsonify({'stats': player_statistics(current_user.id)})


@games.route('/medals', methods=['GET'])
@login_required
def get_player_medals():
    medals = Medal.query.filter_by(player_id=current_user.id).order_by(Medal.medal_type).all()
    return jsonify({'medals': [m.to_dict() for m in medals]})


@games.route('/players/<int:player_id>/medals', methods=['POST'])
@login_required
def award_medal(player_id):
    data = request.get_json(silent=True) or {}
    medal_type = data.get('medalType')
    description = data.get('description')
    if not medal_type or not description:
        raise ValidationError('Medal type and description are required')
    count = require_int(data, 'numberOfMedals', minimum=1) if 'numberOfMedals' in data else 1

    if not db.session.get(Player, player_id):
        raise NotFoundError('Player not found')
    with transaction('Award medal'):
        medal = db.session.get(Medal, (player_id, medal_type), with_for_update=True)
        if medal is None:
            medal = Medal(player_id=player_id, medal_type=medal_type, description=description, number_of_medals=0)
            db.session.add(medal)
        medal.description = description
        medal.number_of_medals += count
    current_app.logger.info(f"[medal] player={player_id} type={medal_type} +{count}")
    return jsonify({'message': 'Medal awarded successfully', 'medal': medal.to_dict()})


def _leaderboard_response(period, limit, group_id=None):
    payload = {
        'leaderboard': top_players(group_id=group_id, period=period, limit=limit),
        'periodType': period,
        'limit': limit,
    }
    if group_id is not None:
        payload['groupId'] = group_id
    return jsonify(payload)


def leaderboard_args():
    cfg = current_app.config
    period = request.args.get('periodType', 'all')
    limit = parse_limit(
        request.args.get('limit'),
        cfg.get('LEADERBOARD_DEFAULT_LIMIT', 10),
        cfg.get('LEADERBOARD_MAX_LIMIT', TOP_LIMIT),
    )
    return period, limit


@games.route('/leaderboard/global', methods=['GET'])
def get_global_leaderboard():
    period, limit = leaderboard_args()
    return _leaderboard_response(period, limit)


@games.route('/leaderboard/global/top100/<string:period>', methods=['GET'])
def get_top100_global(period):
    if period not in PERIODS:
        raise ValidationError('periodType must be one of all, day, week, month')
    return _leaderboard_response(period, TOP_LIMIT)


def group_leaderboard_response(group_id):
    period, limit = leaderboard_args()
    return _leaderboard_response(period, limit, group_id=group_id)
