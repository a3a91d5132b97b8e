from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from sudoku_api.services import matches as match_service
from sudoku_api.socketio_events import notify_completion, notify_match_cancelled, notify_player
from sudoku_api.validation import require_int

matches = Blueprint('matches', __name__)


@matches.route('', methods=['POST'])
@login_required
def create_match():
    data = request.get_json(silent=True) or {}
    challenged_id = require_int(data, 'challengedId', minimum=1)
    group_id = require_int(data, 'groupId', minimum=1)
    match = match_service.create_match(current_user.id, challenged_id, group_id, data.get('difficulty'))
    notify_player(challenged_id, 'match_invitation', {'match': match.to_dict()})
    return jsonify({'message': 'Match created', 'match': match.to_dict()}), 201


@matches.route('/<int:match_id>', methods=['GET'])
@login_required
def get_match(match_id):
    match = match_service.get_match_for(match_id, current_user.id)
    return jsonify({'match': match.to_dict(include_puzzle=match.status != 'pending')})


@matches.route('/<int:match_id>/accept', methods=['POST'])
@login_required
def accept_match(match_id):
    match = match_service.accept_match(match_id, current_user.id)
    notify_player(match.challenger_id, 'match_accepted', {'match_id': match.id})
    return jsonify({'message': 'Match accepted', 'match': match.to_dict(include_puzzle=True)})


@matches.route('/<int:match_id>/cancel', methods=['POST'])
@login_required
def cancel_match(match_id):
    match = match_service.cancel_match(match_id, current_user.id)
    notify_match_cancelled(match.id, match_service.opponent_of(match, current_user.id))
    return jsonify({'message': 'Match cancelled', 'match': match.to_dict()})


@matches.route('/<int:match_id>/complete', methods=['POST'])
@login_required
def complete_match(match_id):
    data = request.get_json(silent=True) or {}
    time_seconds = require_int(data, 'timeSeconds', 'Time')
    mistakes = require_int(data, 'mistakes')
    result = match_service.complete_match(match_id, current_user.id, time_seconds, mistakes)
    opponent_id = result['challenged_id'] if current_user.id == result['challenger_id'] else result['challenger_id']
    notify_completion(current_user.id, opponent_id, result, time_seconds)
    message = 'Match completed' if result['status'] == 'completed' else 'Waiting for opponent to finish'
    return jsonify({'message': message, 'result': result})
