from flask import Blueprint, jsonify, request
from flask_login import login_required, current_user
from sudoku_api.services import challenges as challenge_service
from sudoku_api.socketio_events import notify_player
from sudoku_api.validation import require_int

challenges = Blueprint('challenges', __name__)


def _run_payload():
    data = request.get_json(silent=True) or {}
    return require_int(data, 'timeSeconds', 'Time'), require_int(data, 'mistakes')


@challenges.route('', methods=['POST'])
@login_required
def create_challenge():
    data = request.get_json(silent=True) or {}
    challenged_id = require_int(data, 'challengedId', minimum=1)
    group_id = require_int(data, 'groupId', minimum=1)
    challenge = challenge_service.create_challenge(current_user.id, challenged_id, group_id, data.get('difficulty'))
    return jsonify({
        'message': 'Challenge created',
        'challenge': challenge.to_dict(include_puzzle=True),
    }), 201


@challenges.route('', methods=['GET'])
@login_required
def list_challenges():
    rows = challenge_service.list_challenges(current_user.id)
    return jsonify({
        'incoming': [c.to_dict() for c in rows if c.challenged_id == current_user.id],
        'outgoing': [c.to_dict() for c in rows if c.challenger_id == current_user.id],
    })


@challenges.route('/<int:challenge_id>', methods=['GET'])
@login_required
def get_challenge(challenge_id):
    challenge = challenge_service.get_challenge_for(challenge_id, current_user.id)
    return jsonify({'challenge': challenge.to_dict(include_puzzle=True)})


@challenges.route('/<int:challenge_id>/submit', methods=['POST'])
@login_required
def submit_challenger_result(challenge_id):
    time_seconds, mistakes = _run_payload()
    challenge = challenge_service.submit_challenger_result(challenge_id, current_user.id, time_seconds, mistakes)
    notify_player(challenge.challenged_id, 'challenge_received', {'challenge': challenge.to_dict()})
    return jsonify({'message': 'Challenge sent', 'challenge': challenge.to_dict()})


@challenges.route('/<int:challenge_id>/accept', methods=['POST'])
@login_required
def accept_challenge(challenge_id):
    challenge = challenge_service.accept_challenge(challenge_id, current_user.id)
    return jsonify({'message': 'Challenge accepted', 'challenge': challenge.to_dict(include_puzzle=True)})


@challenges.route('/<int:challenge_id>/reject', methods=['POST'])
@login_required
def reject_challenge(challenge_id):
    challenge = challenge_service.reject_challenge(challenge_id, current_user.id)
    return jsonify({'message': 'Challenge rejected', 'challenge': challenge.to_dict()})


@challenges.route('/<int:challenge_id>/complete', methods=['POST'])
@login_required
def complete_challenge(challenge_id):
    time_seconds, mistakes = _run_payload()
    result = challenge_service.complete_challenge(challenge_id, current_user.id, time_seconds, mistakes)
    notify_player(result['challenger_id'], 'challenge_completed', result)
    return jsonify({'message': 'Challenge completed', 'result': result})
