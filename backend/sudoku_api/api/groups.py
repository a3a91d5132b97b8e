from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from sqlalchemy import func
from sudoku_api import db
from sudoku_api.api.games import group_leaderboard_response
from sudoku_api.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from sudoku_api.models import DailyScore, Group, GroupMember, ROLES
from sudoku_api.services.persistence import transaction

groups = Blueprint('groups', __name__)


def _viewer_id():
    return current_user.id if current_user.is_authenticated else None


def _get_group(group_id):
    group = db.session.get(Group, group_id)
    if not group:
        raise NotFoundError('Group not found')
    return group


def _require_leader(group_id, action):
    membership = db.session.get(GroupMember, (group_id, current_user.id))
    if not membership or membership.role != 'leader':
        raise AuthorizationError(f'Only group leaders can {action}')
    return membership


def _group_statistics(group):
    member_ids = [m.player_id for m in group.members]
    total_score, total_games = 0, 0
    if member_ids:
        row = db.session.query(
            func.coalesce(func.sum(DailyScore.daily_score), 0),
            func.coalesce(func.sum(
                DailyScore.games_completed_easy + DailyScore.games_completed_medium + DailyScore.games_completed_hard
            ), 0),
        ).filter(DailyScore.player_id.in_(member_ids)).one()
        total_score, total_games = int(row[0]), int(row[1])
    return {
        'member_count': len(member_ids),
        'total_score': total_score,
        'total_games': total_games,
        'total_wins': sum(m.wins for m in group.members),
        'total_draws': sum(m.draws for m in group.members),
    }


@groups.route('', methods=['GET'])
def list_groups():
    viewer = _viewer_id()
    rows = Group.query.order_by(Group.created_at.desc(), Group.id.desc()).all()
    return jsonify({'groups': [g.to_dict(current_player_id=viewer) for g in rows]})


@groups.route('/search', methods=['GET'])
def search_groups():
    term = (request.args.get('searchTerm') or '').strip()
    if not term:
        raise ValidationError('Search term is required')
    viewer = _viewer_id()
    rows = Group.query.filter(Group.name.ilike(f'%{term}%')).order_by(Group.name).all()
    return jsonify({'groups': [g.to_dict(current_player_id=viewer) for g in rows], 'searchTerm': term})


@groups.route('/mine', methods=['GET'])
@login_required
def my_groups():
    memberships = GroupMember.query.filter_by(player_id=current_user.id).all()
    payload = []
    for m in memberships:
        data = m.group.to_dict(current_player_id=current_user.id)
        data['role'] = m.role
        data['wins'], data['losses'], data['draws'] = m.wins, m.losses, m.draws
        payload.append(data)
    return jsonify({'groups': payload})


@groups.route('', methods=['POST'])
@login_required
def create_group():
    data = request.get_json(silent=True) or {}
    name = (data.get('group_name') or '').strip()
    if not name:
        raise ValidationError('Group name is required')

    with transaction('Create group'):
        group = Group(name=name, description=data.get('group_description'))
        group.set_password(data.get('group_password'))
        db.session.add(group)
        db.session.flush()
        db.session.add(GroupMember(group_id=group.id, player_id=current_user.id, role='leader'))
    current_app.logger.info(f"[group] created id={group.id} leader={current_user.id}")
    return jsonify({'message': 'Group created successfully', 'group': group.to_dict(current_player_id=current_user.id)}), 201


@groups.route('/<int:group_id>', methods=['GET'])
def group_details(group_id):
    group = _get_group(group_id)
    members = sorted(group.members, key=lambda m: (m.role != 'leader', m.player_id))
    return jsonify({
        'group': group.to_dict(current_player_id=_viewer_id()),
        'members': [m.to_dict() for m in members],
        'stats': _group_statistics(group),
    })


@groups.route('/<int:group_id>/join', methods=['POST'])
@login_required
def join_group(group_id):
    data = request.get_json(silent=True) or {}
    group = _get_group(group_id)
    if not group.check_password(data.get('group_password')):
        raise AuthorizationError('Invalid group password')
    if db.session.get(GroupMember, (group_id, current_user.id)):
        raise ConflictError('Already a member of this group')

    with transaction('Join group', conflict='Already a member of this group'):
        db.session.add(GroupMember(group_id=group_id, player_id=current_user.id, role='member'))
    return jsonify({'message': 'Successfully joined group'})


@groups.route('/<int:group_id>/leave', methods=['DELETE'])
@login_required
def leave_group(group_id):
    _get_group(group_id)
    membership = db.session.get(GroupMember, (group_id, current_user.id))
    if not membership:
        raise NotFoundError('You are not a member of this group')
    with transaction('Leave group'):
        db.session.delete(membership)
    return jsonify({'message': 'Successfully left group'})


@groups.route('/<int:group_id>', methods=['DELETE'])
@login_required
def delete_group(group_id):
    group = _get_group(group_id)
    _require_leader(group_id, 'delete the group')
    with transaction('Delete group'):
        db.session.delete(group)
    current_app.logger.info(f"[group] deleted id={group_id} by player={current_user.id}")
    return jsonify({'message': 'Group deleted successfully'})


@groups.route('/<int:group_id>/members/<int:member_id>/role', methods=['PUT'])
@login_required
def set_member_role(group_id, member_id):
    data = request.get_json(silent=True) or {}
    role = data.get('role')
    if role not in ROLES:
        raise ValidationError('Role must be either member or leader')
    _get_group(group_id)
    _require_leader(group_id, 'change member roles')
    membership = db.session.get(GroupMember, (group_id, member_id))
    if not membership:
        raise NotFoundError('Member not found')
    with transaction('Set member role'):
        membership.role = role
    return jsonify({'message': 'Member role updated successfully'})


@groups.route('/<int:group_id>/leaderboard', methods=['GET'])
def group_leaderboard(group_id):
    _get_group(group_id)
    return group_leaderboard_response(group_id)
