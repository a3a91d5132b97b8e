from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from sudoku_api import db
from sudoku_api.errors import ConflictError, ValidationError, AuthenticationError
from sudoku_api.models import Player
from sudoku_api.services.persistence import transaction

auth = Blueprint('auth', __name__)


@auth.route('/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')
    if not all([username, email, password]):
        raise ValidationError('Username, email, and password are required')

    if Player.query.filter_by(email=email).first():
        raise ConflictError('User with this email already exists')
    if Player.query.filter_by(username=username).first():
        raise ConflictError('Username already exists')

    player = Player(username=username, email=email)
    player.set_password(password)
    with transaction('Register player', conflict='User with this email or username already exists'):
        db.session.add(player)
    current_app.logger.info(f"[auth] registered player={player.id}")

    return jsonify({'message': 'User registered successfully', 'user': player.to_dict()}), 201


@auth.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')
    if not email or not password:
        raise ValidationError('Email and password are required')

    player = Player.query.filter_by(email=email).first()
    if not player or not player.check_password(password):
        raise AuthenticationError('Invalid email or password')
    login_user(player, remember=True)
    return jsonify({'message': 'Login successful', 'user': player.to_dict()})


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully'})


@auth.route('/check_login', methods=['GET'])
@login_required
def check_login():
    return jsonify({'user': current_user.to_dict()})


@auth.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    data = request.get_json(silent=True) or {}
    username = (data.get('username') or '').strip()
    if not username:
        raise ValidationError('Username is required')

    taken = Player.query.filter(Player.username == username, Player.id != current_user.id).first()
    if taken:
        raise ConflictError('Username already exists')
    with transaction('Update profile', conflict='Username already exists'):
        current_user.username = username
    return jsonify({'message': 'Profile updated successfully', 'user': current_user.to_dict()})


@auth.route('/password', methods=['PUT'])
@login_required
def change_password():
    data = request.get_json(silent=True) or {}
    new_password = data.get('newPassword')
    if not new_password:
        raise ValidationError('New password is required')
    current_user.set_password(new_password)
    db.session.commit()
    return jsonify({'message': 'Password changed successfully'})
