from sudoku_api import db, bcrypt
from flask_login import UserMixin
from datetime import datetime, timezone
import json

from sudoku_api.services.lifecycle import ChallengeStatus, MatchStatus

DIFFICULTIES = ('easy', 'medium', 'hard')
ROLES = ('member', 'leader')


def _utcnow():
    return datetime.now(timezone.utc)


def _isoformat(value):
    return value.isoformat() if value else None


class Player(UserMixin, db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=_utcnow)

    daily_scores = db.relationship('DailyScore', back_populates='player', cascade='all')
    memberships = db.relationship('GroupMember', back_populates='player', cascade='all')
    medals = db.relationship('Medal', back_populates='player', cascade='all')

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'created_at': _isoformat(self.created_at),
        }


class DailyScore(db.Model):
    """One row per player per calendar day, merged on every completed game."""
    __tablename__ = 'daily_score'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'play_date', name='uq_daily_score_player_date'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    play_date = db.Column(db.Date, nullable=False, index=True)
    best_time_easy = db.Column(db.Integer, nullable=True)
    best_time_medium = db.Column(db.Integer, nullable=True)
    best_time_hard = db.Column(db.Integer, nullable=True)
    best_time_easy_no_mistakes = db.Column(db.Integer, nullable=True)
    best_time_medium_no_mistakes = db.Column(db.Integer, nullable=True)
    best_time_hard_no_mistakes = db.Column(db.Integer, nullable=True)
    # server defaults so the upsert statement may omit the other difficulties
    games_completed_easy = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    games_completed_medium = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    games_completed_hard = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    games_completed_easy_no_mistakes = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    games_completed_medium_no_mistakes = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    games_completed_hard_no_mistakes = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    daily_score = db.Column(db.Integer, nullable=False, default=0, server_default='0')

    player = db.relationship('Player', back_populates='daily_scores')

    def to_dict(self):
        data = {
            'player_id': self.player_id,
            'play_date': _isoformat(self.play_date),
            'daily_score': self.daily_score,
        }
        for d in DIFFICULTIES:
            for prefix in ('best_time_', 'games_completed_'):
                data[f'{prefix}{d}'] = getattr(self, f'{prefix}{d}')
                data[f'{prefix}{d}_no_mistakes'] = getattr(self, f'{prefix}{d}_no_mistakes')
        return data


class Group(db.Model):
    # "group" is reserved in SQL
    __tablename__ = 'sudoku_group'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    password_hash = db.Column(db.String(256), nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow)

    members = db.relationship('GroupMember', back_populates='group', cascade='all')
    challenges = db.relationship('Challenge', backref='group', cascade='all')
    live_matches = db.relationship('LiveMatch', backref='group', cascade='all')

    @property
    def is_private(self):
        return bool(self.password_hash)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8') if password else None

    def check_password(self, password):
        if not self.password_hash:
            return True
        return bool(password) and bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self, current_player_id=None):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'is_private': self.is_private,
            'created_at': _isoformat(self.created_at),
            'member_count': len(self.members),
        }
        if current_player_id is not None:
            data['is_member'] = any(m.player_id == current_player_id for m in self.members)
        return data


class GroupMember(db.Model):
    __tablename__ = 'group_member'
    group_id = db.Column(db.Integer, db.ForeignKey('sudoku_group.id'), primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), primary_key=True)
    role = db.Column(db.String(16), nullable=False, default='member')
    wins = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    losses = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    draws = db.Column(db.Integer, nullable=False, default=0, server_default='0')
    joined_at = db.Column(db.DateTime, default=_utcnow)

    group = db.relationship('Group', back_populates='members')
    player = db.relationship('Player', back_populates='memberships')

    def to_dict(self):
        return {
            'group_id': self.group_id,
            'player_id': self.player_id,
            'username': self.player.username if self.player else None,
            'role': self.role,
            'wins': self.wins,
            'losses': self.losses,
            'draws': self.draws,
            'joined_at': _isoformat(self.joined_at),
        }


class Challenge(db.Model):
    """Asynchronous head-to-head contest; deleted once resolved."""
    __tablename__ = 'challenge'
    id = db.Column(db.Integer, primary_key=True)
    challenger_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    challenged_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    group_id = db.Column(db.Integer, db.ForeignKey('sudoku_group.id'), nullable=False)
    difficulty = db.Column(db.String(16), nullable=False)
    puzzle_data = db.Column(db.Text, nullable=True)  # JSON-encoded {'puzzle': ..., 'solution': ...}
    status = db.Column(db.String(32), nullable=False, default=ChallengeStatus.CHALLENGER_PLAYING.value)
    challenger_time = db.Column(db.Integer, nullable=True)
    challenger_score = db.Column(db.Integer, nullable=True)
    challenger_mistakes = db.Column(db.Integer, nullable=True)
    challenged_time = db.Column(db.Integer, nullable=True)
    challenged_score = db.Column(db.Integer, nullable=True)
    challenged_mistakes = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=_utcnow)

    challenger = db.relationship('Player', foreign_keys=[challenger_id])
    challenged = db.relationship('Player', foreign_keys=[challenged_id])

    @property
    def puzzle(self):
        return json.loads(self.puzzle_data) if self.puzzle_data else None

    def to_dict(self, include_puzzle=False):
        data = {
            'id': self.id,
            'challenger_id': self.challenger_id,
            'challenger_username': self.challenger.username if self.challenger else None,
            'challenged_id': self.challenged_id,
            'challenged_username': self.challenged.username if self.challenged else None,
            'group_id': self.group_id,
            'difficulty': self.difficulty,
            'status': self.status,
            'challenger_time': self.challenger_time,
            'challenger_score': self.challenger_score,
            'challenger_mistakes': self.challenger_mistakes,
            'challenged_time': self.challenged_time,
            'challenged_score': self.challenged_score,
            'challenged_mistakes': self.challenged_mistakes,
            'created_at': _isoformat(self.created_at),
        }
        if include_puzzle:
            data['puzzle_data'] = self.puzzle
        return data


class LiveMatch(db.Model):
    """Real-time head-to-head contest; kept after completion."""
    __tablename__ = 'live_match'
    id = db.Column(db.Integer, primary_key=True)
    challenger_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    challenged_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    group_id = db.Column(db.Integer, db.ForeignKey('sudoku_group.id'), nullable=False)
    difficulty = db.Column(db.String(16), nullable=False)
    puzzle_data = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(32), nullable=False, default=MatchStatus.PENDING.value)
    challenger_started_at = db.Column(db.DateTime, nullable=True)
    challenged_started_at = db.Column(db.DateTime, nullable=True)
    challenger_completed_at = db.Column(db.DateTime, nullable=True)
    challenged_completed_at = db.Column(db.DateTime, nullable=True)
    challenger_time = db.Column(db.Integer, nullable=True)
    challenger_score = db.Column(db.Integer, nullable=True)
    challenger_mistakes = db.Column(db.Integer, nullable=True)
    challenged_time = db.Column(db.Integer, nullable=True)
    challenged_score = db.Column(db.Integer, nullable=True)
    challenged_mistakes = db.Column(db.Integer, nullable=True)
    winner = db.Column(db.String(16), nullable=True)  # challenger, challenged, draw
    created_at = db.Column(db.DateTime, default=_utcnow)

    challenger = db.relationship('Player', foreign_keys=[challenger_id])
    challenged = db.relationship('Player', foreign_keys=[challenged_id])

    @property
    def puzzle(self):
        return json.loads(self.puzzle_data) if self.puzzle_data else None

    def to_dict(self, include_puzzle=False):
        data = {
            'id': self.id,
            'challenger_id': self.challenger_id,
            'challenged_id': self.challenged_id,
            'group_id': self.group_id,
            'difficulty': self.difficulty,
            'status': self.status,
            'challenger_started_at': _isoformat(self.challenger_started_at),
            'challenged_started_at': _isoformat(self.challenged_started_at),
            'challenger_completed_at': _isoformat(self.challenger_completed_at),
            'challenged_completed_at': _isoformat(self.challenged_completed_at),
            'challenger_time': self.challenger_time,
            'challenger_score': self.challenger_score,
            'challenged_time': self.challenged_time,
            'challenged_score': self.challenged_score,
            'winner': self.winner,
            'created_at': _isoformat(self.created_at),
        }
        if include_puzzle:
            data['puzzle_data'] = self.puzzle
        return data


class Medal(db.Model):
    __tablename__ = 'medal'
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), primary_key=True)
    medal_type = db.Column(db.String(64), primary_key=True)
    description = db.Column(db.Text, nullable=False)
    number_of_medals = db.Column(db.Integer, nullable=False, default=0)

    player = db.relationship('Player', back_populates='medals')

    def to_dict(self):
        return {
            'medal_type': self.medal_type,
            'description': self.description,
            'number_of_medals': self.number_of_medals,
        }
