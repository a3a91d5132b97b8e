import pytest

from sudoku_api import db
from sudoku_api.errors import ConflictError, NotFoundError, PersistenceError
from sudoku_api.models import Player
from sudoku_api.services.persistence import transaction


def _new_player(username):
    player = Player(username=username, email=f'{username}@example.com')
    player.set_password('password')
    return player


def test_commits_on_success(app_ctx):
    with transaction('Add player'):
        db.session.add(_new_player('alice'))
    db.session.expire_all()
    assert Player.query.count() == 1


def test_domain_error_rolls_back(app_ctx):
    with pytest.raises(NotFoundError):
        with transaction('Add player'):
            db.session.add(_new_player('alice'))
            db.session.flush()
            raise NotFoundError('missing')
    assert Player.query.count() == 0


def test_unexpected_error_rolls_back(app_ctx):
    with pytest.raises(RuntimeError):
        with transaction('Add player'):
            db.session.add(_new_player('alice'))
            db.session.flush()
            raise RuntimeError('boom')
    assert Player.query.count() == 0
    assert not db.session.new


def test_database_error_is_wrapped(app_ctx):
    with transaction('Add player'):
        db.session.add(_new_player('alice'))
    with pytest.raises(PersistenceError):
        with transaction('Add duplicate player'):
            db.session.add(_new_player('alice'))
    assert Player.query.count() == 1


def test_unique_violation_becomes_conflict_when_named(app_ctx):
    with transaction('Add player'):
        db.session.add(_new_player('alice'))
    with pytest.raises(ConflictError) as excinfo:
        with transaction('Add duplicate player', conflict='Username already exists'):
            db.session.add(_new_player('alice'))
    assert excinfo.value.status_code == 409
    assert excinfo.value.message == 'Username already exists'
    assert Player.query.count() == 1
