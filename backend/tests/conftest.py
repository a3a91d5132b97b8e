import os
import sys
import pytest

# Ensure the backend root (containing the `sudoku_api` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from sudoku_api import create_app, db, socketio


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = ['http://localhost:3000']
    LEADERBOARD_DEFAULT_LIMIT = 10
    LEADERBOARD_MAX_LIMIT = 100


@pytest.fixture()
def flask_app():
    from sudoku_api.socketio_events import registry

    application = create_app(TestConfig)
    # no context stays pushed during the test; each client request pushes its own
    with application.app_context():
        # Ensure models are imported so tables are created
        import sudoku_api.models  # noqa: F401
        registry.clear()
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()
    registry.clear()


@pytest.fixture()
def app_ctx(flask_app):
    """Application context for tests that call services and models directly."""
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_player(app_ctx):
    """Create a player row directly and return its id."""
    from sudoku_api.models import Player

    def _make(username):
        player = Player(username=username, email=f'{username}@example.com')
        player.set_password('password')
        db.session.add(player)
        db.session.commit()
        return player.id

    return _make


@pytest.fixture()
def make_group(app_ctx):
    """Create a group whose first member is its leader; returns the group id."""
    from sudoku_api.models import Group, GroupMember

    def _make(leader_id, *member_ids, name='Puzzlers', password=None):
        group = Group(name=name, description='test group')
        group.set_password(password)
        db.session.add(group)
        db.session.flush()
        db.session.add(GroupMember(group_id=group.id, player_id=leader_id, role='leader'))
        for pid in member_ids:
            db.session.add(GroupMember(group_id=group.id, player_id=pid, role='member'))
        db.session.commit()
        return group.id

    return _make


@pytest.fixture()
def login_client(flask_app):
    """Register a player through the API and return a logged-in test client and the player id."""

    def _login(username):
        test_client = flask_app.test_client()
        res = test_client.post('/api/sudoku/register', json={
            'username': username,
            'email': f'{username}@example.com',
            'password': 'password',
        })
        assert res.status_code == 201
        player_id = res.get_json()['user']['id']
        res = test_client.post('/api/sudoku/login', json={'email': f'{username}@example.com', 'password': 'password'})
        assert res.status_code == 200
        return test_client, player_id

    return _login


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect(http_client):
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=http_client,
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        if test_client.is_connected('/ws'):
            test_client.disconnect(namespace='/ws')
