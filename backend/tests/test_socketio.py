import pytest

from sudoku_api import socketio
from sudoku_api.socketio_events import ConnectionRegistry, registry


def _events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def _received(sio_client):
    return sio_client.get_received('/ws')


@pytest.fixture()
def live_match(login_client):
    alice_client, alice = login_client('alice')
    bob_client, bob = login_client('bob')
    group = alice_client.post('/api/sudoku/groups', json={'group_name': 'Live'}).get_json()['group']
    bob_client.post(f"/api/sudoku/groups/{group['id']}/join")
    match = alice_client.post('/api/sudoku/matches', json={
        'challengedId': bob, 'groupId': group['id'], 'difficulty': 'hard',
    }).get_json()['match']
    return alice_client, alice, bob_client, bob, match['id']


def test_registry_lifecycle():
    tracker = ConnectionRegistry()
    tracker.register('sid-a', 1)
    tracker.register('sid-b', 1)
    tracker.register('sid-c', 2)
    assert tracker.join_match(7, 1) == {1}
    assert tracker.join_match(7, 2) == {1, 2}

    assert tracker.deregister('sid-a') == 1
    assert tracker.is_connected(1)
    assert tracker.match_players(7) == {1, 2}

    tracker.deregister('sid-b')
    assert not tracker.is_connected(1)
    assert tracker.match_players(7) == {2}
    assert tracker.deregister('unknown') is None


def test_registry_leave_and_forget_match():
    tracker = ConnectionRegistry()
    tracker.join_match(3, 1)
    tracker.join_match(3, 2)
    assert tracker.leave_match(3, 1) == {2}
    assert tracker.leave_match(3, 2) == set()
    assert tracker.match_players(3) == set()
    assert tracker.leave_match(3, 2) == set()

    tracker.join_match(4, 1)
    tracker.forget_match(4)
    assert tracker.join_match(4, 2) == {2}


def test_anonymous_socket_is_rejected(flask_app):
    anon = socketio.test_client(flask_app, flask_test_client=flask_app.test_client(), namespace='/ws')
    assert not anon.is_connected('/ws')


def test_connect_and_ping(login_client, sio_factory):
    alice_client, alice = login_client('alice')
    sio = sio_factory(alice_client)
    assert sio.is_connected('/ws')
    connected = _events(sio, 'connected')
    assert connected and connected[0]['player_id'] == alice

    sio.emit('ping', {'n': 1}, namespace='/ws')
    assert _events(sio, 'pong') == [{'n': 1}]


def test_live_match_relay(live_match, sio_factory):
    alice_client, alice, bob_client, bob, match_id = live_match
    a = sio_factory(alice_client)
    b = sio_factory(bob_client)

    # invitation was sent before bob connected; accepting notifies alice
    _received(a)
    _received(b)
    assert bob_client.post(f'/api/sudoku/matches/{match_id}/accept').status_code == 200
    assert _events(a, 'match_accepted') == [{'match_id': match_id}]

    a.emit('join_match', {'match_id': match_id}, namespace='/ws')
    assert _events(a, 'joined_match') == [{'match_id': match_id}]
    b.emit('join_match', {'match_id': match_id}, namespace='/ws')
    ready_b = _events(b, 'both_players_ready')
    ready_a = _events(a, 'both_players_ready')
    assert ready_a and ready_b
    assert ready_b[0]['match']['puzzle_data']['solution']

    a.emit('start_game', {'match_id': match_id}, namespace='/ws')
    started = _events(b, 'opponent_started')
    assert started and started[0]['match_id'] == match_id

    a.emit('update_progress', {'match_id': match_id, 'time_seconds': 42}, namespace='/ws')
    assert _events(b, 'opponent_progress') == [{'match_id': match_id, 'time_seconds': 42}]

    a.emit('complete_game', {'match_id': match_id, 'time_seconds': 1700, 'mistakes': 0}, namespace='/ws')
    assert _events(a, 'game_submitted') == [{'match_id': match_id, 'status': 'waiting'}]
    assert _events(b, 'opponent_finished') == [{'match_id': match_id, 'opponent_time': 1700}]

    b.emit('complete_game', {'match_id': match_id, 'time_seconds': 1800, 'mistakes': 0}, namespace='/ws')
    final_b = [pkt for pkt in _received(b) if pkt['name'] == 'match_completed']
    final_a = _events(a, 'match_completed')
    assert len(final_b) == 1
    assert final_a[0]['winner'] == 'challenger'
    assert final_a[0]['challenger_score'] == 1800
    assert final_a[0]['challenged_score'] == 1500
    assert registry.match_players(match_id) == set()


def test_relay_errors_are_emitted(live_match, login_client, sio_factory):
    alice_client, _, _, _, match_id = live_match
    eve_client, _ = login_client('eve')
    a = sio_factory(alice_client)
    eve = sio_factory(eve_client)
    _received(a)
    _received(eve)

    # match still pending
    a.emit('start_game', {'match_id': match_id}, namespace='/ws')
    errors = _events(a, 'error')
    assert errors and errors[0]['status'] == 409

    eve.emit('join_match', {'match_id': match_id}, namespace='/ws')
    errors = _events(eve, 'error')
    assert errors and errors[0]['status'] == 403

    a.emit('update_progress', {'match_id': match_id}, namespace='/ws')
    errors = _events(a, 'error')
    assert errors and errors[0]['status'] == 400


def test_leaving_a_match_drops_the_player(live_match, sio_factory):
    alice_client, alice, bob_client, bob, match_id = live_match
    a = sio_factory(alice_client)
    b = sio_factory(bob_client)
    _received(a)
    _received(b)

    a.emit('join_match', {'match_id': match_id}, namespace='/ws')
    a.emit('leave_match', {'match_id': match_id}, namespace='/ws')
    assert _events(a, 'left_match') == [{'match_id': match_id}]
    assert registry.match_players(match_id) == set()

    b.emit('join_match', {'match_id': match_id}, namespace='/ws')
    assert [pkt['name'] for pkt in _received(b)] == ['joined_match']
    assert registry.match_players(match_id) == {bob}

    a.emit('join_match', {'match_id': match_id}, namespace='/ws')
    assert _events(b, 'both_players_ready')


def test_cancel_forgets_match(live_match, sio_factory):
    alice_client, alice, bob_client, bob, match_id = live_match
    a = sio_factory(alice_client)
    b = sio_factory(bob_client)
    _received(b)
    a.emit('join_match', {'match_id': match_id}, namespace='/ws')
    assert registry.match_players(match_id) == {alice}

    assert alice_client.post(f'/api/sudoku/matches/{match_id}/cancel').status_code == 200
    assert _events(b, 'match_cancelled') == [{'match_id': match_id}]
    assert registry.match_players(match_id) == set()
