from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from flask_login import current_user
from sudoku_api import socketio
from sudoku_api.errors import AuthenticationError, SudokuError
from sudoku_api.services import matches as match_service
from sudoku_api.validation import require_int
from typing import Dict, Optional, Set

NAMESPACE = '/ws'


def player_room(player_id: int) -> str:
    return f"player:{player_id}"


def match_room(match_id: int) -> str:
    return f"match:{match_id}"


class ConnectionRegistry:
    """Process-local bookkeeping of live sockets.

    Tracks which player owns each socket and which players have joined each
    match room. Nothing here is persisted; a disconnect simply drops the
    player from tracking.
    """

    def __init__(self):
        self._sid_to_player: Dict[str, int] = {}
        self._player_sids: Dict[int, Set[str]] = {}
        self._match_players: Dict[int, Set[int]] = {}

    def register(self, sid: str, player_id: int) -> None:
        self._sid_to_player[sid] = player_id
        self._player_sids.setdefault(player_id, set()).add(sid)

    def deregister(self, sid: str) -> Optional[int]:
        player_id = self._sid_to_player.pop(sid, None)
        if player_id is None:
            return None
        sids = self._player_sids.get(player_id, set())
        sids.discard(sid)
        if not sids:
            # last socket for this player: leave every match room
            self._player_sids.pop(player_id, None)
            for match_id in list(self._match_players):
                self.leave_match(match_id, player_id)
        return player_id

    def player_for(self, sid: str) -> Optional[int]:
        return self._sid_to_player.get(sid)

    def is_connected(self, player_id: int) -> bool:
        return bool(self._player_sids.get(player_id))

    def join_match(self, match_id: int, player_id: int) -> Set[int]:
        players = self._match_players.setdefault(match_id, set())
        players.add(player_id)
        return set(players)

    def leave_match(self, match_id: int, player_id: int) -> Set[int]:
        players = self._match_players.get(match_id)
        if players is None:
            return set()
        players.discard(player_id)
        if not players:
            del self._match_players[match_id]
        return set(players)

    def forget_match(self, match_id: int) -> None:
        self._match_players.pop(match_id, None)

    def match_players(self, match_id: int) -> Set[int]:
        return set(self._match_players.get(match_id, set()))

    def clear(self) -> None:
        self._sid_to_player.clear()
        self._player_sids.clear()
        self._match_players.clear()


registry = ConnectionRegistry()


def _get_sid() -> str:
    # request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _current_player_id() -> int:
    player_id = registry.player_for(_get_sid())
    if player_id is None:
        raise AuthenticationError('Not authenticated')
    return player_id


def _emit_error(exc: SudokuError) -> None:
    emit('error', {'message': exc.message, 'status': exc.status_code})


# ---- Outbound notifications (also used by HTTP routes) ----

def notify_player(player_id: int, event: str, payload: dict) -> None:
    socketio.emit(event, payload, to=player_room(player_id), namespace=NAMESPACE)


def notify_match_completed(result: dict) -> None:
    for pid in (result['challenger_id'], result['challenged_id']):
        notify_player(pid, 'match_completed', result)
    registry.forget_match(result['match_id'])


def notify_match_cancelled(match_id: int, opponent_id: int) -> None:
    notify_player(opponent_id, 'match_cancelled', {'match_id': match_id})
    registry.forget_match(match_id)


def notify_completion(player_id: int, opponent_id: int, result: dict, time_seconds: int) -> None:
    """Tell the finisher their run was stored and fan out the outcome."""
    notify_player(player_id, 'game_submitted', {'match_id': result['match_id'], 'status': result['status']})
    if result['status'] == 'completed':
        notify_match_completed(result)
    else:
        notify_player(opponent_id, 'opponent_finished', {'match_id': result['match_id'], 'opponent_time': time_seconds})


# ---- Inbound handlers ----

def handle_connect(auth=None):
    if not current_user.is_authenticated:
        return False
    registry.register(_get_sid(), current_user.id)
    join_room(player_room(current_user.id))
    emit('connected', {'message': f'Connected to {NAMESPACE}', 'player_id': current_user.id})


def handle_disconnect(*args):
    player_id = registry.deregister(_get_sid())
    if player_id is not None:
        current_app.logger.info(f"[ws] player={player_id} disconnected")


def handle_join_match(data):
    try:
        player_id = _current_player_id()
        match_id = require_int(data, 'match_id')
        match = match_service.get_match_for(match_id, player_id)
    except SudokuError as exc:
        _emit_error(exc)
        return
    join_room(match_room(match_id))
    present = registry.join_match(match_id, player_id)
    emit('joined_match', {'match_id': match_id})
    if {match.challenger_id, match.challenged_id} <= present:
        socketio.emit('both_players_ready', {'match': match.to_dict(include_puzzle=True)},
                      to=match_room(match_id), namespace=NAMESPACE)


def handle_leave_match(data):
    try:
        player_id = _current_player_id()
        match_id = require_int(data, 'match_id')
    except SudokuError as exc:
        _emit_error(exc)
        return
    leave_room(match_room(match_id))
    registry.leave_match(match_id, player_id)
    emit('left_match', {'match_id': match_id})


def handle_start_game(data):
    try:
        player_id = _current_player_id()
        match_id = require_int(data, 'match_id')
        match, started_at = match_service.start_match(match_id, player_id)
        opponent_id = match_service.opponent_of(match, player_id)
    except SudokuError as exc:
        _emit_error(exc)
        return
    notify_player(opponent_id, 'opponent_started', {'match_id': match_id, 'timestamp': started_at.isoformat()})


def handle_update_progress(data):
    try:
        player_id = _current_player_id()
        match_id = require_int(data, 'match_id')
        time_seconds = require_int(data, 'time_seconds')
        opponent_id = match_service.report_progress(match_id, player_id)
    except SudokuError as exc:
        _emit_error(exc)
        return
    notify_player(opponent_id, 'opponent_progress', {'match_id': match_id, 'time_seconds': time_seconds})


def handle_complete_game(data):
    try:
        player_id = _current_player_id()
        match_id = require_int(data, 'match_id')
        time_seconds = require_int(data, 'time_seconds')
        mistakes = require_int(data, 'mistakes')
        result = match_service.complete_match(match_id, player_id, time_seconds, mistakes)
    except SudokuError as exc:
        _emit_error(exc)
        return
    opponent_id = result['challenged_id'] if player_id == result['challenger_id'] else result['challenger_id']
    notify_completion(player_id, opponent_id, result, time_seconds)


def handle_ping(data):
    emit('pong', data or {})


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the '/ws' namespace."""
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('join_match', handle_join_match, namespace=NAMESPACE)
    socketio.on_event('leave_match', handle_leave_match, namespace=NAMESPACE)
    socketio.on_event('start_game', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('update_progress', handle_update_progress, namespace=NAMESPACE)
    socketio.on_event('complete_game', handle_complete_game, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
