from functools import wraps
from flask import current_app, request
from flask_socketio import ConnectionRefusedError, close_room, emit, join_room, leave_room
from cardclash import socketio
from cardclash.errors import AuthenticationError, GameError, ValidationError
from cardclash.services.battle import MatchCoordinator, player_view, verify_token


def _scope(room_id: int) -> str:
    return f"room:{room_id}"


class SocketNotifier:
    """Pushes match events to Socket.IO connections on one namespace."""

    def __init__(self, namespace: str = '/'):
        self.namespace = namespace

    def room_created(self, sid, room):
        socketio.emit('roomCreated', room, to=sid, namespace=self.namespace)

    def rooms_changed(self, rooms):
        socketio.emit('roomsListUpdated', rooms, namespace=self.namespace)

    def enter_scope(self, sid, room_id):
        join_room(_scope(room_id), sid=sid, namespace=self.namespace)

    def leave_scope(self, sid, room_id):
        leave_room(_scope(room_id), sid=sid, namespace=self.namespace)

    def game_started(self, session):
        socketio.emit('gameStarted', {
            'roomId': session.room_id,
            'currentPlayerUserId': session.current_turn_user_id,
        }, to=_scope(session.room_id), namespace=self.namespace)

    def state_changed(self, session):
        for p in session.players:
            socketio.emit('gameStateUpdated', player_view(session, p.sid), to=p.sid, namespace=self.namespace)

    def game_ended(self, session, winner, reason):
        socketio.emit('gameEnded', {
            'roomId': session.room_id,
            'winner': winner,
            'reason': reason,
        }, to=_scope(session.room_id), namespace=self.namespace)
        close_room(_scope(session.room_id), namespace=self.namespace)


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _coordinator() -> MatchCoordinator:
    return current_app.extensions['cardclash']


def _int_field(data, key: str) -> int:
    value = data.get(key) if isinstance(data, dict) else None
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f'{key} must be an integer')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{key} must be an integer')


def _bearer_token(auth):
    if isinstance(auth, dict) and auth.get('token'):
        return auth['token']
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header.split(' ', 1)[1]
    return request.args.get('token')


def guarded(action: str):
    """Turn any failure of a handler into an error reply to the caller only."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(data=None):
            try:
                return fn(data if data is not None else {})
            except GameError as exc:
                current_app.logger.warning(f"[{action}-rejected] sid={_get_sid()} {exc.kind}: {exc.message}")
                emit('error', exc.to_dict())
            except Exception:
                current_app.logger.exception(f"[{action}-failed] sid={_get_sid()}")
                emit('error', {'message': 'Internal server error', 'type': 'internal'})
        return wrapper
    return decorator


def handle_connect(auth=None):
    cfg = current_app.config
    try:
        identity = verify_token(_bearer_token(auth), cfg['JWT_SECRET'], [cfg.get('JWT_ALGORITHM', 'HS256')])
    except AuthenticationError as exc:
        current_app.logger.info(f"[connect-refused] sid={_get_sid()} reason={exc.message}")
        raise ConnectionRefusedError(exc.message)
    _coordinator().connect(_get_sid(), identity)


def handle_disconnect(reason=None):
    # The connection is already gone, so there is nobody to send an error to
    try:
        _coordinator().disconnect(_get_sid())
    except Exception:
        current_app.logger.exception(f"[disconnect-failed] sid={_get_sid()}")


@guarded('createRoom')
def handle_create_room(data):
    _coordinator().create_room(_get_sid(), _int_field(data, 'deckId'))


@guarded('getRooms')
def handle_get_rooms(data):
    coordinator = _coordinator()
    coordinator.identify(_get_sid())
    emit('roomsList', coordinator.list_rooms())


@guarded('joinRoom')
def handle_join_room(data):
    _coordinator().join_room(_get_sid(), _int_field(data, 'roomId'), _int_field(data, 'deckId'))


@guarded('drawCards')
def handle_draw_cards(data):
    _coordinator().draw_cards(_get_sid(), _int_field(data, 'roomId'))


@guarded('playCard')
def handle_play_card(data):
    _coordinator().play_card(_get_sid(), _int_field(data, 'roomId'), _int_field(data, 'cardIndex'))


@guarded('attack')
def handle_attack(data):
    _coordinator().attack(_get_sid(), _int_field(data, 'roomId'))


@guarded('endTurn')
def handle_end_turn(data):
    _coordinator().end_turn(_get_sid(), _int_field(data, 'roomId'))


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'createRoom': handle_create_room,
    'getRooms': handle_get_rooms,
    'joinRoom': handle_join_room,
    'drawCards': handle_draw_cards,
    'playCard': handle_play_card,
    'attack': handle_attack,
    'endTurn': handle_end_turn,
}


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register every Socket.IO event handler on the given namespace."""
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=namespace)
