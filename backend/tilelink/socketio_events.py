from flask import current_app, request
from flask_socketio import emit

from tilelink import socketio
from tilelink.broadcast import NAMESPACE


def _manager():
    return current_app.extensions['tilelink']


def _fields(data):
    # Malformed payloads are treated as empty so the manager rejects them
    return data if isinstance(data, dict) else {}


def handle_connect(auth=None):
    emit('connected', {'message': f'Connected to {NAMESPACE}'})


def handle_disconnect(reason=None):
    _manager().disconnect(request.sid)


def handle_create_room(data=None):
    data = _fields(data)
    return _manager().create_room(
        request.sid, data.get('name'), room_code=data.get('room_code'), identity=data.get('identity'),
    ).to_dict()


def handle_join_room(data=None):
    data = _fields(data)
    return _manager().join_room(
        request.sid, data.get('room_code'), data.get('name'), identity=data.get('identity'),
    ).to_dict()


def handle_resume_session(data=None):
    data = _fields(data)
    return _manager().resume_session(request.sid, data.get('room_code'), data.get('identity')).to_dict()


def handle_leave_room(data=None):
    return _manager().leave_room(request.sid, _fields(data).get('room_code')).to_dict()


def handle_start_game(data=None):
    return _manager().start_game(request.sid, _fields(data).get('room_code')).to_dict()


def handle_end_game(data=None):
    return _manager().end_game(request.sid, _fields(data).get('room_code')).to_dict()


def handle_restart_game(data=None):
    return _manager().restart_game(request.sid, _fields(data).get('room_code')).to_dict()


def handle_close_room(data=None):
    return _manager().close_room(request.sid, _fields(data).get('room_code')).to_dict()


def handle_set_level(data=None):
    data = _fields(data)
    return _manager().set_level(request.sid, data.get('room_code'), data.get('level')).to_dict()


def handle_remove_player(data=None):
    data = _fields(data)
    return _manager().remove_player(request.sid, data.get('room_code'), data.get('player_id')).to_dict()


def handle_submit_move(data=None):
    data = _fields(data)
    return _manager().submit_move(request.sid, data.get('room_code'), data.get('a'), data.get('b')).to_dict()


def handle_ping(data=None):
    emit('pong', data or {})


HANDLERS = {
    'connect': handle_connect,
    'disconnect': handle_disconnect,
    'create_room': handle_create_room,
    'join_room': handle_join_room,
    'resume_session': handle_resume_session,
    'leave_room': handle_leave_room,
    'start_game': handle_start_game,
    'end_game': handle_end_game,
    'restart_game': handle_restart_game,
    'close_room': handle_close_room,
    'set_level': handle_set_level,
    'remove_player': handle_remove_player,
    'submit_move': handle_submit_move,
    'ping': handle_ping,
}


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the game namespace.

    Handler return values are sent back as the client's ack.
    """
    for event, handler in HANDLERS.items():
        socketio.on_event(event, handler, namespace=NAMESPACE)
