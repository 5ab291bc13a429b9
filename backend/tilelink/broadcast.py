from typing import Any, Dict

NAMESPACE = '/ws'


class Broadcaster:
    """Pushes events to the live connections of a room's members.

    Subclasses provide ``to_connection``; everything else is built on it.
    """

    def to_connection(self, sid: str, event: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError

    def to_room(self, room, event: str, payload: Dict[str, Any]) -> None:
        for player in room.connected_players():
            self.to_connection(player.sid, event, payload)

    def snapshot(self, room) -> None:
        # serialized once, sent to every connected member
        self.to_room(room, 'room:state', room.to_dict())


class SocketIOBroadcaster(Broadcaster):
    def __init__(self, socketio, namespace: str = NAMESPACE):
        self.socketio = socketio
        self.namespace = namespace

    def to_connection(self, sid, event, payload):
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)
