"""Room and session management.

The ``RoomManager`` is the only component that mutates rooms. Every intent
runs to completion under one lock and returns a ``Result``; the Socket.IO
adapter turns that into the ack. Rejected intents never mutate state.

Players are keyed by a durable identity token, not by their connection, so
a dropped connection only marks the player disconnected and arms a grace
timer. Coming back with the same identity before the timer fires resumes
the seat in place.
"""

import functools
import logging
import random
import re
import threading
import time
import uuid
from typing import Any, Dict, List, Optional

from tilelink.errors import GameError, InvalidInput, InvalidState, NotFound, Result, Unauthorized
from tilelink.models import (
    COLS, ENDED, IN_PROGRESS, LOBBY, MAX_LEVEL, MIN_LEVEL, ROWS, TYPE_COUNT,
    Board, Player, Room, generate_room_code,
)
from tilelink.services.board import moves
from tilelink.services.board.scoring import Leaderboard

ROOM_CODE_RE = re.compile(r'[A-Z0-9]{3,12}')


class SessionStore:
    """Registries of live rooms and of who is where.

    ``memberships`` maps an identity to the code of its room and
    ``connections`` maps a live connection id to its identity.
    """

    def __init__(self) -> None:
        self.rooms: Dict[str, Room] = {}
        self.memberships: Dict[str, str] = {}
        self.connections: Dict[str, str] = {}

    def get_room(self, code: Optional[str]) -> Optional[Room]:
        if not isinstance(code, str):
            return None
        return self.rooms.get(code.strip().upper())

    def room_for(self, identity: str) -> Optional[Room]:
        code = self.memberships.get(identity)
        return self.rooms.get(code) if code else None

    def add_room(self, room: Room) -> None:
        self.rooms[room.code] = room

    def remove_room(self, room: Room) -> None:
        self.rooms.pop(room.code, None)
        for identity, player in room.players.items():
            if self.memberships.get(identity) == room.code:
                del self.memberships[identity]
            if player.sid and self.connections.get(player.sid) == identity:
                del self.connections[player.sid]

    def bind(self, sid: str, identity: str) -> None:
        self.connections[sid] = identity

    def unbind(self, sid: str) -> Optional[str]:
        return self.connections.pop(sid, None)


def intent(fn):
    """Run a manager operation under the lock and wrap it in a ``Result``."""
    @functools.wraps(fn)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            try:
                data = fn(self, *args, **kwargs)
            except GameError as exc:
                self.logger.debug(f"[reject] intent={fn.__name__} kind={exc.kind} reason={exc.message}")
                return Result.failure(exc)
        return Result.success(**(data or {}))
    return wrapper


def parse_level(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidInput(f'Level must be {MIN_LEVEL}..{MAX_LEVEL}')
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and re.fullmatch(r'\s*\d+\s*', value):
        value = int(value)
    if not isinstance(value, int) or not MIN_LEVEL <= value <= MAX_LEVEL:
        raise InvalidInput(f'Level must be {MIN_LEVEL}..{MAX_LEVEL}')
    return value


class RoomManager:
    def __init__(self, store: SessionStore, broadcaster, scheduler, leaderboard: Leaderboard,
                 config: Optional[Dict[str, Any]] = None, logger=None, clock=time.monotonic, rng=random):
        cfg = config or {}
        self.store = store
        self.broadcaster = broadcaster
        self.scheduler = scheduler
        self.leaderboard = leaderboard
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.rng = rng
        self.rows = int(cfg.get('BOARD_ROWS', ROWS))
        self.cols = int(cfg.get('BOARD_COLS', COLS))
        self.type_count = int(cfg.get('TILE_TYPE_COUNT', TYPE_COUNT))
        self.max_turns = int(cfg.get('MAX_TURNS', moves.MAX_TURNS))
        self.match_award = int(cfg.get('MATCH_AWARD', moves.MATCH_AWARD))
        self.reshuffle_attempts = int(cfg.get('RESHUFFLE_MAX_ATTEMPTS', moves.RESHUFFLE_MAX_ATTEMPTS))
        self.grace_sec = float(cfg.get('DISCONNECT_GRACE_SEC', 45))
        self.idle_sec = float(cfg.get('ROOM_IDLE_SEC', 600))
        self.sweep_interval_sec = float(cfg.get('ROOM_SWEEP_INTERVAL_SEC', 30))
        self.max_name_length = int(cfg.get('MAX_NAME_LENGTH', 24))
        self._lock = threading.RLock()

    # ---- lookups ----

    def _room(self, code) -> Room:
        room = self.store.get_room(code)
        if room is None:
            raise NotFound('Room not found')
        return room

    def _member(self, room: Room, sid: str) -> Player:
        identity = self.store.connections.get(sid)
        player = room.players.get(identity) if identity else None
        if player is None:
            raise NotFound('Not in room')
        return player

    def _host(self, room: Room, sid: str, action: str) -> Player:
        player = self._member(room, sid)
        if not room.is_host(player.identity):
            raise Unauthorized(f'Only host can {action}')
        return player

    def _clean_name(self, name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput('Name required')
        name = name.strip()
        if len(name) > self.max_name_length:
            raise InvalidInput(f'Name must be at most {self.max_name_length} characters')
        return name

    def _resolve_identity(self, sid: str, identity: Any) -> str:
        if identity is None or identity == '':
            return self.store.connections.get(sid) or uuid.uuid4().hex
        if not isinstance(identity, str) or len(identity) > 64:
            raise InvalidInput('Invalid identity')
        return identity

    def _new_board(self) -> Board:
        return Board.generate(self.rows, self.cols, self.type_count, rng=self.rng)

    def _welcome(self, room: Room, player: Player) -> Dict[str, Any]:
        payload = {
            'room_code': room.code,
            'identity': player.identity,
            'you': player.to_dict(room.host_identity),
            'host_id': room.host.player_id if room.host else None,
            'state': room.state,
            'level': room.level,
            'scores': room.scores(),
        }
        if room.state in (IN_PROGRESS, ENDED) and room.board is not None:
            payload['board'] = room.board.to_list()
        return payload

    # ---- connection binding ----

    def _bind(self, sid: str, player: Player) -> None:
        previous = self.store.connections.get(sid)
        if previous is not None and previous != player.identity:
            # the connection switched identity; the old seat loses it
            self._drop_connection(sid)
        if player.sid and player.sid != sid:
            self.store.unbind(player.sid)
        self.store.bind(sid, player.identity)
        player.sid = sid
        player.connected = True

    def _drop_connection(self, sid: str) -> None:
        identity = self.store.unbind(sid)
        if identity is None:
            return
        room = self.store.room_for(identity)
        player = room.players.get(identity) if room else None
        if player is None or player.sid != sid:
            return
        player.connected = False
        player.sid = None
        room.touch()
        task = self.scheduler.schedule(self.grace_sec, self._expire_player, room.code, identity)
        room.arm_removal(player, task)
        self.logger.info(f"[grace-set] room={room.code} player={player.player_id} grace={self.grace_sec}s")
        self.broadcaster.to_room(room, 'room:player_disconnected', {'id': player.player_id, 'scores': room.scores()})
        self.broadcaster.snapshot(room)

    def _reconnect(self, room: Room, player: Player, sid: str) -> None:
        if player.connected and player.sid == sid:
            return
        was_connected = player.connected
        room.disarm_removal(player)
        self._bind(sid, player)
        room.touch()
        if not was_connected:
            self.logger.info(f"[reconnect] room={room.code} player={player.player_id}")
            self.broadcaster.to_room(room, 'room:player_reconnected', {'id': player.player_id, 'scores': room.scores()})
            self.broadcaster.snapshot(room)

    # ---- removal ----

    def _close_room(self, room: Room, reason: str) -> None:
        self.broadcaster.to_room(room, 'room:closed', {'room_code': room.code, 'reason': reason})
        room.disarm_all()
        self.store.remove_room(room)
        self.logger.info(f"[room-close] room={room.code} reason={reason}")

    def _remove_player(self, room: Room, player: Player, reason: str) -> None:
        room.disarm_removal(player)
        if room.is_host(player.identity):
            self._close_room(room, f'host_{reason}')
            return
        del room.players[player.identity]
        self.store.memberships.pop(player.identity, None)
        if player.sid and self.store.connections.get(player.sid) == player.identity:
            self.store.unbind(player.sid)
        room.touch()
        self.logger.info(f"[player-remove] room={room.code} player={player.player_id} reason={reason}")
        self.broadcaster.to_room(room, 'room:player_left', {'id': player.player_id, 'scores': room.scores()})
        self.broadcaster.snapshot(room)

    def _leave_previous(self, identity: str, keep_code: Optional[str] = None) -> None:
        room = self.store.room_for(identity)
        if room is None or room.code == keep_code:
            return
        self._remove_player(room, room.players[identity], 'switched')

    def _expire_player(self, code: str, identity: str) -> None:
        with self._lock:
            room = self.store.rooms.get(code)
            player = room.players.get(identity) if room else None
            task = player.pending_removal if player else None
            if player is None or player.connected or task is None or not task.fired:
                self.logger.info(f"[grace-abort] room={code} identity={identity[:8]}")
                return
            player.pending_removal = None
            self.logger.info(f"[grace-fire] room={code} player={player.player_id}")
            self._remove_player(room, player, 'timeout')

    # ---- intents ----

    @intent
    def create_room(self, sid: str, name: Any, room_code: Any = None, identity: Any = None):
        name = self._clean_name(name)
        if room_code:
            if not isinstance(room_code, str):
                raise InvalidInput('Invalid room code')
            code = room_code.strip().upper()
            if not ROOM_CODE_RE.fullmatch(code):
                raise InvalidInput('Invalid room code')
            if code in self.store.rooms:
                raise InvalidState('Room already exists')
        else:
            code = generate_room_code(self.store.rooms)
        identity = self._resolve_identity(sid, identity)

        self._leave_previous(identity)
        room = Room(code, identity, clock=self.clock)
        player = Player(identity, name)
        room.players[identity] = player
        self.store.add_room(room)
        self.store.memberships[identity] = code
        self._bind(sid, player)
        self.logger.info(f"[room-create] room={code} host={player.player_id}")
        self.broadcaster.snapshot(room)
        return self._welcome(room, player)

    @intent
    def join_room(self, sid: str, room_code: Any, name: Any = None, identity: Any = None):
        room = self._room(room_code)
        identity = self._resolve_identity(sid, identity)
        player = room.players.get(identity)
        if player is not None:
            self._reconnect(room, player, sid)
            return self._welcome(room, player)

        name = self._clean_name(name)
        self._leave_previous(identity, keep_code=room.code)
        player = Player(identity, name)
        room.players[identity] = player
        self.store.memberships[identity] = room.code
        self._bind(sid, player)
        room.touch()
        self.logger.info(f"[room-join] room={room.code} player={player.player_id}")
        self.broadcaster.to_room(room, 'room:player_joined', {
            'id': player.player_id, 'name': player.name, 'scores': room.scores(),
        })
        self.broadcaster.snapshot(room)
        return self._welcome(room, player)

    @intent
    def resume_session(self, sid: str, room_code: Any, identity: Any):
        room = self._room(room_code)
        if not isinstance(identity, str) or identity not in room.players:
            raise NotFound('Player not found in room')
        player = room.players[identity]
        self._reconnect(room, player, sid)
        return self._welcome(room, player)

    @intent
    def leave_room(self, sid: str, room_code: Any):
        room = self._room(room_code)
        player = self._member(room, sid)
        self._remove_player(room, player, 'left')
        return {}

    @intent
    def start_game(self, sid: str, room_code: Any):
        room = self._room(room_code)
        self._host(room, sid, 'start')
        if room.state == IN_PROGRESS:
            raise InvalidState('Game already in progress')
        self._deal(room, 'game:started')
        return {}

    @intent
    def restart_game(self, sid: str, room_code: Any):
        room = self._room(room_code)
        self._host(room, sid, 'restart')
        if room.state == LOBBY:
            raise InvalidState('Game has not started')
        self._deal(room, 'game:restarted')
        return {}

    def _deal(self, room: Room, event: str) -> None:
        room.board = self._new_board()
        room.state = IN_PROGRESS
        room.reset_scores()
        room.touch()
        self.logger.info(f"[{event.replace(':', '-')}] room={room.code} level={room.level}")
        self.broadcaster.to_room(room, event, {
            'board': room.board.to_list(), 'level': room.level, 'scores': room.scores(),
        })
        self.broadcaster.snapshot(room)

    @intent
    def end_game(self, sid: str, room_code: Any):
        room = self._room(room_code)
        self._host(room, sid, 'end')
        if room.state != IN_PROGRESS:
            raise InvalidState('Game not in progress')
        room.state = ENDED
        room.touch()
        self.broadcaster.to_room(room, 'game:ended', {
            'scores': room.scores(), 'board': room.board.to_list(), 'level': room.level,
        })
        self.broadcaster.snapshot(room)
        return {}

    @intent
    def close_room(self, sid: str, room_code: Any):
        room = self._room(room_code)
        self._host(room, sid, 'close')
        self._close_room(room, 'closed_by_host')
        return {}

    @intent
    def set_level(self, sid: str, room_code: Any, level: Any):
        room = self._room(room_code)
        self._host(room, sid, 'set level')
        room.level = parse_level(level)
        room.touch()
        self.broadcaster.to_room(room, 'room:level_changed', {'level': room.level})
        self.broadcaster.snapshot(room)
        return {'level': room.level}

    @intent
    def remove_player(self, sid: str, room_code: Any, player_id: Any):
        room = self._room(room_code)
        self._host(room, sid, 'remove players')
        target = room.find_player(player_id) if isinstance(player_id, str) else None
        if target is None:
            raise NotFound('Player not found')
        if room.is_host(target.identity):
            raise InvalidInput('Host cannot remove themselves')
        if target.connected:
            self.broadcaster.to_connection(target.sid, 'room:removed', {'room_code': room.code})
        self._remove_player(room, target, 'removed')
        return {}

    @intent
    def submit_move(self, sid: str, room_code: Any, a: Any, b: Any):
        room = self._room(room_code)
        player = self._member(room, sid)
        outcome = moves.submit_move(
            room, player, a, b, self.leaderboard,
            award=self.match_award, max_turns=self.max_turns,
            reshuffle_attempts=self.reshuffle_attempts, rng=self.rng,
        )
        path = [p.to_dict() for p in outcome.path]
        scores = room.scores()
        self.broadcaster.to_room(room, 'game:matched', {
            'a': path[0], 'b': path[-1], 'path': path, 'board': room.board.to_list(), 'scores': scores,
        })
        if outcome.cleared:
            self.logger.info(f"[board-clear] room={room.code} next_level={room.level}")
            self.broadcaster.to_room(room, 'game:ended', {
                'scores': scores, 'board': room.board.to_list(), 'level': room.level,
            })
        elif outcome.reshuffled:
            self.logger.info(f"[board-shuffle] room={room.code} tiles={room.board.tile_count()}")
            self.broadcaster.to_room(room, 'game:shuffled', {'board': room.board.to_list()})
        self.broadcaster.snapshot(room)
        return {
            'path': path,
            'score': player.score,
            'cleared': outcome.cleared,
            'reshuffled': outcome.reshuffled,
        }

    # ---- transport and housekeeping ----

    def disconnect(self, sid: str) -> None:
        """Transport loss: keep the seat, arm the grace timer."""
        with self._lock:
            self._drop_connection(sid)

    def room_state(self, room_code: Any) -> Optional[Dict[str, Any]]:
        with self._lock:
            room = self.store.get_room(room_code)
            return room.to_dict() if room else None

    def sweep_idle_rooms(self) -> List[str]:
        """Remove rooms nobody has been connected to for the idle threshold."""
        with self._lock:
            now = self.clock()
            swept = []
            for room in list(self.store.rooms.values()):
                if not room.connected_players() and now - room.last_active > self.idle_sec:
                    self._close_room(room, 'idle')
                    swept.append(room.code)
            if swept:
                self.logger.info(f"[room-sweep] removed={','.join(swept)}")
            return swept

    def start_idle_sweeper(self):
        return self.scheduler.schedule(self.sweep_interval_sec, self._sweep_tick)

    def _sweep_tick(self) -> None:
        try:
            self.sweep_idle_rooms()
        finally:
            self.start_idle_sweeper()

