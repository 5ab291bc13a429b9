import random
import string
import time
from typing import Any, Dict, List, NamedTuple, Optional

from tilelink.errors import InvalidInput

ROWS = 11
COLS = 18
TYPE_COUNT = 33
MIN_LEVEL = 1
MAX_LEVEL = 7

LOBBY = 'lobby'
IN_PROGRESS = 'in_progress'
ENDED = 'ended'


class TilePosition(NamedTuple):
    row: int
    col: int

    @classmethod
    def from_payload(cls, data: Any) -> 'TilePosition':
        """Parse the wire form ``{"r": row, "c": col}``."""
        if not isinstance(data, dict):
            raise InvalidInput('Invalid coords')
        row, col = data.get('r'), data.get('c')
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in (row, col)):
            raise InvalidInput('Invalid coords')
        return cls(row, col)

    def to_dict(self) -> Dict[str, int]:
        return {'r': self.row, 'c': self.col}


class Board:
    """Bordered grid of tile types. ``None`` marks an empty cell.

    Row/column 0 and the last row/column form a border that never holds a
    tile, so connecting lines may run around the outside of the tiles.
    """

    def __init__(self, rows: int = ROWS, cols: int = COLS, cells: Optional[List[List[Optional[int]]]] = None):
        self.rows = rows
        self.cols = cols
        self.cells = cells if cells is not None else [[None] * cols for _ in range(rows)]

    @classmethod
    def generate(cls, rows: int = ROWS, cols: int = COLS, type_count: int = TYPE_COUNT, rng=random) -> 'Board':
        """Lay out a shuffled bag of tiles row-major over the interior.

        The first ``k`` types get 6 copies and the rest 4, with ``k`` chosen
        so the bag exactly fills the interior (6 for the 11x18/33 board).
        """
        interior = (rows - 2) * (cols - 2)
        six_copy_types, rem = divmod(interior - 4 * type_count, 2)
        if rows < 3 or cols < 3 or rem or not 0 <= six_copy_types <= type_count:
            raise ValueError(f"cannot fill a {rows}x{cols} board with {type_count} tile types")
        bag = []
        for t in range(type_count):
            bag.extend([t] * (6 if t < six_copy_types else 4))
        rng.shuffle(bag)
        board = cls(rows, cols)
        tiles = iter(bag)
        for r in range(1, rows - 1):
            for c in range(1, cols - 1):
                board.cells[r][c] = next(tiles)
        return board

    @classmethod
    def from_rows(cls, rows: List[List[Optional[int]]]) -> 'Board':
        return cls(len(rows), len(rows[0]), [list(row) for row in rows])

    def in_bounds(self, pos: TilePosition) -> bool:
        return 0 <= pos.row < self.rows and 0 <= pos.col < self.cols

    def is_interior(self, pos: TilePosition) -> bool:
        return 0 < pos.row < self.rows - 1 and 0 < pos.col < self.cols - 1

    def get(self, pos: TilePosition) -> Optional[int]:
        return self.cells[pos.row][pos.col]

    def set(self, pos: TilePosition, value: Optional[int]) -> None:
        self.cells[pos.row][pos.col] = value

    def interior_positions(self):
        for r in range(1, self.rows - 1):
            for c in range(1, self.cols - 1):
                yield TilePosition(r, c)

    def occupied_positions(self) -> List[TilePosition]:
        return [p for p in self.interior_positions() if self.get(p) is not None]

    def tile_count(self) -> int:
        return len(self.occupied_positions())

    def positions_by_type(self) -> Dict[int, List[TilePosition]]:
        groups: Dict[int, List[TilePosition]] = {}
        for pos in self.occupied_positions():
            groups.setdefault(self.get(pos), []).append(pos)
        return groups

    def is_cleared(self) -> bool:
        return all(self.get(p) is None for p in self.interior_positions())

    def reshuffle_remaining(self, rng=random) -> None:
        """Shuffle the remaining tiles over the cells they already occupy."""
        positions = self.occupied_positions()
        values = [self.get(p) for p in positions]
        rng.shuffle(values)
        for pos, value in zip(positions, values):
            self.set(pos, value)

    def to_list(self) -> List[List[Optional[int]]]:
        return [list(row) for row in self.cells]


ROOM_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'


def generate_room_code(taken, length=4):
    """Generate a short room code not present in ``taken``."""
    while True:
        code = ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))
        if code not in taken:
            return code


def new_player_id() -> str:
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=8))


class Player:
    def __init__(self, identity: str, name: str, sid: Optional[str] = None):
        self.identity = identity
        self.player_id = new_player_id()
        self.name = name
        self.score = 0
        self.sid = sid
        self.connected = sid is not None
        self.pending_removal = None

    def to_dict(self, host_identity: Optional[str] = None) -> Dict[str, Any]:
        return {
            'id': self.player_id,
            'name': self.name,
            'score': self.score,
            'connected': self.connected,
            'host': self.identity == host_identity,
        }


class Room:
    def __init__(self, code: str, host_identity: str, clock=time.monotonic):
        self.code = code
        self.host_identity = host_identity
        self.players: Dict[str, Player] = {}
        self.state = LOBBY
        self.board: Optional[Board] = None
        self.level = MIN_LEVEL
        self._clock = clock
        self.last_active = clock()

    def touch(self) -> None:
        self.last_active = self._clock()

    @property
    def host(self) -> Optional[Player]:
        return self.players.get(self.host_identity)

    def is_host(self, identity: str) -> bool:
        return identity == self.host_identity

    def connected_players(self) -> List[Player]:
        return [p for p in self.players.values() if p.connected]

    def find_player(self, player_id: str) -> Optional[Player]:
        for player in self.players.values():
            if player.player_id == player_id:
                return player
        return None

    def arm_removal(self, player: Player, task) -> None:
        self.disarm_removal(player)
        player.pending_removal = task

    def disarm_removal(self, player: Player) -> None:
        task, player.pending_removal = player.pending_removal, None
        if task is not None:
            task.cancel()

    def disarm_all(self) -> None:
        for player in self.players.values():
            self.disarm_removal(player)

    def reset_scores(self) -> None:
        for player in self.players.values():
            player.score = 0

    def scores(self) -> List[Dict[str, Any]]:
        listing = [p.to_dict(self.host_identity) for p in self.players.values()]
        listing.sort(key=lambda p: p['score'], reverse=True)
        return listing

    def to_dict(self) -> Dict[str, Any]:
        host = self.host
        return {
            'code': self.code,
            'host_id': host.player_id if host else None,
            'state': self.state,
            'level': self.level,
            'board': self.board.to_list() if self.board else None,
            'players': self.scores(),
        }
