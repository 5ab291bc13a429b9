import random
from typing import Any, List, NamedTuple

from tilelink.errors import InvalidInput, InvalidState, NoPath, NotMatchable
from tilelink.models import ENDED, IN_PROGRESS, MAX_LEVEL, Board, Player, Room, TilePosition
from .collapse import apply_level
from .pathfinding import MAX_TURNS, find_path, has_any_move
from .scoring import MATCH_AWARD, Leaderboard, award_match

RESHUFFLE_MAX_ATTEMPTS = 20


class MoveOutcome(NamedTuple):
    path: List[TilePosition]
    cleared: bool
    reshuffled: bool


def _position(value: Any, board: Board) -> TilePosition:
    pos = value if isinstance(value, TilePosition) else TilePosition.from_payload(value)
    if not board.in_bounds(pos):
        raise InvalidInput('Invalid coords')
    return pos


def resolve_deadlock(board: Board, max_turns: int = MAX_TURNS,
                     attempts: int = RESHUFFLE_MAX_ATTEMPTS, rng=random) -> bool:
    """Reshuffle the remaining tiles if no pair can be connected.

    Shuffles at least once when deadlocked and keeps trying while more than
    one tile type remains and no move has appeared. Returns whether a
    reshuffle happened.
    """
    if has_any_move(board, max_turns):
        return False
    board.reshuffle_remaining(rng)
    for _ in range(attempts - 1):
        if len(board.positions_by_type()) < 2 or has_any_move(board, max_turns):
            break
        board.reshuffle_remaining(rng)
    return True


def submit_move(room: Room, player: Player, a: Any, b: Any, leaderboard: Leaderboard,
                award: int = MATCH_AWARD, max_turns: int = MAX_TURNS,
                reshuffle_attempts: int = RESHUFFLE_MAX_ATTEMPTS, rng=random) -> MoveOutcome:
    """Validate and apply one match on the room's board.

    Raises a ``GameError`` without touching the room when any check fails.
    On success the pair is removed under the room's level, the player is
    credited, and the room either ends (board cleared, level advances with
    7 wrapping to 1) or is reshuffled if no move is left.
    """
    if room.state != IN_PROGRESS or room.board is None:
        raise InvalidState('Game not in progress')
    board = room.board
    if a is None or b is None:
        raise InvalidInput('Invalid coords')
    a, b = _position(a, board), _position(b, board)
    if a == b:
        raise InvalidInput('Pick two different tiles')
    if board.is_cleared():
        raise InvalidState('Board already cleared')
    v1, v2 = board.get(a), board.get(b)
    if v1 is None or v2 is None or v1 != v2:
        raise NotMatchable('Not matchable')
    path = find_path(board, a, b, max_turns)
    if path is None:
        raise NoPath('No path')

    apply_level(board, room.level, a, b)
    award_match(player, leaderboard, award)

    cleared = board.is_cleared()
    reshuffled = False
    if cleared:
        room.state = ENDED
        room.level = room.level % MAX_LEVEL + 1
    else:
        reshuffled = resolve_deadlock(board, max_turns, reshuffle_attempts, rng)
    room.touch()
    return MoveOutcome(path, cleared, reshuffled)
