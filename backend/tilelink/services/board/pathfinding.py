from collections import deque
from itertools import combinations
from typing import Dict, List, Optional, Tuple

from tilelink.models import Board, TilePosition

# up, down, left, right
DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))
MAX_TURNS = 2

State = Tuple[int, int, Optional[int]]


def find_path(board: Board, start: TilePosition, goal: TilePosition,
              max_turns: int = MAX_TURNS) -> Optional[List[TilePosition]]:
    """Find a rectilinear line from ``start`` to ``goal`` with at most
    ``max_turns`` direction changes.

    The line may only cross empty cells (the goal's own tile excepted) and
    may use the border ring. Search states are ``(row, col, direction)``;
    from each state a ray is cast in every direction until blocked. Going
    straight costs nothing and turning costs one, so a 0-1 BFS pops the goal
    with its minimal turn count first.

    Returns the corner points of the line including both endpoints, or
    ``None`` when no such line exists.
    """
    if start == goal or not (board.in_bounds(start) and board.in_bounds(goal)):
        return None

    origin: State = (start.row, start.col, None)
    best: Dict[State, int] = {origin: 0}
    parent: Dict[State, State] = {}
    queue = deque([(0, origin)])

    while queue:
        turns, state = queue.popleft()
        if turns > best[state]:
            continue
        r, c, d = state
        if (r, c) == goal:
            return _corners(parent, state, start)
        for nd, (dr, dc) in enumerate(DIRECTIONS):
            # the first segment out of the start is never a turn
            cost = turns if d is None or nd == d else turns + 1
            if cost > max_turns:
                continue
            nr, nc = r + dr, c + dc
            while 0 <= nr < board.rows and 0 <= nc < board.cols:
                at_goal = (nr, nc) == goal
                if not at_goal and board.cells[nr][nc] is not None:
                    break
                nxt = (nr, nc, nd)
                if cost < best.get(nxt, max_turns + 1):
                    best[nxt] = cost
                    parent[nxt] = state
                    if cost == turns:
                        queue.appendleft((cost, nxt))
                    else:
                        queue.append((cost, nxt))
                if at_goal:
                    break
                nr += dr
                nc += dc
    return None


def _corners(parent: Dict[State, State], state: State, start: TilePosition) -> List[TilePosition]:
    points = [TilePosition(state[0], state[1])]
    while state in parent:
        prev = parent[state]
        if prev[2] is not None and prev[2] != state[2]:
            points.append(TilePosition(prev[0], prev[1]))
        state = prev
    points.append(start)
    points.reverse()
    return points


def find_any_pair(board: Board, max_turns: int = MAX_TURNS) -> Optional[Tuple[TilePosition, TilePosition]]:
    """Return the first connectable same-type pair, scanning row-major."""
    for positions in board.positions_by_type().values():
        for a, b in combinations(positions, 2):
            if find_path(board, a, b, max_turns) is not None:
                return a, b
    return None


def has_any_move(board: Board, max_turns: int = MAX_TURNS) -> bool:
    return find_any_pair(board, max_turns) is not None
