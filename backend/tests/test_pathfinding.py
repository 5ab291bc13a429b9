import random

import pytest

from tilelink.models import Board, TilePosition as P
from tilelink.services.board.pathfinding import find_any_pair, find_path, has_any_move


def full_board(rows=11, cols=18):
    """Every interior cell occupied by a tile that matches nothing."""
    board = Board(rows, cols)
    for pos in board.interior_positions():
        board.set(pos, 1000 + pos.row * 100 + pos.col)
    return board


def _sign(n):
    return (n > 0) - (n < 0)


def _clear(board, p, q, goal=None):
    """Straight segment p -> q, p excluded, every cell empty (goal exempt)."""
    dr, dc = _sign(q.row - p.row), _sign(q.col - p.col)
    r, c = p.row, p.col
    while (r, c) != (q.row, q.col):
        r, c = r + dr, c + dc
        if (r, c) != goal and board.cells[r][c] is not None:
            return False
    return True


def classic_connectable(board, a, b):
    """Reference check enumerating the 0, 1 and 2 turn shapes directly."""
    if (a.row == b.row or a.col == b.col) and _clear(board, a, b, goal=b):
        return True
    for corner in (P(a.row, b.col), P(b.row, a.col)):
        if board.get(corner) is None and _clear(board, a, corner) and _clear(board, corner, b, goal=b):
            return True
    for k in range(board.rows):
        c1, c2 = P(k, a.col), P(k, b.col)
        if board.get(c1) is None and board.get(c2) is None \
                and _clear(board, a, c1) and _clear(board, c1, c2) and _clear(board, c2, b, goal=b):
            return True
    for k in range(board.cols):
        c1, c2 = P(a.row, k), P(b.row, k)
        if board.get(c1) is None and board.get(c2) is None \
                and _clear(board, a, c1) and _clear(board, c1, c2) and _clear(board, c2, b, goal=b):
            return True
    return False


def assert_valid_path(board, path, a, b, max_turns=2):
    assert path[0] == a and path[-1] == b
    assert len(path) - 1 <= max_turns + 1
    for p, q in zip(path, path[1:]):
        assert p != q
        assert p.row == q.row or p.col == q.col
        assert _clear(board, p, q, goal=b)
    # corners are real turns
    for p, q, s in zip(path, path[1:], path[2:]):
        assert not (p.row == q.row == s.row or p.col == q.col == s.col)


def test_adjacent_tiles_straight_line():
    board = Board()
    board.set(P(3, 4), 1)
    board.set(P(3, 5), 1)
    assert find_path(board, P(3, 4), P(3, 5)) == [P(3, 4), P(3, 5)]


def test_straight_line_over_gap():
    board = full_board()
    for c in range(3, 8):
        board.set(P(4, c), None)
    board.set(P(4, 2), 1)
    board.set(P(4, 8), 1)
    assert find_path(board, P(4, 2), P(4, 8)) == [P(4, 2), P(4, 8)]


def test_one_turn():
    board = Board()
    board.set(P(2, 2), 1)
    board.set(P(5, 6), 1)
    path = find_path(board, P(2, 2), P(5, 6))
    assert len(path) == 3
    assert path[1] in (P(2, 6), P(5, 2))
    assert_valid_path(board, path, P(2, 2), P(5, 6))


def test_two_turns_around_the_border():
    board = full_board()
    board.set(P(1, 3), 1)
    board.set(P(1, 6), 1)
    assert find_path(board, P(1, 3), P(1, 6)) == [P(1, 3), P(0, 3), P(0, 6), P(1, 6)]


def test_goal_tile_is_exempt_but_other_tiles_block():
    board = full_board()
    board.set(P(5, 5), 1)
    board.set(P(5, 6), 1)
    assert find_path(board, P(5, 5), P(5, 6)) == [P(5, 5), P(5, 6)]
    board.set(P(5, 7), 1)
    # (5, 6) sits in between and is not the goal
    assert find_path(board, P(5, 5), P(5, 7)) is None


def test_route_needing_more_turns_is_rejected():
    board = full_board()
    board.set(P(1, 3), 1)
    board.set(P(9, 5), 1)
    # up, across the top, down the side, along the bottom, up: four turns
    assert find_path(board, P(1, 3), P(9, 5)) is None
    assert find_path(board, P(1, 3), P(9, 5), max_turns=3) is None
    path = find_path(board, P(1, 3), P(9, 5), max_turns=4)
    assert path is not None and len(path) == 6
    assert_valid_path(board, path, P(1, 3), P(9, 5), max_turns=4)


def test_prefers_fewest_turns():
    board = Board()
    board.set(P(3, 3), 1)
    board.set(P(3, 9), 1)
    assert find_path(board, P(3, 3), P(3, 9)) == [P(3, 3), P(3, 9)]


def test_same_cell_has_no_path():
    board = Board()
    board.set(P(3, 3), 1)
    assert find_path(board, P(3, 3), P(3, 3)) is None


@pytest.mark.parametrize('seed', range(12))
def test_agrees_with_shape_enumeration(seed):
    rng = random.Random(seed)
    board = Board(7, 9)
    for pos in board.interior_positions():
        if rng.random() < 0.6:
            board.set(pos, rng.randrange(3))
    for positions in board.positions_by_type().values():
        for i, a in enumerate(positions):
            for b in positions[i + 1:]:
                path = find_path(board, a, b)
                assert (path is not None) == classic_connectable(board, a, b), (a, b)
                if path is not None:
                    assert_valid_path(board, path, a, b)


def test_has_any_move():
    board = full_board()
    board.set(P(1, 3), 1)
    board.set(P(9, 5), 1)
    assert not has_any_move(board)
    assert find_any_pair(board) is None
    board.set(P(1, 8), 2)
    board.set(P(1, 12), 2)
    assert has_any_move(board)
    assert find_any_pair(board) == (P(1, 8), P(1, 12))


def test_fresh_board_has_moves():
    board = Board.generate(rng=random.Random(11))
    # sixteen tiles along the top row alone almost surely share a type
    assert has_any_move(board)
