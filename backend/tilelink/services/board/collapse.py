"""Level policies applied to the board after a matched pair is removed.

Each level decides where the hole left by a removed tile goes. The hole
travels one cell at a time along a row or column, the occupied neighbour
beyond it moving back into it, until the neighbour is empty or outside the
level's range; the cell the hole stops in becomes empty.

    1  plain removal
    2  hole travels down its column
    3  hole travels up its column
    4  hole travels left along its row
    5  hole travels right along its row
    6  hole travels toward the center row
    7  hole travels toward the center column

Both tiles of a pair go through the same level, so when they share a row or
column the order matters. ``ordered_pair`` encodes that order per level.
"""

from typing import Tuple

from tilelink.models import Board, TilePosition


def center_row(board: Board) -> int:
    return (board.rows - 1) // 2


def center_col(board: Board) -> int:
    return (board.cols - 1) // 2


def _slide(board: Board, pos: TilePosition, dr: int, dc: int, lo: int, hi: int) -> None:
    r, c = pos
    while True:
        nr, nc = r + dr, c + dc
        axis = nr if dr else nc
        if lo <= axis <= hi and board.cells[nr][nc] is not None:
            board.cells[r][c] = board.cells[nr][nc]
            r, c = nr, nc
        else:
            board.cells[r][c] = None
            return


def collapse_at(board: Board, level: int, pos: TilePosition) -> None:
    """Remove the tile at ``pos`` under the given level policy."""
    last_row, last_col = board.rows - 1, board.cols - 1
    if level == 2:
        _slide(board, pos, 1, 0, 0, last_row)
    elif level == 3:
        _slide(board, pos, -1, 0, 0, last_row)
    elif level == 4:
        _slide(board, pos, 0, -1, 0, last_col)
    elif level == 5:
        _slide(board, pos, 0, 1, 0, last_col)
    elif level == 6:
        mid = center_row(board)
        if pos.row < mid:
            _slide(board, pos, 1, 0, 0, mid)
        elif pos.row > mid:
            _slide(board, pos, -1, 0, mid, last_row)
        else:
            board.set(pos, None)
    elif level == 7:
        mid = center_col(board)
        if pos.col <= mid:
            _slide(board, pos, 0, 1, 0, mid)
        else:
            # the right half never pulls from the center column itself
            _slide(board, pos, 0, -1, mid + 1, last_col)
    else:
        board.set(pos, None)


def ordered_pair(board: Board, level: int, a: TilePosition, b: TilePosition) -> Tuple[TilePosition, TilePosition]:
    """Order in which the two removals of a pair must be applied."""
    if level == 2:
        b_first = a.row < b.row
    elif level == 3:
        b_first = not a.row < b.row
    elif level == 4:
        b_first = not a.col < b.col
    elif level == 5:
        b_first = a.col < b.col
    elif level == 6:
        mid = center_row(board)
        if mid in (a.row, b.row):
            # both halves reach into the center row, so its tile goes first
            b_first = b.row == mid and a.row != mid
        elif a.row > mid and b.row > mid:
            b_first = not a.row < b.row
        else:
            b_first = a.row < b.row
    elif level == 7:
        mid = center_col(board)
        if a.col > mid and b.col > mid:
            b_first = not a.col < b.col
        else:
            b_first = a.col < b.col
    else:
        b_first = False
    return (b, a) if b_first else (a, b)


def apply_level(board: Board, level: int, a: TilePosition, b: TilePosition) -> None:
    first, second = ordered_pair(board, level, a, b)
    collapse_at(board, level, first)
    collapse_at(board, level, second)
