"""Board primitives: streak table, win detection and grid expansion.

Boards are square lists of rows; a cell is ``None``, ``'X'`` or ``'O'``.
"""
import math
from typing import Any, List, Optional, Sequence, Tuple

from growgrid.errors import ValidationError

X = 'X'
O = 'O'
SYMBOLS = (X, O)

# Horizontal, vertical, diagonal, anti-diagonal
DIRECTIONS = ((0, 1), (1, 0), (1, 1), (1, -1))

DEFAULT_GROWTH = 4

Board = List[List[Optional[str]]]
Cell = Tuple[int, int]


def other_symbol(symbol: str) -> str:
    return O if symbol == X else X


def required_streak(size: int) -> int:
    """Contiguous marks needed to win on a board of the given size."""
    if size <= 5:
        return 3
    if size <= 7:
        return 5
    if size <= 9:
        return 6
    return math.ceil(size / 2)


def empty_board(size: int) -> Board:
    return [[None] * size for _ in range(size)]


def copy_board(board: Sequence[Sequence[Optional[str]]]) -> Board:
    return [list(row) for row in board]


def in_bounds(row: int, col: int, size: int) -> bool:
    return 0 <= row < size and 0 <= col < size


def count_marks(board: Sequence[Sequence[Optional[str]]]) -> int:
    return sum(1 for row in board for cell in row if cell is not None)


def validate_board(raw: Any) -> Board:
    """Check an untrusted board (e.g. from JSON) and return a clean copy."""
    if not isinstance(raw, list) or not raw:
        raise ValidationError('Board must be a non-empty list of rows')
    size = len(raw)
    board = []
    for row in raw:
        if not isinstance(row, list) or len(row) != size:
            raise ValidationError(f'Board must be square ({size}x{size})')
        for cell in row:
            if cell is not None and cell not in SYMBOLS:
                raise ValidationError(f'Invalid cell value: {cell!r}')
        board.append(list(row))
    return board


def _run(board: Sequence[Sequence[Optional[str]]], row: int, col: int, dr: int, dc: int,
         player: str, limit: int, size: int) -> List[Cell]:
    cells = []
    for step in range(1, limit):
        r, c = row + dr * step, col + dc * step
        if not in_bounds(r, c, size) or board[r][c] != player:
            break
        cells.append((r, c))
    return cells


def find_winning_line(board: Sequence[Sequence[Optional[str]]], row: int, col: int, player: str,
                      win_streak: int, size: Optional[int] = None) -> Optional[List[Cell]]:
    """Return the winning line through (row, col) for `player`, or None.

    Only the four lines through the placed cell are walked, at most
    ``win_streak - 1`` cells each way. The returned cells are sorted by
    row, then column.
    """
    size = len(board) if size is None else size
    for dr, dc in DIRECTIONS:
        line = [(row, col)]
        line += _run(board, row, col, dr, dc, player, win_streak, size)
        line += _run(board, row, col, -dr, -dc, player, win_streak, size)
        if len(line) >= win_streak:
            return sorted(line)
    return None


def is_winning_move(board: Sequence[Sequence[Optional[str]]], row: int, col: int, player: str,
                    win_streak: int, size: Optional[int] = None) -> bool:
    return find_winning_line(board, row, col, player, win_streak, size) is not None


def expand_board(board: Sequence[Sequence[Optional[str]]],
                 growth: int = DEFAULT_GROWTH) -> Tuple[Board, int, int]:
    """Grow a board by `growth` cells per side and center the old content.

    Returns ``(new_board, new_size, new_win_streak)``.
    """
    size = len(board)
    new_size = size + growth
    offset = growth // 2
    expanded = empty_board(new_size)
    for i, row in enumerate(board):
        for j, cell in enumerate(row):
            expanded[i + offset][j + offset] = cell
    return expanded, new_size, required_streak(new_size)
