import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from growgrid.errors import ValidationError
from .board import (
    DIRECTIONS,
    Board,
    Cell,
    copy_board,
    in_bounds,
    is_winning_move,
    other_symbol,
    required_streak,
)

# Strategy registry exposed to clients; only one engine exists today.
BOT_LEVELS = {
    'expert': {
        'name': 'Expert Bot',
        'description': "Blocks immediate threats, then searches a few plies ahead "
                       "with a memoized minimax biased toward building and denying lines.",
    },
}

DEFAULT_MAX_DEPTH = 3
# Search only looks at empty cells this close (Chebyshev) to a mark.
SEARCH_RADIUS = 1
OWN_PATTERN_BONUS = 0.1
OPPONENT_PATTERN_PENALTY = 0.2


@dataclass(frozen=True)
class BotDecision:
    row: int
    col: int
    reason: str  # opening, block, win, threat, search, fallback

    @property
    def move(self) -> Cell:
        return (self.row, self.col)


def search_depth(size: int, max_depth: int = DEFAULT_MAX_DEPTH) -> int:
    return min(max_depth, math.ceil(size * size / 4))


def potential_win(board: Sequence[Sequence[Optional[str]]], row: int, col: int, player: str,
                  win_streak: int, size: Optional[int] = None) -> int:
    """Best-case line strength for `player` through (row, col).

    Per direction, counts the cell itself plus `player` marks within
    ``win_streak - 1`` steps each way; empty cells extend the reachable
    window without adding to the count, any other mark (or the edge) stops
    the walk. A direction only counts when marks plus empties could still
    complete a streak.
    """
    size = len(board) if size is None else size
    best = 0
    for dr, dc in DIRECTIONS:
        count = 1
        empties = 0
        for sign in (1, -1):
            for step in range(1, win_streak):
                r, c = row + sign * dr * step, col + sign * dc * step
                if not in_bounds(r, c, size):
                    break
                cell = board[r][c]
                if cell == player:
                    count += 1
                elif cell is None:
                    empties += 1
                else:
                    break
        if count + empties >= win_streak:
            best = max(best, count)
    return best


def _empty_cells(board: Sequence[Sequence[Optional[str]]]) -> List[Cell]:
    return [(r, c) for r, row in enumerate(board) for c, cell in enumerate(row) if cell is None]


def search_candidates(board: Sequence[Sequence[Optional[str]]], radius: int = SEARCH_RADIUS) -> List[Cell]:
    """Empty cells near existing marks, row-major; every empty cell on a blank board."""
    size = len(board)
    near = set()
    for r, row in enumerate(board):
        for c, cell in enumerate(row):
            if cell is None:
                continue
            for dr in range(-radius, radius + 1):
                for dc in range(-radius, radius + 1):
                    if in_bounds(r + dr, c + dc, size):
                        near.add((r + dr, c + dc))
    empties = _empty_cells(board)
    if not near:
        return empties
    return [cell for cell in empties if cell in near]


class _Search:
    """One depth-limited minimax run; the memo dies with the instance.

    Moves are drawn from the empty cells near the marks present when the
    run starts.
    """

    def __init__(self, board: Board, bot: str, win_streak: int, max_depth: int):
        self.board = board
        self.size = len(board)
        self.bot = bot
        self.win_streak = win_streak
        self.max_depth = max_depth
        self.candidates = search_candidates(board)
        self.memo: Dict[str, Tuple[float, Optional[Cell]]] = {}
        self.nodes = 0

    def best_move(self) -> Optional[Cell]:
        _, move = self._evaluate(self.bot, 0, None)
        return move

    def _key(self, to_move: str, depth: int) -> str:
        cells = ''.join(cell or '.' for row in self.board for cell in row)
        return f"{cells}|{to_move}|{depth}"

    def _evaluate(self, to_move: str, depth: int, last_move: Optional[Cell]) -> Tuple[float, Optional[Cell]]:
        self.nodes += 1
        if last_move is not None:
            mover = other_symbol(to_move)
            if is_winning_move(self.board, last_move[0], last_move[1], mover, self.win_streak, self.size):
                return (1.0 if mover == self.bot else -1.0), None
        if depth >= self.max_depth:
            return 0.0, None

        key = self._key(to_move, depth)
        cached = self.memo.get(key)
        if cached is not None:
            return cached

        empties = [(r, c) for r, c in self.candidates if self.board[r][c] is None]
        if not empties:
            return 0.0, None

        opponent = other_symbol(to_move)
        maximizing = to_move == self.bot
        best_score = -math.inf if maximizing else math.inf
        best_move: Optional[Cell] = None
        for r, c in empties:
            self.board[r][c] = to_move
            own = potential_win(self.board, r, c, to_move, self.win_streak, self.size)
            theirs = potential_win(self.board, r, c, opponent, self.win_streak, self.size)
            score, _ = self._evaluate(opponent, depth + 1, (r, c))
            self.board[r][c] = None

            if maximizing:
                score += own * OWN_PATTERN_BONUS - theirs * OPPONENT_PATTERN_PENALTY
                if score > best_score:
                    best_score, best_move = score, (r, c)
            else:
                score += theirs * OPPONENT_PATTERN_PENALTY - own * OWN_PATTERN_BONUS
                if score < best_score:
                    best_score, best_move = score, (r, c)

        result = (best_score, best_move)
        self.memo[key] = result
        return result


class BotEngine:
    """Computer player for the growing grid.

    Rules are tried in order: opening book, forced block, immediate win,
    threat suppression, bounded search, then a center/first-empty fallback.
    """

    name = BOT_LEVELS['expert']['name']

    def __init__(self, rng: Optional[random.Random] = None, max_depth: int = DEFAULT_MAX_DEPTH, event_log=None):
        self.rng = rng or random.Random()
        self.max_depth = max_depth
        self.event_log = event_log

    def find_move(self, board: Sequence[Sequence[Optional[str]]], player: str,
                  size: Optional[int] = None, win_streak: Optional[int] = None) -> Cell:
        return self.decide(board, player, size, win_streak).move

    def decide(self, board: Sequence[Sequence[Optional[str]]], player: str,
               size: Optional[int] = None, win_streak: Optional[int] = None) -> BotDecision:
        grid = copy_board(board)
        size = size or len(grid)
        win_streak = win_streak or required_streak(size)
        opponent = other_symbol(player)

        empties = _empty_cells(grid)
        if not empties:
            raise ValidationError('Board has no empty cells')

        decision = (
            self._opening(grid, size, opponent)
            or self._completing_move(grid, empties, opponent, win_streak, size, 'block')
            or self._completing_move(grid, empties, player, win_streak, size, 'win')
            or self._threat(grid, empties, opponent, win_streak, size)
            or self._search(grid, player, win_streak, size)
            or self._fallback(grid, empties, size)
        )
        if self.event_log is not None:
            self.event_log.debug('bot', 'Move chosen', player=player, row=decision.row, col=decision.col,
                                 reason=decision.reason, size=size, streak=win_streak)
        return decision

    def _opening(self, grid: Board, size: int, opponent: str) -> Optional[BotDecision]:
        # Only opponent marks end the opening; the bot's own marks do not.
        if any(cell == opponent for row in grid for cell in row):
            return None
        center = size // 2
        last = size - 1
        candidates = [(center, center), (0, 0), (0, last), (last, 0), (last, last)]
        for i in range(1, last):
            candidates += [(0, i), (last, i), (i, 0), (i, last)]
        seen = set()
        choices = []
        for r, c in candidates:
            if (r, c) not in seen and grid[r][c] is None:
                seen.add((r, c))
                choices.append((r, c))
        if not choices:
            return None
        row, col = self.rng.choice(choices)
        return BotDecision(row, col, 'opening')

    @staticmethod
    def _completing_move(grid: Board, empties: List[Cell], symbol: str, win_streak: int,
                         size: int, reason: str) -> Optional[BotDecision]:
        for r, c in empties:
            grid[r][c] = symbol
            wins = is_winning_move(grid, r, c, symbol, win_streak, size)
            grid[r][c] = None
            if wins:
                return BotDecision(r, c, reason)
        return None

    @staticmethod
    def _threat(grid: Board, empties: List[Cell], opponent: str, win_streak: int,
                size: int) -> Optional[BotDecision]:
        best_cell = None
        best = 0
        for r, c in empties:
            strength = potential_win(grid, r, c, opponent, win_streak, size)
            if strength > best:
                best, best_cell = strength, (r, c)
        if best_cell is not None and best >= win_streak - 2:
            return BotDecision(best_cell[0], best_cell[1], 'threat')
        return None

    def _search(self, grid: Board, player: str, win_streak: int, size: int) -> Optional[BotDecision]:
        search = _Search(grid, player, win_streak, search_depth(size, self.max_depth))
        move = search.best_move()
        if self.event_log is not None:
            self.event_log.debug('bot', 'Search finished', nodes=search.nodes,
                                 candidates=len(search.candidates), depth=search.max_depth, size=size)
        if move is None:
            return None
        return BotDecision(move[0], move[1], 'search')

    @staticmethod
    def _fallback(grid: Board, empties: List[Cell], size: int) -> BotDecision:
        center = size // 2
        if grid[center][center] is None:
            return BotDecision(center, center, 'fallback')
        r, c = empties[0]
        return BotDecision(r, c, 'fallback')
