import random
from dataclasses import dataclass
from typing import Callable, List, Optional

from growgrid.models import TERMINAL_WIN, GameSession, Seat
from .board import O, X, Board, Cell, find_winning_line
from .bot import BotEngine


@dataclass
class SelfPlayResult:
    board: Board
    grid_size: int
    moves: int
    winner: Optional[str] = None
    winning_line: Optional[List[Cell]] = None

    def render(self) -> str:
        return '\n'.join(' '.join(cell or '.' for cell in row) for row in self.board)


def play_bot_game(max_size: int = 7, seed: Optional[int] = None, max_depth: int = 2, growth: int = 4,
                  start_size: int = 3, on_expand: Optional[Callable[[int, int], None]] = None) -> SelfPlayResult:
    """Bot vs bot until someone wins or the grid grows past `max_size`."""
    engine = BotEngine(rng=random.Random(seed), max_depth=max_depth)
    session = GameSession('selfplay', [Seat('bot-x', X), Seat('bot-o', O)], grid_size=start_size, growth=growth)
    moves = 0
    while True:
        symbol = session.current_symbol
        seat = session.get_player_by_symbol(symbol)
        row, col = engine.find_move(session.board, symbol, session.grid_size, session.win_streak)
        record = session.apply_move(row, col, seat.connection_id)
        moves += 1

        line = find_winning_line(session.board, record.position[0], record.position[1], symbol,
                                 session.win_streak, session.grid_size)
        if line is not None:
            session.finish(TERMINAL_WIN)
            return SelfPlayResult(session.board, session.grid_size, moves, symbol, line)
        if record.expanded:
            if on_expand is not None:
                on_expand(session.grid_size, session.win_streak)
            if session.grid_size > max_size:
                return SelfPlayResult(session.board, session.grid_size, moves)
