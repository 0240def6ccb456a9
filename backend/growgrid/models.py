import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from growgrid.errors import GameStateError, PlayerError, ValidationError
from growgrid.services.games.board import (
    DEFAULT_GROWTH,
    Board,
    Cell,
    empty_board,
    expand_board,
    in_bounds,
    is_winning_move,
    other_symbol,
    required_streak,
)

AWAITING_MOVES = 'awaiting_moves'
TERMINAL_WIN = 'terminal_win'
TERMINAL_DISCONNECT = 'terminal_disconnect'


def session_id_for(first: str, second: str) -> str:
    """Order-independent id for a pairing."""
    return '-'.join(sorted([first, second]))


@dataclass(frozen=True)
class Seat:
    connection_id: str
    symbol: str

    def to_dict(self) -> Dict[str, str]:
        return {'id': self.connection_id, 'symbol': self.symbol}


@dataclass(frozen=True)
class MoveRecord:
    row: int  # as requested, in pre-expansion coordinates
    col: int
    symbol: str
    player_id: str
    position: Cell  # where the mark sits now
    filled_board: bool
    expanded: bool


@dataclass(frozen=True)
class MoveOutcome:
    """Game state after a move, shared by both `moveMade` variants."""

    current_player: str
    is_board_full: bool
    new_grid_size: int
    win_streak: int
    is_winner: bool
    winner: Optional[str] = None
    winning_line: Optional[List[Cell]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'currentPlayer': self.current_player,
            'isBoardFull': self.is_board_full,
            'newGridSize': self.new_grid_size,
            'winStreak': self.win_streak,
            'isWinner': self.is_winner,
            'winner': self.winner,
            'winningLine': [list(cell) for cell in self.winning_line] if self.winning_line else None,
        }


@dataclass(frozen=True)
class MoverUpdate:
    """`moveMade` payload for the connection that played the move."""

    outcome: MoveOutcome

    def to_dict(self) -> Dict[str, Any]:
        return self.outcome.to_dict()


@dataclass(frozen=True)
class OpponentUpdate:
    """`moveMade` payload for the other player; carries the mark to replay."""

    outcome: MoveOutcome
    row: int
    col: int
    player: str
    player_id: str

    def to_dict(self) -> Dict[str, Any]:
        payload = self.outcome.to_dict()
        payload.update({
            'row': self.row,
            'col': self.col,
            'player': self.player,
            'playerId': self.player_id,
        })
        return payload


def build_move_updates(session: 'GameSession', record: MoveRecord,
                       winning_line: Optional[List[Cell]]):
    """Return the (mover, opponent) payloads for one applied move."""
    outcome = MoveOutcome(
        current_player=session.current_symbol,
        is_board_full=record.filled_board,
        new_grid_size=session.grid_size,
        win_streak=session.win_streak,
        is_winner=winning_line is not None,
        winner=record.symbol if winning_line else None,
        winning_line=winning_line,
    )
    mover = MoverUpdate(outcome)
    opponent = OpponentUpdate(
        outcome,
        row=record.row,
        col=record.col,
        player=record.symbol,
        player_id=record.player_id,
    )
    return mover, opponent


class GameSession:
    """Authoritative state for one two-player match.

    Mutation happens under `lock`; callers hold it for the whole
    read-validate-write of a move.
    """

    def __init__(self, game_id: str, seats: Sequence[Seat], grid_size: int = 3,
                 win_streak: Optional[int] = None, growth: int = DEFAULT_GROWTH, event_log=None):
        if len(seats) != 2 or seats[0].symbol == seats[1].symbol:
            raise GameStateError('A game needs two players with distinct symbols')
        self.game_id = game_id
        self.seats = list(seats)
        self.grid_size = grid_size
        self.win_streak = win_streak or required_streak(grid_size)
        self.growth = growth
        self.board: Board = empty_board(grid_size)
        self.current_symbol = self.seats[0].symbol
        self.starting_symbol = self.current_symbol
        self.filled_cells = 0
        self.status = AWAITING_MOVES
        self.lock = threading.Lock()
        self.event_log = event_log
        self._log('info', 'Game initialized', players=[s.to_dict() for s in self.seats],
                  size=grid_size, streak=self.win_streak, current=self.current_symbol)

    @property
    def is_terminal(self) -> bool:
        return self.status != AWAITING_MOVES

    def get_player(self, connection_id: str) -> Optional[Seat]:
        return next((s for s in self.seats if s.connection_id == connection_id), None)

    def get_player_by_symbol(self, symbol: str) -> Optional[Seat]:
        seat = next((s for s in self.seats if s.symbol == symbol), None)
        if seat is None:
            self._log('warning', 'Player not found by symbol', symbol=symbol)
        return seat

    def get_opponent(self, connection_id: str) -> Optional[Seat]:
        if self.get_player(connection_id) is None:
            self._log('warning', 'Opponent not found', player=connection_id)
            return None
        return next((s for s in self.seats if s.connection_id != connection_id), None)

    def is_board_full(self) -> bool:
        return self.filled_cells == self.grid_size * self.grid_size

    def apply_move(self, row: Any, col: Any, connection_id: str) -> MoveRecord:
        if self.is_terminal:
            raise GameStateError(f'Game {self.game_id} is over')
        seat = self.get_player(connection_id)
        if seat is None:
            raise PlayerError('Player not found in game')
        if not _is_int(row) or not _is_int(col) or not in_bounds(row, col, self.grid_size):
            raise ValidationError(f'Invalid move: position ({row}, {col}) is out of bounds')
        expected = self.get_player_by_symbol(self.current_symbol)
        if expected is None or expected.connection_id != connection_id:
            self._log('warning', 'Wrong player attempted move', attempted_by=seat.symbol,
                      current=self.current_symbol)
            raise PlayerError(f'Player {connection_id} attempted to move out of turn')
        if self.board[row][col] is not None:
            raise ValidationError(f'Invalid move: position ({row}, {col}) is already taken')

        self.board[row][col] = seat.symbol
        self.filled_cells += 1
        self.current_symbol = other_symbol(seat.symbol)
        self._log('info', 'Move made', row=row, col=col, player=seat.symbol,
                  filled=self.filled_cells, total=self.grid_size * self.grid_size)

        filled = self.is_board_full()
        expanded = False
        position = (row, col)
        if filled and not is_winning_move(self.board, row, col, seat.symbol, self.win_streak, self.grid_size):
            offset = self.expand_board()
            position = (row + offset, col + offset)
            expanded = True
        return MoveRecord(row, col, seat.symbol, connection_id, position, filled, expanded)

    def expand_board(self) -> int:
        """Grow the board around its current content; returns the offset."""
        old_size = self.grid_size
        self.board, self.grid_size, self.win_streak = expand_board(self.board, self.growth)
        self._log('info', 'Board expanded', old_size=old_size, size=self.grid_size,
                  streak=self.win_streak, filled=self.filled_cells)
        return (self.grid_size - old_size) // 2

    def finish(self, status: str) -> None:
        self.status = status
        self._log('info', 'Game finished', status=status)

    def _log(self, level: str, message: str, **context: Any) -> None:
        if self.event_log is not None:
            getattr(self.event_log, level)('game', message, game=self.game_id, **context)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
