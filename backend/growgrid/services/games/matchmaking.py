import random
import threading
from collections import deque
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from growgrid.errors import GameStateError
from growgrid.models import GameSession, Seat, session_id_for
from .board import SYMBOLS, other_symbol

SessionFactory = Callable[[str, Sequence[Seat]], GameSession]


@dataclass(frozen=True)
class MatchResult:
    session: Optional[GameSession] = None

    @property
    def waiting(self) -> bool:
        return self.session is None


class Matchmaker:
    """FIFO queue pairing waiting connections into sessions.

    The connection that has waited longest is matched first. Which of the
    pair moves first and which symbol opens are both drawn from `rng`.
    """

    def __init__(self, create_session: SessionFactory, rng: Optional[random.Random] = None, event_log=None):
        self.create_session = create_session
        self.rng = rng or random.Random()
        self.event_log = event_log
        self._queue: deque = deque()
        self._lock = threading.Lock()

    def find_game(self, connection_id: str, request_id: Optional[str] = None) -> MatchResult:
        with self._lock:
            opponent_id = self._queue.popleft() if self._queue else None
            if opponent_id is None or opponent_id == connection_id:
                if opponent_id is not None:
                    self._queue.appendleft(opponent_id)
                if connection_id not in self._queue:
                    self._queue.append(connection_id)
                self._log('info', 'No opponent found, waiting', player=connection_id, request=request_id,
                          queued=len(self._queue))
                return MatchResult()

            game_id = session_id_for(opponent_id, connection_id)
            try:
                session = self.create_session(game_id, self._seat(opponent_id, connection_id))
            except Exception as exc:
                self._queue.appendleft(opponent_id)
                if self.event_log is not None:
                    self.event_log.error('match', 'Error creating game', exc=exc, game=game_id, request=request_id)
                raise GameStateError('Failed to create game') from exc

        self._log('info', 'Game created', game=game_id, players=[opponent_id, connection_id], request=request_id)
        return MatchResult(session)

    def remove(self, connection_id: str) -> bool:
        with self._lock:
            try:
                self._queue.remove(connection_id)
            except ValueError:
                return False
        self._log('info', 'Removed from queue', player=connection_id)
        return True

    def waiting(self) -> List[str]:
        with self._lock:
            return list(self._queue)

    def __len__(self) -> int:
        return len(self._queue)

    def __contains__(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._queue

    def _seat(self, first: str, second: str) -> List[Seat]:
        starting = self.rng.choice(SYMBOLS)
        order = [first, second]
        self.rng.shuffle(order)
        return [Seat(order[0], starting), Seat(order[1], other_symbol(starting))]

    def _log(self, level: str, message: str, **context) -> None:
        if self.event_log is not None:
            getattr(self.event_log, level)('match', message, **context)
