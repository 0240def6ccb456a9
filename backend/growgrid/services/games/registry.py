import threading
from typing import Dict, Optional

from growgrid.errors import GameStateError
from growgrid.models import GameSession


class SessionRegistry:
    """In-process store of live sessions, indexed by game id and by connection."""

    def __init__(self):
        self._sessions: Dict[str, GameSession] = {}
        self._by_connection: Dict[str, str] = {}
        self._lock = threading.Lock()

    def add(self, session: GameSession) -> None:
        with self._lock:
            if session.game_id in self._sessions:
                raise GameStateError(f'Game {session.game_id} already exists')
            for seat in session.seats:
                if seat.connection_id in self._by_connection:
                    raise GameStateError(f'Player {seat.connection_id} is already in a game')
            self._sessions[session.game_id] = session
            for seat in session.seats:
                self._by_connection[seat.connection_id] = session.game_id

    def get(self, game_id: str) -> GameSession:
        session = self.find(game_id)
        if session is None:
            raise GameStateError(f'Game {game_id} not found')
        return session

    def find(self, game_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._sessions.get(game_id)

    def for_connection(self, connection_id: str) -> Optional[GameSession]:
        with self._lock:
            game_id = self._by_connection.get(connection_id)
            return self._sessions.get(game_id) if game_id else None

    def discard(self, game_id: str) -> Optional[GameSession]:
        """Remove a session; only the first caller gets it back."""
        with self._lock:
            session = self._sessions.pop(game_id, None)
            if session is not None:
                for seat in session.seats:
                    if self._by_connection.get(seat.connection_id) == game_id:
                        del self._by_connection[seat.connection_id]
            return session

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, game_id: str) -> bool:
        return game_id in self._sessions
