import random
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from growgrid.errors import ErrorReporter
from growgrid.event_log import EventLog
from growgrid.models import GameSession, Seat
from .bot import BotEngine
from .matchmaking import Matchmaker
from .rate_limit import RateLimiter
from .registry import SessionRegistry


@dataclass
class GameServices:
    """Per-app collaborators shared by the socket handlers and HTTP routes."""

    event_log: EventLog
    errors: ErrorReporter
    registry: SessionRegistry
    matchmaker: Matchmaker
    rate_limiter: RateLimiter
    bot: BotEngine
    grid_size: int
    growth: int

    @classmethod
    def from_config(cls, config: Mapping[str, Any], logger=None,
                    rng: Optional[random.Random] = None) -> 'GameServices':
        rng = rng or random.Random()
        event_log = EventLog(logger, capacity=int(config.get('LOG_BUFFER_SIZE', 1000)))
        registry = SessionRegistry()
        grid_size = int(config.get('INITIAL_GRID_SIZE', 3))
        growth = int(config.get('GRID_GROWTH', 4))

        def create_session(game_id: str, seats: Sequence[Seat]) -> GameSession:
            session = GameSession(game_id, seats, grid_size=grid_size, growth=growth, event_log=event_log)
            registry.add(session)
            return session

        return cls(
            event_log=event_log,
            errors=ErrorReporter(event_log),
            registry=registry,
            matchmaker=Matchmaker(create_session, rng=rng, event_log=event_log),
            rate_limiter=RateLimiter(
                window_sec=float(config.get('RATE_LIMIT_WINDOW_SEC', 1.0)),
                max_per_window=int(config.get('RATE_LIMIT_MAX_MOVES', 5)),
            ),
            bot=BotEngine(rng=rng, max_depth=int(config.get('BOT_MAX_DEPTH', 3)), event_log=event_log),
            grid_size=grid_size,
            growth=growth,
        )
