from typing import Any, Dict, Optional

GENERIC_FAILURE_MESSAGE = 'An error occurred while processing the request'


class GameError(Exception):
    """Base class for recoverable errors reported back to a connection."""

    code = 'GAME_ERROR'

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(GameError):
    code = 'VALIDATION_ERROR'


class PlayerError(GameError):
    code = 'PLAYER_ERROR'


class GameStateError(GameError):
    code = 'GAME_STATE_ERROR'


class RateLimitError(GameError):
    code = 'RATE_LIMIT_ERROR'


class ErrorReporter:
    """Turns exceptions into `{code, message}` payloads and logs them.

    Game errors keep their own message; anything else is logged with its
    traceback and reported with a generic message so internals never reach
    a client.
    """

    def __init__(self, event_log):
        self.event_log = event_log

    def report(self, exc: BaseException, context: str, **fields: Any) -> Dict[str, str]:
        if isinstance(exc, GameError):
            self.event_log.warning('error', f"[{exc.code}] {exc.message}", context=context, **fields)
            return {'code': exc.code, 'message': exc.message}
        self.event_log.error('error', f"Unexpected error: {exc}", exc=exc, context=context, **fields)
        return {'code': 'UNKNOWN_ERROR', 'message': GENERIC_FAILURE_MESSAGE}
