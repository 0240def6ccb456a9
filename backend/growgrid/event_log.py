import logging
import threading
import time
import uuid
from collections import deque
from typing import Any, Dict, List, Optional


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


class EventLog:
    """Application event log.

    Writes `[tag] message key=value ...` lines to a standard logger (the
    Flask app logger in production) and keeps the most recent entries in a
    bounded ring buffer so they can be inspected over HTTP or in tests.
    One instance is built per app and handed to the components that log.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, capacity: int = 1000):
        self.logger = logger or logging.getLogger('growgrid')
        self._entries: deque = deque(maxlen=max(1, int(capacity)))
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    def debug(self, tag: str, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, tag, message, None, context)

    def info(self, tag: str, message: str, **context: Any) -> None:
        self._log(logging.INFO, tag, message, None, context)

    def warning(self, tag: str, message: str, **context: Any) -> None:
        self._log(logging.WARNING, tag, message, None, context)

    def error(self, tag: str, message: str, exc: Optional[BaseException] = None, **context: Any) -> None:
        self._log(logging.ERROR, tag, message, exc, context)

    def recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        with self._lock:
            entries = list(self._entries)
        if limit is not None and limit >= 0:
            entries = entries[-limit:] if limit else []
        return entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _log(self, level: int, tag: str, message: str, exc: Optional[BaseException], context: Dict[str, Any]) -> None:
        entry = {
            'timestamp': time.time(),
            'level': logging.getLevelName(level),
            'tag': tag,
            'message': message,
            'context': context,
        }
        if exc is not None:
            entry['error'] = repr(exc)
        with self._lock:
            self._entries.append(entry)

        fields = ' '.join(f"{key}={value}" for key, value in context.items())
        line = f"[{tag}] {message}" + (f" {fields}" if fields else '')
        exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
        self.logger.log(level, line, exc_info=exc_info)
