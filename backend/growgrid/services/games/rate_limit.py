import threading
import time
from typing import Callable, Dict, Tuple

from growgrid.errors import RateLimitError


class RateLimiter:
    """Fixed-window move counter per connection.

    A connection's window starts on its first accepted move and is reset
    lazily by the first call after it expires.
    """

    def __init__(self, window_sec: float = 1.0, max_per_window: int = 5,
                 clock: Callable[[], float] = time.monotonic):
        self.window_sec = window_sec
        self.max_per_window = max_per_window
        self.clock = clock
        self._windows: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def allow(self, connection_id: str) -> bool:
        now = self.clock()
        with self._lock:
            count, started = self._windows.get(connection_id, (0, None))
            if started is None or now - started > self.window_sec:
                self._windows[connection_id] = (1, now)
                return True
            if count >= self.max_per_window:
                return False
            self._windows[connection_id] = (count + 1, started)
            return True

    def check(self, connection_id: str) -> None:
        if not self.allow(connection_id):
            raise RateLimitError('Too many moves. Please wait a moment.')

    def forget(self, connection_id: str) -> None:
        with self._lock:
            self._windows.pop(connection_id, None)

    def __len__(self) -> int:
        return len(self._windows)
