"""
logic/rate_limit.py
Per-client rolling-window rate limiter for signup submissions.

Each client id owns a chronological list of attempt timestamps. Old
entries are pruned lazily whenever that client is seen again, and whole
buckets are evicted once they go idle or when too many clients are being
tracked at once.
"""

import threading
import time
from collections import OrderedDict
from typing import Callable, List, Optional

UNKNOWN_CLIENT = "unknown"


class RateLimiter:
    def __init__(
        self,
        window_seconds: float = 60 * 60,
        max_requests: int = 5,
        max_clients: int = 10_000,
        idle_windows: int = 3,
        clock: Optional[Callable[[], float]] = None,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive.")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1.")
        if max_clients < 1:
            raise ValueError("max_clients must be at least 1.")

        self.window_seconds = float(window_seconds)
        self.max_requests = int(max_requests)
        self.max_clients = int(max_clients)
        self.idle_seconds = self.window_seconds * max(1, int(idle_windows))
        self._clock = clock or time.monotonic

        # least recently used bucket first
        self._windows: "OrderedDict[str, List[float]]" = OrderedDict()
        self._lock = threading.Lock()

    def admit(self, client_id: Optional[str]) -> bool:
        """
        Record an attempt for client_id and return True, or return False
        (without recording anything) if the client already used up its
        quota for the current window.
        """
        key = (client_id or "").strip() or UNKNOWN_CLIENT

        with self._lock:
            now = self._clock()
            self._evict_idle(now)

            recent = [t for t in self._windows.get(key, []) if now - t < self.window_seconds]

            if len(recent) >= self.max_requests:
                self._windows[key] = recent
                self._windows.move_to_end(key)
                return False

            recent.append(now)
            self._windows[key] = recent
            self._windows.move_to_end(key)

            while len(self._windows) > self.max_clients:
                self._windows.popitem(last=False)

            return True

    def attempts(self, client_id: Optional[str]) -> int:
        """Number of attempts still inside the window for client_id."""
        key = (client_id or "").strip() or UNKNOWN_CLIENT
        with self._lock:
            now = self._clock()
            return sum(1 for t in self._windows.get(key, []) if now - t < self.window_seconds)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def __contains__(self, client_id: object) -> bool:
        with self._lock:
            return client_id in self._windows

    def _evict_idle(self, now: float) -> None:
        # caller holds the lock
        while self._windows:
            key, stamps = next(iter(self._windows.items()))
            if stamps and now - stamps[-1] < self.idle_seconds:
                break
            del self._windows[key]
