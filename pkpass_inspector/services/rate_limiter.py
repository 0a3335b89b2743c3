"""
In-memory sliding-window rate limiter for uploads.
"""

import time
from collections import deque
from typing import Callable, Deque, Dict


class RateLimiter:
    """Sliding-window limiter keyed by client IP address"""

    def __init__(self, max_requests: int = 30, window_seconds: int = 300,
                 clock: Callable[[], float] = time.time):
        """
        Initialize rate limiter.

        Args:
            max_requests: Maximum uploads allowed per window
            window_seconds: Window length in seconds (default: 5 minutes)
            clock: Time source, returns seconds since the epoch
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self.requests: Dict[str, Deque[float]] = {}

    def _prune(self, client_ip: str, now: float) -> Deque[float]:
        client_requests = self.requests.get(client_ip, deque())
        while client_requests and client_requests[0] <= now - self.window_seconds:
            client_requests.popleft()
        if not client_requests:
            # idle clients hold no entry
            self.requests.pop(client_ip, None)
        return client_requests

    def is_allowed(self, client_ip: str) -> bool:
        """Record a request and report whether it fits in the window"""
        now = self.clock()
        client_requests = self._prune(client_ip, now)
        if len(client_requests) >= self.max_requests:
            return False
        self.requests.setdefault(client_ip, client_requests).append(now)
        return True

    def get_remaining_requests(self, client_ip: str) -> int:
        return max(0, self.max_requests - len(self._prune(client_ip, self.clock())))

    def get_reset_time(self, client_ip: str) -> float:
        """Timestamp when the oldest request in the window expires"""
        client_requests = self._prune(client_ip, self.clock())
        if not client_requests:
            return self.clock()
        return client_requests[0] + self.window_seconds
