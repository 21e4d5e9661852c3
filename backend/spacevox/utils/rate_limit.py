import math
import threading
import time
from typing import Dict, Optional, Tuple

from fastapi import HTTPException, Request


class FixedWindowRateLimiter:
    """
    Per-client-IP request counter over fixed windows, kept in process memory.
    Used as a FastAPI dependency on unauthenticated endpoints.
    """

    def __init__(self, max_requests: int, window_seconds: int, message: str):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.message = message
        self._hits: Dict[str, Tuple[float, int]] = {}
        self._last_prune = 0.0
        self._lock = threading.Lock()

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self, key: Optional[str] = None):
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

    def _prune(self, now: float):
        # at most once per window; clients whose window ended are forgotten
        expired = [k for k, (start, _) in self._hits.items() if now - start >= self.window_seconds]
        for key in expired:
            del self._hits[key]
        self._last_prune = now

    def hit(self, key: str, now: Optional[float] = None) -> Tuple[bool, int, int]:
        """Count one request. Returns (allowed, remaining, seconds until reset)."""
        now = time.monotonic() if now is None else now
        with self._lock:
            if now - self._last_prune >= self.window_seconds:
                self._prune(now)
            start, count = self._hits.get(key, (now, 0))
            if now - start >= self.window_seconds:
                start, count = now, 0
            count += 1
            self._hits[key] = (start, count)
        reset_in = max(0, math.ceil(start + self.window_seconds - now))
        remaining = max(0, self.max_requests - count)
        return count <= self.max_requests, remaining, reset_in

    def __call__(self, request: Request):
        key = request.client.host if request.client else "unknown"
        allowed, remaining, reset_in = self.hit(key)
        headers = {
            "RateLimit-Limit": str(self.max_requests),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(reset_in),
        }
        if not allowed:
            headers["Retry-After"] = str(reset_in)
            raise HTTPException(status_code=429, detail=self.message, headers=headers)
