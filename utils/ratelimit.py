from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from functools import wraps

from flask import current_app, request

from api.errors import TooManyRequests

# seconds between passes that drop refilled buckets
SWEEP_INTERVAL = 60.0


@dataclass
class _Bucket:
    tokens: float
    updated_at: float
    # when the bucket is back to `limit` and holds no state worth keeping
    full_at: float = 0.0


class RateLimiter:
    """
    In-process token bucket limiter.
    Keys should include both scope and identity (e.g. "auth:login:1.2.3.4").
    """

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._mem: dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._next_sweep = 0.0

    def __len__(self) -> int:
        with self._lock:
            return len(self._mem)

    def _sweep(self, now: float) -> None:
        for key in [k for k, b in self._mem.items() if b.full_at <= now]:
            del self._mem[key]
        self._next_sweep = now + SWEEP_INTERVAL

    def allow(self, key: str, *, limit: int, per_seconds: int) -> bool:
        now = self._clock()
        rate = float(limit) / float(per_seconds)
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            b = self._mem.get(key)
            if b is None:
                b = _Bucket(tokens=float(limit), updated_at=now)
                self._mem[key] = b
            # refill
            b.tokens = min(float(limit), b.tokens + (now - b.updated_at) * rate)
            b.updated_at = now
            if b.tokens < 1.0:
                allowed = False
            else:
                b.tokens -= 1.0
                allowed = True
            b.full_at = now + (float(limit) - b.tokens) / rate
            return allowed

    def reset(self) -> None:
        with self._lock:
            self._mem.clear()


def _client_ip() -> str:
    return request.remote_addr or "unknown"


def rate_limit(scope: str, *, limit: int, per_seconds: int, message: str = "Too many requests, please try again later"):
    """Reject with 429 once the caller's IP exhausts `limit` requests per `per_seconds` for `scope`."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if current_app.config.get("RATELIMIT_ENABLED", True):
                limiter: RateLimiter = current_app.extensions["rate_limiter"]
                if not limiter.allow(f"{scope}:{_client_ip()}", limit=limit, per_seconds=per_seconds):
                    raise TooManyRequests(message)
            return fn(*args, **kwargs)

        return wrapper

    return decorator
