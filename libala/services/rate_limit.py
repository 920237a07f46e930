"""Fixed-window rate limiting for sensitive endpoints.

Policies (limit and window per endpoint) are separate from the counter
backend. The in-memory backend only limits a single process; use the Redis
backend when running several workers.

Clients are keyed by the connecting address. Behind a reverse proxy that is the
proxy for every request, so set `TRUST_FORWARDED_FOR` to key on the first
`X-Forwarded-For` address instead.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Protocol

import redis

from libala.config import get_settings
from libala.services.redis_client import get_sync_redis

logger = logging.getLogger(__name__)
settings = get_settings()


class CounterStore(Protocol):
    """Counts hits per key within a window."""

    def increment(self, key: str, window_seconds: int) -> int:
        """Record one hit and return the hit count for the current window."""
        ...


class MemoryCounterStore:
    """Per-process counters."""

    def __init__(self) -> None:
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def increment(self, key: str, window_seconds: int) -> int:
        now = time.monotonic()
        with self._lock:
            started_at, count = self._windows.get(key, (now, 0))
            if now - started_at >= window_seconds:
                started_at, count = now, 0
            count += 1
            self._windows[key] = (started_at, count)
            return count

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()


class RedisCounterStore:
    """Counters shared by every worker through Redis."""

    prefix = "ratelimit:"

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = get_sync_redis()
        return self._client

    def increment(self, key: str, window_seconds: int) -> int:
        redis_key = f"{self.prefix}{key}"
        count = int(self.client.incr(redis_key))
        if count == 1:
            # First hit opens the window
            self.client.expire(redis_key, window_seconds)
        return count


@dataclass(frozen=True)
class RateLimitPolicy:
    """How many requests a client may make to one endpoint per window."""

    name: str
    limit: int
    window_seconds: int


def get_policy(name: str) -> RateLimitPolicy:
    """Build the policy for a named endpoint from settings."""
    limits = {
        "signup": settings.signup_rate_limit,
        "login": settings.login_rate_limit,
        "resend_verification": settings.resend_rate_limit,
        "forgot_password": settings.forgot_password_rate_limit,
    }
    if name not in limits:
        raise KeyError(f"Unknown rate limit policy: {name}")
    return RateLimitPolicy(
        name=name,
        limit=limits[name],
        window_seconds=settings.rate_limit_window_seconds,
    )


class RateLimiter:
    """Applies one policy on top of a counter store."""

    def __init__(self, policy: RateLimitPolicy, store: CounterStore) -> None:
        self.policy = policy
        self.store = store

    def hit(self, client_key: str) -> bool:
        """Count a request from ``client_key``; False once over the limit."""
        if self.policy.limit <= 0:
            return True
        count = self.store.increment(
            f"{self.policy.name}:{client_key}", self.policy.window_seconds
        )
        return count <= self.policy.limit


_counter_store: CounterStore | None = None


def get_counter_store() -> CounterStore:
    """Get the configured counter store."""
    global _counter_store
    if _counter_store is None:
        if settings.rate_limit_backend == "redis":
            _counter_store = RedisCounterStore()
        else:
            _counter_store = MemoryCounterStore()
    return _counter_store
