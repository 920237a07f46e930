"""Shared synchronous Redis client."""

import redis

from libala.config import get_settings

settings = get_settings()

_sync_redis: redis.Redis | None = None


def get_sync_redis() -> redis.Redis:
    """Get the process-wide Redis client, creating it on first use."""
    global _sync_redis
    if _sync_redis is None:
        _sync_redis = redis.from_url(settings.redis_url, decode_responses=True)
    return _sync_redis
