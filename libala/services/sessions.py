"""Server-side sessions keyed by an opaque cookie value.

The cookie only carries a random session id. The store maps the SHA-256 of
that id to a user id, so a dump of the store cannot be replayed as cookies.
"""

import logging
import secrets
import threading
import time
from typing import Protocol

import redis
from fastapi import Request, Response

from libala.config import get_settings
from libala.services.redis_client import get_sync_redis
from libala.services.tokens import hash_token

logger = logging.getLogger(__name__)
settings = get_settings()


class SessionStore(Protocol):
    """Backend holding session key -> user id with a time-to-live."""

    def load(self, key: str) -> int | None: ...

    def save(self, key: str, user_id: int, ttl_seconds: int) -> None: ...

    def touch(self, key: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...


class RedisSessionStore:
    """Session store shared by every worker through Redis."""

    prefix = "session:"

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = get_sync_redis()
        return self._client

    def load(self, key: str) -> int | None:
        value = self.client.get(f"{self.prefix}{key}")
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning("Discarding malformed session record")
            self.delete(key)
            return None

    def save(self, key: str, user_id: int, ttl_seconds: int) -> None:
        self.client.set(f"{self.prefix}{key}", str(user_id), ex=ttl_seconds)

    def touch(self, key: str, ttl_seconds: int) -> None:
        self.client.expire(f"{self.prefix}{key}", ttl_seconds)

    def delete(self, key: str) -> None:
        self.client.delete(f"{self.prefix}{key}")


class MemorySessionStore:
    """In-process session store for tests and single-worker development."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> int | None:
        with self._lock:
            entry = self._sessions.get(key)
            if entry is None:
                return None
            user_id, expires_at = entry
            if expires_at <= time.monotonic():
                del self._sessions[key]
                return None
            return user_id

    def save(self, key: str, user_id: int, ttl_seconds: int) -> None:
        with self._lock:
            self._sessions[key] = (user_id, time.monotonic() + ttl_seconds)

    def touch(self, key: str, ttl_seconds: int) -> None:
        with self._lock:
            entry = self._sessions.get(key)
            if entry is not None:
                self._sessions[key] = (entry[0], time.monotonic() + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._sessions.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


_session_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Get the configured session store."""
    global _session_store
    if _session_store is None:
        if settings.session_backend == "memory":
            _session_store = MemorySessionStore()
        else:
            _session_store = RedisSessionStore()
    return _session_store


class SessionManager:
    """Issues, restores and destroys sessions and their cookie."""

    def __init__(self, store: SessionStore | None = None) -> None:
        self.store = store or get_session_store()
        self.cookie_name = settings.session_cookie_name
        self.ttl_seconds = settings.session_ttl_seconds

    def create(self, response: Response, user_id: int) -> str:
        """Start a session for ``user_id`` and set the cookie on ``response``."""
        session_id = secrets.token_urlsafe(32)
        self.store.save(hash_token(session_id), user_id, self.ttl_seconds)
        response.set_cookie(
            self.cookie_name,
            session_id,
            max_age=self.ttl_seconds,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )
        return session_id

    def resolve(self, request: Request) -> int | None:
        """Return the user id bound to the request's session, if any.

        Each successful restore extends the session's lifetime.
        """
        session_id = request.cookies.get(self.cookie_name)
        if not session_id:
            return None
        key = hash_token(session_id)
        user_id = self.store.load(key)
        if user_id is not None:
            self.store.touch(key, self.ttl_seconds)
        return user_id

    def destroy(self, request: Request, response: Response) -> None:
        """End the request's session and clear the cookie."""
        session_id = request.cookies.get(self.cookie_name)
        if session_id:
            self.store.delete(hash_token(session_id))
        response.delete_cookie(
            self.cookie_name,
            httponly=True,
            secure=settings.is_production,
            samesite="lax",
        )
