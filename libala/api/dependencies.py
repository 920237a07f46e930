"""FastAPI dependencies for sessions, authentication and rate limiting."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from libala.config import get_settings
from libala.database import get_db
from libala.models.user import User
from libala.services.auth import LocalStrategy, get_user
from libala.services.rate_limit import RateLimiter, get_counter_store, get_policy
from libala.services.sessions import SessionManager

logger = logging.getLogger(__name__)
settings = get_settings()


def get_session_manager() -> SessionManager:
    """Get a session manager bound to the configured store."""
    return SessionManager()


def get_local_strategy(db: Annotated[Session, Depends(get_db)]) -> LocalStrategy:
    """Get the email + password authentication strategy."""
    return LocalStrategy(db)


def get_optional_user(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
) -> User | None:
    """Restore the principal from the session cookie, or None if anonymous."""
    user_id = sessions.resolve(request)
    if user_id is None:
        return None

    user = get_user(db, user_id)
    request.state.user = user
    return user


def get_current_user(
    user: Annotated[User | None, Depends(get_optional_user)],
) -> User:
    """Get the authenticated user or fail with 401."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated.",
        )
    return user


def client_address(request: Request) -> str:
    """Address a request is rate limited under."""
    if settings.trust_forwarded_for:
        first_hop = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
        if first_hop:
            return first_hop
    return request.client.host if request.client else "unknown"


def rate_limit(name: str) -> Callable[[Request], None]:
    """Build a dependency that throttles an endpoint per client address."""
    policy = get_policy(name)

    def check_rate_limit(request: Request) -> None:
        limiter = RateLimiter(policy, get_counter_store())
        client_key = client_address(request)
        if not limiter.hit(client_key):
            logger.warning(f"Rate limit '{name}' exceeded by {client_key}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
            )

    return check_rate_limit
