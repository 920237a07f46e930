"""One-time token service for email verification and password reset links.

Raw tokens only ever leave the server inside an emailed link. The database
stores their SHA-256 digest, so a leaked ``auth_tokens`` table cannot be
replayed.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import UTC, datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from libala.models.auth_token import AuthToken
from libala.models.enums import TokenType
from libala.models.user import User
from libala.services.errors import InvalidTokenError

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32  # 256 bits of entropy


def generate_token() -> tuple[str, str]:
    """Generate a random token.

    Returns:
        (raw_token, hashed_token): the raw value to email and the digest to persist
    """
    raw_token = secrets.token_hex(TOKEN_BYTES)
    return raw_token, hash_token(raw_token)


def hash_token(token: str) -> str:
    """Deterministic SHA-256 hex digest of a token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def is_token_valid(token: str, auth_token: AuthToken, now: datetime | None = None) -> bool:
    """Check a presented token against its stored record.

    True only if the hash matches, the record has not expired and it has not
    been used. The token type is the caller's responsibility.
    """
    now = now or datetime.now(UTC)
    matches = hmac.compare_digest(hash_token(token), auth_token.token_hash)
    is_expired = _as_utc(auth_token.expires_at) <= now
    is_used = auth_token.used_at is not None
    return matches and not is_expired and not is_used


def find_token(db: Session, token: str) -> AuthToken | None:
    """Look up a token record by the hash of the presented raw token."""
    return db.query(AuthToken).filter(AuthToken.token_hash == hash_token(token)).first()


def issue_token(db: Session, user: User, token_type: TokenType, lifetime: timedelta) -> str:
    """Create a token for ``user`` and return the raw value.

    Earlier unconsumed tokens of the same type for this user are invalidated
    in the same transaction, so only the newest link works. Commits.
    """
    now = datetime.now(UTC)
    db.execute(
        update(AuthToken)
        .where(
            AuthToken.user_id == user.id,
            AuthToken.type == token_type.value,
            AuthToken.used_at.is_(None),
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )

    raw_token, hashed_token = generate_token()
    db.add(
        AuthToken(
            user_id=user.id,
            token_hash=hashed_token,
            type=token_type.value,
            expires_at=now + lifetime,
        )
    )
    db.commit()
    logger.info(f"Issued {token_type.value} token for user {user.id}")
    return raw_token


def consume_token(db: Session, token: str, token_type: TokenType) -> AuthToken:
    """Validate and mark a token as used.

    The ``used_at`` write is a single conditional UPDATE, so two concurrent
    presentations of the same token cannot both succeed. Does not commit: the
    caller applies its own change and commits both together.

    Raises:
        InvalidTokenError: unknown, wrong type, expired or already used
    """
    auth_token = find_token(db, token)
    now = datetime.now(UTC)

    if (
        auth_token is None
        or auth_token.type != token_type.value
        or not is_token_valid(token, auth_token, now)
    ):
        raise InvalidTokenError()

    result = db.execute(
        update(AuthToken)
        .where(
            AuthToken.id == auth_token.id,
            AuthToken.used_at.is_(None),
            AuthToken.expires_at > now,
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidTokenError()

    db.expire(auth_token)
    return auth_token
