"""Authentication service: local login strategy and account lifecycle flows."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

from sqlalchemy import func
from sqlalchemy.orm import Session

from libala.config import get_settings
from libala.models.enums import TokenType
from libala.models.user import User
from libala.services.errors import EmailNotVerifiedError, InvalidCredentialsError
from libala.services.passwords import hash_password, needs_rehash, verify_password
from libala.services.tokens import consume_token, issue_token

logger = logging.getLogger(__name__)
settings = get_settings()


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookups."""
    return email.strip().lower()


def get_user(db: Session, user_id: int) -> User | None:
    """Get a user by id."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by email, ignoring case."""
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


@dataclass(frozen=True)
class Credentials:
    """Email and password presented at login."""

    email: str
    password: str


class AuthenticationStrategy(Protocol):
    """Verifies credentials and returns the authenticated principal.

    Implementations raise an ``AuthError`` subclass on failure. Session
    handling is kept out of strategies so other sign-in methods can be
    added without touching the guards.
    """

    def authenticate(self, credentials: Credentials) -> User: ...


class LocalStrategy:
    """Email + password strategy backed by the users table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def authenticate(self, credentials: Credentials) -> User:
        user = get_user_by_email(self.db, credentials.email)
        if user is None or not user.password_hash:
            raise InvalidCredentialsError()

        if not verify_password(credentials.password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_verified:
            raise EmailNotVerifiedError(user.email)

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(credentials.password)
        user.last_login_at = datetime.now(UTC)
        self.db.commit()
        return user


def create_user(
    db: Session,
    email: str,
    password: str,
    first_name: str,
    last_name: str | None = None,
) -> tuple[User, str]:
    """Create an unverified user and their first email verification token.

    Returns:
        (user, raw_token): the raw token goes into the verification email
    """
    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        is_admin=False,
    )
    db.add(user)
    db.flush()

    raw_token = issue_token(
        db,
        user,
        TokenType.EMAIL_VERIFICATION,
        timedelta(hours=settings.verification_token_hours),
    )
    db.refresh(user)
    logger.info(f"Created user {user.id}")
    return user, raw_token


def verify_email(db: Session, token: str) -> User:
    """Consume a verification token and mark its user verified.

    Both writes are committed together.

    Raises:
        InvalidTokenError: token unknown, expired, used or of another type
    """
    auth_token = consume_token(db, token, TokenType.EMAIL_VERIFICATION)
    user = auth_token.user
    if user.email_verified_at is None:
        user.email_verified_at = datetime.now(UTC)
    db.commit()
    logger.info(f"Verified email for user {user.id}")
    return user


def request_verification_resend(db: Session, email: str) -> tuple[User, str] | None:
    """Issue a fresh verification token for an unverified account.

    Returns None, without issuing anything, when the account does not exist
    or is already verified.
    """
    user = get_user_by_email(db, email)
    if user is None or user.email_verified_at is not None:
        return None

    raw_token = issue_token(
        db,
        user,
        TokenType.EMAIL_VERIFICATION,
        timedelta(hours=settings.verification_token_hours),
    )
    return user, raw_token


def request_password_reset(db: Session, email: str) -> tuple[User, str] | None:
    """Issue a password reset token if an account exists for ``email``."""
    user = get_user_by_email(db, email)
    if user is None:
        return None

    raw_token = issue_token(
        db,
        user,
        TokenType.PASSWORD_RESET,
        timedelta(minutes=settings.reset_token_minutes),
    )
    return user, raw_token


def reset_password(db: Session, token: str, new_password: str) -> User:
    """Consume a reset token and replace the user's password hash.

    Raises:
        InvalidTokenError: token unknown, expired, used or of another type
    """
    new_hash = hash_password(new_password)
    auth_token = consume_token(db, token, TokenType.PASSWORD_RESET)
    user = auth_token.user
    user.password_hash = new_hash
    db.commit()
    logger.info(f"Password reset for user {user.id}")
    return user
