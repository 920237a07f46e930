"""SQLAlchemy models."""

from libala.models.auth_token import AuthToken
from libala.models.gift import Gift
from libala.models.user import User
from libala.models.wedding import Membership, Wedding

__all__ = [
    "User",
    "AuthToken",
    "Wedding",
    "Membership",
    "Gift",
]
