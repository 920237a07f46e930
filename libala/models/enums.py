"""Enums for model fields."""

from enum import Enum


class TokenType(str, Enum):
    """Purposes a one-time auth token can be issued for."""

    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class Plan(str, Enum):
    """Billing plans a wedding can be on."""

    FREE = "free"
    PREMIUM = "premium"


class MembershipRole(str, Enum):
    """Role levels granted to non-owner members of a wedding."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


ALL_ROLES = tuple(MembershipRole)
EDITOR_ROLES = (MembershipRole.ADMIN, MembershipRole.EDITOR)
