"""Pydantic schemas for API requests and responses."""

from libala.schemas.auth import (
    EmailRequest,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    MessageResponse,
    ResetPasswordRequest,
    SignupRequest,
    SignupResponse,
    UserResponse,
    UserSummary,
)
from libala.schemas.gift import GiftCreate, GiftResponse, GiftUpdate
from libala.schemas.wedding import (
    MembershipCreate,
    MembershipResponse,
    WeddingCreate,
    WeddingResponse,
    WeddingUpdate,
)

__all__ = [
    "SignupRequest",
    "SignupResponse",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    "EmailRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    "UserResponse",
    "UserSummary",
    "WeddingCreate",
    "WeddingUpdate",
    "WeddingResponse",
    "MembershipCreate",
    "MembershipResponse",
    "GiftCreate",
    "GiftUpdate",
    "GiftResponse",
]
