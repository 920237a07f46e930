"""Authentication schemas."""

from datetime import datetime

from pydantic import ConfigDict, EmailStr, Field

from libala.schemas.base import CamelModel


class SignupRequest(CamelModel):
    """User signup request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str | None = Field(None, max_length=255)


class LoginRequest(CamelModel):
    """User login request."""

    email: EmailStr = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class EmailRequest(CamelModel):
    """Request carrying only an email (resend verification, forgot password)."""

    email: EmailStr = Field(..., max_length=255)


class ResetPasswordRequest(CamelModel):
    """Password reset with the token from the emailed link."""

    token: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=8, max_length=128)


class UserSummary(CamelModel):
    """Minimal user reference."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str


class UserResponse(CamelModel):
    """User information response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str | None
    last_name: str | None
    is_admin: bool
    email_verified_at: datetime | None


class MessageResponse(CamelModel):
    """Plain confirmation message."""

    message: str


class SignupResponse(CamelModel):
    """Signup response; the account still needs email verification."""

    message: str
    user: UserSummary


class LoginResponse(CamelModel):
    """Login response; the session cookie is set alongside."""

    message: str
    user: UserResponse


class LogoutResponse(CamelModel):
    """Logout response."""

    success: bool = True
