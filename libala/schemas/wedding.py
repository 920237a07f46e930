"""Wedding and membership schemas."""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, EmailStr, Field, field_validator

from libala.models.enums import MembershipRole
from libala.schemas.base import CamelModel


class WeddingCreate(CamelModel):
    """Create a new wedding site."""

    title: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    wedding_date: datetime | None = None
    template_id: str | None = Field(None, max_length=50)

    @field_validator("slug", mode="before")
    @classmethod
    def normalize_slug(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class WeddingUpdate(CamelModel):
    """Update a wedding. The plan is changed by billing, not here."""

    title: str | None = Field(None, min_length=1, max_length=255)
    wedding_date: datetime | None = None
    template_id: str | None = Field(None, max_length=50)
    config: dict[str, Any] | None = None
    is_published: bool | None = None


class WeddingResponse(CamelModel):
    """Wedding response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    slug: str
    title: str
    wedding_date: datetime | None
    template_id: str
    current_plan: str
    is_published: bool
    config: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class MembershipCreate(CamelModel):
    """Grant a user a role on the current wedding."""

    email: EmailStr = Field(..., max_length=255)
    role: MembershipRole = MembershipRole.EDITOR


class MembershipResponse(CamelModel):
    """Membership response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    wedding_id: int
    role: str
    email: str | None = None
    created_at: datetime
