"""Gift schemas."""

from datetime import datetime

from pydantic import ConfigDict, Field

from libala.schemas.base import CamelModel


class GiftCreate(CamelModel):
    """Add a gift to the current wedding's list."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2000)
    price: int | None = Field(None, ge=0)


class GiftUpdate(CamelModel):
    """Update a gift."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=5000)
    image_url: str | None = Field(None, max_length=2000)
    price: int | None = Field(None, ge=0)
    contributed_amount: int | None = Field(None, ge=0)
    is_reserved: bool | None = None


class GiftResponse(CamelModel):
    """Gift response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    wedding_id: int
    name: str
    description: str | None
    image_url: str | None
    price: int | None
    contributed_amount: int
    is_reserved: bool
    created_at: datetime
