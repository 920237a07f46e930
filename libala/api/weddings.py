"""Wedding API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from libala.api.dependencies import get_current_user, get_optional_user
from libala.api.guards import (
    WEDDING_NOT_FOUND,
    WEDDING_SLUG_HEADER,
    get_wedding,
    can_view_wedding,
    get_wedding_by_slug,
    require_role,
)
from libala.database import get_db
from libala.models.enums import ALL_ROLES, Plan
from libala.models.user import User
from libala.models.wedding import Wedding, default_wedding_config
from libala.schemas.wedding import WeddingCreate, WeddingResponse, WeddingUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/weddings", tags=["weddings"])

SLUG_TAKEN = "This URL is already used by another wedding."

# Columns that cannot be cleared; an explicit null leaves them unchanged
REQUIRED_FIELDS = ("title", "template_id", "config", "is_published")


@router.get("", response_model=list[WeddingResponse])
async def get_weddings(
    request: Request,
    current_user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Public lookup by slug header, or the current user's own weddings."""
    slug = request.headers.get(WEDDING_SLUG_HEADER)
    if slug and slug.strip() and slug != "undefined":
        wedding = get_wedding_by_slug(db, slug)
        if wedding is None or not can_view_wedding(db, wedding, current_user):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=WEDDING_NOT_FOUND)

        return [wedding]

    if current_user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated.")

    return (
        db.query(Wedding).filter(Wedding.owner_id == current_user.id).order_by(Wedding.id).all()
    )


@router.post("", response_model=WeddingResponse, status_code=status.HTTP_201_CREATED)
async def create_wedding(
    wedding_data: WeddingCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Create a wedding owned by the current user."""
    if get_wedding_by_slug(db, wedding_data.slug):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLUG_TAKEN)

    wedding = Wedding(
        owner_id=current_user.id,
        slug=wedding_data.slug,
        title=wedding_data.title,
        wedding_date=wedding_data.wedding_date,
        template_id=wedding_data.template_id or "classic",
        current_plan=Plan.FREE.value,
        is_published=False,
        config=default_wedding_config(wedding_data.title),
    )
    db.add(wedding)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLUG_TAKEN) from None
    db.refresh(wedding)

    logger.info(f"User {current_user.id} created wedding {wedding.id}")
    return wedding


@router.get("/current", response_model=WeddingResponse)
async def get_current_wedding(
    wedding: Annotated[Wedding, Depends(get_wedding)],
    _user: Annotated[User, Depends(require_role(*ALL_ROLES))],
):
    """Get the wedding the request resolves to."""
    return wedding


@router.patch("/{wedding_id}", response_model=WeddingResponse)
async def update_wedding(
    wedding_id: int,
    wedding_data: WeddingUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Update a wedding. Only its owner or a platform admin may do this."""
    wedding = db.query(Wedding).filter(Wedding.id == wedding_id).first()
    if wedding is None or (wedding.owner_id != current_user.id and not current_user.is_admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")

    for field, value in wedding_data.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(wedding, field, value)

    db.commit()
    db.refresh(wedding)
    return wedding
