"""Gift list API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from libala.api.guards import get_visible_wedding, get_wedding, require_premium, require_role
from libala.database import get_db
from libala.models.enums import EDITOR_ROLES
from libala.models.gift import Gift
from libala.models.wedding import Wedding
from libala.schemas.gift import GiftCreate, GiftResponse, GiftUpdate

router = APIRouter(prefix="/api/gifts", tags=["gifts"])

# Editing the gift list: member with edit rights, premium plan
editor_guards = [Depends(require_role(*EDITOR_ROLES)), Depends(require_premium)]


def get_wedding_gift(db: Session, wedding: Wedding, gift_id: int) -> Gift:
    """Get a gift belonging to the resolved wedding."""
    gift = db.query(Gift).filter(Gift.id == gift_id, Gift.wedding_id == wedding.id).first()
    if gift is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Gift not found.")
    return gift


@router.get("", response_model=list[GiftResponse])
async def get_gifts(
    wedding: Annotated[Wedding, Depends(get_visible_wedding)],
    db: Annotated[Session, Depends(get_db)],
):
    """List the current wedding's gifts. Drafts are hidden from the public."""
    return db.query(Gift).filter(Gift.wedding_id == wedding.id).order_by(Gift.id).all()


@router.post(
    "",
    response_model=GiftResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=editor_guards,
)
async def create_gift(
    gift_data: GiftCreate,
    wedding: Annotated[Wedding, Depends(get_wedding)],
    db: Annotated[Session, Depends(get_db)],
):
    """Add a gift."""
    gift = Gift(wedding_id=wedding.id, **gift_data.model_dump())
    db.add(gift)
    db.commit()
    db.refresh(gift)
    return gift


@router.patch("/{gift_id}", response_model=GiftResponse, dependencies=editor_guards)
async def update_gift(
    gift_id: int,
    gift_data: GiftUpdate,
    wedding: Annotated[Wedding, Depends(get_wedding)],
    db: Annotated[Session, Depends(get_db)],
):
    """Update a gift."""
    gift = get_wedding_gift(db, wedding, gift_id)
    for field, value in gift_data.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "contributed_amount", "is_reserved"):
            continue
        setattr(gift, field, value)

    db.commit()
    db.refresh(gift)
    return gift


@router.delete("/{gift_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=editor_guards)
async def delete_gift(
    gift_id: int,
    wedding: Annotated[Wedding, Depends(get_wedding)],
    db: Annotated[Session, Depends(get_db)],
):
    """Delete a gift."""
    gift = get_wedding_gift(db, wedding, gift_id)
    db.delete(gift)
    db.commit()
