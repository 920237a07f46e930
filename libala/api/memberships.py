"""Membership API endpoints for the resolved wedding."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from libala.api.guards import get_membership, get_wedding, require_role
from libala.database import get_db
from libala.models.enums import ALL_ROLES, MembershipRole
from libala.models.user import User
from libala.models.wedding import Membership, Wedding
from libala.schemas.wedding import MembershipCreate, MembershipResponse
from libala.services.auth import get_user_by_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/memberships", tags=["memberships"])


def _to_response(membership: Membership) -> MembershipResponse:
    response = MembershipResponse.model_validate(membership)
    response.email = membership.user.email
    return response


@router.get("", response_model=list[MembershipResponse])
async def get_memberships(
    wedding: Annotated[Wedding, Depends(get_wedding)],
    _user: Annotated[User, Depends(require_role(*ALL_ROLES))],
    db: Annotated[Session, Depends(get_db)],
):
    """List the members of the current wedding."""
    memberships = (
        db.query(Membership)
        .filter(Membership.wedding_id == wedding.id)
        .order_by(Membership.id)
        .all()
    )
    return [_to_response(m) for m in memberships]


@router.post("", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def add_membership(
    membership_data: MembershipCreate,
    wedding: Annotated[Wedding, Depends(get_wedding)],
    current_user: Annotated[User, Depends(require_role(MembershipRole.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
):
    """Grant a role on the current wedding, or change an existing member's role."""
    member = get_user_by_email(db, membership_data.email)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    if member.id == wedding.owner_id:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="The owner already has full access.",
        )

    membership = get_membership(db, wedding, member)
    if membership is None:
        membership = Membership(
            user_id=member.id,
            wedding_id=wedding.id,
            role=membership_data.role.value,
        )
        db.add(membership)
    else:
        membership.role = membership_data.role.value

    db.commit()
    db.refresh(membership)

    logger.info(
        f"User {current_user.id} set role {membership.role} for user {member.id} "
        f"on wedding {wedding.id}"
    )
    return _to_response(membership)


@router.delete("/{membership_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_membership(
    membership_id: int,
    wedding: Annotated[Wedding, Depends(get_wedding)],
    _user: Annotated[User, Depends(require_role(MembershipRole.ADMIN))],
    db: Annotated[Session, Depends(get_db)],
):
    """Remove a member from the current wedding."""
    membership = (
        db.query(Membership)
        .filter(Membership.id == membership_id, Membership.wedding_id == wedding.id)
        .first()
    )
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Membership not found.")

    db.delete(membership)
    db.commit()
