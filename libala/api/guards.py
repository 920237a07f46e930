"""Tenant resolution and authorization guards.

``get_wedding`` scopes a request to one wedding; ``require_role`` and
``require_premium`` depend on it, so FastAPI always resolves the tenant
before checking permissions and both before the route body runs.
"""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from libala.api.dependencies import get_optional_user
from libala.database import get_db
from libala.models.enums import MembershipRole
from libala.models.user import User
from libala.models.wedding import Membership, Wedding

logger = logging.getLogger(__name__)

WEDDING_SLUG_HEADER = "x-wedding-slug"

WEDDING_NOT_FOUND = "Wedding not found."


def get_wedding_by_slug(db: Session, slug: str) -> Wedding | None:
    """Get a wedding by its slug, ignoring case."""
    return db.query(Wedding).filter(Wedding.slug == slug.strip().lower()).first()


def get_wedding(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    user: Annotated[User | None, Depends(get_optional_user)],
) -> Wedding:
    """Resolve the wedding a request targets.

    The ``x-wedding-slug`` header wins when it names a known wedding.
    Otherwise an authenticated user who owns exactly one wedding gets that
    one; owning several requires an explicit slug.
    """
    wedding = None

    slug = request.headers.get(WEDDING_SLUG_HEADER)
    if slug and slug.strip() and slug != "undefined":
        wedding = get_wedding_by_slug(db, slug)

    if wedding is None and user is not None:
        owned = (
            db.query(Wedding).filter(Wedding.owner_id == user.id).order_by(Wedding.id).limit(2).all()
        )
        if len(owned) > 1:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail={
                    "message": "Several weddings found. Select one with the x-wedding-slug header.",
                    "code": "WEDDING_SELECTION_REQUIRED",
                },
            )
        if owned:
            wedding = owned[0]

    if wedding is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=WEDDING_NOT_FOUND)

    request.state.wedding = wedding
    return wedding


def get_membership(db: Session, wedding: Wedding, user: User) -> Membership | None:
    """Get ``user``'s membership on this wedding only."""
    return (
        db.query(Membership)
        .filter(Membership.wedding_id == wedding.id, Membership.user_id == user.id)
        .first()
    )


def can_view_wedding(db: Session, wedding: Wedding, user: User | None) -> bool:
    """Published weddings are public; drafts only show to the owner, admins and members."""
    if wedding.is_published:
        return True
    if user is None:
        return False
    if user.is_admin or wedding.owner_id == user.id:
        return True
    return get_membership(db, wedding, user) is not None


def get_visible_wedding(
    wedding: Annotated[Wedding, Depends(get_wedding)],
    user: Annotated[User | None, Depends(get_optional_user)],
    db: Annotated[Session, Depends(get_db)],
) -> Wedding:
    """Resolve the wedding for guest-facing reads, hiding drafts as if they did not exist."""
    if not can_view_wedding(db, wedding, user):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=WEDDING_NOT_FOUND)
    return wedding


def require_role(*roles: MembershipRole) -> Callable[..., User]:
    """Build a dependency allowing platform admins, the owner and the given member roles."""
    allowed = {MembershipRole(role).value for role in roles}

    def check_role(
        user: Annotated[User | None, Depends(get_optional_user)],
        wedding: Annotated[Wedding, Depends(get_wedding)],
        db: Annotated[Session, Depends(get_db)],
    ) -> User:
        if user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated.",
            )

        if user.is_admin or wedding.owner_id == user.id:
            return user

        membership = get_membership(db, wedding, user)
        if membership is None or membership.role not in allowed:
            logger.warning(f"User {user.id} denied on wedding {wedding.id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied: insufficient role.",
            )
        return user

    return check_role


def require_premium(wedding: Annotated[Wedding, Depends(get_wedding)]) -> Wedding:
    """Allow the request only if the resolved wedding is on the premium plan."""
    if not wedding.is_premium:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "This feature requires a Premium plan.",
                "code": "PREMIUM_REQUIRED",
            },
        )
    return wedding
