"""Wedding (tenant) and membership models."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from libala.database import Base
from libala.models.enums import MembershipRole, Plan
from libala.models.mixins import CreatedAtMixin, TimestampMixin


def default_wedding_config(title: str | None = None) -> dict:
    """Build the configuration blob a freshly created wedding starts with."""
    return {
        "theme": {"primaryColor": "#D4AF37", "secondaryColor": "#FFFFFF", "fontFamily": "serif"},
        "seo": {
            "title": title or "Notre Mariage",
            "description": "Rejoignez-nous pour célébrer notre union",
        },
        "features": {"jokesEnabled": True, "giftsEnabled": True, "cagnotteEnabled": True},
    }


class Wedding(Base, TimestampMixin):
    """A couple's site: the scoping unit for all guest-facing data."""

    __tablename__ = "weddings"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    wedding_date = Column(DateTime(timezone=True), nullable=True)
    template_id = Column(String(50), nullable=False, default="classic")
    current_plan = Column(String(20), nullable=False, default=Plan.FREE.value)
    is_published = Column(Boolean, nullable=False, default=False)
    config = Column(JSON, nullable=False, default=default_wedding_config)

    # Relationships
    owner = relationship("User", back_populates="weddings")
    memberships = relationship("Membership", back_populates="wedding", cascade="all, delete-orphan")
    gifts = relationship("Gift", back_populates="wedding", cascade="all, delete-orphan")

    @property
    def is_premium(self) -> bool:
        """Check if the wedding is on the premium plan."""
        return self.current_plan == Plan.PREMIUM.value


class Membership(Base, CreatedAtMixin):
    """Role grant linking a user to one wedding, distinct from ownership."""

    __tablename__ = "memberships"
    __table_args__ = (UniqueConstraint("user_id", "wedding_id", name="uq_membership_user_wedding"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    wedding_id = Column(Integer, ForeignKey("weddings.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=MembershipRole.EDITOR.value)

    # Relationships
    user = relationship("User", back_populates="memberships")
    wedding = relationship("Wedding", back_populates="memberships")
