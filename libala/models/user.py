"""User model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, false
from sqlalchemy.orm import relationship

from libala.database import Base
from libala.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication and wedding ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Always stored lower-cased so lookups are case-insensitive
    email = Column(String(255), unique=True, nullable=False, index=True)
    # Null for accounts that only sign in through an external identity provider
    password_hash = Column(Text, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False, server_default=false())
    email_verified_at = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    auth_tokens = relationship("AuthToken", back_populates="user", cascade="all, delete-orphan")
    weddings = relationship("Wedding", back_populates="owner")
    memberships = relationship("Membership", back_populates="user")

    @property
    def is_verified(self) -> bool:
        """Check if the user has confirmed their email address."""
        return self.email_verified_at is not None
