"""One-time auth token model (email verification and password reset)."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from libala.database import Base
from libala.models.mixins import CreatedAtMixin


class AuthToken(Base, CreatedAtMixin):
    """Hashed one-time secret bound to a user and a purpose.

    Only the SHA-256 of the secret is stored; the raw value exists solely in
    the link emailed to the user.
    """

    __tablename__ = "auth_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    token_hash = Column(String(64), unique=True, nullable=False, index=True)
    type = Column(String(50), nullable=False)  # TokenType value
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    user = relationship("User", back_populates="auth_tokens")
