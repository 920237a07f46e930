"""Gift model."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from libala.database import Base
from libala.models.mixins import CreatedAtMixin


class Gift(Base, CreatedAtMixin):
    """Gift-list entry guests can contribute towards."""

    __tablename__ = "gifts"

    id = Column(Integer, primary_key=True, index=True)
    wedding_id = Column(Integer, ForeignKey("weddings.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    price = Column(Integer, nullable=True)  # in cents
    contributed_amount = Column(Integer, nullable=False, default=0)
    is_reserved = Column(Boolean, nullable=False, default=False)

    # Relationships
    wedding = relationship("Wedding", back_populates="gifts")
