"""Mixins for SQLAlchemy models."""

from sqlalchemy import Column, DateTime, func


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamp columns."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class CreatedAtMixin:
    """Mixin for append-only rows that only record their creation time."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
