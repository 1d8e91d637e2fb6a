"""
LedgerBooks - Base Model

Base model class and mixins for all SQLAlchemy models.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class AuditMixin:
    """Mixin that records which actor created/last modified a record."""

    created_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )
    modified_by: Mapped[Optional[str]] = mapped_column(
        String(100),
        nullable=True,
    )


class BaseModel(Base, TimestampMixin):
    """
    Abstract base model with UUID primary key and timestamps.
    All models should inherit from this class.
    """

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Fetch server-side timestamps on INSERT/UPDATE so async sessions never lazy-load them
    __mapper_args__ = {"eager_defaults": True}

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
