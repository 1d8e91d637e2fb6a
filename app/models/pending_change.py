"""
LedgerBooks - Pending Change Model

Approval workflow wrapper: a requested change waits here until an
administrator approves or rejects it. Review is one-way.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, String, Text, Enum as SQLEnum, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel
from app.utils.books_enums import ChangeStatus, ChangeType


class PendingChange(BaseModel):
    """A change request awaiting review."""

    __tablename__ = "pending_changes"

    change_type: Mapped[ChangeType] = mapped_column(SQLEnum(ChangeType), nullable=False)
    status: Mapped[ChangeStatus] = mapped_column(
        SQLEnum(ChangeStatus), default=ChangeStatus.PENDING, nullable=False,
    )

    # Requester
    requested_by: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    requested_by_role: Mapped[str] = mapped_column(String(50), nullable=False)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    # Reviewer
    reviewed_by: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    review_comments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Payload and where it applies once approved
    change_data: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    target_collection: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    target_database: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    target_document_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_pending_changes_status_requested", "status", "requested_at"),
    )
