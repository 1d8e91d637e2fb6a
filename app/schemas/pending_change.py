"""
LedgerBooks - Pending Change Schemas
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict

from app.utils.books_enums import ChangeStatus, ChangeType


class PendingChangeCreate(BaseModel):
    """Schema for submitting a change for approval."""
    change_type: ChangeType
    change_data: Dict[str, Any] = Field(default_factory=dict)
    target_collection: Optional[str] = Field(None, max_length=100)
    target_database: Optional[str] = Field(None, max_length=100)
    target_document_id: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None


class PendingChangeReview(BaseModel):
    """Reviewer's comments on approve/reject."""
    comments: Optional[str] = None


class PendingChangeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    change_type: ChangeType
    status: ChangeStatus
    requested_by: str
    requested_by_role: str
    requested_at: datetime
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    review_comments: Optional[str] = None
    change_data: Dict[str, Any]
    target_collection: Optional[str] = None
    target_database: Optional[str] = None
    target_document_id: Optional[str] = None
    description: Optional[str] = None


class PendingChangeListResponse(BaseModel):
    success: bool = True
    changes: List[PendingChangeResponse]
    count: int


class PendingChangeMutationResponse(BaseModel):
    success: bool = True
    message: str
    change: PendingChangeResponse


class StatusCounts(BaseModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0


class PendingChangeStats(BaseModel):
    total: StatusCounts
    by_type: Dict[str, int]
    my_pending: int


class PendingChangeStatsResponse(BaseModel):
    success: bool = True
    stats: PendingChangeStats
