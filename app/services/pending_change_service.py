"""
LedgerBooks - Pending Change Service

Approval workflow: pending -> approved | rejected, reviewed once.

Applying an approved change to its target store belongs to the owner of
that store; this service records the request and the decision.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.dependencies import Actor
from app.models.pending_change import PendingChange
from app.schemas.pending_change import PendingChangeCreate, PendingChangeStats, StatusCounts
from app.utils.books_enums import ChangeStatus, ChangeType
from app.utils.error_handling import (
    AuthorizationException,
    BusinessRuleException,
    ErrorCode,
    NotFoundException,
)

logger = logging.getLogger(__name__)


class PendingChangeService:
    """Service for the change approval workflow."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_changes(
        self,
        actor: Actor,
        status: Optional[ChangeStatus] = None,
        change_type: Optional[ChangeType] = None,
        only_mine: bool = False,
    ) -> List[PendingChange]:
        """Newest first. Non-admins only ever see their own requests."""
        query = select(PendingChange)
        if status:
            query = query.where(PendingChange.status == status)
        if change_type:
            query = query.where(PendingChange.change_type == change_type)
        if only_mine or not actor.is_admin:
            query = query.where(PendingChange.requested_by == actor.user_id)

        result = await self.db.execute(query.order_by(PendingChange.requested_at.desc()))
        return list(result.scalars().all())

    async def get_change(self, change_id: uuid.UUID, actor: Optional[Actor] = None) -> PendingChange:
        result = await self.db.execute(select(PendingChange).where(PendingChange.id == change_id))
        change = result.scalar_one_or_none()
        if not change:
            raise NotFoundException(
                "Pending change", change_id,
                message="Pending change not found",
                code=ErrorCode.PENDING_CHANGE_NOT_FOUND,
            )
        if actor is not None and not actor.is_admin and change.requested_by != actor.user_id:
            raise AuthorizationException("You can only view your own change requests")
        return change

    async def create_change(self, data: PendingChangeCreate, actor: Actor) -> PendingChange:
        change = PendingChange(
            change_type=data.change_type,
            status=ChangeStatus.PENDING,
            requested_by=actor.user_id,
            requested_by_role=actor.role,
            requested_at=datetime.now(timezone.utc),
            change_data=dict(data.change_data),
            target_collection=data.target_collection,
            target_database=data.target_database,
            target_document_id=data.target_document_id,
            description=data.description,
        )
        self.db.add(change)
        await self.db.flush()
        logger.info(f"Change requested: {change.change_type.value} by {actor.user_id}")
        return change

    async def _review(
        self,
        change_id: uuid.UUID,
        reviewer: Actor,
        outcome: ChangeStatus,
        comments: Optional[str],
    ) -> PendingChange:
        if not reviewer.is_admin:
            raise AuthorizationException(
                f"Only administrators can {'approve' if outcome == ChangeStatus.APPROVED else 'reject'} changes"
            )
        change = await self.get_change(change_id)

        # Conditional on status so only one of two concurrent reviews lands.
        result = await self.db.execute(
            update(PendingChange)
            .where(
                PendingChange.id == change_id,
                PendingChange.status == ChangeStatus.PENDING,
            )
            .values(
                status=outcome,
                reviewed_by=reviewer.user_id,
                reviewed_at=datetime.now(timezone.utc),
                review_comments=comments,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise BusinessRuleException(
                "This change has already been processed",
                rule="review_once",
                code=ErrorCode.ALREADY_PROCESSED,
            )
        await self.db.refresh(change)
        logger.info(f"Change {change.id} {outcome.value} by {reviewer.user_id}")
        return change

    async def approve(
        self,
        change_id: uuid.UUID,
        reviewer: Actor,
        comments: Optional[str] = None,
    ) -> PendingChange:
        return await self._review(change_id, reviewer, ChangeStatus.APPROVED, comments)

    async def reject(
        self,
        change_id: uuid.UUID,
        reviewer: Actor,
        comments: Optional[str] = None,
    ) -> PendingChange:
        return await self._review(
            change_id, reviewer, ChangeStatus.REJECTED, comments or "No reason provided",
        )

    async def get_stats(self, actor: Actor) -> PendingChangeStats:
        """Counts per status, pending counts per type, and the caller's own pending count."""
        status_rows = await self.db.execute(
            select(PendingChange.status, func.count(PendingChange.id)).group_by(PendingChange.status)
        )
        totals = StatusCounts()
        for status, count in status_rows.all():
            setattr(totals, ChangeStatus(status).value, count)

        type_rows = await self.db.execute(
            select(PendingChange.change_type, func.count(PendingChange.id))
            .where(PendingChange.status == ChangeStatus.PENDING)
            .group_by(PendingChange.change_type)
        )
        by_type = {ChangeType(change_type).value: count for change_type, count in type_rows.all()}

        my_pending = (
            await self.db.execute(
                select(func.count(PendingChange.id)).where(
                    PendingChange.status == ChangeStatus.PENDING,
                    PendingChange.requested_by == actor.user_id,
                )
            )
        ).scalar() or 0

        return PendingChangeStats(total=totals, by_type=by_type, my_pending=my_pending)
