"""
LedgerBooks - Pending Change Tests

Approval workflow: submission, visibility, review and statistics.
"""

import pytest
from uuid import uuid4

from app.dependencies import Actor
from app.schemas.pending_change import PendingChangeCreate
from app.services.pending_change_service import PendingChangeService
from app.utils.books_enums import ChangeStatus, ChangeType
from app.utils.error_handling import (
    AuthorizationException,
    BusinessRuleException,
    NotFoundException,
)


def _request(change_type: ChangeType = ChangeType.EMPLOYEE_UPDATE) -> PendingChangeCreate:
    return PendingChangeCreate(
        change_type=change_type,
        change_data={"employee_id": "E-17", "designation": "Senior Clerk"},
        target_collection="employees",
        target_document_id="E-17",
        description="Promotion",
    )


class TestPendingChangeService:
    """Test cases for PendingChangeService."""

    @pytest.mark.asyncio
    async def test_submit(self, db_session, user_actor):
        change = await PendingChangeService(db_session).create_change(_request(), user_actor)

        assert change.status == ChangeStatus.PENDING
        assert change.requested_by == user_actor.user_id
        assert change.requested_by_role == "accountant"
        assert change.change_data["designation"] == "Senior Clerk"
        assert change.requested_at is not None

    @pytest.mark.asyncio
    async def test_approve(self, db_session, user_actor, admin_actor):
        service = PendingChangeService(db_session)
        change = await service.create_change(_request(), user_actor)

        approved = await service.approve(change.id, admin_actor, "Looks right")

        assert approved.status == ChangeStatus.APPROVED
        assert approved.reviewed_by == admin_actor.user_id
        assert approved.review_comments == "Looks right"
        assert approved.reviewed_at is not None

    @pytest.mark.asyncio
    async def test_reject_default_reason(self, db_session, user_actor, admin_actor):
        service = PendingChangeService(db_session)
        change = await service.create_change(_request(), user_actor)

        rejected = await service.reject(change.id, admin_actor)

        assert rejected.status == ChangeStatus.REJECTED
        assert rejected.review_comments == "No reason provided"

    @pytest.mark.asyncio
    async def test_review_happens_once(self, db_session, user_actor, admin_actor):
        service = PendingChangeService(db_session)
        change = await service.create_change(_request(), user_actor)
        await service.approve(change.id, admin_actor)

        with pytest.raises(BusinessRuleException) as exc_info:
            await service.reject(change.id, admin_actor)
        assert exc_info.value.message == "This change has already been processed"

    @pytest.mark.asyncio
    async def test_non_admin_cannot_review(self, db_session, user_actor):
        service = PendingChangeService(db_session)
        change = await service.create_change(_request(), user_actor)

        with pytest.raises(AuthorizationException):
            await service.approve(change.id, user_actor)

    @pytest.mark.asyncio
    async def test_visibility(self, db_session, user_actor, admin_actor):
        service = PendingChangeService(db_session)
        other = Actor(user_id="clerk-2", role="clerk")
        mine = await service.create_change(_request(), user_actor)
        theirs = await service.create_change(_request(ChangeType.UNIT_UPDATE), other)

        own_list = await service.list_changes(user_actor)
        assert [c.id for c in own_list] == [mine.id]

        admin_list = await service.list_changes(admin_actor)
        assert {c.id for c in admin_list} == {mine.id, theirs.id}

        with pytest.raises(AuthorizationException):
            await service.get_change(theirs.id, user_actor)

        assert (await service.get_change(theirs.id, admin_actor)).id == theirs.id

    @pytest.mark.asyncio
    async def test_list_filters(self, db_session, user_actor, admin_actor):
        service = PendingChangeService(db_session)
        first = await service.create_change(_request(), user_actor)
        await service.create_change(_request(ChangeType.BULK_UPLOAD), user_actor)
        await service.approve(first.id, admin_actor)

        pending = await service.list_changes(admin_actor, status=ChangeStatus.PENDING)
        assert [c.change_type for c in pending] == [ChangeType.BULK_UPLOAD]

        uploads = await service.list_changes(admin_actor, change_type=ChangeType.BULK_UPLOAD)
        assert len(uploads) == 1

        admin_own = await service.list_changes(admin_actor, only_mine=True)
        assert admin_own == []

    @pytest.mark.asyncio
    async def test_missing_change(self, db_session, admin_actor):
        with pytest.raises(NotFoundException):
            await PendingChangeService(db_session).get_change(uuid4(), admin_actor)

    @pytest.mark.asyncio
    async def test_stats(self, db_session, user_actor, admin_actor):
        service = PendingChangeService(db_session)
        first = await service.create_change(_request(), user_actor)
        await service.create_change(_request(), user_actor)
        await service.create_change(_request(ChangeType.ATTENDANCE_MARK), admin_actor)
        await service.reject(first.id, admin_actor, "Duplicate")

        stats = await service.get_stats(user_actor)

        assert stats.total.pending == 2
        assert stats.total.rejected == 1
        assert stats.total.approved == 0
        assert stats.by_type == {"employee_update": 1, "attendance_mark": 1}
        assert stats.my_pending == 1

    @pytest.mark.asyncio
    async def test_review_after_concurrent_decision(
        self, db_session, session_maker, user_actor, admin_actor,
    ):
        """A reviewer holding a stale copy cannot overwrite another reviewer's decision."""
        service = PendingChangeService(db_session)
        change = await service.create_change(_request(), user_actor)
        await db_session.commit()
        assert change.status == ChangeStatus.PENDING

        async with session_maker() as other_session:
            await PendingChangeService(other_session).approve(change.id, admin_actor, "First")
            await other_session.commit()

        with pytest.raises(BusinessRuleException):
            await service.reject(change.id, admin_actor, "Second")
        await db_session.rollback()

        await db_session.refresh(change)
        assert change.status == ChangeStatus.APPROVED
        assert change.review_comments == "First"
