"""Relationship repository implementation."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Optional

from sqlalchemy import and_, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from rapport.domain.common.errors import ConflictError
from rapport.domain.relationships.models import (
    InsightsSummary,
    LifecycleEvent,
    Member,
    Relationship,
    RelationshipStatus,
    RelationshipView,
    SessionStatus,
    SessionSummary,
)
from rapport.domain.relationships.repositories import RelationshipRepository, SessionReadRepository
from rapport.infra.db.models.insights import EmotionalBankLedgerModel, PatternMetricsCacheModel
from rapport.infra.db.models.relationship import (
    RelationshipLifecycleEventModel,
    RelationshipMemberModel,
    RelationshipModel,
)
from rapport.infra.db.models.session import AnalysisResultModel, SessionModel
from rapport.infra.db.models.user import UserModel

logger = logging.getLogger(__name__)


class RelationshipRepositoryImpl(RelationshipRepository):
    """Relationship repository implementation.

    Mutating methods only flush; the caller decides when to commit through
    transaction().
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit on success, roll back on any exception."""
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

    async def create(self, relationship: Relationship) -> Relationship:
        """Insert a relationship."""
        self.session.add(RelationshipModel.from_entity(relationship))
        await self.session.flush()
        return relationship

    async def get_by_invite_code(self, invite_code: str) -> Optional[Relationship]:
        """Get relationship by invite code."""
        result = await self.session.execute(
            select(RelationshipModel)
            .where(RelationshipModel.invite_code == invite_code)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_view(self, relationship_id: str) -> Optional[RelationshipView]:
        """Relationship with active members, ledger balance and session count."""
        model = await self.session.get(RelationshipModel, relationship_id, populate_existing=True)
        if model is None:
            return None
        return await self._build_view(model)

    async def get_view_for_member(
        self, relationship_id: str, user_id: str
    ) -> Optional[RelationshipView]:
        """Same as get_view, but None unless user_id holds an active membership."""
        view = await self.get_view(relationship_id)
        if view is None:
            return None
        if not any(m.user_id == user_id for m in view.members):
            return None
        return view

    async def list_views_for_user(
        self, user_id: str, statuses: Optional[list[RelationshipStatus]] = None
    ) -> list[RelationshipView]:
        """Relationships where user_id is an active member, newest first."""
        stmt = (
            select(RelationshipModel)
            .join(
                RelationshipMemberModel,
                RelationshipMemberModel.relationship_id == RelationshipModel.id,
            )
            .where(
                and_(
                    RelationshipMemberModel.user_id == user_id,
                    RelationshipMemberModel.left_at.is_(None),
                )
            )
            .order_by(RelationshipModel.created_at.desc())
        )
        if statuses:
            stmt = stmt.where(RelationshipModel.status.in_(statuses))
        result = await self.session.execute(stmt)
        return [await self._build_view(model) for model in result.scalars().all()]

    async def update_status(
        self,
        relationship_id: str,
        status: RelationshipStatus,
        updated_at: datetime,
        ended_at: Optional[datetime] = None,
        end_reason: Optional[str] = None,
        expected_status: Optional[RelationshipStatus] = None,
    ) -> bool:
        """Write a new status; end stamps are only written when given.

        With expected_status this is a compare-and-set on the current status.
        """
        values = {"status": status, "updated_at": updated_at}
        if ended_at is not None:
            values["ended_at"] = ended_at
            values["end_reason"] = end_reason
        stmt = update(RelationshipModel).where(RelationshipModel.id == relationship_id)
        if expected_status is not None:
            stmt = stmt.where(RelationshipModel.status == expected_status)
        result = await self.session.execute(stmt.values(**values))
        return bool(result.rowcount)

    async def add_member(self, member: Member) -> Member:
        """Insert a membership; a duplicate active membership raises ConflictError."""
        self.session.add(RelationshipMemberModel.from_entity(member))
        try:
            await self.session.flush()
        except IntegrityError as e:
            if "unique" not in str(e.orig).lower():
                raise
            logger.warning(
                "Duplicate active membership: relationship=%s user=%s",
                member.relationship_id, member.user_id,
            )
            raise ConflictError("You are already a member of this relationship") from e
        return member

    async def get_active_member(self, relationship_id: str, user_id: str) -> Optional[Member]:
        """Active membership of a user in a relationship."""
        result = await self.session.execute(
            select(RelationshipMemberModel).where(
                and_(
                    RelationshipMemberModel.relationship_id == relationship_id,
                    RelationshipMemberModel.user_id == user_id,
                    RelationshipMemberModel.left_at.is_(None),
                )
            )
        )
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def list_members(self, relationship_id: str, active_only: bool = True) -> list[Member]:
        """Memberships with user summaries, in join order."""
        stmt = (
            select(RelationshipMemberModel, UserModel)
            .outerjoin(UserModel, UserModel.id == RelationshipMemberModel.user_id)
            .where(RelationshipMemberModel.relationship_id == relationship_id)
            .order_by(RelationshipMemberModel.joined_at.asc())
            .execution_options(populate_existing=True)
        )
        if active_only:
            stmt = stmt.where(RelationshipMemberModel.left_at.is_(None))
        result = await self.session.execute(stmt)
        return [member.to_entity(user) for member, user in result.all()]

    async def mark_member_left(self, member_id: str, left_at: datetime) -> None:
        """Stamp left_at on one membership."""
        await self.session.execute(
            update(RelationshipMemberModel)
            .where(RelationshipMemberModel.id == member_id)
            .values(left_at=left_at)
        )

    async def end_active_memberships(self, relationship_id: str, left_at: datetime) -> int:
        """Stamp left_at on all active memberships of a relationship."""
        result = await self.session.execute(
            update(RelationshipMemberModel)
            .where(
                and_(
                    RelationshipMemberModel.relationship_id == relationship_id,
                    RelationshipMemberModel.left_at.is_(None),
                )
            )
            .values(left_at=left_at)
        )
        return result.rowcount or 0

    async def add_event(self, event: LifecycleEvent) -> LifecycleEvent:
        """Append a lifecycle event."""
        self.session.add(RelationshipLifecycleEventModel.from_entity(event))
        await self.session.flush()
        return event

    async def list_events(self, relationship_id: str) -> list[LifecycleEvent]:
        """Lifecycle events, oldest first."""
        result = await self.session.execute(
            select(RelationshipLifecycleEventModel)
            .where(RelationshipLifecycleEventModel.relationship_id == relationship_id)
            .order_by(RelationshipLifecycleEventModel.created_at.asc())
        )
        return [m.to_entity() for m in result.scalars().all()]

    async def _build_view(self, model: RelationshipModel) -> RelationshipView:
        members = await self.list_members(model.id)
        balance = await self.session.scalar(
            select(EmotionalBankLedgerModel.balance).where(
                EmotionalBankLedgerModel.relationship_id == model.id
            )
        )
        session_count = await self.session.scalar(
            select(func.count(SessionModel.id)).where(SessionModel.relationship_id == model.id)
        )
        return RelationshipView(
            **model.to_entity().model_dump(),
            members=members,
            emotional_bank_balance=balance,
            session_count=session_count or 0,
        )


class SessionReadRepositoryImpl(SessionReadRepository):
    """Read-only access to sessions, analysis results, the bank ledger and metrics cache."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_sessions(self, relationship_id: str) -> list[SessionSummary]:
        """All sessions, newest first, with analysis when present."""
        result = await self.session.execute(
            select(SessionModel, AnalysisResultModel)
            .outerjoin(AnalysisResultModel, AnalysisResultModel.session_id == SessionModel.id)
            .where(SessionModel.relationship_id == relationship_id)
            .order_by(SessionModel.created_at.desc())
        )
        return [s.to_summary(a) for s, a in result.all()]

    async def list_completed_since(self, relationship_id: str, since: datetime) -> list[SessionSummary]:
        """Completed sessions with an analysis result, created at or after since, newest first."""
        result = await self.session.execute(
            select(SessionModel, AnalysisResultModel)
            .join(AnalysisResultModel, AnalysisResultModel.session_id == SessionModel.id)
            .where(
                and_(
                    SessionModel.relationship_id == relationship_id,
                    SessionModel.status == SessionStatus.COMPLETED,
                    SessionModel.created_at >= since,
                )
            )
            .order_by(SessionModel.created_at.desc())
        )
        return [s.to_summary(a) for s, a in result.all()]

    async def count_sessions(self, relationship_id: str) -> int:
        """Lifetime session count."""
        count = await self.session.scalar(
            select(func.count(SessionModel.id)).where(SessionModel.relationship_id == relationship_id)
        )
        return count or 0

    async def get_bank_balance(self, relationship_id: str) -> Optional[int]:
        """Current ledger balance, or None without a ledger."""
        return await self.session.scalar(
            select(EmotionalBankLedgerModel.balance).where(
                EmotionalBankLedgerModel.relationship_id == relationship_id
            )
        )

    async def get_insights(self, relationship_id: str) -> Optional[InsightsSummary]:
        """Cached pattern metrics, if the pipeline has produced any."""
        result = await self.session.execute(
            select(PatternMetricsCacheModel).where(
                PatternMetricsCacheModel.relationship_id == relationship_id
            )
        )
        model = result.scalar_one_or_none()
        return model.to_summary() if model else None
