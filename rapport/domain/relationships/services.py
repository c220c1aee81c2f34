"""Relationship lifecycle service."""
import logging
from datetime import timedelta
from typing import Optional

from rapport.domain.common.errors import ConflictError, InvalidStateError, NotFoundError
from rapport.domain.common.types import utcnow
from rapport.domain.relationships import health, state_machine
from rapport.domain.relationships.invite_codes import (
    DEFAULT_INVITE_CODE_LENGTH,
    generate_invite_code,
    normalize_invite_code,
)
from rapport.domain.relationships.models import (
    CoupleView,
    HealthReport,
    InsightsSummary,
    LifecycleEvent,
    LifecycleEventType,
    Member,
    Relationship,
    RelationshipStatus,
    RelationshipType,
    RelationshipView,
    SessionSummary,
)
from rapport.domain.relationships.projections import first_couple
from rapport.domain.relationships.repositories import RelationshipRepository, SessionReadRepository

logger = logging.getLogger(__name__)

NOT_ENOUGH_DATA_MESSAGE = "Not enough data yet. Complete a few more sessions to unlock insights."


class RelationshipLifecycleService:
    """Creation, membership, status transitions and derived metrics of relationships.

    Every mutation runs inside ``relationship_repo.transaction()`` together with
    its lifecycle event, so either both are stored or neither is.
    """

    def __init__(
        self,
        relationship_repo: RelationshipRepository,
        session_repo: SessionReadRepository,
        invite_code_length: int = DEFAULT_INVITE_CODE_LENGTH,
        health_window_days: int = 30,
        health_trend_min_sessions: int = health.DEFAULT_TREND_MIN_SESSIONS,
        health_trend_threshold: float = health.DEFAULT_TREND_THRESHOLD,
    ):
        self.relationship_repo = relationship_repo
        self.session_repo = session_repo
        self.invite_code_length = invite_code_length
        self.health_window_days = health_window_days
        self.health_trend_min_sessions = health_trend_min_sessions
        self.health_trend_threshold = health_trend_threshold

    async def create_relationship(
        self,
        user_id: str,
        rel_type: RelationshipType = RelationshipType.ROMANTIC_COUPLE,
        name: Optional[str] = None,
    ) -> RelationshipView:
        """Create a relationship with the caller as its first member."""
        relationship = Relationship.create(
            invite_code=generate_invite_code(self.invite_code_length),
            rel_type=rel_type,
            name=name,
        )
        async with self.relationship_repo.transaction():
            await self.relationship_repo.create(relationship)
            await self.relationship_repo.add_member(Member.create(relationship.id, user_id))
            await self.relationship_repo.add_event(
                LifecycleEvent.create(relationship.id, LifecycleEventType.CREATED, user_id)
            )
        logger.info(
            "Relationship created: id=%s type=%s creator=%s",
            relationship.id, rel_type.value, user_id,
        )
        return await self._require_view(relationship.id)

    async def join_relationship(
        self, user_id: str, invite_code: str, role: Optional[str] = None
    ) -> RelationshipView:
        """Join a relationship by invite code.

        Leaving and joining again creates a fresh membership record; the old one
        keeps its left_at stamp.
        """
        async with self.relationship_repo.transaction():
            relationship = await self.relationship_repo.get_by_invite_code(
                normalize_invite_code(invite_code)
            )
            if relationship is None:
                raise NotFoundError("Relationship with that invite code")

            if relationship.status != RelationshipStatus.ACTIVE:
                logger.warning(
                    "Join rejected: relationship=%s status=%s user=%s",
                    relationship.id, relationship.status.value, user_id,
                )
                raise InvalidStateError(
                    f"Cannot join a {relationship.status.value} relationship; "
                    f"only {RelationshipStatus.ACTIVE.value} relationships accept new members",
                    current_status=relationship.status.value,
                    requested_status=RelationshipStatus.ACTIVE.value,
                )

            existing = await self.relationship_repo.get_active_member(relationship.id, user_id)
            if existing is not None:
                raise ConflictError("You are already a member of this relationship")

            # A concurrent join can still slip past the check above; the unique
            # index makes add_member raise ConflictError in that case.
            await self.relationship_repo.add_member(
                Member.create(relationship.id, user_id, role=role)
            )
            await self.relationship_repo.add_event(
                LifecycleEvent.create(
                    relationship.id,
                    LifecycleEventType.MEMBER_JOINED,
                    user_id,
                    metadata={"role": role} if role else None,
                )
            )
        logger.info("Member joined: relationship=%s user=%s role=%s", relationship.id, user_id, role)
        return await self.get_relationship(relationship.id, user_id)

    async def get_relationship(self, relationship_id: str, user_id: str) -> RelationshipView:
        """Fetch a relationship the caller is an active member of.

        A missing relationship and one the caller does not belong to raise the
        same NotFoundError.
        """
        view = await self.relationship_repo.get_view_for_member(relationship_id, user_id)
        if view is None:
            raise NotFoundError("Relationship", relationship_id)
        return view

    async def list_relationships_for_user(
        self, user_id: str, include_ended: bool = False
    ) -> list[RelationshipView]:
        """Relationships the caller belongs to, newest first; ACTIVE only unless include_ended."""
        statuses = None if include_ended else [RelationshipStatus.ACTIVE]
        return await self.relationship_repo.list_views_for_user(user_id, statuses)

    async def leave_relationship(
        self, relationship_id: str, user_id: str, reason: Optional[str] = None
    ) -> dict:
        """End the caller's membership. The relationship and its data stay."""
        await self.get_relationship(relationship_id, user_id)

        async with self.relationship_repo.transaction():
            member = await self.relationship_repo.get_active_member(relationship_id, user_id)
            if member is None:
                raise NotFoundError("Membership", relationship_id)
            await self.relationship_repo.mark_member_left(member.id, utcnow())
            await self.relationship_repo.add_event(
                LifecycleEvent.create(
                    relationship_id, LifecycleEventType.MEMBER_LEFT, user_id, reason=reason
                )
            )
        logger.info("Member left: relationship=%s user=%s", relationship_id, user_id)
        return {"success": True, "message": "Successfully left the relationship"}

    async def update_status(
        self,
        relationship_id: str,
        user_id: str,
        status: RelationshipStatus,
        reason: Optional[str] = None,
    ) -> RelationshipView:
        """Move a relationship along the status graph.

        Ending a relationship closes every active membership, so the returned
        view has no members and later member-scoped calls raise NotFoundError.
        """
        relationship = await self.get_relationship(relationship_id, user_id)
        current = relationship.status
        try:
            state_machine.validate_transition(current, status)
        except InvalidStateError:
            logger.warning(
                "Status transition rejected: relationship=%s %s -> %s",
                relationship_id, current.value, status.value,
            )
            raise

        now = utcnow()
        ending = status in state_machine.ENDED_STATUSES
        async with self.relationship_repo.transaction():
            # The status may have moved since it was validated above.
            written = await self.relationship_repo.update_status(
                relationship_id,
                status,
                updated_at=now,
                ended_at=now if ending else None,
                end_reason=reason if ending else None,
                expected_status=current,
            )
            if not written:
                logger.warning(
                    "Status transition lost a concurrent update: relationship=%s %s -> %s",
                    relationship_id, current.value, status.value,
                )
                raise InvalidStateError(
                    f"Relationship is no longer {current.value}; "
                    f"cannot transition to {status.value}",
                    current_status=current.value,
                    requested_status=status.value,
                )
            closed = 0
            if ending:
                closed = await self.relationship_repo.end_active_memberships(relationship_id, now)
            event_type = state_machine.event_type_for(current, status)
            await self.relationship_repo.add_event(
                LifecycleEvent.create(relationship_id, event_type, user_id, reason=reason)
            )
        logger.info(
            "Relationship status changed: id=%s %s -> %s event=%s by=%s closed_memberships=%d",
            relationship_id, current.value, status.value, event_type.value, user_id, closed,
        )
        return await self._require_view(relationship_id)

    async def get_members(self, relationship_id: str, user_id: str) -> list[Member]:
        """Active members with user summaries."""
        view = await self.get_relationship(relationship_id, user_id)
        return view.members

    async def get_sessions(self, relationship_id: str, user_id: str) -> list[SessionSummary]:
        """Sessions newest first, with analysis summaries."""
        await self.get_relationship(relationship_id, user_id)
        return await self.session_repo.list_sessions(relationship_id)

    async def get_insights(self, relationship_id: str, user_id: str) -> InsightsSummary:
        """Cached pattern metrics; this service never aggregates them itself."""
        await self.get_relationship(relationship_id, user_id)
        cached = await self.session_repo.get_insights(relationship_id)
        if cached is None:
            return InsightsSummary(
                relationship_id=relationship_id,
                has_enough_data=False,
                message=NOT_ENOUGH_DATA_MESSAGE,
            )
        return cached

    async def get_health(self, relationship_id: str, user_id: str) -> HealthReport:
        """Health score, trend, bank balance and card ratio over the trailing window."""
        await self.get_relationship(relationship_id, user_id)
        since = utcnow() - timedelta(days=self.health_window_days)
        window = await self.session_repo.list_completed_since(relationship_id, since)
        balance = await self.session_repo.get_bank_balance(relationship_id)
        total = await self.session_repo.count_sessions(relationship_id)
        return health.compute_health(
            window,
            bank_balance=balance,
            total_session_count=total,
            min_trend_sessions=self.health_trend_min_sessions,
            trend_threshold=self.health_trend_threshold,
        )

    async def get_couple_for_user(self, user_id: str) -> Optional[CoupleView]:
        """Backward compatibility: first active romantic couple in the legacy shape."""
        views = await self.list_relationships_for_user(user_id)
        return first_couple(views)

    async def get_lifecycle_events(self, relationship_id: str, user_id: str) -> list[LifecycleEvent]:
        """Audit trail of the relationship, oldest first."""
        await self.get_relationship(relationship_id, user_id)
        return await self.relationship_repo.list_events(relationship_id)

    async def _require_view(self, relationship_id: str) -> RelationshipView:
        view = await self.relationship_repo.get_view(relationship_id)
        if view is None:
            raise NotFoundError("Relationship", relationship_id)
        return view
