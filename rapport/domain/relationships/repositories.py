"""Relationship repository protocols."""
from datetime import datetime
from typing import AsyncContextManager, Optional, Protocol

from rapport.domain.relationships.models import (
    InsightsSummary,
    LifecycleEvent,
    Member,
    Relationship,
    RelationshipStatus,
    RelationshipView,
    SessionSummary,
)


class RelationshipRepository(Protocol):
    """Persistence for relationships, memberships and their audit log."""

    def transaction(self) -> AsyncContextManager[None]:
        """Unit of work: commit on normal exit, roll back on any exception."""
        ...

    async def create(self, relationship: Relationship) -> Relationship:
        """Insert a relationship."""
        ...

    async def get_by_invite_code(self, invite_code: str) -> Optional[Relationship]:
        """Look up a relationship by its (normalized) invite code."""
        ...

    async def get_view(self, relationship_id: str) -> Optional[RelationshipView]:
        """Hydrated relationship regardless of who is asking."""
        ...

    async def get_view_for_member(
        self, relationship_id: str, user_id: str
    ) -> Optional[RelationshipView]:
        """Hydrated relationship if it exists and user_id is an active member, else None."""
        ...

    async def list_views_for_user(
        self, user_id: str, statuses: Optional[list[RelationshipStatus]] = None
    ) -> list[RelationshipView]:
        """Relationships where user_id is an active member, newest first."""
        ...

    async def update_status(
        self,
        relationship_id: str,
        status: RelationshipStatus,
        updated_at: datetime,
        ended_at: Optional[datetime] = None,
        end_reason: Optional[str] = None,
        expected_status: Optional[RelationshipStatus] = None,
    ) -> bool:
        """Write a new status (and end stamps when ending).

        With expected_status the row is only written while it still holds that
        status; returns False when nothing was written.
        """
        ...

    async def add_member(self, member: Member) -> Member:
        """Insert a membership. Raises ConflictError on a duplicate active membership."""
        ...

    async def get_active_member(self, relationship_id: str, user_id: str) -> Optional[Member]:
        """Active membership of user_id, if any."""
        ...

    async def mark_member_left(self, member_id: str, left_at: datetime) -> None:
        """Close a single membership."""
        ...

    async def end_active_memberships(self, relationship_id: str, left_at: datetime) -> int:
        """Close every active membership; returns how many were closed."""
        ...

    async def add_event(self, event: LifecycleEvent) -> LifecycleEvent:
        """Append a lifecycle event."""
        ...

    async def list_events(self, relationship_id: str) -> list[LifecycleEvent]:
        """Lifecycle events, oldest first."""
        ...


class SessionReadRepository(Protocol):
    """Read-only access to data owned by the sessions and analysis pipeline."""

    async def list_sessions(self, relationship_id: str) -> list[SessionSummary]:
        """All sessions, newest first."""
        ...

    async def list_completed_since(self, relationship_id: str, since: datetime) -> list[SessionSummary]:
        """Completed, analysed sessions created at or after since, newest first."""
        ...

    async def count_sessions(self, relationship_id: str) -> int:
        """Lifetime session count."""
        ...

    async def get_bank_balance(self, relationship_id: str) -> Optional[int]:
        """Current emotional bank balance, None when no ledger exists."""
        ...

    async def get_insights(self, relationship_id: str) -> Optional[InsightsSummary]:
        """Cached pattern metrics, None when nothing has been computed yet."""
        ...
