"""Relationship domain models."""
import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from rapport.domain.common.types import generate_id, utcnow


class RelationshipType(str, enum.Enum):
    """Relationship type enum."""
    ROMANTIC_COUPLE = "ROMANTIC_COUPLE"
    ROMANTIC_POLYAMOROUS = "ROMANTIC_POLYAMOROUS"
    FRIENDSHIP_PAIR = "FRIENDSHIP_PAIR"
    FRIENDSHIP_GROUP = "FRIENDSHIP_GROUP"
    FAMILY_PARENT_CHILD = "FAMILY_PARENT_CHILD"
    FAMILY_SIBLINGS = "FAMILY_SIBLINGS"
    FAMILY_EXTENDED = "FAMILY_EXTENDED"
    BUSINESS_PARTNERSHIP = "BUSINESS_PARTNERSHIP"
    PROFESSIONAL_MENTORSHIP = "PROFESSIONAL_MENTORSHIP"
    PROFESSIONAL_TEAM = "PROFESSIONAL_TEAM"
    COMMUNITY_GROUP = "COMMUNITY_GROUP"


class RelationshipStatus(str, enum.Enum):
    """Relationship status enum."""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    ENDED_MUTUAL = "ENDED_MUTUAL"
    ENDED_UNILATERAL = "ENDED_UNILATERAL"
    ARCHIVED = "ARCHIVED"


class LifecycleEventType(str, enum.Enum):
    """Lifecycle event type enum."""
    CREATED = "CREATED"
    MEMBER_JOINED = "MEMBER_JOINED"
    MEMBER_LEFT = "MEMBER_LEFT"
    PAUSED = "PAUSED"
    RESUMED = "RESUMED"
    ENDED_MUTUAL = "ENDED_MUTUAL"
    ENDED_UNILATERAL = "ENDED_UNILATERAL"
    ARCHIVED = "ARCHIVED"


class SessionStatus(str, enum.Enum):
    """Session processing status (owned by the sessions pipeline)."""
    RECORDING = "RECORDING"
    UPLOADED = "UPLOADED"
    TRANSCRIBING = "TRANSCRIBING"
    ANALYZING = "ANALYZING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class HealthTrend(str, enum.Enum):
    """Direction of recent session scores."""
    IMPROVING = "IMPROVING"
    DECLINING = "DECLINING"
    STABLE = "STABLE"


class UserSummary(BaseModel):
    """Public subset of a user shown on memberships."""

    id: str
    email: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class Relationship(BaseModel):
    """Relationship domain model."""

    id: str
    type: RelationshipType
    name: Optional[str] = None
    invite_code: str
    status: RelationshipStatus
    created_at: datetime
    updated_at: datetime
    ended_at: Optional[datetime] = None
    end_reason: Optional[str] = None

    @classmethod
    def create(
        cls,
        invite_code: str,
        rel_type: RelationshipType = RelationshipType.ROMANTIC_COUPLE,
        name: Optional[str] = None,
    ) -> "Relationship":
        """Create a new relationship."""
        now = utcnow()
        return cls(
            id=generate_id(),
            type=rel_type,
            name=name,
            invite_code=invite_code,
            status=RelationshipStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )


class Member(BaseModel):
    """Relationship member domain model. left_at is None while the membership is active."""

    id: str
    relationship_id: str
    user_id: str
    role: Optional[str] = None
    joined_at: datetime
    left_at: Optional[datetime] = None
    user: Optional[UserSummary] = None

    @property
    def is_active(self) -> bool:
        return self.left_at is None

    @classmethod
    def create(cls, relationship_id: str, user_id: str, role: Optional[str] = None) -> "Member":
        """Create a new, active membership."""
        return cls(
            id=generate_id(),
            relationship_id=relationship_id,
            user_id=user_id,
            role=role,
            joined_at=utcnow(),
        )


class LifecycleEvent(BaseModel):
    """Append-only audit record of a relationship mutation."""

    id: str
    relationship_id: str
    event_type: LifecycleEventType
    triggered_by_user_id: str
    reason: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime

    @classmethod
    def create(
        cls,
        relationship_id: str,
        event_type: LifecycleEventType,
        triggered_by_user_id: str,
        reason: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> "LifecycleEvent":
        """Create a new lifecycle event."""
        return cls(
            id=generate_id(),
            relationship_id=relationship_id,
            event_type=event_type,
            triggered_by_user_id=triggered_by_user_id,
            reason=reason,
            metadata=metadata,
            created_at=utcnow(),
        )


class RelationshipView(Relationship):
    """Relationship hydrated with active members, ledger balance and counts."""

    members: list[Member] = []
    emotional_bank_balance: Optional[int] = None
    session_count: int = 0


class AnalysisSummary(BaseModel):
    """Scores produced by the analysis pipeline for one session."""

    overall_score: int
    green_card_count: int = 0
    yellow_card_count: int = 0
    red_card_count: int = 0
    bank_change: int = 0
    safety_flag_triggered: bool = False


class SessionSummary(BaseModel):
    """Read-only projection of a logged session."""

    id: str
    relationship_id: str
    title: Optional[str] = None
    source_type: Optional[str] = None
    status: SessionStatus
    created_at: datetime
    analysis: Optional[AnalysisSummary] = None


class HealthReport(BaseModel):
    """Rolling health metrics for a relationship."""

    health_score: Optional[int] = None
    trend: Optional[HealthTrend] = None
    emotional_bank_balance: int = 0
    green_card_ratio: int = 0  # percentage, 0-100
    total_session_count: int = 0
    last_session_date: Optional[datetime] = None


class InsightsSummary(BaseModel):
    """Precomputed pattern metrics, or a not-enough-data marker."""

    relationship_id: str
    has_enough_data: bool
    message: Optional[str] = None
    sessions_count: int = 0
    metrics: Optional[dict[str, Any]] = None
    last_updated: Optional[datetime] = None


class CoupleView(RelationshipView):
    """Legacy couple shape for clients predating multi-member relationships."""

    partner1_id: Optional[str] = None
    partner2_id: Optional[str] = None
    partner1: Optional[UserSummary] = None
    partner2: Optional[UserSummary] = None
