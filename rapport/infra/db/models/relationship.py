"""Relationship database models."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Text, JSON, Enum as SQLEnum, text

from rapport.infra.db.base import Base
from rapport.domain.relationships.models import (
    LifecycleEvent as LifecycleEventEntity,
    LifecycleEventType,
    Member as MemberEntity,
    Relationship as RelationshipEntity,
    RelationshipStatus,
    RelationshipType,
)


class RelationshipModel(Base):
    """Relationship database model."""

    __tablename__ = "relationships"

    id = Column(String, primary_key=True)
    type = Column(SQLEnum(RelationshipType), nullable=False, default=RelationshipType.ROMANTIC_COUPLE)
    name = Column(String, nullable=True)
    invite_code = Column(String, unique=True, index=True, nullable=False)
    status = Column(SQLEnum(RelationshipStatus), nullable=False, default=RelationshipStatus.ACTIVE)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    ended_at = Column(DateTime, nullable=True)
    end_reason = Column(Text, nullable=True)

    def to_entity(self) -> RelationshipEntity:
        """Convert to domain entity."""
        return RelationshipEntity(
            id=self.id,
            type=self.type,
            name=self.name,
            invite_code=self.invite_code,
            status=self.status,
            created_at=self.created_at,
            updated_at=self.updated_at,
            ended_at=self.ended_at,
            end_reason=self.end_reason,
        )

    @classmethod
    def from_entity(cls, entity: RelationshipEntity) -> "RelationshipModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            type=entity.type,
            name=entity.name,
            invite_code=entity.invite_code,
            status=entity.status,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            ended_at=entity.ended_at,
            end_reason=entity.end_reason,
        )


class RelationshipMemberModel(Base):
    """Membership of a user in a relationship. left_at IS NULL while active."""

    __tablename__ = "relationship_members"
    __table_args__ = (
        # At most one active membership per (relationship, user); closes the join race.
        Index(
            "uq_relationship_members_active",
            "relationship_id",
            "user_id",
            unique=True,
            postgresql_where=text("left_at IS NULL"),
            sqlite_where=text("left_at IS NULL"),
        ),
    )

    id = Column(String, primary_key=True)
    relationship_id = Column(String, ForeignKey("relationships.id"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String, nullable=True)  # free text, e.g. "parent", "mentor"
    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    left_at = Column(DateTime, nullable=True)

    def to_entity(self, user=None) -> MemberEntity:
        """Convert to domain entity; user is an optional UserModel."""
        return MemberEntity(
            id=self.id,
            relationship_id=self.relationship_id,
            user_id=self.user_id,
            role=self.role,
            joined_at=self.joined_at,
            left_at=self.left_at,
            user=user.to_summary() if user is not None else None,
        )

    @classmethod
    def from_entity(cls, entity: MemberEntity) -> "RelationshipMemberModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            relationship_id=entity.relationship_id,
            user_id=entity.user_id,
            role=entity.role,
            joined_at=entity.joined_at,
            left_at=entity.left_at,
        )


class RelationshipLifecycleEventModel(Base):
    """Append-only audit log of relationship mutations."""

    __tablename__ = "relationship_lifecycle_events"

    id = Column(String, primary_key=True)
    relationship_id = Column(String, ForeignKey("relationships.id"), nullable=False, index=True)
    event_type = Column(SQLEnum(LifecycleEventType), nullable=False)
    triggered_by_user_id = Column(String, ForeignKey("users.id"), nullable=False)
    reason = Column(Text, nullable=True)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_entity(self) -> LifecycleEventEntity:
        """Convert to domain entity."""
        return LifecycleEventEntity(
            id=self.id,
            relationship_id=self.relationship_id,
            event_type=self.event_type,
            triggered_by_user_id=self.triggered_by_user_id,
            reason=self.reason,
            metadata=self.event_metadata,
            created_at=self.created_at,
        )

    @classmethod
    def from_entity(cls, entity: LifecycleEventEntity) -> "RelationshipLifecycleEventModel":
        """Create from domain entity."""
        return cls(
            id=entity.id,
            relationship_id=entity.relationship_id,
            event_type=entity.event_type,
            triggered_by_user_id=entity.triggered_by_user_id,
            reason=entity.reason,
            event_metadata=entity.metadata,
            created_at=entity.created_at,
        )
