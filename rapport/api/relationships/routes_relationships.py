"""Relationship routes."""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from pydantic import BaseModel, Field

from rapport.api.deps import get_current_user_id, get_relationship_service
from rapport.domain.relationships.models import (
    CoupleView,
    HealthReport,
    InsightsSummary,
    LifecycleEvent,
    Member,
    RelationshipStatus,
    RelationshipType,
    RelationshipView,
    SessionSummary,
)
from rapport.domain.relationships.services import RelationshipLifecycleService

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateRelationshipRequest(BaseModel):
    """Create relationship request model."""
    type: RelationshipType = RelationshipType.ROMANTIC_COUPLE
    name: Optional[str] = None


class JoinRelationshipRequest(BaseModel):
    """Join relationship request model."""
    invite_code: str = Field(min_length=1)
    role: Optional[str] = None  # e.g. "manager", "parent", "child"


class LeaveRelationshipRequest(BaseModel):
    """Leave relationship request model."""
    reason: Optional[str] = None


class UpdateRelationshipStatusRequest(BaseModel):
    """Update relationship status request model."""
    status: RelationshipStatus
    reason: Optional[str] = None


class LeaveRelationshipResponse(BaseModel):
    """Leave relationship response model."""
    success: bool
    message: str


@router.post("", response_model=RelationshipView, status_code=status.HTTP_201_CREATED)
async def create_relationship(
    request: CreateRelationshipRequest,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Create a relationship; the caller becomes its first member."""
    logger.info("Create relationship request: type=%s user=%s", request.type.value, user_id)
    return await service.create_relationship(user_id, rel_type=request.type, name=request.name)


@router.post("/join", response_model=RelationshipView)
async def join_relationship(
    request: JoinRelationshipRequest,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Join a relationship with an invite code."""
    return await service.join_relationship(user_id, request.invite_code, role=request.role)


@router.get("", response_model=list[RelationshipView])
async def list_relationships(
    include_ended: bool = False,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Relationships of the caller. ACTIVE only unless include_ended=true."""
    return await service.list_relationships_for_user(user_id, include_ended=include_ended)


# Must be declared before /{relationship_id} so "couple" is not taken as an id.
@router.get("/couple", response_model=Optional[CoupleView])
async def get_couple(
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Legacy couple view for older clients; null when the caller has no couple."""
    return await service.get_couple_for_user(user_id)


@router.get("/{relationship_id}", response_model=RelationshipView)
async def get_relationship(
    relationship_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Get a relationship the caller belongs to."""
    return await service.get_relationship(relationship_id, user_id)


@router.delete("/{relationship_id}/leave", response_model=LeaveRelationshipResponse)
async def leave_relationship(
    relationship_id: str,
    request: Optional[LeaveRelationshipRequest] = Body(default=None),
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Leave a relationship. Does not delete the relationship or its data."""
    reason = request.reason if request else None
    return await service.leave_relationship(relationship_id, user_id, reason=reason)


@router.patch("/{relationship_id}/status", response_model=RelationshipView)
async def update_relationship_status(
    relationship_id: str,
    request: UpdateRelationshipStatusRequest,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Pause, resume, end or archive a relationship."""
    return await service.update_status(
        relationship_id, user_id, request.status, reason=request.reason
    )


@router.get("/{relationship_id}/members", response_model=list[Member])
async def get_members(
    relationship_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Active members with user details."""
    return await service.get_members(relationship_id, user_id)


@router.get("/{relationship_id}/sessions", response_model=list[SessionSummary])
async def get_sessions(
    relationship_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Sessions with analysis results, most recent first."""
    return await service.get_sessions(relationship_id, user_id)


@router.get("/{relationship_id}/insights", response_model=InsightsSummary)
async def get_insights(
    relationship_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Pattern metrics from the metrics cache."""
    return await service.get_insights(relationship_id, user_id)


@router.get("/{relationship_id}/health", response_model=HealthReport)
async def get_health(
    relationship_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Health score, trend, emotional bank balance and card ratio."""
    return await service.get_health(relationship_id, user_id)


@router.get("/{relationship_id}/events", response_model=list[LifecycleEvent])
async def get_lifecycle_events(
    relationship_id: str,
    user_id: str = Depends(get_current_user_id),
    service: RelationshipLifecycleService = Depends(get_relationship_service),
):
    """Lifecycle audit trail, oldest first."""
    return await service.get_lifecycle_events(relationship_id, user_id)
