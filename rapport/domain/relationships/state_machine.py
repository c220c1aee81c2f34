"""Relationship status transitions.

The table below is the single source of truth for which status changes are
allowed. Adding a status means adding a row here and listing it wherever it
may be reached from.
"""
from rapport.domain.common.errors import InvalidStateError
from rapport.domain.relationships.models import LifecycleEventType, RelationshipStatus

ALLOWED_TRANSITIONS: dict[RelationshipStatus, frozenset[RelationshipStatus]] = {
    RelationshipStatus.ACTIVE: frozenset({
        RelationshipStatus.PAUSED,
        RelationshipStatus.ENDED_MUTUAL,
        RelationshipStatus.ENDED_UNILATERAL,
    }),
    RelationshipStatus.PAUSED: frozenset({
        RelationshipStatus.ACTIVE,
        RelationshipStatus.ENDED_MUTUAL,
        RelationshipStatus.ENDED_UNILATERAL,
    }),
    RelationshipStatus.ENDED_MUTUAL: frozenset({RelationshipStatus.ARCHIVED}),
    RelationshipStatus.ENDED_UNILATERAL: frozenset({RelationshipStatus.ARCHIVED}),
    RelationshipStatus.ARCHIVED: frozenset(),
}

ENDED_STATUSES = frozenset({RelationshipStatus.ENDED_MUTUAL, RelationshipStatus.ENDED_UNILATERAL})

# Transitions whose audit event differs from the target status name.
_EVENT_OVERRIDES: dict[tuple[RelationshipStatus, RelationshipStatus], LifecycleEventType] = {
    (RelationshipStatus.PAUSED, RelationshipStatus.ACTIVE): LifecycleEventType.RESUMED,
}


def can_transition(current: RelationshipStatus, requested: RelationshipStatus) -> bool:
    """Return True if the table allows current -> requested."""
    return requested in ALLOWED_TRANSITIONS[current]


def validate_transition(current: RelationshipStatus, requested: RelationshipStatus) -> None:
    """Raise InvalidStateError unless current -> requested is allowed."""
    if not can_transition(current, requested):
        raise InvalidStateError(
            f"Cannot transition from {current.value} to {requested.value}",
            current_status=current.value,
            requested_status=requested.value,
        )


def event_type_for(current: RelationshipStatus, requested: RelationshipStatus) -> LifecycleEventType:
    """Lifecycle event recorded for an (allowed) transition."""
    override = _EVENT_OVERRIDES.get((current, requested))
    if override is not None:
        return override
    return LifecycleEventType(requested.value)
