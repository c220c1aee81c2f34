"""Read-side projections over relationship views."""
from typing import Iterable, Optional

from rapport.domain.relationships.models import CoupleView, RelationshipType, RelationshipView


def to_couple_view(view: RelationshipView) -> CoupleView:
    """Reshape a relationship into the legacy partner1/partner2 structure.

    Only the first two active members are surfaced.
    """
    members = view.members
    first = members[0] if len(members) > 0 else None
    second = members[1] if len(members) > 1 else None
    return CoupleView(
        **view.model_dump(),
        partner1_id=first.user_id if first else None,
        partner2_id=second.user_id if second else None,
        partner1=first.user if first else None,
        partner2=second.user if second else None,
    )


def first_couple(views: Iterable[RelationshipView]) -> Optional[CoupleView]:
    """First romantic couple among views, projected; None if there is none."""
    for view in views:
        if view.type == RelationshipType.ROMANTIC_COUPLE:
            return to_couple_view(view)
    return None
