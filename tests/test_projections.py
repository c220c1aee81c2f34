"""Tests for the legacy couple projection."""
from datetime import datetime, timedelta

from rapport.domain.relationships.models import (
    Member,
    RelationshipStatus,
    RelationshipType,
    RelationshipView,
    UserSummary,
)
from rapport.domain.relationships.projections import first_couple, to_couple_view

NOW = datetime(2026, 10, 1, 12, 0, 0)


def make_member(relationship_id, name, minutes):
    user = UserSummary(id=f"u-{name}", email=f"{name}@example.com", name=name.title())
    return Member(
        id=f"m-{name}",
        relationship_id=relationship_id,
        user_id=user.id,
        joined_at=NOW + timedelta(minutes=minutes),
        user=user,
    )


def make_view(rel_id, rel_type=RelationshipType.ROMANTIC_COUPLE, names=("alice", "bob")):
    return RelationshipView(
        id=rel_id,
        type=rel_type,
        invite_code=f"CODE{rel_id}".upper(),
        status=RelationshipStatus.ACTIVE,
        created_at=NOW,
        updated_at=NOW,
        members=[make_member(rel_id, name, i) for i, name in enumerate(names)],
    )


def test_couple_view_exposes_partners():
    couple = to_couple_view(make_view("r1"))
    assert couple.id == "r1"
    assert couple.partner1_id == "u-alice"
    assert couple.partner2_id == "u-bob"
    assert couple.partner1.name == "Alice"
    assert couple.partner2.email == "bob@example.com"
    assert len(couple.members) == 2


def test_couple_view_uses_first_two_members():
    couple = to_couple_view(make_view("r1", names=("alice", "bob", "carol")))
    assert couple.partner1_id == "u-alice"
    assert couple.partner2_id == "u-bob"


def test_couple_view_with_single_member():
    couple = to_couple_view(make_view("r1", names=("alice",)))
    assert couple.partner1_id == "u-alice"
    assert couple.partner2_id is None
    assert couple.partner2 is None


def test_first_couple_skips_other_types():
    views = [
        make_view("r1", rel_type=RelationshipType.FRIENDSHIP_PAIR),
        make_view("r2"),
        make_view("r3"),
    ]
    assert first_couple(views).id == "r2"


def test_first_couple_none():
    assert first_couple([make_view("r1", rel_type=RelationshipType.FAMILY_SIBLINGS)]) is None
    assert first_couple([]) is None
