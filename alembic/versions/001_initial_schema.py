"""Initial schema: relationships, members, lifecycle events and read-side tables.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None

RELATIONSHIP_TYPES = (
    "ROMANTIC_COUPLE",
    "ROMANTIC_POLYAMOROUS",
    "FRIENDSHIP_PAIR",
    "FRIENDSHIP_GROUP",
    "FAMILY_PARENT_CHILD",
    "FAMILY_SIBLINGS",
    "FAMILY_EXTENDED",
    "BUSINESS_PARTNERSHIP",
    "PROFESSIONAL_MENTORSHIP",
    "PROFESSIONAL_TEAM",
    "COMMUNITY_GROUP",
)
RELATIONSHIP_STATUSES = ("ACTIVE", "PAUSED", "ENDED_MUTUAL", "ENDED_UNILATERAL", "ARCHIVED")
LIFECYCLE_EVENT_TYPES = (
    "CREATED",
    "MEMBER_JOINED",
    "MEMBER_LEFT",
    "PAUSED",
    "RESUMED",
    "ENDED_MUTUAL",
    "ENDED_UNILATERAL",
    "ARCHIVED",
)
SESSION_STATUSES = ("RECORDING", "UPLOADED", "TRANSCRIBING", "ANALYZING", "COMPLETED", "FAILED")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("avatar_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)

    op.create_table(
        "relationships",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("type", sa.Enum(*RELATIONSHIP_TYPES, name="relationshiptype"), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("invite_code", sa.String(), nullable=False),
        sa.Column("status", sa.Enum(*RELATIONSHIP_STATUSES, name="relationshipstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("ended_at", sa.DateTime(), nullable=True),
        sa.Column("end_reason", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_relationships_invite_code"), "relationships", ["invite_code"], unique=True)

    op.create_table(
        "relationship_members",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("relationship_id", sa.String(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=True),
        sa.Column("joined_at", sa.DateTime(), nullable=False),
        sa.Column("left_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["relationship_id"], ["relationships.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_relationship_members_relationship_id"), "relationship_members", ["relationship_id"]
    )
    op.create_index(op.f("ix_relationship_members_user_id"), "relationship_members", ["user_id"])
    # One active membership per (relationship, user)
    op.create_index(
        "uq_relationship_members_active",
        "relationship_members",
        ["relationship_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("left_at IS NULL"),
    )

    op.create_table(
        "relationship_lifecycle_events",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("relationship_id", sa.String(), nullable=False),
        sa.Column("event_type", sa.Enum(*LIFECYCLE_EVENT_TYPES, name="lifecycleeventtype"), nullable=False),
        sa.Column("triggered_by_user_id", sa.String(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["relationship_id"], ["relationships.id"]),
        sa.ForeignKeyConstraint(["triggered_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_relationship_lifecycle_events_relationship_id"),
        "relationship_lifecycle_events",
        ["relationship_id"],
    )

    op.create_table(
        "sessions",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("relationship_id", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=True),
        sa.Column("source_type", sa.String(), nullable=True),
        sa.Column("status", sa.Enum(*SESSION_STATUSES, name="sessionstatus"), nullable=False),
        sa.Column("created_by_user_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["relationship_id"], ["relationships.id"]),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sessions_relationship_id"), "sessions", ["relationship_id"])
    op.create_index(op.f("ix_sessions_created_at"), "sessions", ["created_at"])

    op.create_table(
        "analysis_results",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("session_id", sa.String(), nullable=False),
        sa.Column("overall_score", sa.Integer(), nullable=False),
        sa.Column("green_card_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("yellow_card_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("red_card_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bank_change", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("safety_flag_triggered", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["session_id"], ["sessions.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("session_id"),
    )

    op.create_table(
        "emotional_bank_ledgers",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("relationship_id", sa.String(), nullable=False),
        sa.Column("balance", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["relationship_id"], ["relationships.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("relationship_id"),
    )

    op.create_table(
        "pattern_metrics_cache",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("relationship_id", sa.String(), nullable=False),
        sa.Column("sessions_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("metrics", sa.JSON(), nullable=False),
        sa.Column("last_updated", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["relationship_id"], ["relationships.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("relationship_id"),
    )


def downgrade() -> None:
    op.drop_table("pattern_metrics_cache")
    op.drop_table("emotional_bank_ledgers")
    op.drop_table("analysis_results")
    op.drop_index(op.f("ix_sessions_created_at"), table_name="sessions")
    op.drop_index(op.f("ix_sessions_relationship_id"), table_name="sessions")
    op.drop_table("sessions")
    op.drop_index(
        op.f("ix_relationship_lifecycle_events_relationship_id"),
        table_name="relationship_lifecycle_events",
    )
    op.drop_table("relationship_lifecycle_events")
    op.drop_index("uq_relationship_members_active", table_name="relationship_members")
    op.drop_index(op.f("ix_relationship_members_user_id"), table_name="relationship_members")
    op.drop_index(op.f("ix_relationship_members_relationship_id"), table_name="relationship_members")
    op.drop_table("relationship_members")
    op.drop_index(op.f("ix_relationships_invite_code"), table_name="relationships")
    op.drop_table("relationships")
    op.drop_index(op.f("ix_users_email"), table_name="users")
    op.drop_table("users")
    sa.Enum(name="sessionstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="lifecycleeventtype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="relationshipstatus").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="relationshiptype").drop(op.get_bind(), checkfirst=True)
