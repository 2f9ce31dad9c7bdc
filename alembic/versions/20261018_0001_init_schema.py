"""Initial schema for events, users and enrollments.

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 00:01:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


user_role_enum = sa.Enum("admin", "member", name="user_role")


def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("deadline", sa.Date(), nullable=True),
        sa.Column("organizer_name", sa.Text(), nullable=True),
        sa.Column("organizer_email", sa.Text(), nullable=True),
        sa.Column("reward_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("deadline_notified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("capacity > 0", name="ck_events_capacity_positive"),
        sa.CheckConstraint("reward_score >= 0", name="ck_events_reward_score_non_negative"),
    )
    op.create_index("ix_events_deadline", "events", ["deadline"], unique=False)

    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("role", user_role_enum, nullable=False, server_default="member"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("username", name="uq_users_username"),
    )

    op.create_table(
        "enrollments",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.BigInteger(), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["event_id"], ["events.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["username"], ["users.username"], ondelete="CASCADE", onupdate="CASCADE"),
        sa.UniqueConstraint("event_id", "username", name="uq_enrollments_event_id_username"),
    )
    op.create_index("ix_enrollments_event_id", "enrollments", ["event_id"], unique=False)
    op.create_index("ix_enrollments_username", "enrollments", ["username"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_enrollments_username", table_name="enrollments")
    op.drop_index("ix_enrollments_event_id", table_name="enrollments")
    op.drop_table("enrollments")

    op.drop_table("users")

    op.drop_index("ix_events_deadline", table_name="events")
    op.drop_table("events")

    user_role_enum.drop(op.get_bind(), checkfirst=True)
