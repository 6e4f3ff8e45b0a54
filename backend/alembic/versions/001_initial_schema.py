"""Initial schema — members, cohorts, memberships, posts, notification log, email health.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "members",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("role", sa.String(10), nullable=False, server_default="member"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "cohorts",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("registration_deadline", sa.Date, nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False, server_default="50"),
        sa.Column("status", sa.String(20), nullable=False, server_default="upcoming"),
        sa.Column("is_legacy", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("sort_rank", sa.Integer, nullable=True),
        sa.Column("chat_invite_url", sa.String(2000), nullable=True),
        sa.Column("reading_plan_url", sa.String(2000), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_cohorts_start_date", "cohorts", ["start_date"])
    op.create_index("ix_cohorts_status", "cohorts", ["status"])

    op.create_table(
        "memberships",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("cohort_id", sa.Integer, sa.ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("member_id", sa.Integer, sa.ForeignKey("members.id", ondelete="CASCADE"), nullable=False),
        sa.Column("join_date", sa.Date, nullable=False),
        sa.Column("status", sa.String(10), nullable=False, server_default="active"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_memberships_cohort_status", "memberships", ["cohort_id", "status"])
    op.create_index("ix_memberships_member", "memberships", ["member_id"])

    op.create_table(
        "group_messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("cohort_id", sa.Integer, sa.ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("message_type", sa.String(20), nullable=False, server_default="announcement"),
        sa.Column("author_id", sa.Integer, sa.ForeignKey("members.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_group_messages_cohort_id", "group_messages", ["cohort_id"])

    op.create_table(
        "notification_records",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("cohort_id", sa.Integer, sa.ForeignKey("cohorts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column("day_bucket", sa.Date, nullable=False),
        sa.Column("recipient_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("cohort_id", "kind", "day_bucket", name="uq_notification_key"),
    )

    op.create_table(
        "email_health",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("recipient", sa.String(320), nullable=False, unique=True),
        sa.Column("consecutive_failures", sa.Integer, nullable=False, server_default="0"),
        sa.Column("total_failures", sa.Integer, nullable=False, server_default="0"),
        sa.Column("permanent_failure", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("last_error", sa.Text, nullable=True),
        sa.Column("last_failure_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_success_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("email_health")
    op.drop_table("notification_records")
    op.drop_index("ix_group_messages_cohort_id", table_name="group_messages")
    op.drop_table("group_messages")
    op.drop_index("ix_memberships_member", table_name="memberships")
    op.drop_index("ix_memberships_cohort_status", table_name="memberships")
    op.drop_table("memberships")
    op.drop_index("ix_cohorts_status", table_name="cohorts")
    op.drop_index("ix_cohorts_start_date", table_name="cohorts")
    op.drop_table("cohorts")
    op.drop_table("members")
