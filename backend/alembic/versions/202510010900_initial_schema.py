"""Initial Tseleskop schema."""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202510010900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("first_name", sa.String(length=255), nullable=True),
        sa.Column("last_name", sa.String(length=255), nullable=True),
        sa.Column("username", sa.String(length=255), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("invite_code", sa.String(length=128), nullable=False),
        sa.Column("chat_id", sa.String(length=64), nullable=True),
        sa.Column("week_report", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("invite_code", name="uq_users_invite_code"),
    )

    op.create_table(
        "goals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("specific", sa.Text(), nullable=False, server_default="-"),
        sa.Column("measurable", sa.Text(), nullable=False, server_default="-"),
        sa.Column("attainable", sa.Text(), nullable=False, server_default="-"),
        sa.Column("relevant", sa.Text(), nullable=False, server_default="-"),
        sa.Column("award", sa.Text(), nullable=False, server_default="-"),
        sa.Column("urgency_level", sa.String(length=16), nullable=False, server_default="LOW"),
        sa.Column("privacy", sa.String(length=16), nullable=False, server_default="PRIVATE"),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("urgency_level IN ('LOW', 'AVERAGE', 'HIGH')", name="ck_goals_urgency_level"),
        sa.CheckConstraint("privacy IN ('PRIVATE', 'PUBLIC')", name="ck_goals_privacy"),
    )
    op.create_index("ix_goals_user_id", "goals", ["user_id"], unique=False)

    op.create_table(
        "sub_goals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("goal_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=250), nullable=False),
        sa.Column("deadline", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["goal_id"], ["goals.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_sub_goals_goal_id", "sub_goals", ["goal_id"], unique=False)

    op.create_table(
        "friendships",
        sa.Column("first_user_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("second_user_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["first_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["second_user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint("first_user_id <> second_user_id", name="ck_friendships_distinct"),
    )

    op.create_table(
        "notification_settings",
        sa.Column("user_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("today_sub_goals_notifications", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("tomorrow_sub_goal_notifications", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column(
            "monthly_goal_deadline_notifications",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("true"),
        ),
        sa.Column("custom_notifications", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("today_sub_goals_notifications_time", sa.String(length=5), nullable=True),
        sa.Column("tomorrow_sub_goal_notifications_time", sa.String(length=5), nullable=True),
        sa.Column("monthly_goal_deadline_notifications_time", sa.String(length=5), nullable=True),
        sa.Column("custom_notifications_time", sa.String(length=5), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "refresh_tokens",
        sa.Column("user_id", sa.String(length=64), primary_key=True, nullable=False),
        sa.Column("token", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("token", name="uq_refresh_tokens_token"),
    )

    op.create_table(
        "weekly_reports",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "week_start", name="uq_weekly_reports_user_week"),
    )
    op.create_index("ix_weekly_reports_user_id", "weekly_reports", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_weekly_reports_user_id", table_name="weekly_reports")
    op.drop_table("weekly_reports")
    op.drop_table("refresh_tokens")
    op.drop_table("notification_settings")
    op.drop_table("friendships")
    op.drop_index("ix_sub_goals_goal_id", table_name="sub_goals")
    op.drop_table("sub_goals")
    op.drop_index("ix_goals_user_id", table_name="goals")
    op.drop_table("goals")
    op.drop_table("users")
