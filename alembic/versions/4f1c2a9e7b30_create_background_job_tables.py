"""Create background job, meeting, board and notification tables.

Revision ID: 4f1c2a9e7b30
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "4f1c2a9e7b30"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "nests",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_table(
    "meetings",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("nest_id", sa.String(), nullable=True),
    sa.Column("title", sa.String(), nullable=True),
    sa.Column("transcript", sa.Text(), nullable=True),
    sa.Column("ai_summary", sa.Text(), nullable=True),
    sa.Column("status", sa.String(), nullable=True),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_meetings_nest_id"), "meetings", ["nest_id"], unique=False)

  op.create_table(
    "background_jobs",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("type", sa.String(), nullable=False),
    sa.Column("status", sa.String(), server_default="pending", nullable=False),
    sa.Column("meeting_id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=True),
    sa.Column("progress", sa.Integer(), server_default="0", nullable=False),
    sa.Column("result", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("error_message", sa.Text(), nullable=True),
    sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), server_default="{}", nullable=False),
    sa.Column("estimated_completion", sa.DateTime(timezone=True), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_background_jobs_meeting_id"), "background_jobs", ["meeting_id"], unique=False)
  op.create_index(op.f("ix_background_jobs_user_id"), "background_jobs", ["user_id"], unique=False)
  op.create_index("ix_background_jobs_status_created_at", "background_jobs", ["status", "created_at"], unique=False)
  op.create_index("ix_background_jobs_status_updated_at", "background_jobs", ["status", "updated_at"], unique=False)

  op.create_table(
    "background_job_events",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("job_id", sa.String(), nullable=False),
    sa.Column("event_type", sa.String(), nullable=False),
    sa.Column("message", sa.Text(), nullable=False),
    sa.Column("payload_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["job_id"], ["background_jobs.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_background_job_events_job_id"), "background_job_events", ["job_id"], unique=False)
  op.create_index(op.f("ix_background_job_events_event_type"), "background_job_events", ["event_type"], unique=False)

  op.create_table(
    "boards",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("nest_id", sa.String(), nullable=False),
    sa.Column("name", sa.String(), nullable=False),
    sa.Column("is_default", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    sa.Column("created_by", sa.String(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_boards_nest_id"), "boards", ["nest_id"], unique=False)

  op.create_table(
    "board_cards",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("board_id", sa.String(), nullable=False),
    sa.Column("meeting_id", sa.String(), nullable=True),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("content", sa.Text(), nullable=True),
    sa.Column("column_type", sa.String(), server_default="task", nullable=False),
    sa.Column("priority", sa.String(), nullable=True),
    sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("assignee", sa.String(), nullable=True),
    sa.Column("deadline", sa.String(), nullable=True),
    sa.Column("order_index", sa.Integer(), server_default="0", nullable=False),
    sa.Column("created_by", sa.String(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["board_id"], ["boards.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_board_cards_board_id"), "board_cards", ["board_id"], unique=False)
  op.create_index(op.f("ix_board_cards_meeting_id"), "board_cards", ["meeting_id"], unique=False)

  op.create_table(
    "sources",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("source_type", sa.String(), nullable=False),
    sa.Column("meeting_id", sa.String(), nullable=True),
    sa.Column("label", sa.String(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("source_type", "meeting_id", name="ux_sources_type_meeting"),
  )
  op.create_index(op.f("ix_sources_meeting_id"), "sources", ["meeting_id"], unique=False)

  op.create_table(
    "board_card_sources",
    sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
    sa.Column("card_id", sa.String(), nullable=False),
    sa.Column("source_id", sa.String(), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.ForeignKeyConstraint(["card_id"], ["board_cards.id"], ondelete="CASCADE"),
    sa.ForeignKeyConstraint(["source_id"], ["sources.id"], ondelete="CASCADE"),
    sa.PrimaryKeyConstraint("id"),
    sa.UniqueConstraint("card_id", "source_id", name="ux_board_card_sources_card_source"),
  )
  op.create_index(op.f("ix_board_card_sources_card_id"), "board_card_sources", ["card_id"], unique=False)
  op.create_index(op.f("ix_board_card_sources_source_id"), "board_card_sources", ["source_id"], unique=False)

  op.create_table(
    "notifications",
    sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
    sa.Column("user_id", sa.String(), nullable=False),
    sa.Column("template_id", sa.String(), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("body", sa.Text(), nullable=False),
    sa.Column("data_json", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("read", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
    sa.PrimaryKeyConstraint("id"),
  )
  op.create_index(op.f("ix_notifications_user_id"), "notifications", ["user_id"], unique=False)
  op.create_index(op.f("ix_notifications_template_id"), "notifications", ["template_id"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index(op.f("ix_notifications_template_id"), table_name="notifications")
  op.drop_index(op.f("ix_notifications_user_id"), table_name="notifications")
  op.drop_table("notifications")
  op.drop_index(op.f("ix_board_card_sources_source_id"), table_name="board_card_sources")
  op.drop_index(op.f("ix_board_card_sources_card_id"), table_name="board_card_sources")
  op.drop_table("board_card_sources")
  op.drop_index(op.f("ix_sources_meeting_id"), table_name="sources")
  op.drop_table("sources")
  op.drop_index(op.f("ix_board_cards_meeting_id"), table_name="board_cards")
  op.drop_index(op.f("ix_board_cards_board_id"), table_name="board_cards")
  op.drop_table("board_cards")
  op.drop_index(op.f("ix_boards_nest_id"), table_name="boards")
  op.drop_table("boards")
  op.drop_index(op.f("ix_background_job_events_event_type"), table_name="background_job_events")
  op.drop_index(op.f("ix_background_job_events_job_id"), table_name="background_job_events")
  op.drop_table("background_job_events")
  op.drop_index("ix_background_jobs_status_updated_at", table_name="background_jobs")
  op.drop_index("ix_background_jobs_status_created_at", table_name="background_jobs")
  op.drop_index(op.f("ix_background_jobs_user_id"), table_name="background_jobs")
  op.drop_index(op.f("ix_background_jobs_meeting_id"), table_name="background_jobs")
  op.drop_table("background_jobs")
  op.drop_index(op.f("ix_meetings_nest_id"), table_name="meetings")
  op.drop_table("meetings")
  op.drop_table("nests")
