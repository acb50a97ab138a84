from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nest_worker.core.database import Base


def _uuid_str() -> str:
  return str(uuid.uuid4())


class Board(Base):
  __tablename__ = "boards"

  id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid_str)
  nest_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
  name: Mapped[str] = mapped_column(String, nullable=False)
  is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
  created_by: Mapped[str | None] = mapped_column(String, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BoardCard(Base):
  __tablename__ = "board_cards"

  id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid_str)
  board_id: Mapped[str] = mapped_column(ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
  meeting_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  title: Mapped[str] = mapped_column(String, nullable=False)
  content: Mapped[str | None] = mapped_column(Text, nullable=True)
  column_type: Mapped[str] = mapped_column(String, nullable=False, server_default="task")
  priority: Mapped[str | None] = mapped_column(String, nullable=True)
  tags: Mapped[list | None] = mapped_column(JSONB, nullable=True)
  assignee: Mapped[str | None] = mapped_column(String, nullable=True)
  deadline: Mapped[str | None] = mapped_column(String, nullable=True)
  order_index: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
  created_by: Mapped[str | None] = mapped_column(String, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Source(Base):
  """Provenance record that generated artifacts point back to."""

  __tablename__ = "sources"
  __table_args__ = (UniqueConstraint("source_type", "meeting_id", name="ux_sources_type_meeting"),)

  id: Mapped[str] = mapped_column(String, primary_key=True, default=_uuid_str)
  source_type: Mapped[str] = mapped_column(String, nullable=False)
  meeting_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  label: Mapped[str | None] = mapped_column(String, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BoardCardSource(Base):
  __tablename__ = "board_card_sources"
  __table_args__ = (UniqueConstraint("card_id", "source_id", name="ux_board_card_sources_card_source"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  card_id: Mapped[str] = mapped_column(ForeignKey("board_cards.id", ondelete="CASCADE"), nullable=False, index=True)
  source_id: Mapped[str] = mapped_column(ForeignKey("sources.id", ondelete="CASCADE"), nullable=False, index=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
