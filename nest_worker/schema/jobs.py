from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from nest_worker.core.database import Base


class BackgroundJob(Base):
  __tablename__ = "background_jobs"
  __table_args__ = (Index("ix_background_jobs_status_created_at", "status", "created_at"), Index("ix_background_jobs_status_updated_at", "status", "updated_at"))

  id: Mapped[str] = mapped_column(String, primary_key=True)
  type: Mapped[str] = mapped_column(String, nullable=False)
  status: Mapped[str] = mapped_column(String, nullable=False, server_default="pending")
  meeting_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
  user_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  progress: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
  result: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
  error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
  metadata_json: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, server_default="{}")
  estimated_completion: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class BackgroundJobEvent(Base):
  __tablename__ = "background_job_events"

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  job_id: Mapped[str] = mapped_column(ForeignKey("background_jobs.id", ondelete="CASCADE"), nullable=False, index=True)
  event_type: Mapped[str] = mapped_column(String, nullable=False, index=True)
  message: Mapped[str] = mapped_column(Text, nullable=False)
  payload_json: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
  created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
