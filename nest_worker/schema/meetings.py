"""Meeting and workspace tables read and written by the job processors.

Only the columns the worker touches are mapped; the rest of each table belongs to the
application that owns it.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from nest_worker.core.database import Base


class Nest(Base):
  __tablename__ = "nests"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  name: Mapped[str | None] = mapped_column(String, nullable=True)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Meeting(Base):
  __tablename__ = "meetings"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  nest_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
  title: Mapped[str | None] = mapped_column(String, nullable=True)
  transcript: Mapped[str | None] = mapped_column(Text, nullable=True)
  ai_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
  status: Mapped[str | None] = mapped_column(String, nullable=True)
  updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
