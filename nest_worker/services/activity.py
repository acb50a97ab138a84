"""Workspace "last activity" timestamp updates."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nest_worker.core.database import require_session_factory
from nest_worker.schema.meetings import Nest


class WorkspaceActivityService:
  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def touch(self, nest_id: str) -> None:
    """Bump ``nests.updated_at`` so the workspace sorts as recently active."""
    async with self._session_factory() as session:
      await session.execute(update(Nest).where(Nest.id == nest_id).values(updated_at=datetime.now(UTC)).execution_options(synchronize_session=False))
      await session.commit()
