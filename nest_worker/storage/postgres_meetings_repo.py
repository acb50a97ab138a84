"""Postgres-backed meeting access for job processors."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nest_worker.core.database import require_session_factory
from nest_worker.schema.meetings import Meeting
from nest_worker.storage.meetings_repo import MeetingRecord, MeetingsRepository


class PostgresMeetingsRepository(MeetingsRepository):
  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def get_meeting(self, meeting_id: str) -> MeetingRecord | None:
    async with self._session_factory() as session:
      row = await session.get(Meeting, meeting_id)
      if row is None:
        return None
      return MeetingRecord(meeting_id=row.id, nest_id=row.nest_id, title=row.title, transcript=row.transcript, ai_summary=row.ai_summary, status=row.status)

  async def save_transcript(self, meeting_id: str, transcript: str, *, status: str = "transcribed") -> bool:
    return await self._update(meeting_id, transcript=transcript, status=status)

  async def save_summary(self, meeting_id: str, summary: str) -> bool:
    return await self._update(meeting_id, ai_summary=summary)

  async def _update(self, meeting_id: str, **values: str) -> bool:
    stmt = update(Meeting).where(Meeting.id == meeting_id).values(updated_at=datetime.now(UTC), **values).execution_options(synchronize_session=False)
    async with self._session_factory() as session:
      outcome = await session.execute(stmt)
      await session.commit()
      return outcome.rowcount == 1
