"""Postgres-backed repository for background jobs using SQLAlchemy."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import and_, func, literal, select, update
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nest_worker.core.database import require_session_factory
from nest_worker.jobs.models import JobEventRecord, JobRecord, JobStatus, ensure_transition_allowed
from nest_worker.schema.jobs import BackgroundJob, BackgroundJobEvent
from nest_worker.storage.jobs_repo import JobsRepository


def _utcnow() -> datetime:
  return datetime.now(UTC)


class PostgresJobsRepository(JobsRepository):
  """Persist jobs and their timeline to Postgres using SQLAlchemy."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def create_job(self, record: JobRecord) -> None:
    async with self._session_factory() as session:
      session.add(
        BackgroundJob(
          id=record.job_id,
          type=str(record.job_type),
          status=record.status.value,
          meeting_id=record.meeting_id,
          user_id=record.user_id,
          progress=record.progress,
          result=record.result,
          error_message=record.error_message,
          metadata_json=dict(record.metadata),
          estimated_completion=record.estimated_completion,
          created_at=record.created_at,
          updated_at=record.updated_at,
        )
      )
      await session.commit()

  async def get_job(self, job_id: str) -> JobRecord | None:
    async with self._session_factory() as session:
      row = await session.get(BackgroundJob, job_id, populate_existing=True)
      if row is None:
        return None
      return self._model_to_record(row)

  async def list_by_status(self, status: JobStatus, *, limit: int | None = None) -> list[JobRecord]:
    async with self._session_factory() as session:
      stmt = select(BackgroundJob).where(BackgroundJob.status == status.value).order_by(BackgroundJob.created_at.asc(), BackgroundJob.id.asc())
      if limit is not None:
        stmt = stmt.limit(limit)
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row) for row in rows]

  async def transition_status(
    self,
    job_id: str,
    *,
    expected_status: JobStatus,
    new_status: JobStatus,
    progress: int | None = None,
    result: dict[str, Any] | None = None,
    error_message: str | None = None,
  ) -> bool:
    ensure_transition_allowed(expected_status, new_status)
    values: dict[str, Any] = {"status": new_status.value, "updated_at": _utcnow()}
    if progress is not None:
      values["progress"] = progress
    if result is not None:
      values["result"] = result
    if error_message is not None:
      values["error_message"] = error_message

    # Single UPDATE ... WHERE status = :expected; the row count tells the caller whether it won.
    stmt = update(BackgroundJob).where(BackgroundJob.id == job_id, BackgroundJob.status == expected_status.value).values(**values).execution_options(synchronize_session=False)
    async with self._session_factory() as session:
      outcome = await session.execute(stmt)
      await session.commit()
      return outcome.rowcount == 1

  async def update_job(
    self,
    job_id: str,
    *,
    expected_status: JobStatus | None = None,
    progress: int | None = None,
    metadata: dict[str, Any] | None = None,
    result: dict[str, Any] | None = None,
    error_message: str | None = None,
  ) -> JobRecord | None:
    values: dict[str, Any] = {"updated_at": _utcnow()}
    if progress is not None:
      values["progress"] = func.greatest(BackgroundJob.progress, progress)
    if metadata is not None:
      # JSONB || merges keys so creation-time metadata survives step updates.
      values["metadata_json"] = BackgroundJob.metadata_json.op("||")(literal(metadata, type_=JSONB))
    if result is not None:
      values["result"] = result
    if error_message is not None:
      values["error_message"] = error_message

    conditions = [BackgroundJob.id == job_id]
    if expected_status is not None:
      conditions.append(BackgroundJob.status == expected_status.value)
    stmt = update(BackgroundJob).where(*conditions).values(**values).returning(BackgroundJob).execution_options(synchronize_session=False)
    async with self._session_factory() as session:
      row = (await session.execute(stmt)).scalar_one_or_none()
      await session.commit()
      if row is None:
        return None
      return self._model_to_record(row)

  async def find_stale_running(self, older_than: datetime) -> list[JobRecord]:
    async with self._session_factory() as session:
      stmt = select(BackgroundJob).where(BackgroundJob.status == JobStatus.RUNNING.value, BackgroundJob.updated_at < older_than).order_by(BackgroundJob.updated_at.asc())
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row) for row in rows]

  async def list_jobs(self, *, user_id: str | None = None, meeting_id: str | None = None, status: JobStatus | None = None, limit: int = 50) -> list[JobRecord]:
    filters = []
    if user_id:
      filters.append(BackgroundJob.user_id == user_id)
    if meeting_id:
      filters.append(BackgroundJob.meeting_id == meeting_id)
    if status is not None:
      filters.append(BackgroundJob.status == status.value)
    stmt = select(BackgroundJob).order_by(BackgroundJob.created_at.desc()).limit(limit)
    if filters:
      stmt = stmt.where(and_(*filters))
    async with self._session_factory() as session:
      rows = (await session.execute(stmt)).scalars().all()
      return [self._model_to_record(row) for row in rows]

  async def append_event(self, *, job_id: str, event_type: str, message: str, payload_json: dict | None = None) -> None:
    async with self._session_factory() as session:
      session.add(BackgroundJobEvent(job_id=job_id, event_type=event_type, message=message, payload_json=payload_json, created_at=_utcnow()))
      await session.commit()

  async def list_events(self, *, job_id: str, limit: int = 100) -> list[JobEventRecord]:
    async with self._session_factory() as session:
      stmt = select(BackgroundJobEvent).where(BackgroundJobEvent.job_id == job_id).order_by(BackgroundJobEvent.created_at.desc(), BackgroundJobEvent.id.desc()).limit(limit)
      rows = (await session.execute(stmt)).scalars().all()
      return [
        JobEventRecord(job_id=row.job_id, event_type=row.event_type, message=row.message, created_at=row.created_at, payload=row.payload_json)
        for row in reversed(rows)
      ]

  def _model_to_record(self, row: BackgroundJob) -> JobRecord:
    return JobRecord(
      job_id=row.id,
      job_type=row.type,
      status=JobStatus(row.status),
      meeting_id=row.meeting_id,
      user_id=row.user_id,
      progress=int(row.progress or 0),
      metadata=dict(row.metadata_json or {}),
      result=row.result,
      error_message=row.error_message,
      estimated_completion=row.estimated_completion,
      created_at=row.created_at,
      updated_at=row.updated_at,
    )
