"""Shared fixtures: an in-memory jobs store that honours the conditional-update contract."""

from __future__ import annotations

import asyncio
import sys
from collections import defaultdict
from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
  sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from nest_worker.config import Settings  # noqa: E402
from nest_worker.jobs.models import JobEventRecord, JobRecord, JobStatus, ensure_transition_allowed  # noqa: E402

BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=UTC)


class FakeClock:
  """Manually advanced UTC clock."""

  def __init__(self, start: datetime = BASE_TIME) -> None:
    self.now = start

  def __call__(self) -> datetime:
    return self.now

  def advance(self, **kwargs: float) -> datetime:
    self.now = self.now + timedelta(**kwargs)
    return self.now


class InMemoryJobsRepository:
  """Jobs store double; every call yields to the loop so concurrent callers interleave."""

  def __init__(self, clock: Callable[[], datetime]) -> None:
    self._clock = clock
    self._jobs: dict[str, JobRecord] = {}
    self._events: dict[str, list[JobEventRecord]] = defaultdict(list)
    self.status_history: dict[str, list[JobStatus]] = defaultdict(list)
    self.max_running_observed = 0

  async def create_job(self, record: JobRecord) -> None:
    await asyncio.sleep(0)
    self._jobs[record.job_id] = replace(record, metadata=dict(record.metadata))
    self.status_history[record.job_id].append(record.status)

  async def get_job(self, job_id: str) -> JobRecord | None:
    await asyncio.sleep(0)
    record = self._jobs.get(job_id)
    return replace(record, metadata=dict(record.metadata)) if record is not None else None

  async def list_by_status(self, status: JobStatus, *, limit: int | None = None) -> list[JobRecord]:
    await asyncio.sleep(0)
    rows = sorted((job for job in self._jobs.values() if job.status == status), key=lambda job: (job.created_at, job.job_id))
    return rows[:limit] if limit is not None else rows

  async def transition_status(self, job_id: str, *, expected_status: JobStatus, new_status: JobStatus, progress: int | None = None, result: dict[str, Any] | None = None, error_message: str | None = None) -> bool:
    ensure_transition_allowed(expected_status, new_status)
    await asyncio.sleep(0)
    current = self._jobs.get(job_id)
    if current is None or current.status != expected_status:
      return False
    changes: dict[str, Any] = {"status": new_status, "updated_at": self._clock()}
    if progress is not None:
      changes["progress"] = progress
    if result is not None:
      changes["result"] = result
    if error_message is not None:
      changes["error_message"] = error_message
    self._jobs[job_id] = replace(current, **changes)
    self.status_history[job_id].append(new_status)
    self.max_running_observed = max(self.max_running_observed, sum(1 for job in self._jobs.values() if job.status == JobStatus.RUNNING))
    return True

  async def update_job(self, job_id: str, *, expected_status: JobStatus | None = None, progress: int | None = None, metadata: dict[str, Any] | None = None, result: dict[str, Any] | None = None, error_message: str | None = None) -> JobRecord | None:
    await asyncio.sleep(0)
    current = self._jobs.get(job_id)
    if current is None or (expected_status is not None and current.status != expected_status):
      return None
    changes: dict[str, Any] = {"updated_at": self._clock()}
    if progress is not None:
      changes["progress"] = max(current.progress, progress)
    if metadata is not None:
      changes["metadata"] = {**current.metadata, **metadata}
    if result is not None:
      changes["result"] = result
    if error_message is not None:
      changes["error_message"] = error_message
    self._jobs[job_id] = replace(current, **changes)
    return self._jobs[job_id]

  async def find_stale_running(self, older_than: datetime) -> list[JobRecord]:
    await asyncio.sleep(0)
    return [job for job in self._jobs.values() if job.status == JobStatus.RUNNING and job.updated_at < older_than]

  async def list_jobs(self, *, user_id: str | None = None, meeting_id: str | None = None, status: JobStatus | None = None, limit: int = 50) -> list[JobRecord]:
    await asyncio.sleep(0)
    rows = [
      job
      for job in self._jobs.values()
      if (user_id is None or job.user_id == user_id) and (meeting_id is None or job.meeting_id == meeting_id) and (status is None or job.status == status)
    ]
    return sorted(rows, key=lambda job: job.created_at, reverse=True)[:limit]

  async def append_event(self, *, job_id: str, event_type: str, message: str, payload_json: dict | None = None) -> None:
    self._events[job_id].append(JobEventRecord(job_id=job_id, event_type=event_type, message=message, created_at=self._clock(), payload=payload_json))

  async def list_events(self, *, job_id: str, limit: int = 100) -> list[JobEventRecord]:
    return list(self._events.get(job_id, []))[-limit:]

  def event_types(self, job_id: str) -> list[str]:
    return [event.event_type for event in self._events.get(job_id, [])]


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
  return FakeClock()


@pytest.fixture
def jobs_repo(clock: FakeClock) -> InMemoryJobsRepository:
  return InMemoryJobsRepository(clock)


@pytest.fixture
def make_job(clock: FakeClock) -> Callable[..., JobRecord]:
  """Build pending job records whose ``created_at`` increases with each call."""
  counter = {"n": 0}

  def _make(job_type: str = "ai_summary", *, job_id: str | None = None, meeting_id: str = "meeting-1", user_id: str | None = "user-1", status: JobStatus = JobStatus.PENDING, metadata: dict[str, Any] | None = None, created_at: datetime | None = None) -> JobRecord:
    counter["n"] += 1
    stamp = created_at or clock() + timedelta(seconds=counter["n"])
    return JobRecord(
      job_id=job_id or f"job-{counter['n']}",
      job_type=job_type,
      status=status,
      meeting_id=meeting_id,
      user_id=user_id,
      created_at=stamp,
      updated_at=stamp,
      metadata=dict(metadata or {}),
    )

  return _make


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
  """Build settings without touching the process environment."""

  def _make(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
      "environment": "test",
      "debug": False,
      "pg_dsn": None,
      "log_max_bytes": 1024,
      "log_backup_count": 1,
      "worker_enabled": False,
      "poll_interval_seconds": 5.0,
      "stale_job_minutes": 30,
      "min_transcript_chars": 100,
      "max_concurrent_jobs": 1,
      "meeting_bucket": "nest-meeting-uploads",
      "gcs_storage_host": None,
      "gcp_project_id": "nest-test",
      "gemini_api_key": None,
      "transcription_model": "gemini-2.5-flash",
      "summary_model": "gemini-2.5-flash",
      "card_extraction_url": "https://functions.example.test/extract-cards",
      "card_extraction_token": None,
      "card_extraction_timeout_seconds": 30,
    }
    values.update(overrides)
    return Settings(**values)

  return _make
