"""Storage interfaces for background jobs."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from nest_worker.jobs.models import JobEventRecord, JobRecord, JobStatus


class JobsRepository(Protocol):
  """Repository contract for job persistence.

  ``transition_status`` is the only concurrency primitive: it must apply atomically
  and only when the stored status equals ``expected_status``.
  """

  async def create_job(self, record: JobRecord) -> None:
    """Persist a new pending job."""

  async def get_job(self, job_id: str) -> JobRecord | None:
    """Fetch a job by identifier."""

  async def list_by_status(self, status: JobStatus, *, limit: int | None = None) -> list[JobRecord]:
    """Return jobs in ``status`` ordered oldest first."""

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
    """Change status only if the row is still in ``expected_status``; return whether a row changed."""

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
    """Apply partial updates; progress never decreases.

    With ``expected_status`` the write only applies while the row is still in that status;
    None is returned when it no longer is or the job does not exist.
    """

  async def find_stale_running(self, older_than: datetime) -> list[JobRecord]:
    """Return running jobs whose ``updated_at`` is earlier than ``older_than``."""

  async def list_jobs(self, *, user_id: str | None = None, meeting_id: str | None = None, status: JobStatus | None = None, limit: int = 50) -> list[JobRecord]:
    """Return jobs matching the filters, newest first."""

  async def append_event(self, *, job_id: str, event_type: str, message: str, payload_json: dict | None = None) -> None:
    """Append one timeline event for a job."""

  async def list_events(self, *, job_id: str, limit: int = 100) -> list[JobEventRecord]:
    """List timeline events for a job in chronological order."""
