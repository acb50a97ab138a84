"""Force-fail jobs that stayed in ``running`` past the stale threshold."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from nest_worker.jobs.models import JobStatus
from nest_worker.jobs.notify import JobNotificationEmitter
from nest_worker.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)

STALE_JOB_MESSAGE = "reset after exceeding maximum running duration"


def _utcnow() -> datetime:
  return datetime.now(UTC)


class StaleJobReaper:
  """Frees the global running slot held by executions that died mid-job.

  The underlying execution, if still alive, is not stopped; a later terminal write
  from it is rejected by the store because the row is no longer ``running``.
  """

  def __init__(self, *, jobs_repo: JobsRepository, stale_after: timedelta, notifier: JobNotificationEmitter | None = None, clock: Callable[[], datetime] = _utcnow) -> None:
    self._jobs_repo = jobs_repo
    self._notifier = notifier
    self._stale_after = stale_after
    self._clock = clock

  async def reap(self) -> list[str]:
    """Run one pass and return the ids that were moved to failed."""
    try:
      cutoff = self._clock() - self._stale_after
      stale_jobs = await self._jobs_repo.find_stale_running(cutoff)
    except Exception as exc:  # noqa: BLE001
      logger.error("Stale job scan failed: %s", exc, exc_info=True)
      return []

    reaped: list[str] = []
    for job in stale_jobs:
      try:
        changed = await self._jobs_repo.transition_status(job.job_id, expected_status=JobStatus.RUNNING, new_status=JobStatus.FAILED, error_message=STALE_JOB_MESSAGE)
      except Exception as exc:  # noqa: BLE001
        logger.error("Failed to reset stale job %s: %s", job.job_id, exc, exc_info=True)
        continue
      if not changed:
        # Finished or reaped by someone else between the scan and the update.
        continue
      reaped.append(job.job_id)
      logger.warning("Reset stale job %s (type=%s, last update %s)", job.job_id, job.job_type, job.updated_at.isoformat())
      await self._record_event(job.job_id)
      if self._notifier is not None:
        await self._notifier.emit(job, success=False, error_message=STALE_JOB_MESSAGE)
    return reaped

  async def _record_event(self, job_id: str) -> None:
    try:
      await self._jobs_repo.append_event(job_id=job_id, event_type="reaped", message=STALE_JOB_MESSAGE, payload_json={"stale_after_seconds": int(self._stale_after.total_seconds())})
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to record reaped event for job %s: %s", job_id, exc, exc_info=True)
