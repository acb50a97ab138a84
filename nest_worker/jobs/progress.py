"""Progress reporting for the job currently holding the running lock."""

from __future__ import annotations

import logging

from nest_worker.jobs.models import JobRecord, JobStatus
from nest_worker.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)


class JobProgressReporter:
  """Writes ``progress`` and ``metadata.current_step`` for one running job.

  Values are clamped to 0..100 and never move backwards within one execution; the
  store applies the same rule so a late write cannot undo a newer one. Writes only land
  while the row is still running, so an execution outlived by the reaper cannot touch
  the failed row.
  """

  def __init__(self, *, job_id: str, jobs_repo: JobsRepository, initial_progress: int = 0) -> None:
    self._job_id = job_id
    self._jobs_repo = jobs_repo
    self._progress = max(0, min(int(initial_progress), 100))
    self._current_step: str | None = None

  @property
  def progress(self) -> int:
    return self._progress

  @property
  def current_step(self) -> str | None:
    return self._current_step

  async def report(self, progress: int, step: str) -> JobRecord | None:
    """Persist a progress checkpoint and step label."""
    clamped = max(self._progress, max(0, min(int(progress), 100)))
    self._progress = clamped
    self._current_step = step
    logger.debug("Job %s progress %d%% (%s)", self._job_id, clamped, step)
    record = await self._jobs_repo.update_job(self._job_id, expected_status=JobStatus.RUNNING, progress=clamped, metadata={"current_step": step})
    if record is None:
      logger.warning("Job %s is no longer running; dropped progress %d%% (%s)", self._job_id, clamped, step)
      return None
    try:
      await self._jobs_repo.append_event(job_id=self._job_id, event_type="progress", message=step, payload_json={"progress": clamped})
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to record progress event for job %s: %s", self._job_id, exc, exc_info=True)
    return record
