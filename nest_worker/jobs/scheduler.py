"""Polling scheduler that claims and runs one pending job at a time.

Scheduler instances share nothing in memory. Each iteration asks the store how many
jobs are running and claims work only through ``transition_status``, so any number of
instances can poll the same table.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any

from nest_worker.config import DEFAULT_MAX_CONCURRENT_JOBS, DEFAULT_POLL_INTERVAL_SECONDS
from nest_worker.jobs.dispatch import JobProcessorRegistry
from nest_worker.jobs.errors import UnknownJobTypeError
from nest_worker.jobs.models import JobRecord, JobStatus
from nest_worker.jobs.notify import JobNotificationEmitter
from nest_worker.jobs.progress import JobProgressReporter
from nest_worker.jobs.reaper import StaleJobReaper
from nest_worker.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)


class IterationOutcome(str, enum.Enum):
  """What a single scheduler iteration did."""

  IDLE = "idle"
  BUSY = "busy"
  LOST_RACE = "lost_race"
  COMPLETED = "completed"
  FAILED = "failed"
  UNKNOWN_TYPE = "unknown_type"


def _error_text(exc: BaseException) -> str:
  message = str(exc).strip()
  return message or type(exc).__name__


class JobScheduler:
  def __init__(
    self,
    *,
    jobs_repo: JobsRepository,
    registry: JobProcessorRegistry,
    reaper: StaleJobReaper,
    notifier: JobNotificationEmitter,
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
    max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS,
  ) -> None:
    if max_concurrent_jobs < 1:
      raise ValueError("max_concurrent_jobs must be at least 1")
    self._jobs_repo = jobs_repo
    self._registry = registry
    self._reaper = reaper
    self._notifier = notifier
    self._poll_interval_seconds = poll_interval_seconds
    self._max_concurrent_jobs = max_concurrent_jobs
    self._running = False
    self._wake = asyncio.Event()
    self._task: asyncio.Task[None] | None = None

  @property
  def is_running(self) -> bool:
    return self._running

  def start(self) -> asyncio.Task[None]:
    """Start the polling loop on the current event loop; calling twice is a no-op."""
    if self._task is not None and not self._task.done():
      return self._task
    self._running = True
    self._wake.clear()
    self._task = asyncio.create_task(self._run_loop(), name="nest-job-scheduler")
    logger.info("Job scheduler started (poll=%.1fs, max_concurrent=%d)", self._poll_interval_seconds, self._max_concurrent_jobs)
    return self._task

  async def stop(self) -> None:
    """Stop scheduling new iterations and wait for the in-flight one to finish."""
    self._running = False
    self._wake.set()
    task, self._task = self._task, None
    if task is not None:
      await task
    logger.info("Job scheduler stopped")

  async def _run_loop(self) -> None:
    while self._running:
      try:
        outcome = await self.run_once()
        logger.debug("Scheduler iteration finished: %s", outcome.value)
      except Exception as exc:  # noqa: BLE001
        logger.error("Scheduler iteration failed: %s", exc, exc_info=True)
      if not self._running:
        break
      try:
        await asyncio.wait_for(self._wake.wait(), timeout=self._poll_interval_seconds)
      except TimeoutError:
        pass

  async def run_once(self) -> IterationOutcome:
    """Reap, check the running slot, claim the oldest pending job and drive it to a terminal state."""
    await self._reaper.reap()

    running = await self._jobs_repo.list_by_status(JobStatus.RUNNING, limit=self._max_concurrent_jobs)
    if len(running) >= self._max_concurrent_jobs:
      logger.debug("Skipping claim; %d job(s) already running", len(running))
      return IterationOutcome.BUSY

    pending = await self._jobs_repo.list_by_status(JobStatus.PENDING, limit=1)
    if not pending:
      return IterationOutcome.IDLE

    job = await self._claim(pending[0])
    if job is None:
      return IterationOutcome.LOST_RACE

    try:
      processor = self._registry.resolve(job.job_type)
    except UnknownJobTypeError as exc:
      logger.error("Job %s has unknown type %r", job.job_id, job.job_type)
      await self._finish_failed(job, str(exc))
      return IterationOutcome.UNKNOWN_TYPE

    reporter = JobProgressReporter(job_id=job.job_id, jobs_repo=self._jobs_repo, initial_progress=job.progress)
    try:
      result = await processor.process(job, reporter)
    except Exception as exc:  # noqa: BLE001
      logger.error("Job %s (%s) failed at %d%%: %s", job.job_id, job.job_type, reporter.progress, exc, exc_info=True)
      await self._finish_failed(job, _error_text(exc))
      return IterationOutcome.FAILED

    return await self._finish_completed(job, result)

  async def _claim(self, candidate: JobRecord) -> JobRecord | None:
    claimed = await self._jobs_repo.transition_status(candidate.job_id, expected_status=JobStatus.PENDING, new_status=JobStatus.RUNNING, progress=0)
    if not claimed:
      logger.info("Job %s was claimed by another scheduler", candidate.job_id)
      return None
    # Confirm with a fresh read before doing any work.
    job = await self._jobs_repo.get_job(candidate.job_id)
    if job is None or job.status != JobStatus.RUNNING:
      logger.info("Job %s is no longer running after claim; skipping", candidate.job_id)
      return None
    logger.info("Claimed job %s (type=%s, meeting=%s)", job.job_id, job.job_type, job.meeting_id)
    await self._record_event(job.job_id, "claimed", "Job claimed by scheduler")
    return job

  async def _finish_completed(self, job: JobRecord, result: dict[str, Any]) -> IterationOutcome:
    written = await self._jobs_repo.transition_status(job.job_id, expected_status=JobStatus.RUNNING, new_status=JobStatus.COMPLETED, progress=100, result=result)
    if not written:
      # The reaper already failed this job; its terminal state stands.
      logger.warning("Job %s finished after it was no longer running; result discarded", job.job_id)
      return IterationOutcome.FAILED
    logger.info("Job %s completed", job.job_id)
    await self._record_event(job.job_id, "completed", "Job completed")
    await self._notifier.emit(job, success=True, result=result)
    return IterationOutcome.COMPLETED

  async def _finish_failed(self, job: JobRecord, message: str) -> None:
    written = await self._jobs_repo.transition_status(job.job_id, expected_status=JobStatus.RUNNING, new_status=JobStatus.FAILED, error_message=message)
    if not written:
      logger.warning("Job %s was already terminal when recording failure: %s", job.job_id, message)
      return
    await self._record_event(job.job_id, "failed", message)
    await self._notifier.emit(job, success=False, error_message=message)

  async def _record_event(self, job_id: str, event_type: str, message: str) -> None:
    try:
      await self._jobs_repo.append_event(job_id=job_id, event_type=event_type, message=message)
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to record %s event for job %s: %s", event_type, job_id, exc, exc_info=True)
