from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from nest_worker.jobs.dispatch import JobProcessorRegistry
from nest_worker.jobs.models import JobRecord, JobStatus, JobType
from nest_worker.jobs.notify import JobNotificationEmitter
from nest_worker.jobs.progress import JobProgressReporter
from nest_worker.jobs.reaper import STALE_JOB_MESSAGE, StaleJobReaper
from nest_worker.jobs.scheduler import IterationOutcome, JobScheduler


class RecordingProcessor:
  def __init__(self, *, steps: tuple[int, ...] = (25, 75), error: Exception | None = None, result: dict[str, Any] | None = None) -> None:
    self.calls: list[str] = []
    self._steps = steps
    self._error = error
    self._result = result or {"ok": True}

  async def process(self, job: JobRecord, reporter: JobProgressReporter) -> dict[str, Any]:
    self.calls.append(job.job_id)
    for step in self._steps:
      await reporter.report(step, f"step {step}")
    if self._error is not None:
      raise self._error
    return dict(self._result)


class BlockingProcessor:
  def __init__(self) -> None:
    self.started = asyncio.Event()
    self.release = asyncio.Event()
    self.calls: list[str] = []

  async def process(self, job: JobRecord, reporter: JobProgressReporter) -> dict[str, Any]:
    self.calls.append(job.job_id)
    self.started.set()
    await self.release.wait()
    return {"ok": True}


def _registry(processor: Any) -> JobProcessorRegistry:
  return JobProcessorRegistry({job_type: processor for job_type in JobType})


def _scheduler(jobs_repo, clock, processor, notifier=None, **kwargs) -> JobScheduler:
  emitter = JobNotificationEmitter(notifier or AsyncMock())
  return JobScheduler(
    jobs_repo=jobs_repo,
    registry=_registry(processor),
    reaper=StaleJobReaper(jobs_repo=jobs_repo, stale_after=timedelta(minutes=30), notifier=emitter, clock=clock),
    notifier=emitter,
    **kwargs,
  )


@pytest.mark.anyio
async def test_run_once_completes_pending_job(jobs_repo, clock, make_job) -> None:
  job = make_job("ai_summary")
  await jobs_repo.create_job(job)
  processor = RecordingProcessor(result={"summary": "Short summary"})
  notifier = AsyncMock()
  scheduler = _scheduler(jobs_repo, clock, processor, notifier)

  outcome = await scheduler.run_once()

  assert outcome is IterationOutcome.COMPLETED
  stored = await jobs_repo.get_job(job.job_id)
  assert stored.status == JobStatus.COMPLETED
  assert stored.progress == 100
  assert stored.result == {"summary": "Short summary"}
  assert stored.metadata["current_step"] == "step 75"
  assert jobs_repo.status_history[job.job_id] == [JobStatus.PENDING, JobStatus.RUNNING, JobStatus.COMPLETED]
  assert jobs_repo.event_types(job.job_id) == ["claimed", "progress", "progress", "completed"]
  notifier.notify_in_app.assert_awaited_once()
  kwargs = notifier.notify_in_app.call_args.kwargs
  assert kwargs["user_id"] == "user-1"
  assert kwargs["template_id"] == "job_completed_v1"
  assert kwargs["data"]["success"] is True
  assert kwargs["data"]["meeting_id"] == "meeting-1"


@pytest.mark.anyio
async def test_processor_error_fails_job_and_keeps_last_progress(jobs_repo, clock, make_job) -> None:
  job = make_job("transcription")
  await jobs_repo.create_job(job)
  notifier = AsyncMock()
  scheduler = _scheduler(jobs_repo, clock, RecordingProcessor(steps=(25,), error=RuntimeError("speech backend down")), notifier)

  outcome = await scheduler.run_once()

  assert outcome is IterationOutcome.FAILED
  stored = await jobs_repo.get_job(job.job_id)
  assert stored.status == JobStatus.FAILED
  assert stored.progress == 25
  assert stored.error_message == "speech backend down"
  assert stored.result is None
  assert jobs_repo.status_history[job.job_id] == [JobStatus.PENDING, JobStatus.RUNNING, JobStatus.FAILED]
  kwargs = notifier.notify_in_app.call_args.kwargs
  assert kwargs["template_id"] == "job_failed_v1"
  assert kwargs["data"]["error_message"] == "speech backend down"


@pytest.mark.anyio
async def test_unknown_job_type_fails_without_running_a_processor(jobs_repo, clock, make_job) -> None:
  job = make_job("video_render")
  await jobs_repo.create_job(job)
  processor = RecordingProcessor()
  scheduler = _scheduler(jobs_repo, clock, processor)

  outcome = await scheduler.run_once()

  assert outcome is IterationOutcome.UNKNOWN_TYPE
  assert processor.calls == []
  stored = await jobs_repo.get_job(job.job_id)
  assert stored.status == JobStatus.FAILED
  assert stored.error_message == "unknown job type: video_render"
  assert stored.progress == 0
  assert "progress" not in jobs_repo.event_types(job.job_id)


@pytest.mark.anyio
async def test_run_once_is_idle_without_pending_jobs(jobs_repo, clock) -> None:
  scheduler = _scheduler(jobs_repo, clock, RecordingProcessor())
  assert await scheduler.run_once() is IterationOutcome.IDLE


@pytest.mark.anyio
async def test_running_job_blocks_new_claims(jobs_repo, clock, make_job) -> None:
  await jobs_repo.create_job(make_job(status=JobStatus.RUNNING, created_at=clock()))
  pending = make_job()
  await jobs_repo.create_job(pending)
  processor = RecordingProcessor()
  scheduler = _scheduler(jobs_repo, clock, processor)

  assert await scheduler.run_once() is IterationOutcome.BUSY
  assert processor.calls == []
  assert (await jobs_repo.get_job(pending.job_id)).status == JobStatus.PENDING


@pytest.mark.anyio
async def test_higher_concurrency_limit_allows_a_second_running_job(jobs_repo, clock, make_job) -> None:
  await jobs_repo.create_job(make_job(status=JobStatus.RUNNING, created_at=clock()))
  pending = make_job()
  await jobs_repo.create_job(pending)
  scheduler = _scheduler(jobs_repo, clock, RecordingProcessor(), max_concurrent_jobs=2)

  assert await scheduler.run_once() is IterationOutcome.COMPLETED
  assert (await jobs_repo.get_job(pending.job_id)).status == JobStatus.COMPLETED


@pytest.mark.anyio
async def test_pending_jobs_are_claimed_in_creation_order(jobs_repo, clock, make_job) -> None:
  later = make_job(job_id="job-later", created_at=clock() + timedelta(minutes=5))
  earlier = make_job(job_id="job-earlier", created_at=clock() + timedelta(minutes=1))
  await jobs_repo.create_job(later)
  await jobs_repo.create_job(earlier)
  processor = RecordingProcessor()
  scheduler = _scheduler(jobs_repo, clock, processor)

  await scheduler.run_once()
  await scheduler.run_once()

  assert processor.calls == ["job-earlier", "job-later"]


@pytest.mark.anyio
async def test_lost_claim_is_not_an_error(jobs_repo, clock, make_job) -> None:
  job = make_job()
  await jobs_repo.create_job(job)
  processor = RecordingProcessor()
  scheduler = _scheduler(jobs_repo, clock, processor)

  with patch.object(jobs_repo, "transition_status", AsyncMock(return_value=False)):
    outcome = await scheduler.run_once()

  assert outcome is IterationOutcome.LOST_RACE
  assert processor.calls == []


@pytest.mark.anyio
async def test_claim_requires_confirming_read(jobs_repo, clock, make_job) -> None:
  job = make_job()
  await jobs_repo.create_job(job)
  processor = RecordingProcessor()
  scheduler = _scheduler(jobs_repo, clock, processor)

  with patch.object(jobs_repo, "get_job", AsyncMock(return_value=None)):
    outcome = await scheduler.run_once()

  assert outcome is IterationOutcome.LOST_RACE
  assert processor.calls == []


@pytest.mark.anyio
async def test_competing_schedulers_process_a_job_once(jobs_repo, clock, make_job) -> None:
  job = make_job()
  await jobs_repo.create_job(job)
  processor = RecordingProcessor()
  first = _scheduler(jobs_repo, clock, processor)
  second = _scheduler(jobs_repo, clock, processor)

  outcomes = await asyncio.gather(first.run_once(), second.run_once())

  assert processor.calls == [job.job_id]
  assert outcomes.count(IterationOutcome.COMPLETED) == 1
  assert set(outcomes) - {IterationOutcome.COMPLETED} <= {IterationOutcome.LOST_RACE, IterationOutcome.BUSY}
  assert jobs_repo.status_history[job.job_id] == [JobStatus.PENDING, JobStatus.RUNNING, JobStatus.COMPLETED]
  assert jobs_repo.max_running_observed == 1


@pytest.mark.anyio
async def test_second_scheduler_waits_while_a_job_is_in_flight(jobs_repo, clock, make_job) -> None:
  first_job = make_job()
  second_job = make_job()
  await jobs_repo.create_job(first_job)
  await jobs_repo.create_job(second_job)
  processor = BlockingProcessor()
  first = _scheduler(jobs_repo, clock, processor)
  second = _scheduler(jobs_repo, clock, processor)

  in_flight = asyncio.create_task(first.run_once())
  await processor.started.wait()

  assert await second.run_once() is IterationOutcome.BUSY
  assert (await jobs_repo.get_job(second_job.job_id)).status == JobStatus.PENDING

  processor.release.set()
  assert await in_flight is IterationOutcome.COMPLETED
  assert await second.run_once() is IterationOutcome.COMPLETED
  assert processor.calls == [first_job.job_id, second_job.job_id]
  assert jobs_repo.max_running_observed == 1


@pytest.mark.anyio
async def test_notification_failure_does_not_change_terminal_status(jobs_repo, clock, make_job) -> None:
  job = make_job()
  await jobs_repo.create_job(job)
  notifier = AsyncMock()
  notifier.notify_in_app.side_effect = RuntimeError("notifications table missing")
  scheduler = _scheduler(jobs_repo, clock, RecordingProcessor(), notifier)

  assert await scheduler.run_once() is IterationOutcome.COMPLETED
  assert (await jobs_repo.get_job(job.job_id)).status == JobStatus.COMPLETED


@pytest.mark.anyio
async def test_result_is_discarded_when_job_was_reaped_mid_flight(jobs_repo, clock, make_job) -> None:
  job = make_job()
  await jobs_repo.create_job(job)

  class ReapedProcessor:
    async def process(self, job: JobRecord, reporter: JobProgressReporter) -> dict[str, Any]:
      await jobs_repo.transition_status(job.job_id, expected_status=JobStatus.RUNNING, new_status=JobStatus.FAILED, error_message=STALE_JOB_MESSAGE)
      return {"late": True}

  notifier = AsyncMock()
  scheduler = _scheduler(jobs_repo, clock, ReapedProcessor(), notifier)

  assert await scheduler.run_once() is IterationOutcome.FAILED
  stored = await jobs_repo.get_job(job.job_id)
  assert stored.status == JobStatus.FAILED
  assert stored.error_message == STALE_JOB_MESSAGE
  assert stored.result is None
  notifier.notify_in_app.assert_not_awaited()


@pytest.mark.anyio
async def test_loop_survives_iteration_errors_and_stops(jobs_repo, clock) -> None:
  scheduler = _scheduler(jobs_repo, clock, RecordingProcessor(), poll_interval_seconds=0.01)
  calls = {"n": 0}
  third_call = asyncio.Event()

  async def flaky_run_once() -> IterationOutcome:
    calls["n"] += 1
    if calls["n"] >= 3:
      third_call.set()
    if calls["n"] == 1:
      raise RuntimeError("database unavailable")
    return IterationOutcome.IDLE

  scheduler.run_once = flaky_run_once  # type: ignore[method-assign]
  scheduler.start()
  await asyncio.wait_for(third_call.wait(), timeout=2)
  await scheduler.stop()

  assert calls["n"] >= 3
  assert scheduler.is_running is False


@pytest.mark.anyio
async def test_stop_wakes_the_poll_sleep(jobs_repo, clock) -> None:
  scheduler = _scheduler(jobs_repo, clock, RecordingProcessor(), poll_interval_seconds=60)
  scheduler.start()
  await asyncio.sleep(0.05)

  await asyncio.wait_for(scheduler.stop(), timeout=1)


def test_concurrency_limit_must_be_positive(jobs_repo, clock) -> None:
  with pytest.raises(ValueError):
    _scheduler(jobs_repo, clock, RecordingProcessor(), max_concurrent_jobs=0)


@pytest.mark.anyio
async def test_abandoned_job_owner_is_notified_when_reaped(jobs_repo, clock, make_job) -> None:
  job = make_job("transcription", status=JobStatus.RUNNING, created_at=clock())
  await jobs_repo.create_job(job)
  clock.advance(minutes=31)
  notifier = AsyncMock()
  scheduler = _scheduler(jobs_repo, clock, RecordingProcessor(), notifier)

  assert await scheduler.run_once() is IterationOutcome.IDLE

  assert (await jobs_repo.get_job(job.job_id)).status == JobStatus.FAILED
  notifier.notify_in_app.assert_awaited_once()
  kwargs = notifier.notify_in_app.call_args.kwargs
  assert kwargs["template_id"] == "job_failed_v1"
  assert kwargs["data"]["error_message"] == STALE_JOB_MESSAGE
