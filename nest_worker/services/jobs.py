"""Job submission and inspection used by the HTTP API."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta

from fastapi import HTTPException, status

from nest_worker.api.models import JobCreateRequest, JobEventResponse, JobListResponse, JobStatusResponse
from nest_worker.jobs.models import ESTIMATED_DURATION_MINUTES, JobRecord, JobStatus
from nest_worker.storage.jobs_repo import JobsRepository

logger = logging.getLogger(__name__)

_JOB_NOT_FOUND_MSG = "Job not found."
MAX_LIST_LIMIT = 200


def build_pending_job(request: JobCreateRequest, *, now: datetime | None = None) -> JobRecord:
  """Create the pending record for a submission, stamping ``estimated_completion``."""
  created_at = now or datetime.now(UTC)
  return JobRecord(
    job_id=str(uuid.uuid4()),
    job_type=request.type.value,
    status=JobStatus.PENDING,
    meeting_id=request.meeting_id,
    user_id=request.user_id,
    created_at=created_at,
    updated_at=created_at,
    progress=0,
    metadata=dict(request.metadata),
    estimated_completion=created_at + timedelta(minutes=ESTIMATED_DURATION_MINUTES[request.type]),
  )


async def create_job(request: JobCreateRequest, jobs_repo: JobsRepository) -> JobStatusResponse:
  record = build_pending_job(request)
  await jobs_repo.create_job(record)
  logger.info("Queued %s job %s for meeting %s", record.job_type, record.job_id, record.meeting_id)
  await jobs_repo.append_event(job_id=record.job_id, event_type="created", message="Job queued")
  return JobStatusResponse.from_record(record)


async def get_job_status(job_id: str, jobs_repo: JobsRepository) -> JobStatusResponse:
  record = await jobs_repo.get_job(job_id)
  if record is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  return JobStatusResponse.from_record(record)


async def list_jobs(jobs_repo: JobsRepository, *, user_id: str | None, meeting_id: str | None, job_status: JobStatus | None, limit: int) -> JobListResponse:
  records = await jobs_repo.list_jobs(user_id=user_id, meeting_id=meeting_id, status=job_status, limit=min(limit, MAX_LIST_LIMIT))
  return JobListResponse(items=[JobStatusResponse.from_record(record) for record in records])


async def list_job_events(job_id: str, jobs_repo: JobsRepository) -> list[JobEventResponse]:
  if await jobs_repo.get_job(job_id) is None:
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_JOB_NOT_FOUND_MSG)
  events = await jobs_repo.list_events(job_id=job_id)
  return [JobEventResponse.from_record(event) for event in events]
