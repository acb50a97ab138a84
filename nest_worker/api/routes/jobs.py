import logging

from fastapi import APIRouter, Depends, Query

from nest_worker.api.models import JobCreateRequest, JobEventResponse, JobListResponse, JobStatusResponse
from nest_worker.jobs.models import JobStatus
from nest_worker.services import jobs as job_service
from nest_worker.storage.factory import get_jobs_repo
from nest_worker.storage.jobs_repo import JobsRepository

router = APIRouter()
logger = logging.getLogger("nest_worker.api.routes.jobs")


@router.post("", response_model=JobStatusResponse, status_code=201)
async def create_job(  # noqa: B008
  request: JobCreateRequest,
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
) -> JobStatusResponse:
  """Queue a background job for a meeting."""
  return await job_service.create_job(request, jobs_repo)


@router.get("", response_model=JobListResponse)
async def list_jobs(  # noqa: B008
  user_id: str | None = None,
  meeting_id: str | None = None,
  status: JobStatus | None = None,
  limit: int = Query(default=50, ge=1, le=job_service.MAX_LIST_LIMIT),
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
) -> JobListResponse:
  """List jobs, newest first."""
  return await job_service.list_jobs(jobs_repo, user_id=user_id, meeting_id=meeting_id, job_status=status, limit=limit)


@router.get("/{job_id}", response_model=JobStatusResponse)
async def get_job_status(  # noqa: B008
  job_id: str,
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
) -> JobStatusResponse:
  """Fetch the status, progress and result of a job."""
  return await job_service.get_job_status(job_id, jobs_repo)


@router.get("/{job_id}/events", response_model=list[JobEventResponse])
async def list_job_events(  # noqa: B008
  job_id: str,
  jobs_repo: JobsRepository = Depends(get_jobs_repo),  # noqa: B008
) -> list[JobEventResponse]:
  """Return the job's timeline in chronological order."""
  return await job_service.list_job_events(job_id, jobs_repo)
