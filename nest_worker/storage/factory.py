"""Repository factories used as FastAPI dependencies."""

from __future__ import annotations

from fastapi import Depends

from nest_worker.config import Settings, get_settings
from nest_worker.storage.jobs_repo import JobsRepository
from nest_worker.storage.postgres_jobs_repo import PostgresJobsRepository


def get_jobs_repo(settings: Settings = Depends(get_settings)) -> JobsRepository:  # noqa: B008
  """Return the active jobs repository."""
  if not settings.pg_dsn:
    raise RuntimeError("NEST_PG_DSN must be set to use the jobs API.")
  return PostgresJobsRepository()
