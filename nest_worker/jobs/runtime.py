"""Wire the scheduler to its Postgres, GCS and AI collaborators."""

from __future__ import annotations

from datetime import timedelta

from nest_worker.config import Settings
from nest_worker.core.database import require_session_factory
from nest_worker.jobs.dispatch import build_default_registry
from nest_worker.jobs.notify import JobNotificationEmitter
from nest_worker.jobs.reaper import StaleJobReaper
from nest_worker.jobs.scheduler import JobScheduler
from nest_worker.notifications.factory import build_notification_service
from nest_worker.services.activity import WorkspaceActivityService
from nest_worker.services.card_extraction import CardExtractionService
from nest_worker.services.speech import build_speech_service
from nest_worker.services.storage_client import build_storage_client
from nest_worker.services.summarizer import build_summarization_service
from nest_worker.storage.postgres_boards_repo import PostgresBoardsRepository
from nest_worker.storage.postgres_jobs_repo import PostgresJobsRepository
from nest_worker.storage.postgres_meetings_repo import PostgresMeetingsRepository


def build_scheduler(settings: Settings) -> JobScheduler:
  """Construct a production scheduler; requires a configured database."""
  session_factory = require_session_factory()
  jobs_repo = PostgresJobsRepository(session_factory)
  meetings_repo = PostgresMeetingsRepository(session_factory)
  registry = build_default_registry(
    meetings_repo=meetings_repo,
    boards_repo=PostgresBoardsRepository(session_factory),
    storage=build_storage_client(settings),
    speech=build_speech_service(settings),
    summarizer=build_summarization_service(settings),
    extractor=CardExtractionService(settings),
    activity=WorkspaceActivityService(session_factory),
    min_transcript_chars=settings.min_transcript_chars,
  )
  notifier = JobNotificationEmitter(build_notification_service(settings))
  return JobScheduler(
    jobs_repo=jobs_repo,
    registry=registry,
    reaper=StaleJobReaper(jobs_repo=jobs_repo, stale_after=timedelta(minutes=settings.stale_job_minutes), notifier=notifier),
    notifier=notifier,
    poll_interval_seconds=settings.poll_interval_seconds,
    max_concurrent_jobs=settings.max_concurrent_jobs,
  )
