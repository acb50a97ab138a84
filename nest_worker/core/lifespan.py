import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from nest_worker.config import get_settings
from nest_worker.core.database import dispose_engine
from nest_worker.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Configure logging and run the job scheduler alongside the API when enabled."""
  from nest_worker.jobs.runtime import build_scheduler

  settings = get_settings()
  setup_logging(settings, process_name="api")
  logger = logging.getLogger("nest_worker.core.lifespan")

  app.state.scheduler = None
  if settings.worker_enabled and settings.pg_dsn:
    scheduler = build_scheduler(settings)
    scheduler.start()
    app.state.scheduler = scheduler
  elif settings.worker_enabled:
    logger.warning("Job scheduler not started: NEST_PG_DSN is not configured.")
  else:
    logger.info("Job scheduler disabled (NEST_WORKER_ENABLED=false).")

  logger.info("Startup complete (env=%s).", settings.environment)
  try:
    yield
  finally:
    if app.state.scheduler is not None:
      await app.state.scheduler.stop()
    await dispose_engine()
    logger.info("Shutdown complete.")
