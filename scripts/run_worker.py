"""Run only the job scheduler loop, without the HTTP API.

Usage: python scripts/run_worker.py
SIGINT/SIGTERM stop the loop after the in-flight iteration finishes.
"""

import asyncio
import logging
import os
import signal
import sys

# Add the project root to the path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


async def run_worker() -> None:
  # Import after path setup so the script works when run directly.
  from nest_worker.config import get_settings
  from nest_worker.core.database import dispose_engine
  from nest_worker.core.logging import setup_logging
  from nest_worker.jobs.runtime import build_scheduler

  settings = get_settings()
  setup_logging(settings, process_name="worker")
  logger = logging.getLogger("nest_worker.worker")

  if not settings.pg_dsn:
    logger.error("NEST_PG_DSN is not set; the worker needs a database.")
    sys.exit(1)

  scheduler = build_scheduler(settings)
  stop_requested = asyncio.Event()
  loop = asyncio.get_running_loop()
  for sig in (signal.SIGINT, signal.SIGTERM):
    loop.add_signal_handler(sig, stop_requested.set)

  scheduler.start()
  try:
    await stop_requested.wait()
    logger.info("Stop requested; waiting for the current iteration to finish.")
  finally:
    await scheduler.stop()
    await dispose_engine()


if __name__ == "__main__":
  asyncio.run(run_worker())
