"""Process-wide logging setup for the API and the standalone worker."""

from __future__ import annotations

import logging
import logging.handlers
import sys
import time
import traceback
from pathlib import Path
from types import TracebackType

from nest_worker.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"

_LOG_FILE_PATH: Path | None = None


class TruncatedFormatter(logging.Formatter):
  """Console formatter that keeps only the head and tail of long tracebacks."""

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    lines = traceback.format_exception(*ei)
    if len(lines) > 6:
      return "".join(lines[:1] + ["    ...\n"] + lines[-5:])
    return "".join(lines)


def _log_dir() -> Path:
  return Path(__file__).resolve().parents[2] / "logs"


def _build_handlers(settings: Settings, *, process_name: str) -> tuple[logging.Handler, logging.Handler, Path]:
  """Create a stdout handler and a rotating file handler for this process."""
  log_dir = _log_dir()
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log directory at {log_dir}: {exc}") from exc

  log_path = log_dir / f"nest_{process_name}_{time.strftime('%Y%m%d_%H%M%S')}.log"

  stream = logging.StreamHandler(sys.stdout)
  stream.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))

  file_handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  file_handler.setFormatter(logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  return stream, file_handler, log_path


def setup_logging(settings: Settings, *, process_name: str = "api") -> Path:
  """Route root, uvicorn and fastapi loggers through shared handlers; idempotent per process."""
  global _LOG_FILE_PATH
  if _LOG_FILE_PATH is not None:
    return _LOG_FILE_PATH

  stream_handler, file_handler, log_path = _build_handlers(settings, process_name=process_name)
  for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
    log = logging.getLogger(logger_name)
    log.handlers = [stream_handler, file_handler]
    log.propagate = False

  level = logging.DEBUG if settings.debug else logging.INFO
  logging.basicConfig(level=level, handlers=[stream_handler, file_handler], force=True)
  # SQLAlchemy echoes every statement at INFO; the poll loop would drown the log.
  logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

  _LOG_FILE_PATH = log_path
  logging.getLogger(__name__).info("Logging initialized. Writing to %s", log_path)
  return log_path
