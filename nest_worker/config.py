"""Worker and API configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_POLL_INTERVAL_SECONDS = 5.0
DEFAULT_STALE_JOB_MINUTES = 30
DEFAULT_MIN_TRANSCRIPT_CHARS = 100
# Single-flight: at most this many jobs may be running across every scheduler instance.
DEFAULT_MAX_CONCURRENT_JOBS = 1


@dataclass(frozen=True)
class Settings:
  """Typed settings for the Nest job worker."""

  environment: str
  debug: bool
  pg_dsn: str | None
  log_max_bytes: int
  log_backup_count: int
  worker_enabled: bool
  poll_interval_seconds: float
  stale_job_minutes: int
  min_transcript_chars: int
  max_concurrent_jobs: int
  meeting_bucket: str
  gcs_storage_host: str | None
  gcp_project_id: str | None
  gemini_api_key: str | None
  transcription_model: str
  summary_model: str
  card_extraction_url: str | None
  card_extraction_token: str | None
  card_extraction_timeout_seconds: int


def _env_file_path() -> Path:
  """Return the .env path at the repository root."""
  return Path(__file__).resolve().parents[1] / ".env"


def _load_env_file(path: Path) -> None:
  """Copy KEY=VALUE lines from a local .env file into os.environ without overriding real env vars."""
  if not path.is_file():
    return

  for raw_line in path.read_text(encoding="utf-8").splitlines():
    line = raw_line.strip()
    # Skip blanks, comments and anything that is not an assignment.
    if not line or line.startswith("#") or "=" not in line:
      continue
    key, value = line.removeprefix("export ").split("=", 1)
    key = key.strip()
    value = value.strip().strip("'\"")
    if key and key not in os.environ:
      os.environ[key] = value


def _parse_bool(raw: str | None, *, default: bool = False) -> bool:
  """Parse a boolean-ish string from environment variables."""
  if raw is None or raw.strip() == "":
    return default
  return raw.strip().lower() in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_int(name: str, default: str) -> int:
  value = int(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive integer.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  _load_env_file(_env_file_path())

  poll_interval_seconds = float(os.getenv("NEST_POLL_INTERVAL_SECONDS", str(DEFAULT_POLL_INTERVAL_SECONDS)))
  if poll_interval_seconds <= 0:
    raise ValueError("NEST_POLL_INTERVAL_SECONDS must be positive.")

  log_backup_count = int(os.getenv("NEST_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("NEST_LOG_BACKUP_COUNT must be zero or a positive integer.")

  return Settings(
    environment=os.getenv("NEST_ENV", "development").lower(),
    debug=_parse_bool(os.getenv("NEST_DEBUG")),
    pg_dsn=_optional_str(os.getenv("NEST_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL")),
    log_max_bytes=_positive_int("NEST_LOG_MAX_BYTES", "5242880"),
    log_backup_count=log_backup_count,
    worker_enabled=_parse_bool(os.getenv("NEST_WORKER_ENABLED"), default=True),
    poll_interval_seconds=poll_interval_seconds,
    stale_job_minutes=_positive_int("NEST_STALE_JOB_MINUTES", str(DEFAULT_STALE_JOB_MINUTES)),
    min_transcript_chars=_positive_int("NEST_MIN_TRANSCRIPT_CHARS", str(DEFAULT_MIN_TRANSCRIPT_CHARS)),
    max_concurrent_jobs=_positive_int("NEST_MAX_CONCURRENT_JOBS", str(DEFAULT_MAX_CONCURRENT_JOBS)),
    meeting_bucket=(os.getenv("NEST_MEETING_BUCKET") or "nest-meeting-uploads").strip(),
    gcs_storage_host=_optional_str(os.getenv("GCS_STORAGE_HOST")),
    gcp_project_id=_optional_str(os.getenv("GCP_PROJECT_ID")),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    transcription_model=(os.getenv("NEST_TRANSCRIPTION_MODEL") or "gemini-2.5-flash").strip(),
    summary_model=(os.getenv("NEST_SUMMARY_MODEL") or "gemini-2.5-flash").strip(),
    card_extraction_url=_optional_str(os.getenv("NEST_CARD_EXTRACTION_URL")),
    card_extraction_token=_optional_str(os.getenv("NEST_CARD_EXTRACTION_TOKEN")),
    card_extraction_timeout_seconds=_positive_int("NEST_CARD_EXTRACTION_TIMEOUT_SECONDS", "120"),
  )
