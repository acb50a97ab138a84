"""Domain models for background meeting-processing jobs."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from nest_worker.jobs.errors import TransitionError


class JobStatus(str, enum.Enum):
  """Lifecycle states of a background job."""

  PENDING = "pending"
  RUNNING = "running"
  COMPLETED = "completed"
  FAILED = "failed"

  @property
  def is_terminal(self) -> bool:
    return self in {JobStatus.COMPLETED, JobStatus.FAILED}


class JobType(str, enum.Enum):
  """Closed set of job types the worker knows how to process."""

  TRANSCRIPTION = "transcription"
  SUMMARIZATION = "ai_summary"
  CARD_EXTRACTION = "card_extraction"

  @classmethod
  def parse(cls, raw: str | JobType) -> JobType | None:
    """Return the enum member for a stored value, or None when the value is unknown."""
    try:
      return cls(raw)
    except ValueError:
      return None


# Used to stamp estimated_completion on submission.
ESTIMATED_DURATION_MINUTES: dict[JobType, int] = {
  JobType.TRANSCRIPTION: 5,
  JobType.SUMMARIZATION: 3,
  JobType.CARD_EXTRACTION: 2,
}

_ALLOWED_TRANSITIONS: dict[JobStatus, set[JobStatus]] = {
  JobStatus.PENDING: {JobStatus.RUNNING},
  JobStatus.RUNNING: {JobStatus.COMPLETED, JobStatus.FAILED},
  JobStatus.COMPLETED: set(),
  JobStatus.FAILED: set(),
}


def ensure_transition_allowed(from_status: JobStatus, to_status: JobStatus) -> None:
  if to_status not in _ALLOWED_TRANSITIONS.get(from_status, set()):
    raise TransitionError(from_status=from_status, to_status=to_status)


@dataclass
class JobRecord:
  """Represents one persisted background job row.

  ``job_type`` keeps the raw stored string so rows written by other producers with
  an unregistered type can still be loaded and failed explicitly by the scheduler.
  """

  job_id: str
  job_type: str
  status: JobStatus
  meeting_id: str
  user_id: str | None
  created_at: datetime
  updated_at: datetime
  progress: int = 0
  metadata: dict[str, Any] = field(default_factory=dict)
  result: dict[str, Any] | None = None
  error_message: str | None = None
  estimated_completion: datetime | None = None

  @property
  def current_step(self) -> str | None:
    step = self.metadata.get("current_step")
    return str(step) if step is not None else None


@dataclass(frozen=True)
class JobEventRecord:
  """One entry in a job's timeline."""

  job_id: str
  event_type: str
  message: str
  created_at: datetime
  payload: dict[str, Any] | None = None
