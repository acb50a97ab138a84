"""Request and response models for the jobs API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator

from nest_worker.jobs.models import JobEventRecord, JobRecord, JobStatus, JobType


class JobCreateRequest(BaseModel):
  """Submit a new background job for a meeting."""

  type: JobType
  meeting_id: StrictStr = Field(min_length=1)
  user_id: StrictStr | None = None
  metadata: dict[str, Any] = Field(default_factory=dict)
  model_config = ConfigDict(extra="forbid")

  @field_validator("meeting_id")
  @classmethod
  def _strip_meeting_id(cls, value: str) -> str:
    value = value.strip()
    if not value:
      raise ValueError("meeting_id must not be blank")
    return value


class JobStatusResponse(BaseModel):
  """Status payload for a background job."""

  job_id: StrictStr
  type: StrictStr
  status: JobStatus
  meeting_id: StrictStr
  user_id: StrictStr | None = None
  progress: int
  current_step: StrictStr | None = None
  result: dict[str, Any] | None = None
  error_message: StrictStr | None = None
  metadata: dict[str, Any] = Field(default_factory=dict)
  estimated_completion: datetime | None = None
  created_at: datetime
  updated_at: datetime

  @classmethod
  def from_record(cls, record: JobRecord) -> JobStatusResponse:
    return cls(
      job_id=record.job_id,
      type=str(record.job_type),
      status=record.status,
      meeting_id=record.meeting_id,
      user_id=record.user_id,
      progress=record.progress,
      current_step=record.current_step,
      result=record.result,
      error_message=record.error_message,
      metadata=record.metadata,
      estimated_completion=record.estimated_completion,
      created_at=record.created_at,
      updated_at=record.updated_at,
    )


class JobListResponse(BaseModel):
  items: list[JobStatusResponse]


class JobEventResponse(BaseModel):
  event_type: StrictStr
  message: StrictStr
  payload: dict[str, Any] | None = None
  created_at: datetime

  @classmethod
  def from_record(cls, record: JobEventRecord) -> JobEventResponse:
    return cls(event_type=record.event_type, message=record.message, payload=record.payload, created_at=record.created_at)
