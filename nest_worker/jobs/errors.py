"""Error taxonomy raised while claiming, dispatching and processing jobs.

Processor errors surface to the scheduler, which records ``str(exc)`` as the job's
``error_message``. A lost claim race is reported by the store as ``False`` and is
never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
  from nest_worker.jobs.models import JobStatus


class JobProcessingError(Exception):
  """Base class for unrecoverable processor failures."""


class JobValidationError(JobProcessingError):
  """Required job metadata is missing or malformed; raised before any I/O."""


class JobFetchError(JobProcessingError):
  """The job's target record could not be read."""


class ExternalServiceError(JobProcessingError):
  """A downstream storage or AI call failed."""


class PersistenceError(JobProcessingError):
  """Processor output could not be written back."""


class UnknownJobTypeError(LookupError):
  """No processor is registered for the job's type."""

  def __init__(self, job_type: str) -> None:
    self.job_type = job_type
    super().__init__(f"unknown job type: {job_type}")


class TransitionError(ValueError):
  """A status change outside pending->running->completed/failed was attempted."""

  def __init__(self, from_status: JobStatus, to_status: JobStatus) -> None:
    self.from_status = from_status
    self.to_status = to_status
    super().__init__(f"invalid job transition: {from_status.value} -> {to_status.value}")
