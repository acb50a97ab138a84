"""Job type to processor dispatch."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from nest_worker.jobs.errors import UnknownJobTypeError
from nest_worker.jobs.models import JobRecord, JobType
from nest_worker.jobs.processors.card_extraction import CardExtractionProcessor, CardExtractor
from nest_worker.jobs.processors.summarization import SummarizationProcessor, Summarizer
from nest_worker.jobs.processors.transcription import RecordingStorage, SpeechToText, TranscriptionProcessor, WorkspaceActivity
from nest_worker.jobs.progress import JobProgressReporter
from nest_worker.storage.boards_repo import BoardsRepository
from nest_worker.storage.meetings_repo import MeetingsRepository


class JobProcessor(Protocol):
  """Processor contract for one job type."""

  async def process(self, job: JobRecord, reporter: JobProgressReporter) -> dict[str, Any]:
    """Run the job and return its result payload; raise on unrecoverable failure."""


class JobProcessorRegistry:
  """Registry mapping job types to processors."""

  def __init__(self, handlers: Mapping[JobType, JobProcessor]) -> None:
    self._handlers = dict(handlers)

  @property
  def job_types(self) -> frozenset[JobType]:
    return frozenset(self._handlers)

  def resolve(self, job_type: str | JobType) -> JobProcessor:
    """Resolve the processor for a stored type value."""
    parsed = JobType.parse(job_type)
    handler = self._handlers.get(parsed) if parsed is not None else None
    if handler is None:
      raise UnknownJobTypeError(job_type.value if isinstance(job_type, JobType) else str(job_type))
    return handler


def build_default_registry(
  *,
  meetings_repo: MeetingsRepository,
  boards_repo: BoardsRepository,
  storage: RecordingStorage,
  speech: SpeechToText,
  summarizer: Summarizer,
  extractor: CardExtractor,
  activity: WorkspaceActivity | None,
  min_transcript_chars: int,
) -> JobProcessorRegistry:
  """Wire the three meeting processors to their collaborators."""
  return JobProcessorRegistry(
    {
      JobType.TRANSCRIPTION: TranscriptionProcessor(meetings_repo=meetings_repo, storage=storage, speech=speech, activity=activity),
      JobType.SUMMARIZATION: SummarizationProcessor(meetings_repo=meetings_repo, summarizer=summarizer, min_transcript_chars=min_transcript_chars),
      JobType.CARD_EXTRACTION: CardExtractionProcessor(meetings_repo=meetings_repo, boards_repo=boards_repo, extractor=extractor, min_transcript_chars=min_transcript_chars),
    }
  )
