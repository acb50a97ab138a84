"""Generate and store an AI summary for a meeting transcript."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from nest_worker.jobs.errors import PersistenceError
from nest_worker.jobs.models import JobRecord
from nest_worker.jobs.placeholders import PLACEHOLDER_SUMMARY, transcript_is_sufficient
from nest_worker.jobs.processors.common import call_external, fetch_meeting, persist
from nest_worker.jobs.progress import JobProgressReporter
from nest_worker.storage.meetings_repo import MeetingsRepository

logger = logging.getLogger(__name__)


class Summarizer(Protocol):
  async def summarize(self, transcript: str) -> str: ...


class SummarizationProcessor:
  def __init__(self, *, meetings_repo: MeetingsRepository, summarizer: Summarizer, min_transcript_chars: int) -> None:
    self._meetings_repo = meetings_repo
    self._summarizer = summarizer
    self._min_transcript_chars = min_transcript_chars

  async def process(self, job: JobRecord, reporter: JobProgressReporter) -> dict[str, Any]:
    meeting = await fetch_meeting(self._meetings_repo, job.meeting_id)
    await reporter.report(25, "Fetched meeting")

    transcript = (meeting.transcript or "").strip()
    used_placeholder = not transcript_is_sufficient(transcript, min_chars=self._min_transcript_chars)
    if used_placeholder:
      logger.info("Transcript for meeting %s has %d chars; using placeholder summary", meeting.meeting_id, len(transcript))
      summary = PLACEHOLDER_SUMMARY
      await reporter.report(75, "Prepared placeholder summary")
    else:
      await reporter.report(75, "Generating summary")
      summary = await call_external("Summarization", self._summarizer.summarize(transcript))

    saved = await persist("Saving summary", self._meetings_repo.save_summary(meeting.meeting_id, summary))
    if not saved:
      raise PersistenceError(f"Meeting disappeared before the summary was saved: {meeting.meeting_id}")
    await reporter.report(100, "Summary saved")

    return {"summary": summary, "word_count": len(summary.split()), "meeting_id": meeting.meeting_id, "used_placeholder": used_placeholder}
