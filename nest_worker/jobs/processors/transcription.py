"""Transcribe an uploaded meeting recording into the meeting's transcript."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from nest_worker.jobs.errors import JobValidationError, PersistenceError
from nest_worker.jobs.models import JobRecord
from nest_worker.jobs.processors.common import call_external, fetch_meeting, persist
from nest_worker.jobs.progress import JobProgressReporter
from nest_worker.storage.meetings_repo import MeetingsRepository

logger = logging.getLogger(__name__)

_STORAGE_PATH_KEYS = ("storage_path", "gcs_path")


class RecordingStorage(Protocol):
  async def download(self, path: str) -> bytes: ...


class SpeechToText(Protocol):
  async def transcribe(self, audio: bytes, content_type: str) -> str: ...


class WorkspaceActivity(Protocol):
  async def touch(self, nest_id: str) -> None: ...


def _required_file_fields(metadata: dict[str, Any]) -> tuple[str, str, str]:
  """Return (file_name, content_type, storage_path) or raise before any I/O."""
  file_name = str(metadata.get("file_name") or "").strip()
  content_type = str(metadata.get("content_type") or "").strip()
  storage_path = next((str(metadata[key]).strip() for key in _STORAGE_PATH_KEYS if str(metadata.get(key) or "").strip()), "")
  missing = [name for name, value in (("file_name", file_name), ("content_type", content_type), ("storage_path", storage_path)) if not value]
  if missing:
    raise JobValidationError(f"Transcription job is missing required metadata: {', '.join(missing)}")
  return file_name, content_type, storage_path


class TranscriptionProcessor:
  def __init__(self, *, meetings_repo: MeetingsRepository, storage: RecordingStorage, speech: SpeechToText, activity: WorkspaceActivity | None = None) -> None:
    self._meetings_repo = meetings_repo
    self._storage = storage
    self._speech = speech
    self._activity = activity

  async def process(self, job: JobRecord, reporter: JobProgressReporter) -> dict[str, Any]:
    file_name, content_type, storage_path = _required_file_fields(job.metadata)

    meeting = await fetch_meeting(self._meetings_repo, job.meeting_id)
    await reporter.report(25, "Fetched meeting")

    await reporter.report(40, "Downloading recording")
    audio = await call_external("Recording download", self._storage.download(storage_path))
    await reporter.report(75, "Transcribing recording")

    transcript = await call_external("Speech-to-text", self._speech.transcribe(audio, content_type))

    saved = await persist("Saving transcript", self._meetings_repo.save_transcript(meeting.meeting_id, transcript, status="transcribed"))
    if not saved:
      raise PersistenceError(f"Meeting disappeared before the transcript was saved: {meeting.meeting_id}")

    if meeting.nest_id:
      await self._touch_activity(meeting.nest_id)

    await reporter.report(100, "Transcription complete")
    logger.info("Transcribed %s for meeting %s (%d chars)", file_name, meeting.meeting_id, len(transcript))
    return {"meeting_id": meeting.meeting_id, "file_name": file_name, "transcript_length": len(transcript), "storage_path": storage_path}

  async def _touch_activity(self, nest_id: str) -> None:
    if self._activity is None:
      return
    try:
      await self._activity.touch(nest_id)
    except Exception as exc:  # noqa: BLE001
      logger.warning("Workspace activity touch failed for nest %s: %s", nest_id, exc, exc_info=True)
