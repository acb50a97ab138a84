"""User-facing notifications for jobs that reached a terminal state."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from nest_worker.jobs.models import JobRecord, JobType

logger = logging.getLogger(__name__)

_JOB_LABELS: dict[JobType, str] = {
  JobType.TRANSCRIPTION: "Transcription",
  JobType.SUMMARIZATION: "AI summary",
  JobType.CARD_EXTRACTION: "Card extraction",
}

_SUMMARY_PREVIEW_CHARS = 100


class InAppNotifier(Protocol):
  async def notify_in_app(self, *, user_id: str, template_id: str, data: dict) -> None: ...


def job_label(job_type: str) -> str:
  parsed = JobType.parse(job_type)
  return _JOB_LABELS[parsed] if parsed is not None else "Processing"


def summarize_result(job_type: str, result: dict[str, Any] | None) -> str:
  """Short human-readable line describing a successful job."""
  result = result or {}
  parsed = JobType.parse(job_type)
  if parsed is JobType.SUMMARIZATION:
    summary = str(result.get("summary") or "").strip()
    if not summary:
      return "The meeting summary is ready."
    if len(summary) > _SUMMARY_PREVIEW_CHARS:
      return f"Summary: {summary[:_SUMMARY_PREVIEW_CHARS]}..."
    return f"Summary: {summary}"
  if parsed is JobType.CARD_EXTRACTION:
    return f"Extracted {int(result.get('card_count') or 0)} cards."
  if parsed is JobType.TRANSCRIPTION:
    return "The recording has been transcribed."
  return "Processing finished successfully."


class JobNotificationEmitter:
  """Best-effort completion notifications; every failure is logged and dropped."""

  def __init__(self, notifier: InAppNotifier) -> None:
    self._notifier = notifier

  async def emit(self, job: JobRecord, *, success: bool, result: dict[str, Any] | None = None, error_message: str | None = None) -> bool:
    """Send one notification for ``job``; return True when it was handed off."""
    if not job.user_id:
      logger.debug("Job %s has no user; skipping notification", job.job_id)
      return False

    data: dict[str, Any] = {"job_id": job.job_id, "job_type": str(job.job_type), "meeting_id": job.meeting_id, "success": success, "job_label": job_label(job.job_type)}
    if success:
      template_id = "job_completed_v1"
      data["summary"] = summarize_result(job.job_type, result)
    else:
      template_id = "job_failed_v1"
      data["error_message"] = error_message or "An error occurred while processing."

    try:
      await self._notifier.notify_in_app(user_id=job.user_id, template_id=template_id, data=data)
    except Exception as exc:  # noqa: BLE001
      logger.error("Failed to send %s notification for job %s: %s", template_id, job.job_id, exc, exc_info=True)
      return False
    return True
