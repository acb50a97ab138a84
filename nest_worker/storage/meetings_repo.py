"""Storage interfaces and records for the meeting rows processors operate on."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class MeetingRecord:
  """Subset of a meeting row the job processors need."""

  meeting_id: str
  nest_id: str | None
  title: str | None
  transcript: str | None
  ai_summary: str | None
  status: str | None


class MeetingsRepository(Protocol):
  """Read and write the meeting fields owned by background processing."""

  async def get_meeting(self, meeting_id: str) -> MeetingRecord | None:
    """Fetch a meeting by identifier."""

  async def save_transcript(self, meeting_id: str, transcript: str, *, status: str = "transcribed") -> bool:
    """Store transcript text and status; return False when the meeting no longer exists."""

  async def save_summary(self, meeting_id: str, summary: str) -> bool:
    """Store the AI summary text; return False when the meeting no longer exists."""
