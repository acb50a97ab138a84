"""Fixed outputs used when a meeting transcript is too short for AI processing."""

from __future__ import annotations

from nest_worker.storage.boards_repo import CardDraft

PLACEHOLDER_PROVIDER = "placeholder"

PLACEHOLDER_SUMMARY = """## Meeting summary

The transcript for this meeting is too short to generate a detailed summary.

### Suggested next steps
- Upload a longer recording or add notes to the meeting
- Re-run the summary once a full transcript is available
"""


def transcript_is_sufficient(transcript: str | None, *, min_chars: int) -> bool:
  """Return True when the stripped transcript reaches ``min_chars``."""
  return len((transcript or "").strip()) >= min_chars


def placeholder_cards() -> list[CardDraft]:
  """Return the deterministic starter cards used for short transcripts."""
  return [
    CardDraft(title="Review meeting notes", content="Review the meeting notes and capture the key points.", card_type="task", priority="high", tags=["meeting", "follow-up"]),
    CardDraft(title="Share outcomes with the team", content="Send the decisions and open items to everyone involved.", card_type="task", priority="medium", tags=["communication"]),
    CardDraft(title="Ideas for the next meeting", content="Collect topics to bring to the next session.", card_type="idea", priority="low", tags=["planning"]),
  ]
