"""Storage interfaces and records for boards, cards and their provenance sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import msgspec


class CardDraft(msgspec.Struct, kw_only=True):
  """Card produced by extraction before it is stored on a board."""

  title: str
  content: str = ""
  card_type: str = msgspec.field(default="task", name="type")
  priority: str | None = None
  tags: list[str] = msgspec.field(default_factory=list)
  assignee: str | None = None
  deadline: str | None = None


@dataclass(frozen=True)
class BoardCardRecord:
  """Card row as persisted on a board."""

  card_id: str
  board_id: str
  meeting_id: str | None
  title: str
  content: str
  card_type: str
  priority: str | None
  tags: list[str]
  order_index: int

  def to_payload(self) -> dict:
    return {
      "id": self.card_id,
      "board_id": self.board_id,
      "meeting_id": self.meeting_id,
      "title": self.title,
      "content": self.content,
      "type": self.card_type,
      "priority": self.priority,
      "tags": list(self.tags),
      "order_index": self.order_index,
    }


@dataclass(frozen=True)
class SourceRecord:
  """Provenance record pointing generated cards back to a meeting."""

  source_id: str
  source_type: str
  meeting_id: str | None
  label: str | None


class BoardsRepository(Protocol):
  """Board persistence used by card extraction."""

  async def get_or_create_default_board(self, nest_id: str, user_id: str) -> str:
    """Return the id of the workspace's default board, creating it when missing."""

  async def add_cards(self, board_id: str, cards: list[CardDraft], *, user_id: str, meeting_id: str) -> list[BoardCardRecord]:
    """Insert cards in order and return the stored rows."""

  async def get_or_create_meeting_source(self, meeting_id: str, title: str | None) -> SourceRecord:
    """Return the single meeting source record, creating it on first use."""

  async def link_card_source(self, card_id: str, source_id: str) -> None:
    """Link one card to a source record; linking twice is a no-op."""
