"""Extract action cards from a meeting and place them on the workspace board."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from nest_worker.jobs.errors import JobValidationError
from nest_worker.jobs.models import JobRecord
from nest_worker.jobs.placeholders import PLACEHOLDER_PROVIDER, placeholder_cards, transcript_is_sufficient
from nest_worker.jobs.processors.common import call_external, fetch_meeting, persist
from nest_worker.jobs.progress import JobProgressReporter
from nest_worker.services.card_extraction import CardExtractionResult
from nest_worker.storage.boards_repo import BoardCardRecord, BoardsRepository
from nest_worker.storage.meetings_repo import MeetingsRepository

logger = logging.getLogger(__name__)

SYSTEM_USER_ID = "system"


class CardExtractor(Protocol):
  async def extract_cards(self, meeting_id: str) -> CardExtractionResult: ...


class CardExtractionProcessor:
  def __init__(self, *, meetings_repo: MeetingsRepository, boards_repo: BoardsRepository, extractor: CardExtractor, min_transcript_chars: int) -> None:
    self._meetings_repo = meetings_repo
    self._boards_repo = boards_repo
    self._extractor = extractor
    self._min_transcript_chars = min_transcript_chars

  async def process(self, job: JobRecord, reporter: JobProgressReporter) -> dict[str, Any]:
    meeting = await fetch_meeting(self._meetings_repo, job.meeting_id)
    if not meeting.nest_id:
      raise JobValidationError(f"Meeting {meeting.meeting_id} is not attached to a workspace")
    await reporter.report(25, "Fetched meeting")

    if transcript_is_sufficient(meeting.transcript, min_chars=self._min_transcript_chars):
      await reporter.report(50, "Extracting cards")
      extraction = await call_external("Card extraction", self._extractor.extract_cards(meeting.meeting_id))
    else:
      logger.info("Transcript for meeting %s is too short; using placeholder cards", meeting.meeting_id)
      extraction = CardExtractionResult(cards=placeholder_cards(), provider=PLACEHOLDER_PROVIDER)
      await reporter.report(50, "Prepared placeholder cards")

    await reporter.report(75, "Saving cards to board")
    saved_cards: list[BoardCardRecord] = []
    board_id: str | None = None
    source_id: str | None = None
    if extraction.cards:
      user_id = job.user_id or SYSTEM_USER_ID
      board_id = await persist("Resolving default board", self._boards_repo.get_or_create_default_board(meeting.nest_id, user_id))
      saved_cards = await persist("Saving cards", self._boards_repo.add_cards(board_id, extraction.cards, user_id=user_id, meeting_id=meeting.meeting_id))

      source = await persist("Resolving meeting source", self._boards_repo.get_or_create_meeting_source(meeting.meeting_id, meeting.title))
      source_id = source.source_id
      await persist("Linking cards to source", asyncio.gather(*(self._boards_repo.link_card_source(card.card_id, source_id) for card in saved_cards)))
    else:
      logger.info("No cards extracted for meeting %s; board left unchanged", meeting.meeting_id)

    await reporter.report(100, "Cards saved")
    return {
      "cards": [card.to_payload() for card in saved_cards],
      "card_count": len(saved_cards),
      "extracted_count": len(extraction.cards),
      "provider": extraction.provider,
      "source_id": source_id,
      "board_id": board_id,
      "meeting_id": meeting.meeting_id,
    }
