"""Postgres-backed board, card and provenance persistence."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nest_worker.core.database import require_session_factory
from nest_worker.schema.boards import Board, BoardCard, BoardCardSource, Source
from nest_worker.storage.boards_repo import BoardCardRecord, BoardsRepository, CardDraft, SourceRecord

logger = logging.getLogger(__name__)

DEFAULT_BOARD_NAME = "Meeting Board"
MEETING_SOURCE_TYPE = "meeting"


class PostgresBoardsRepository(BoardsRepository):
  def __init__(self, session_factory: async_sessionmaker[AsyncSession] | None = None) -> None:
    self._session_factory = session_factory or require_session_factory()

  async def get_or_create_default_board(self, nest_id: str, user_id: str) -> str:
    async with self._session_factory() as session:
      stmt = select(Board.id).where(Board.nest_id == nest_id, Board.is_default.is_(True)).order_by(Board.created_at.asc()).limit(1)
      board_id = (await session.execute(stmt)).scalar_one_or_none()
      if board_id is not None:
        return str(board_id)

      board = Board(nest_id=nest_id, name=DEFAULT_BOARD_NAME, is_default=True, created_by=user_id)
      session.add(board)
      await session.commit()
      logger.info("Created default board %s for nest %s", board.id, nest_id)
      return str(board.id)

  async def add_cards(self, board_id: str, cards: list[CardDraft], *, user_id: str, meeting_id: str) -> list[BoardCardRecord]:
    if not cards:
      return []
    async with self._session_factory() as session:
      # Append after the board's existing cards.
      start = await session.scalar(select(func.coalesce(func.max(BoardCard.order_index), -1)).where(BoardCard.board_id == board_id))
      rows: list[BoardCard] = []
      for offset, draft in enumerate(cards, start=int(start) + 1):
        row = BoardCard(
          board_id=board_id,
          meeting_id=meeting_id,
          title=draft.title,
          content=draft.content,
          column_type=draft.card_type,
          priority=draft.priority,
          tags=list(draft.tags),
          assignee=draft.assignee,
          deadline=draft.deadline,
          order_index=offset,
          created_by=user_id,
        )
        session.add(row)
        rows.append(row)
      await session.commit()
      return [
        BoardCardRecord(
          card_id=str(row.id),
          board_id=row.board_id,
          meeting_id=row.meeting_id,
          title=row.title,
          content=row.content or "",
          card_type=row.column_type,
          priority=row.priority,
          tags=list(row.tags or []),
          order_index=row.order_index,
        )
        for row in rows
      ]

  async def get_or_create_meeting_source(self, meeting_id: str, title: str | None) -> SourceRecord:
    async with self._session_factory() as session:
      # The unique (source_type, meeting_id) constraint keeps concurrent creators on one row.
      stmt = insert(Source).values(source_type=MEETING_SOURCE_TYPE, meeting_id=meeting_id, label=title).on_conflict_do_nothing(constraint="ux_sources_type_meeting")
      await session.execute(stmt)
      await session.commit()
      row = (await session.execute(select(Source).where(Source.source_type == MEETING_SOURCE_TYPE, Source.meeting_id == meeting_id))).scalar_one()
      return SourceRecord(source_id=str(row.id), source_type=row.source_type, meeting_id=row.meeting_id, label=row.label)

  async def link_card_source(self, card_id: str, source_id: str) -> None:
    async with self._session_factory() as session:
      stmt = insert(BoardCardSource).values(card_id=card_id, source_id=source_id).on_conflict_do_nothing(constraint="ux_board_card_sources_card_source")
      await session.execute(stmt)
      await session.commit()
