"""Repository helpers for in-app notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from nest_worker.schema.notifications import InAppNotification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InAppNotificationEntry:
  user_id: str
  template_id: str
  title: str
  body: str
  data: dict


class InAppNotificationRepository:
  """Persist in-app notifications to Postgres."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  async def insert(self, entry: InAppNotificationEntry) -> None:
    async with self._session_factory() as session:
      session.add(InAppNotification(user_id=entry.user_id, template_id=entry.template_id, title=entry.title, body=entry.body, data_json=entry.data, read=False))
      await session.commit()


class NullInAppNotificationRepository:
  """No-op repository when persistence is unavailable."""

  async def insert(self, entry: InAppNotificationEntry) -> None:
    logger.debug("In-app notification persistence disabled; dropping template_id=%s", entry.template_id)
