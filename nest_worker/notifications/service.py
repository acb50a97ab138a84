"""Notification orchestration for user-facing events."""

from __future__ import annotations

import logging
from typing import Protocol

from nest_worker.notifications.in_app_repo import InAppNotificationEntry
from nest_worker.notifications.in_app_templates import render_in_app_template

logger = logging.getLogger(__name__)


class InAppNotificationStore(Protocol):
  async def insert(self, entry: InAppNotificationEntry) -> None: ...


class NotificationService:
  """Renders templates and stores in-app notifications for polling clients."""

  def __init__(self, *, in_app_repo: InAppNotificationStore) -> None:
    self._in_app_repo = in_app_repo

  async def notify_in_app(self, *, user_id: str, template_id: str, data: dict) -> None:
    """Persist an in-app notification; rendering and storage errors propagate to the caller."""
    title, body = render_in_app_template(template_id=template_id, data=data)
    await self._in_app_repo.insert(InAppNotificationEntry(user_id=user_id, template_id=template_id, title=title, body=body, data=data))
    logger.debug("Stored in-app notification template_id=%s user_id=%s", template_id, user_id)
