"""Factory helpers for notification services."""

from __future__ import annotations

from nest_worker.config import Settings
from nest_worker.core.database import get_session_factory
from nest_worker.notifications.in_app_repo import InAppNotificationRepository, NullInAppNotificationRepository
from nest_worker.notifications.service import InAppNotificationStore, NotificationService


def build_notification_service(settings: Settings) -> NotificationService:
  """Construct a notification service; persistence is skipped when Postgres is not configured."""
  session_factory = get_session_factory() if settings.pg_dsn else None
  if session_factory is not None:
    in_app_repo: InAppNotificationStore = InAppNotificationRepository(session_factory)
  else:
    in_app_repo = NullInAppNotificationRepository()
  return NotificationService(in_app_repo=in_app_repo)
