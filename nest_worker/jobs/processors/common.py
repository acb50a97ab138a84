"""Helpers shared by the meeting processors."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from nest_worker.jobs.errors import ExternalServiceError, JobFetchError, PersistenceError
from nest_worker.storage.meetings_repo import MeetingRecord, MeetingsRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def fetch_meeting(meetings_repo: MeetingsRepository, meeting_id: str) -> MeetingRecord:
  try:
    meeting = await meetings_repo.get_meeting(meeting_id)
  except Exception as exc:  # noqa: BLE001
    raise JobFetchError(f"Failed to fetch meeting {meeting_id}: {exc}") from exc
  if meeting is None:
    raise JobFetchError(f"Meeting not found: {meeting_id}")
  return meeting


async def call_external(label: str, call: Awaitable[T]) -> T:
  """Await a downstream call, re-raising any failure as ``ExternalServiceError``."""
  try:
    return await call
  except ExternalServiceError:
    raise
  except Exception as exc:  # noqa: BLE001
    raise ExternalServiceError(f"{label} failed: {exc}") from exc


async def persist(label: str, call: Awaitable[T]) -> T:
  """Await a write, re-raising any failure as ``PersistenceError``."""
  try:
    return await call
  except PersistenceError:
    raise
  except Exception as exc:  # noqa: BLE001
    raise PersistenceError(f"{label} failed: {exc}") from exc
