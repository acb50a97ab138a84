"""Shared google-genai client construction and rate-limit backoff."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from google import genai

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MAX_ATTEMPTS = 3
_BASE_DELAY_SECONDS = 1.0


def build_gemini_client(api_key: str | None) -> genai.Client:
  if not api_key:
    raise ValueError("GEMINI_API_KEY environment variable is required")
  return genai.Client(api_key=api_key)


def _is_rate_limited(exc: Exception) -> bool:
  message = str(exc)
  return "429" in message or "Too Many Requests" in message or "RESOURCE_EXHAUSTED" in message


async def with_backoff(func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
  """Retry ``func`` with jittered exponential backoff on 429 responses only."""
  for attempt in range(_MAX_ATTEMPTS):
    try:
      return await func(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
      if not _is_rate_limited(exc) or attempt == _MAX_ATTEMPTS - 1:
        raise
      delay = _BASE_DELAY_SECONDS * (2**attempt) + random.uniform(0, 1)
      logger.warning("Gemini rate limited; retrying in %.1fs (attempt %d/%d)", delay, attempt + 1, _MAX_ATTEMPTS)
      await asyncio.sleep(delay)
  raise RuntimeError("unreachable")
