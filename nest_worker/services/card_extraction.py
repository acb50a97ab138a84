"""Client for the hosted card-extraction function."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
import msgspec

from nest_worker.config import Settings
from nest_worker.storage.boards_repo import CardDraft

logger = logging.getLogger(__name__)


class _ExtractionResponse(msgspec.Struct):
  success: bool
  cards: list[CardDraft] = msgspec.field(default_factory=list)
  provider: str = "unknown"
  error: str | None = None


@dataclass(frozen=True)
class CardExtractionResult:
  cards: list[CardDraft]
  provider: str


class CardExtractionService:
  """POST ``{meeting_id}`` to the extraction function and decode ``{success, cards, provider}``."""

  def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self._url = settings.card_extraction_url
    self._token = settings.card_extraction_token
    self._timeout = float(settings.card_extraction_timeout_seconds)
    self._transport = transport

  def _headers(self) -> dict[str, str]:
    if not self._token:
      return {}
    return {"authorization": f"Bearer {self._token}"}

  async def extract_cards(self, meeting_id: str) -> CardExtractionResult:
    if not self._url:
      raise RuntimeError("Card extraction URL not configured (NEST_CARD_EXTRACTION_URL).")
    try:
      async with httpx.AsyncClient(transport=self._transport, trust_env=False, timeout=self._timeout) as client:
        response = await client.post(self._url, json={"meeting_id": meeting_id}, headers=self._headers())
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
      logger.error("Card extraction returned %s for meeting %s: %s", e.response.status_code, meeting_id, e.response.text)
      raise
    except httpx.RequestError as e:
      logger.error("Card extraction request failed for meeting %s: %s", meeting_id, e)
      raise

    payload = msgspec.json.decode(response.content, type=_ExtractionResponse)
    if not payload.success:
      raise RuntimeError(f"Card extraction failed: {payload.error or 'no error detail'}")
    logger.info("Extracted %d cards for meeting %s via %s", len(payload.cards), meeting_id, payload.provider)
    return CardExtractionResult(cards=payload.cards, provider=payload.provider)
