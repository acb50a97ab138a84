from __future__ import annotations

import json

import httpx
import pytest

from nest_worker.services.card_extraction import CardExtractionService


def _transport(status_code: int, payload: dict, seen: list[httpx.Request]) -> httpx.MockTransport:
  def handler(request: httpx.Request) -> httpx.Response:
    seen.append(request)
    return httpx.Response(status_code, json=payload)

  return httpx.MockTransport(handler)


@pytest.mark.anyio
async def test_extract_cards_posts_meeting_id_and_decodes_cards(make_settings) -> None:
  seen: list[httpx.Request] = []
  payload = {
    "success": True,
    "provider": "gemini",
    "cards": [
      {"title": "Write rollout plan", "content": "Owner: Dana", "type": "task", "priority": "high", "tags": ["launch"], "assignee": "Dana"},
      {"title": "Async standups", "type": "idea"},
    ],
  }
  service = CardExtractionService(make_settings(card_extraction_token="secret"), transport=_transport(200, payload, seen))

  result = await service.extract_cards("meeting-1")

  assert result.provider == "gemini"
  assert [card.title for card in result.cards] == ["Write rollout plan", "Async standups"]
  assert result.cards[0].card_type == "task"
  assert result.cards[0].assignee == "Dana"
  assert result.cards[1].content == ""
  assert result.cards[1].tags == []
  assert json.loads(seen[0].content) == {"meeting_id": "meeting-1"}
  assert seen[0].headers["authorization"] == "Bearer secret"


@pytest.mark.anyio
async def test_unsuccessful_response_raises(make_settings) -> None:
  service = CardExtractionService(make_settings(), transport=_transport(200, {"success": False, "error": "transcript missing"}, []))

  with pytest.raises(RuntimeError, match="transcript missing"):
    await service.extract_cards("meeting-1")


@pytest.mark.anyio
async def test_http_errors_propagate(make_settings) -> None:
  seen: list[httpx.Request] = []
  service = CardExtractionService(make_settings(), transport=_transport(503, {"error": "unavailable"}, seen))

  with pytest.raises(httpx.HTTPStatusError):
    await service.extract_cards("meeting-1")

  assert "authorization" not in seen[0].headers


@pytest.mark.anyio
async def test_missing_url_is_reported_at_call_time(make_settings) -> None:
  service = CardExtractionService(make_settings(card_extraction_url=None))

  with pytest.raises(RuntimeError, match="not configured"):
    await service.extract_cards("meeting-1")
