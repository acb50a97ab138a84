"""Meeting summarization over Gemini text generation."""

from __future__ import annotations

import logging

from google import genai

from nest_worker.config import Settings
from nest_worker.services.gemini import build_gemini_client, with_backoff

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = """You are summarizing a team meeting for people who did not attend.
Write a concise summary with these parts:
1. Overview (two or three sentences)
2. Key decisions
3. Action items with owners when they are named
4. Open questions

Transcript:
{transcript}
"""


class SummarizationService:
  def __init__(self, *, model: str, api_key: str | None = None, client: genai.Client | None = None) -> None:
    self._model = model
    self._api_key = api_key
    self._client = client

  def _get_client(self) -> genai.Client:
    if self._client is None:
      self._client = build_gemini_client(self._api_key)
    return self._client

  async def summarize(self, transcript: str) -> str:
    response = await with_backoff(self._get_client().aio.models.generate_content, model=self._model, contents=SUMMARY_PROMPT.format(transcript=transcript))
    summary = (response.text or "").strip()
    if not summary:
      raise RuntimeError("Gemini returned an empty summary")
    logger.debug("Gemini summary:\n%s", summary)
    return summary


def build_summarization_service(settings: Settings) -> SummarizationService:
  return SummarizationService(model=settings.summary_model, api_key=settings.gemini_api_key)
