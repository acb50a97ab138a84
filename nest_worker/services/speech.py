"""Speech-to-text over Gemini audio input."""

from __future__ import annotations

import logging

from google import genai
from google.genai import types

from nest_worker.config import Settings
from nest_worker.services.gemini import build_gemini_client, with_backoff

logger = logging.getLogger(__name__)

TRANSCRIPTION_PROMPT = (
  "Transcribe this meeting recording verbatim. "
  "Return plain text only, one speaker turn per paragraph, without commentary or timestamps."
)


class SpeechToTextService:
  def __init__(self, *, model: str, api_key: str | None = None, client: genai.Client | None = None) -> None:
    self._model = model
    self._api_key = api_key
    self._client = client

  def _get_client(self) -> genai.Client:
    if self._client is None:
      self._client = build_gemini_client(self._api_key)
    return self._client

  async def transcribe(self, audio: bytes, content_type: str) -> str:
    """Return the transcript text for raw audio or video bytes."""
    contents = [types.Part.from_bytes(data=audio, mime_type=content_type), TRANSCRIPTION_PROMPT]
    response = await with_backoff(self._get_client().aio.models.generate_content, model=self._model, contents=contents)
    text = (response.text or "").strip()
    if not text:
      raise RuntimeError("Gemini returned an empty transcript")
    logger.info("Transcribed %d bytes of %s into %d characters", len(audio), content_type, len(text))
    return text


def build_speech_service(settings: Settings) -> SpeechToTextService:
  return SpeechToTextService(model=settings.transcription_model, api_key=settings.gemini_api_key)
