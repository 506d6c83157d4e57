"""Gemini provider implementation using the google-genai SDK."""

from __future__ import annotations

import logging
import os
import warnings
from typing import Final

from pydantic.warnings import ArbitraryTypeWarning

with warnings.catch_warnings():
  warnings.filterwarnings("ignore", message=r"<built-in function any> is not a Python type.*", category=ArbitraryTypeWarning)
  from google import genai
  from google.genai import types

from studykit.ai.backoff import MAX_ATTEMPTS, RETRY_DELAY_SECONDS
from studykit.ai.providers.base import ContentProvider, ProviderReply

logger = logging.getLogger(__name__)


class GeminiProvider(ContentProvider):
  """Gemini JSON-mode content generator."""

  name = "gemini"
  _DEFAULT_MODEL: Final[str] = "gemini-2.0-flash"

  def __init__(self, *, model: str | None = None, api_key: str | None = None, client: genai.Client | None = None, retry_attempts: int = MAX_ATTEMPTS, retry_delay: float = RETRY_DELAY_SECONDS) -> None:
    super().__init__(model=model or self._DEFAULT_MODEL, retry_attempts=retry_attempts, retry_delay=retry_delay)

    if client is None:
      api_key = api_key or os.getenv("GEMINI_API_KEY")
      if not api_key:
        raise ValueError("STUDYKIT_AI_API_KEY or GEMINI_API_KEY is required for the gemini provider")
      client = genai.Client(api_key=api_key)

    self._client = client

  async def _complete(self, prompt: str) -> ProviderReply:
    # Use the async client to avoid blocking the asyncio event loop.
    config = types.GenerateContentConfig(temperature=0.7, response_mime_type="application/json")
    response = await self._client.aio.models.generate_content(model=self.model, contents=prompt, config=config)

    content = response.text or ""
    logger.debug("Gemini response (raw):\n%s", content)
    return ProviderReply(content=content, model=self.model)
