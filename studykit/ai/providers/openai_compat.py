"""OpenAI-compatible chat completions provider using the openai SDK."""

from __future__ import annotations

import logging
import os
from typing import Final

from openai import AsyncOpenAI

from studykit.ai.backoff import MAX_ATTEMPTS, RETRY_DELAY_SECONDS
from studykit.ai.providers.base import ContentProvider, MalformedResponseError, ProviderReply

logger = logging.getLogger(__name__)


class OpenAICompatibleProvider(ContentProvider):
  """Chat completions against OpenAI or any server speaking its API."""

  name = "openai-compatible"
  _DEFAULT_MODEL: Final[str] = "gpt-3.5-turbo"

  def __init__(self, *, model: str | None = None, api_key: str | None = None, base_url: str | None = None, client: AsyncOpenAI | None = None, retry_attempts: int = MAX_ATTEMPTS, retry_delay: float = RETRY_DELAY_SECONDS) -> None:
    super().__init__(model=model or self._DEFAULT_MODEL, retry_attempts=retry_attempts, retry_delay=retry_delay)

    if client is None:
      api_key = api_key or os.getenv("OPENAI_API_KEY")
      if not api_key:
        raise ValueError("STUDYKIT_AI_API_KEY or OPENAI_API_KEY is required for the openai provider")
      # Retries are owned by call_with_retry so the deadline covers them.
      client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)

    self._client = client

  async def _complete(self, prompt: str) -> ProviderReply:
    response = await self._client.chat.completions.create(model=self.model, messages=[{"role": "user", "content": prompt}], temperature=0.7, response_format={"type": "json_object"})

    if not response.choices:
      raise MalformedResponseError("Upstream returned no choices.")

    content = response.choices[0].message.content or ""
    logger.debug("OpenAI-compatible response (raw):\n%s", content)
    return ProviderReply(content=content, model=response.model or self.model)

  async def close(self) -> None:
    await self._client.close()
