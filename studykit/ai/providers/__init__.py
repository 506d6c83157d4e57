"""Provider implementations."""

from studykit.ai.providers.base import ContentProvider, GeneratedContent, MalformedResponseError, ProviderReply
from studykit.ai.providers.gemini import GeminiProvider
from studykit.ai.providers.openai_compat import OpenAICompatibleProvider
from studykit.config import Settings


def build_provider(settings: Settings) -> ContentProvider:
  """Construct the configured provider."""
  if settings.ai_provider == "gemini":
    return GeminiProvider(model=settings.ai_model, api_key=settings.ai_api_key)
  return OpenAICompatibleProvider(model=settings.ai_model, api_key=settings.ai_api_key, base_url=settings.ai_base_url)


__all__ = ["ContentProvider", "GeneratedContent", "MalformedResponseError", "ProviderReply", "GeminiProvider", "OpenAICompatibleProvider", "build_provider"]
