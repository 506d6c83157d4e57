"""Base interfaces for content-generation providers."""

from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from studykit.ai.backoff import MAX_ATTEMPTS, RETRY_DELAY_SECONDS, call_with_retry, is_timeout_error
from studykit.ai.json_parser import parse_json_with_fallback, strip_json_fences
from studykit.ai.prompts import build_prompt
from studykit.core.errors import StudykitError, UpstreamError, UpstreamTimeoutError
from studykit.schema.content import Flashcard, GenerationRequest, GenerationResult, QuizItem, ResultMeta, TopicSource

logger = logging.getLogger(__name__)


class MalformedResponseError(UpstreamError):
  """Raised when the upstream reply is not the expected JSON document."""


@dataclass
class ProviderReply:
  """Raw reply text from one upstream call."""

  content: str
  model: str | None = None


class GeneratedContent(BaseModel):
  """Reply document the model is instructed to return."""

  model_config = ConfigDict(extra="ignore")

  topic: str = ""
  topic_source: str = TopicSource.INFERRED.value
  topic_confidence: float = 0.0
  summary: str = ""
  key_points: list[str] = Field(default_factory=list)
  flashcards: list[Flashcard] = Field(default_factory=list)
  quiz: list[QuizItem] = Field(default_factory=list)

  @field_validator("topic", "summary", mode="before")
  @classmethod
  def null_text_to_empty(cls, v: object) -> object:
    return "" if v is None else v

  @field_validator("topic_source", mode="before")
  @classmethod
  def unknown_source_to_inferred(cls, v: object) -> object:
    return v if isinstance(v, str) else TopicSource.INFERRED.value

  @field_validator("topic_confidence", mode="before")
  @classmethod
  def null_confidence_to_zero(cls, v: object) -> object:
    return 0.0 if v is None else v

  @field_validator("key_points", "flashcards", "quiz", mode="before")
  @classmethod
  def null_list_to_empty(cls, v: object) -> object:
    return [] if v is None else v


def parse_reply(raw: str) -> GeneratedContent:
  """Decode and validate a reply body, raising MalformedResponseError on failure."""
  cleaned = strip_json_fences(raw)
  if not cleaned:
    raise MalformedResponseError("Upstream returned an empty reply.")

  try:
    payload = parse_json_with_fallback(cleaned)
  except json.JSONDecodeError as exc:
    raise MalformedResponseError("Upstream returned invalid JSON.") from exc

  if not isinstance(payload, dict):
    raise MalformedResponseError("Upstream reply is not a JSON object.")

  try:
    return GeneratedContent.model_validate(payload)
  except ValidationError as exc:
    raise MalformedResponseError("Upstream reply does not match the content schema.") from exc


def clamp_confidence(value: float) -> float:
  if math.isnan(value):
    return 0.0
  return min(1.0, max(0.0, value))


def normalize_reply(content: GeneratedContent, *, provider: str, model: str) -> GenerationResult:
  """Map a validated reply into a result with provider metadata attached."""
  topic_source = TopicSource.USER if content.topic_source == TopicSource.USER.value else TopicSource.INFERRED
  return GenerationResult(
    topic=content.topic,
    topic_source=topic_source,
    topic_confidence=clamp_confidence(content.topic_confidence),
    summary=content.summary,
    key_points=list(content.key_points),
    flashcards=list(content.flashcards),
    quiz=list(content.quiz),
    meta=ResultMeta(model=model, provider=provider),
    created_at=datetime.now(UTC),
  )


class ContentProvider(ABC):
  """Abstract base class for learning-content generators."""

  name: str

  def __init__(self, *, model: str, retry_attempts: int = MAX_ATTEMPTS, retry_delay: float = RETRY_DELAY_SECONDS) -> None:
    self.model = model
    self._retry_attempts = retry_attempts
    self._retry_delay = retry_delay

  @abstractmethod
  async def _complete(self, prompt: str) -> ProviderReply:
    """Send one request upstream and return the raw reply text."""

  async def generate(self, request: GenerationRequest, *, timeout: float) -> GenerationResult:
    """Generate structured content for a normalized request within `timeout` seconds."""
    prompt = build_prompt(request)

    async def _attempt() -> tuple[GeneratedContent, str]:
      reply = await self._complete(prompt)
      return parse_reply(reply.content), reply.model or self.model

    try:
      content, model = await call_with_retry(_attempt, timeout=timeout, attempts=self._retry_attempts, delay=self._retry_delay)
    except StudykitError:
      raise
    except Exception as exc:
      if is_timeout_error(exc):
        raise UpstreamTimeoutError(f"{self.name} did not answer within {timeout:g}s.") from exc
      raise UpstreamError(f"{self.name} request failed.") from exc

    logger.info("Generated content via %s model=%s topic=%r", self.name, model, content.topic)
    return normalize_reply(content, provider=self.name, model=model)

  async def close(self) -> None:
    """Release client resources."""
    return None
