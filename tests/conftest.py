"""Shared fixtures for studykit tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from studykit.ai.providers.base import ContentProvider, ProviderReply
from studykit.api.deps import get_error_reporter, get_generation_service, get_metrics, get_summary_service
from studykit.cache.memory import InMemoryCache
from studykit.main import app
from studykit.services.generation import GenerationService
from studykit.services.summary import DailySummaryService
from studykit.storage.memory_results_repo import InMemoryResultsRepository
from studykit.telemetry.metrics import MetricsCollector


def sample_reply(**overrides: Any) -> dict[str, Any]:
  """Build a well-formed model reply document."""
  payload: dict[str, Any] = {
    "topic": "Photosynthesis",
    "topic_source": "inferred",
    "topic_confidence": 0.92,
    "summary": "Plants turn light, water and carbon dioxide into sugar and oxygen.",
    "key_points": ["Chlorophyll absorbs light", "Oxygen is released"],
    "flashcards": [{"q": "What pigment absorbs light?", "a": "Chlorophyll"}],
    "quiz": [{"q": "Which gas is released?", "choices": ["Oxygen", "Nitrogen", "Helium", "Argon"], "answer": "Oxygen"}],
  }
  payload.update(overrides)
  return payload


class ScriptedProvider(ContentProvider):
  """Provider that replays scripted replies or raises scripted errors."""

  name = "scripted"

  def __init__(self, replies: list[str | BaseException], *, model: str = "scripted-model", retry_delay: float = 0.01) -> None:
    super().__init__(model=model, retry_delay=retry_delay)
    self._replies = list(replies)
    self.prompts: list[str] = []

  @property
  def calls(self) -> int:
    return len(self.prompts)

  async def _complete(self, prompt: str) -> ProviderReply:
    self.prompts.append(prompt)
    # The last scripted reply repeats once the script is exhausted.
    reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
    if isinstance(reply, BaseException):
      raise reply
    return ProviderReply(content=reply, model=self.model)


class RecordingReporter:
  def __init__(self) -> None:
    self.reports: list[tuple[BaseException, dict[str, str]]] = []

  def report(self, error: BaseException, context: dict[str, str]) -> None:
    self.reports.append((error, context))


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def reply_payload() -> Any:
  """Factory for reply documents: `reply_payload(topic="X")`."""
  return sample_reply


@pytest.fixture
def make_provider() -> type[ScriptedProvider]:
  return ScriptedProvider


@pytest.fixture
def provider() -> ScriptedProvider:
  return ScriptedProvider([json.dumps(sample_reply())])


@pytest.fixture
def repository() -> InMemoryResultsRepository:
  return InMemoryResultsRepository()


@pytest.fixture
def metrics() -> MetricsCollector:
  return MetricsCollector()


@pytest.fixture
def service(provider: ScriptedProvider, repository: InMemoryResultsRepository, metrics: MetricsCollector) -> GenerationService:
  return GenerationService(provider=provider, repository=repository, metrics=metrics, timeout_seconds=2.0)


@pytest.fixture
def summary_service(repository: InMemoryResultsRepository) -> DailySummaryService:
  return DailySummaryService(repository=repository, cache=InMemoryCache(), ttl_seconds=60)


@pytest.fixture
def reporter() -> RecordingReporter:
  return RecordingReporter()


@pytest.fixture
async def async_client(service: GenerationService, summary_service: DailySummaryService, metrics: MetricsCollector, reporter: RecordingReporter) -> AsyncIterator[AsyncClient]:
  app.dependency_overrides[get_generation_service] = lambda: service
  app.dependency_overrides[get_summary_service] = lambda: summary_service
  app.dependency_overrides[get_metrics] = lambda: metrics
  app.dependency_overrides[get_error_reporter] = lambda: reporter
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  app.dependency_overrides.clear()
