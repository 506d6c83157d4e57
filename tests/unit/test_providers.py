"""Unit tests for provider retry, normalization and SDK request shapes."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from studykit.ai.providers import GeminiProvider, MalformedResponseError, OpenAICompatibleProvider
from studykit.core.errors import ErrorCode, UpstreamError, UpstreamTimeoutError
from studykit.schema.content import GenerationRequest, TopicSource

REQUEST = GenerationRequest(text="Plants use sunlight to make sugar.", mode="flashcards", language="en")


@pytest.mark.anyio
async def test_timeout_triggers_exactly_one_retry(make_provider, reply_payload) -> None:
  provider = make_provider([TimeoutError("slow"), json.dumps(reply_payload())])
  result = await provider.generate(REQUEST, timeout=2.0)
  assert provider.calls == 2
  assert result.topic == "Photosynthesis"
  assert result.meta.provider == "scripted"
  assert result.meta.model == "scripted-model"


@pytest.mark.anyio
async def test_repeated_timeouts_surface_as_upstream_timeout(make_provider) -> None:
  provider = make_provider([TimeoutError("slow")])
  with pytest.raises(UpstreamTimeoutError) as excinfo:
    await provider.generate(REQUEST, timeout=2.0)
  assert provider.calls == 2
  assert excinfo.value.code is ErrorCode.UPSTREAM_TIMEOUT
  assert isinstance(excinfo.value.__cause__, TimeoutError)


@pytest.mark.anyio
async def test_invalid_json_fails_without_retry(make_provider) -> None:
  """Decode failures are permanent, so the provider is called once."""
  provider = make_provider(["this is not json"])
  with pytest.raises(MalformedResponseError) as excinfo:
    await provider.generate(REQUEST, timeout=2.0)
  assert provider.calls == 1
  assert excinfo.value.code is ErrorCode.UPSTREAM_ERROR


@pytest.mark.anyio
async def test_unexpected_error_is_wrapped_not_raised_raw(make_provider) -> None:
  provider = make_provider([RuntimeError("quota exceeded")])
  with pytest.raises(UpstreamError) as excinfo:
    await provider.generate(REQUEST, timeout=2.0)
  assert not isinstance(excinfo.value, UpstreamTimeoutError)
  assert isinstance(excinfo.value.__cause__, RuntimeError)
  assert provider.calls == 1


@pytest.mark.anyio
@pytest.mark.parametrize(("raw_source", "raw_confidence", "source", "confidence"), [("user", 1.7, TopicSource.USER, 1.0), ("USER", -0.3, TopicSource.INFERRED, 0.0), ("guess", 0.4, TopicSource.INFERRED, 0.4), (None, None, TopicSource.INFERRED, 0.0), (7, 0.5, TopicSource.INFERRED, 0.5)])
async def test_reply_normalization(make_provider, reply_payload, raw_source: object, raw_confidence: float | None, source: TopicSource, confidence: float) -> None:
  """Provenance is coerced to user/inferred and confidence clamped into [0, 1]."""
  provider = make_provider([json.dumps(reply_payload(topic_source=raw_source, topic_confidence=raw_confidence))])
  result = await provider.generate(REQUEST, timeout=2.0)
  assert result.topic_source is source
  assert result.topic_confidence == pytest.approx(confidence)


@pytest.mark.anyio
async def test_nan_confidence_becomes_zero(make_provider, reply_payload) -> None:
  provider = make_provider([json.dumps(reply_payload(topic_confidence=float("nan")))])
  result = await provider.generate(REQUEST, timeout=2.0)
  assert result.topic_confidence == 0.0


@pytest.mark.anyio
async def test_null_reply_fields_fall_back_to_defaults(make_provider, reply_payload) -> None:
  reply = reply_payload(topic=None, topic_source=None, topic_confidence=None, summary=None, key_points=None, quiz=None)
  provider = make_provider([json.dumps(reply)])
  result = await provider.generate(REQUEST, timeout=2.0)
  assert (result.topic, result.summary, result.key_points, result.quiz) == ("", "", [], [])
  assert result.topic_source is TopicSource.INFERRED
  assert result.topic_confidence == 0.0
  assert len(result.flashcards) == 1


@pytest.mark.anyio
async def test_fenced_reply_is_accepted(make_provider, reply_payload) -> None:
  provider = make_provider(["```json\n" + json.dumps(reply_payload()) + "\n```"])
  result = await provider.generate(REQUEST, timeout=2.0)
  assert result.flashcards[0].a == "Chlorophyll"
  assert result.quiz[0].choices == ["Oxygen", "Nitrogen", "Helium", "Argon"]


@pytest.mark.anyio
async def test_schema_mismatch_is_malformed(make_provider) -> None:
  provider = make_provider([json.dumps({"flashcards": "not a list"})])
  with pytest.raises(MalformedResponseError):
    await provider.generate(REQUEST, timeout=2.0)
  assert provider.calls == 1


def _openai_client(content: str, model: str = "gpt-4o-mini") -> MagicMock:
  client = MagicMock()
  completion = SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))], model=model)
  client.chat.completions.create = AsyncMock(return_value=completion)
  client.close = AsyncMock()
  return client


@pytest.mark.anyio
async def test_openai_provider_requests_json_mode(reply_payload) -> None:
  client = _openai_client(json.dumps(reply_payload()))
  provider = OpenAICompatibleProvider(model="gpt-4o-mini", client=client)

  result = await provider.generate(REQUEST, timeout=2.0)

  kwargs = client.chat.completions.create.await_args.kwargs
  assert kwargs["model"] == "gpt-4o-mini"
  assert kwargs["temperature"] == 0.7
  assert kwargs["response_format"] == {"type": "json_object"}
  assert kwargs["messages"][0]["role"] == "user"
  assert "Plants use sunlight" in kwargs["messages"][0]["content"]
  assert result.meta.provider == "openai-compatible"
  assert result.meta.model == "gpt-4o-mini"

  await provider.close()
  client.close.assert_awaited_once()


@pytest.mark.anyio
async def test_openai_connection_errors_are_retried_once(reply_payload) -> None:
  client = _openai_client(json.dumps(reply_payload()))
  connection_error = openai.APIConnectionError(request=httpx.Request("POST", "https://example.test/v1/chat/completions"))
  client.chat.completions.create.side_effect = [connection_error, connection_error]
  provider = OpenAICompatibleProvider(client=client, retry_delay=0.01)

  with pytest.raises(UpstreamError) as excinfo:
    await provider.generate(REQUEST, timeout=2.0)

  assert client.chat.completions.create.await_count == 2
  assert excinfo.value.code is ErrorCode.UPSTREAM_ERROR
  assert excinfo.value.__cause__ is connection_error


def test_openai_provider_requires_api_key(monkeypatch) -> None:
  monkeypatch.delenv("OPENAI_API_KEY", raising=False)
  with pytest.raises(ValueError, match="OPENAI_API_KEY"):
    OpenAICompatibleProvider()


@pytest.mark.anyio
async def test_gemini_provider_requests_json_mime_type(reply_payload) -> None:
  client = MagicMock()
  client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text=json.dumps(reply_payload())))
  provider = GeminiProvider(client=client)

  result = await provider.generate(REQUEST, timeout=2.0)

  kwargs = client.aio.models.generate_content.await_args.kwargs
  assert kwargs["model"] == "gemini-2.0-flash"
  assert kwargs["config"].temperature == 0.7
  assert kwargs["config"].response_mime_type == "application/json"
  assert result.meta.provider == "gemini"
  assert result.meta.model == "gemini-2.0-flash"


@pytest.mark.anyio
async def test_gemini_empty_reply_is_malformed() -> None:
  client = MagicMock()
  client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text=None))
  provider = GeminiProvider(client=client)
  with pytest.raises(MalformedResponseError):
    await provider.generate(REQUEST, timeout=2.0)
  assert client.aio.models.generate_content.await_count == 1
