from __future__ import annotations

import logging
import time

from pydantic import ValidationError

from studykit.ai.providers.base import ContentProvider
from studykit.core.errors import InternalError, NotFoundError, StudykitError, UpstreamTimeoutError
from studykit.schema.content import GenerationRequest, GenerationResult, TopicSource
from studykit.services.request_validation import normalize_request
from studykit.storage.results_repo import ResultsRepository, StoredRecord
from studykit.telemetry.metrics import MetricsCollector
from studykit.utils.ids import generate_result_id, idempotency_result_id

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


class GenerationService:
  """Validate, deduplicate, generate and persist learning content."""

  def __init__(self, *, provider: ContentProvider, repository: ResultsRepository, metrics: MetricsCollector | None = None, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
    self._provider = provider
    self._repository = repository
    self._metrics = metrics or MetricsCollector()
    self._timeout_seconds = timeout_seconds

  async def generate(self, request: GenerationRequest) -> GenerationResult:
    """Run one generation request end to end."""
    self._metrics.increment("generation.requests")
    normalized = normalize_request(request)

    if normalized.idempotency_key:
      result_id = idempotency_result_id(normalized.idempotency_key)
      existing = await self._lookup_existing(result_id)
      if existing is not None:
        self._metrics.increment("generation.idempotent_hits")
        logger.info("Idempotent hit for result %s", result_id)
        return existing
    else:
      result_id = generate_result_id()

    start = time.monotonic()
    try:
      result = await self._provider.generate(normalized, timeout=self._timeout_seconds)
    except StudykitError:
      self._metrics.increment("generation.failures")
      raise
    except TimeoutError as exc:
      self._metrics.increment("generation.failures")
      raise UpstreamTimeoutError(f"Generation exceeded {self._timeout_seconds:g}s.") from exc

    processing_ms = int((time.monotonic() - start) * 1000)
    updates: dict[str, object] = {"id": result_id, "meta": result.meta.model_copy(update={"processing_ms": processing_ms})}
    if normalized.topic:
      updates.update(topic=normalized.topic, topic_source=TopicSource.USER, topic_confidence=1.0)
    else:
      updates["topic_source"] = TopicSource.INFERRED
    result = result.model_copy(update=updates)

    self._metrics.observe("generation.processing_ms", processing_ms)
    logger.info("Generated result %s mode=%s topic=%r in %sms", result_id, normalized.mode, result.topic, processing_ms)

    await self._persist(normalized, result)
    return result

  async def get_result(self, result_id: str) -> GenerationResult:
    """Return a previously stored result."""
    try:
      record = await self._repository.get(result_id)
    except StudykitError:
      raise
    except Exception as exc:
      raise InternalError("Failed to load stored result.") from exc
    return _decode_result(record)

  async def _lookup_existing(self, result_id: str) -> GenerationResult | None:
    try:
      record = await self._repository.get(result_id)
      return _decode_result(record)
    except NotFoundError:
      return None
    except Exception:  # noqa: BLE001
      # Lookup problems fall through to a fresh generation.
      logger.warning("Idempotency lookup failed for %s", result_id, exc_info=True)
      return None

  async def _persist(self, request: GenerationRequest, result: GenerationResult) -> None:
    record = StoredRecord(
      id=result.id,
      request_json=request.model_dump(mode="json"),
      response_json=result.model_dump(mode="json"),
      topic=result.topic,
      topic_source=result.topic_source.value,
      topic_confidence=result.topic_confidence,
      created_at=result.created_at,
    )
    try:
      await self._repository.save(record)
    except Exception:  # noqa: BLE001
      self._metrics.increment("generation.persist_failures")
      logger.warning("Failed to persist result %s; returning it anyway", result.id, exc_info=True)


def _decode_result(record: StoredRecord) -> GenerationResult:
  try:
    return GenerationResult.model_validate(record.response_json)
  except ValidationError as exc:
    raise InternalError(f"Stored result {record.id} could not be decoded.") from exc
