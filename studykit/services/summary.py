"""Point queries over stored results: daily topic summaries and per-topic listings."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import UTC, date, datetime, time, timedelta

from pydantic import ValidationError

from studykit.cache.base import Cache, CacheError
from studykit.schema.content import DailySummary, GenerationResult, TopicCount
from studykit.storage.results_repo import ResultsRepository

logger = logging.getLogger(__name__)

DEFAULT_SUMMARY_TTL_SECONDS = 7 * 24 * 3600


def summary_cache_key(day: date) -> str:
  return f"summary:{day.isoformat()}"


class DailySummaryService:
  """Aggregate stored results per day, memoized in the cache."""

  def __init__(self, *, repository: ResultsRepository, cache: Cache, ttl_seconds: float = DEFAULT_SUMMARY_TTL_SECONDS) -> None:
    self._repository = repository
    self._cache = cache
    self._ttl_seconds = ttl_seconds

  async def daily_summary(self, day: date) -> DailySummary:
    """Return topic counts for one UTC day, computing them on a cache miss."""
    key = summary_cache_key(day)
    try:
      cached = await self._cache.get(key)
      return DailySummary.model_validate_json(cached)
    except CacheError as exc:
      logger.debug("Summary cache miss for %s: %s", key, exc)
    except ValidationError:
      logger.warning("Discarding undecodable cached summary for %s", key)

    summary = await self._compute(day)

    try:
      await self._cache.set(key, summary.model_dump_json(), ttl=self._ttl_seconds)
    except CacheError:
      logger.warning("Failed to cache summary for %s", key, exc_info=True)
    return summary

  async def results_for_topic(self, topic: str, limit: int = 20) -> list[GenerationResult]:
    """Return the newest stored results for a topic."""
    records = await self._repository.get_by_topic(topic, limit)
    results: list[GenerationResult] = []
    for record in records:
      try:
        results.append(GenerationResult.model_validate(record.response_json))
      except ValidationError:
        logger.warning("Skipping undecodable stored result %s", record.id)
    return results

  async def _compute(self, day: date) -> DailySummary:
    start = datetime.combine(day, time.min, tzinfo=UTC)
    end = start + timedelta(days=1)
    records = await self._repository.get_by_date_range(start, end)

    counts = Counter(record.topic for record in records)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return DailySummary(date=day.isoformat(), total_requests=len(records), topics=[TopicCount(topic=topic, count=count) for topic, count in ranked])
