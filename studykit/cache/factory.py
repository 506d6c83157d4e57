"""Cache backend selection."""

from __future__ import annotations

from studykit.cache.base import Cache
from studykit.cache.memory import InMemoryCache
from studykit.cache.redis_cache import RedisCache
from studykit.config import Settings


def build_cache(settings: Settings) -> Cache:
  """Return the configured cache backend (not yet started)."""
  if settings.cache == "redis":
    if not settings.redis_url:
      raise ValueError("STUDYKIT_REDIS_URL must be set when STUDYKIT_CACHE=redis.")
    return RedisCache.from_url(settings.redis_url)
  return InMemoryCache(sweep_interval=settings.cache_sweep_interval_seconds)
