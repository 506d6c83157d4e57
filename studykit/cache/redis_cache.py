"""Redis-backed cache implementing the same contract as the in-memory cache."""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from studykit.cache.base import CacheMissError, CacheUnavailableError

logger = logging.getLogger(__name__)


class RedisCache:
  """Persistent cache; expiry is delegated to Redis key TTLs."""

  def __init__(self, client: redis.Redis, *, key_prefix: str = "studykit:") -> None:
    self._client = client
    self._prefix = key_prefix

  @classmethod
  def from_url(cls, url: str, *, key_prefix: str = "studykit:") -> RedisCache:
    return cls(redis.from_url(url, decode_responses=True), key_prefix=key_prefix)

  def _key(self, key: str) -> str:
    return f"{self._prefix}{key}"

  async def get(self, key: str) -> str:
    try:
      value = await self._client.get(self._key(key))
    except RedisError as exc:
      raise CacheUnavailableError(f"Redis GET failed for {key!r}.") from exc
    if value is None:
      raise CacheMissError(key)
    if isinstance(value, bytes):
      return value.decode("utf-8")
    return value

  async def set(self, key: str, value: str, ttl: float | None = None) -> None:
    # Millisecond precision keeps sub-second TTLs meaningful.
    px = int(ttl * 1000) if ttl is not None and ttl > 0 else None
    try:
      await self._client.set(self._key(key), value, px=px)
    except RedisError as exc:
      raise CacheUnavailableError(f"Redis SET failed for {key!r}.") from exc

  async def delete(self, key: str) -> None:
    try:
      await self._client.delete(self._key(key))
    except RedisError as exc:
      raise CacheUnavailableError(f"Redis DEL failed for {key!r}.") from exc

  async def exists(self, key: str) -> bool:
    try:
      return bool(await self._client.exists(self._key(key)))
    except RedisError as exc:
      raise CacheUnavailableError(f"Redis EXISTS failed for {key!r}.") from exc

  async def start(self) -> None:
    return None

  async def close(self) -> None:
    await self._client.aclose()
