"""In-process TTL cache with a background sweeper."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from studykit.cache.base import CacheMissError

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


@dataclass
class CacheEntry:
  value: str
  expires_at: float | None = None

  def is_expired(self, now: float) -> bool:
    return self.expires_at is not None and now >= self.expires_at


class InMemoryCache:
  """Best-effort cache held in process memory; empty after restart."""

  def __init__(self, *, sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
    if sweep_interval <= 0:
      raise ValueError("sweep_interval must be positive.")
    self._entries: dict[str, CacheEntry] = {}
    self._lock = asyncio.Lock()
    self._sweep_interval = sweep_interval
    self._clock = clock
    self._sweeper: asyncio.Task[None] | None = None

  def __len__(self) -> int:
    return len(self._entries)

  async def get(self, key: str) -> str:
    async with self._lock:
      entry = self._entries.get(key)
      if entry is None:
        raise CacheMissError(key)
      if entry.is_expired(self._clock()):
        del self._entries[key]
        raise CacheMissError(key)
      return entry.value

  async def set(self, key: str, value: str, ttl: float | None = None) -> None:
    expires_at = None
    if ttl is not None and ttl > 0:
      expires_at = self._clock() + ttl
    async with self._lock:
      self._entries[key] = CacheEntry(value=value, expires_at=expires_at)

  async def delete(self, key: str) -> None:
    async with self._lock:
      self._entries.pop(key, None)

  async def exists(self, key: str) -> bool:
    async with self._lock:
      entry = self._entries.get(key)
      if entry is None:
        return False
      if entry.is_expired(self._clock()):
        del self._entries[key]
        return False
      return True

  async def sweep(self) -> int:
    """Remove every expired entry and return how many were dropped."""
    async with self._lock:
      now = self._clock()
      expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
      for key in expired:
        del self._entries[key]
    if expired:
      logger.debug("Swept %s expired cache entries", len(expired))
    return len(expired)

  async def start(self) -> None:
    if self._sweeper is not None and not self._sweeper.done():
      return
    self._sweeper = asyncio.create_task(self._sweep_loop(), name="studykit-cache-sweeper")

  async def close(self) -> None:
    sweeper, self._sweeper = self._sweeper, None
    if sweeper is None:
      return
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await sweeper

  async def _sweep_loop(self) -> None:
    while True:
      await asyncio.sleep(self._sweep_interval)
      try:
        await self.sweep()
      except Exception:  # noqa: BLE001
        logger.warning("Cache sweep failed", exc_info=True)
