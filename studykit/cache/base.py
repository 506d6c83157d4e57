"""Cache contract and error types."""

from __future__ import annotations

from typing import Protocol


class CacheError(Exception):
  """Base class for cache failures. Callers treat any CacheError as a miss."""


class CacheMissError(CacheError):
  """Raised when a key is absent or expired."""

  def __init__(self, key: str) -> None:
    super().__init__(f"Cache miss for key {key!r}.")
    self.key = key


class CacheUnavailableError(CacheError):
  """Raised when the cache backend cannot be reached."""


class Cache(Protocol):
  """Key/value store with optional per-entry expiration (seconds)."""

  async def get(self, key: str) -> str:
    """Return the value for key or raise CacheMissError."""
    ...

  async def set(self, key: str, value: str, ttl: float | None = None) -> None:
    """Store value under key. A ttl of None, zero or less never expires."""
    ...

  async def delete(self, key: str) -> None:
    """Remove key if present."""
    ...

  async def exists(self, key: str) -> bool:
    """Return True when key holds an unexpired value."""
    ...

  async def start(self) -> None:
    """Start background maintenance, if any."""
    ...

  async def close(self) -> None:
    """Stop background maintenance and release connections."""
    ...
