"""Ephemeral in-process results repository."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import UTC, datetime

from studykit.core.errors import NotFoundError
from studykit.storage.results_repo import ResultsRepository, StoredRecord


def _as_utc(value: datetime) -> datetime:
  if value.tzinfo is None:
    return value.replace(tzinfo=UTC)
  return value.astimezone(UTC)


class InMemoryResultsRepository(ResultsRepository):
  """Keep results in a dict; contents are lost on restart."""

  def __init__(self) -> None:
    self._records: dict[str, StoredRecord] = {}
    self._lock = asyncio.Lock()

  def __len__(self) -> int:
    return len(self._records)

  async def save(self, record: StoredRecord) -> None:
    record = replace(record, created_at=_as_utc(record.created_at))
    async with self._lock:
      existing = self._records.get(record.id)
      if existing is not None:
        record = replace(record, created_at=existing.created_at)
      self._records[record.id] = record

  async def get(self, record_id: str) -> StoredRecord:
    async with self._lock:
      record = self._records.get(record_id)
    if record is None:
      raise NotFoundError(f"Result {record_id!r} not found.")
    return record

  async def get_by_topic(self, topic: str, limit: int) -> list[StoredRecord]:
    if limit <= 0:
      return []
    async with self._lock:
      matches = [record for record in self._records.values() if record.topic == topic]
    matches.sort(key=lambda record: record.created_at, reverse=True)
    return matches[:limit]

  async def get_by_date_range(self, start: datetime, end: datetime) -> list[StoredRecord]:
    start, end = _as_utc(start), _as_utc(end)
    async with self._lock:
      matches = [record for record in self._records.values() if start <= record.created_at < end]
    matches.sort(key=lambda record: record.created_at, reverse=True)
    return matches

  async def close(self) -> None:
    return None
