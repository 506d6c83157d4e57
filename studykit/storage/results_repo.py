"""Storage interfaces and records for generation results."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol


@dataclass(frozen=True)
class StoredRecord:
  """One persisted generation outcome."""

  id: str
  request_json: dict[str, Any]
  response_json: dict[str, Any]
  topic: str
  topic_source: str
  topic_confidence: float
  created_at: datetime


class ResultsRepository(Protocol):
  """Repository contract for generation results."""

  async def save(self, record: StoredRecord) -> None:
    """Insert or replace a record by id, keeping the original created_at."""

  async def get(self, record_id: str) -> StoredRecord:
    """Return the record or raise NotFoundError."""

  async def get_by_topic(self, topic: str, limit: int) -> list[StoredRecord]:
    """Return up to `limit` records for a topic, newest first."""

  async def get_by_date_range(self, start: datetime, end: datetime) -> list[StoredRecord]:
    """Return records created in [start, end), newest first."""

  async def close(self) -> None:
    """Release backend resources."""
