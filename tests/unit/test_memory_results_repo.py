"""Unit tests for the in-memory results repository."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from studykit.core.errors import NotFoundError
from studykit.storage.memory_results_repo import InMemoryResultsRepository
from studykit.storage.results_repo import StoredRecord

BASE = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


def _record(record_id: str, *, topic: str = "Biology", created_at: datetime = BASE, summary: str = "s") -> StoredRecord:
  return StoredRecord(
    id=record_id,
    request_json={"text": "t"},
    response_json={"id": record_id, "summary": summary},
    topic=topic,
    topic_source="inferred",
    topic_confidence=0.5,
    created_at=created_at,
  )


@pytest.mark.anyio
async def test_get_missing_raises_not_found() -> None:
  repo = InMemoryResultsRepository()
  with pytest.raises(NotFoundError):
    await repo.get("nope")


@pytest.mark.anyio
async def test_save_is_an_upsert_that_keeps_created_at() -> None:
  """Saving the same id twice leaves one record with the latest payload and the first timestamp."""
  repo = InMemoryResultsRepository()
  await repo.save(_record("a", summary="first"))
  await repo.save(_record("a", summary="second", created_at=BASE + timedelta(hours=3)))

  stored = await repo.get("a")
  assert len(repo) == 1
  assert stored.response_json["summary"] == "second"
  assert stored.created_at == BASE


@pytest.mark.anyio
async def test_get_by_topic_is_newest_first_and_limited() -> None:
  repo = InMemoryResultsRepository()
  for offset in range(4):
    await repo.save(_record(f"r{offset}", created_at=BASE + timedelta(minutes=offset)))
  await repo.save(_record("other", topic="History"))

  records = await repo.get_by_topic("Biology", 3)
  assert [record.id for record in records] == ["r3", "r2", "r1"]
  assert await repo.get_by_topic("Biology", 0) == []


@pytest.mark.anyio
async def test_date_range_is_half_open() -> None:
  repo = InMemoryResultsRepository()
  await repo.save(_record("start", created_at=BASE))
  await repo.save(_record("inside", created_at=BASE + timedelta(hours=1)))
  await repo.save(_record("end", created_at=BASE + timedelta(days=1)))

  records = await repo.get_by_date_range(BASE, BASE + timedelta(days=1))
  assert [record.id for record in records] == ["inside", "start"]


@pytest.mark.anyio
async def test_naive_timestamps_are_treated_as_utc() -> None:
  repo = InMemoryResultsRepository()
  await repo.save(_record("naive", created_at=datetime(2026, 10, 18, 12, 0)))
  stored = await repo.get("naive")
  assert stored.created_at == BASE
  assert [r.id for r in await repo.get_by_date_range(BASE.replace(tzinfo=None), BASE + timedelta(seconds=1))] == ["naive"]
