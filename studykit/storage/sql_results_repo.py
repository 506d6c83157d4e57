"""Relational results repository using SQLAlchemy (asyncpg on Postgres)."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine

from studykit.core.database import build_session_factory
from studykit.core.errors import NotFoundError
from studykit.schema.sql import ProcessedResult
from studykit.storage.results_repo import ResultsRepository, StoredRecord

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = ("request_json", "response_json", "topic", "topic_source", "topic_confidence")


def _as_utc(value: datetime) -> datetime:
  # SQLite hands back naive datetimes; they are stored as UTC.
  if value.tzinfo is None:
    return value.replace(tzinfo=UTC)
  return value.astimezone(UTC)


def _to_record(row: ProcessedResult) -> StoredRecord:
  return StoredRecord(
    id=row.id,
    request_json=dict(row.request_json or {}),
    response_json=dict(row.response_json or {}),
    topic=row.topic,
    topic_source=row.topic_source,
    topic_confidence=float(row.topic_confidence),
    created_at=_as_utc(row.created_at),
  )


class SqlResultsRepository(ResultsRepository):
  """Persist results to `processed_results`."""

  def __init__(self, engine: AsyncEngine) -> None:
    self._engine = engine
    self._session_factory = build_session_factory(engine)

  def _insert(self):  # type: ignore[no-untyped-def]
    dialect = self._engine.dialect.name
    if dialect == "postgresql":
      return postgresql.insert(ProcessedResult)
    if dialect == "sqlite":
      return sqlite.insert(ProcessedResult)
    raise RuntimeError(f"Unsupported database dialect for results storage: {dialect}")

  async def save(self, record: StoredRecord) -> None:
    """Upsert by id; created_at is written only on first insert."""
    stmt = self._insert().values(
      id=record.id,
      request_json=record.request_json,
      response_json=record.response_json,
      topic=record.topic,
      topic_source=record.topic_source,
      topic_confidence=record.topic_confidence,
      created_at=_as_utc(record.created_at),
    )
    stmt = stmt.on_conflict_do_update(index_elements=[ProcessedResult.id], set_={column: stmt.excluded[column] for column in _UPDATABLE_COLUMNS})

    async with self._session_factory() as session:
      await session.execute(stmt)
      await session.commit()

  async def get(self, record_id: str) -> StoredRecord:
    async with self._session_factory() as session:
      row = await session.get(ProcessedResult, record_id)
    if row is None:
      raise NotFoundError(f"Result {record_id!r} not found.")
    return _to_record(row)

  async def get_by_topic(self, topic: str, limit: int) -> list[StoredRecord]:
    if limit <= 0:
      return []
    stmt = select(ProcessedResult).where(ProcessedResult.topic == topic).order_by(ProcessedResult.created_at.desc()).limit(limit)
    async with self._session_factory() as session:
      rows = (await session.execute(stmt)).scalars().all()
    return [_to_record(row) for row in rows]

  async def get_by_date_range(self, start: datetime, end: datetime) -> list[StoredRecord]:
    stmt = select(ProcessedResult).where(ProcessedResult.created_at >= _as_utc(start), ProcessedResult.created_at < _as_utc(end)).order_by(ProcessedResult.created_at.desc())
    async with self._session_factory() as session:
      rows = (await session.execute(stmt)).scalars().all()
    return [_to_record(row) for row in rows]

  async def close(self) -> None:
    await self._engine.dispose()
    logger.info("Results database engine disposed")
