"""Forward-only schema migrations tracked in a `schema_migrations` ledger.

Each pending migration runs inside one transaction together with its ledger
insert, so a failed migration leaves no ledger row behind and is retried on
the next run. On Postgres a transaction-scoped advisory lock serializes
concurrent migrators.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from sqlalchemy import JSON, Column, DateTime, Float, Index, MetaData, Table, Text, func, insert, select, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from studykit.schema.sql import SchemaMigration

logger = logging.getLogger(__name__)

# Arbitrary but stable key for pg_advisory_xact_lock.
_ADVISORY_LOCK_KEY = 7_311_004_221


@dataclass(frozen=True)
class Migration:
  version: int
  description: str
  upgrade: Callable[[AsyncConnection], Awaitable[None]]


async def _create_processed_results(connection: AsyncConnection) -> None:
  """Create the results table and its lookup indexes."""
  # Table snapshot as of version 1; later shape changes belong in new migrations.
  metadata = MetaData()
  table = Table(
    "processed_results",
    metadata,
    Column("id", Text, primary_key=True),
    Column("request_json", JSON().with_variant(JSONB(), "postgresql"), nullable=False),
    Column("response_json", JSON().with_variant(JSONB(), "postgresql"), nullable=False),
    Column("topic", Text, nullable=False),
    Column("topic_source", Text, nullable=False),
    Column("topic_confidence", Float, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
  )
  Index("idx_processed_results_created_at", table.c.created_at)
  Index("idx_processed_results_topic", table.c.topic)
  await connection.run_sync(metadata.create_all, checkfirst=True)


MIGRATIONS: tuple[Migration, ...] = (Migration(version=1, description="create processed_results", upgrade=_create_processed_results),)


def _ordered(migrations: Sequence[Migration]) -> list[Migration]:
  seen: set[int] = set()
  for migration in migrations:
    if migration.version in seen:
      raise ValueError(f"Duplicate migration version: {migration.version}")
    seen.add(migration.version)
  return sorted(migrations, key=lambda migration: migration.version)


async def _lock(connection: AsyncConnection) -> None:
  if connection.dialect.name == "postgresql":
    await connection.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": _ADVISORY_LOCK_KEY})


async def applied_versions(connection: AsyncConnection) -> set[int]:
  result = await connection.execute(select(SchemaMigration.version))
  return set(result.scalars().all())


async def apply_migrations(engine: AsyncEngine, migrations: Sequence[Migration] = MIGRATIONS) -> list[int]:
  """Apply pending migrations in version order and return the versions applied now."""
  ordered = _ordered(migrations)

  async with engine.begin() as connection:
    await _lock(connection)
    await connection.run_sync(SchemaMigration.__table__.create, checkfirst=True)

  applied_now: list[int] = []
  for migration in ordered:
    async with engine.begin() as connection:
      await _lock(connection)
      # Re-read inside the lock so a concurrent migrator's work is not repeated.
      if migration.version in await applied_versions(connection):
        continue
      logger.info("Applying migration %s: %s", migration.version, migration.description)
      await migration.upgrade(connection)
      await connection.execute(insert(SchemaMigration).values(version=migration.version))
    applied_now.append(migration.version)

  if applied_now:
    logger.info("Applied migrations: %s", applied_now)
  else:
    logger.info("Database schema is up to date")
  return applied_now
