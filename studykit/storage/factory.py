"""Results repository selection."""

from __future__ import annotations

import logging

from studykit.config import Settings
from studykit.core.database import build_engine
from studykit.storage.memory_results_repo import InMemoryResultsRepository
from studykit.storage.migrations import apply_migrations
from studykit.storage.results_repo import ResultsRepository
from studykit.storage.sql_results_repo import SqlResultsRepository

logger = logging.getLogger(__name__)


async def build_results_repository(settings: Settings) -> ResultsRepository:
  """Return the configured repository, migrating the schema for the SQL backend."""
  if settings.storage == "postgres":
    if not settings.pg_dsn:
      raise ValueError("STUDYKIT_PG_DSN must be set when STUDYKIT_STORAGE=postgres.")
    engine = build_engine(settings.pg_dsn, debug=settings.debug)
    try:
      await apply_migrations(engine)
    except Exception:
      await engine.dispose()
      raise
    logger.info("Using Postgres results storage")
    return SqlResultsRepository(engine)

  logger.info("Using in-memory results storage")
  return InMemoryResultsRepository()
