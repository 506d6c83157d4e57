import asyncio
import logging
import os
import sys

import uvicorn

from studykit.config import get_settings
from studykit.core.database import build_engine
from studykit.storage.migrations import apply_migrations

logger = logging.getLogger("studykit.entrypoint")


async def _migrate(dsn: str, *, debug: bool) -> list[int]:
  engine = build_engine(dsn, debug=debug)
  try:
    return await apply_migrations(engine)
  finally:
    await engine.dispose()


def migrate() -> None:
  """Apply pending schema migrations and exit."""
  logging.basicConfig(level=logging.INFO)
  settings = get_settings()
  if not settings.pg_dsn:
    logger.error("STUDYKIT_PG_DSN is not set; nothing to migrate.")
    sys.exit(2)
  try:
    applied = asyncio.run(_migrate(settings.pg_dsn, debug=settings.debug))
  except Exception as e:  # noqa: BLE001
    logger.error("Migration failed: %s", e)
    sys.exit(1)
  logger.info("Migrations applied: %s", applied or "none")


def main() -> None:
  """Serve the API with uvicorn."""
  host = os.getenv("STUDYKIT_HOST", "0.0.0.0")
  port = int(os.getenv("STUDYKIT_PORT") or os.getenv("PORT") or "8080")
  uvicorn.run("studykit.main:app", host=host, port=port, log_config=None)


if __name__ == "__main__":
  main()
