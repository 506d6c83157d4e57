from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
  pass


def normalize_database_url(dsn: str) -> str:
  """Convert plain Postgres DSNs into asyncpg SQLAlchemy URLs."""
  dsn = dsn.strip()
  if dsn.startswith("postgresql://"):
    return dsn.replace("postgresql://", "postgresql+asyncpg://", 1)
  if dsn.startswith("postgres://"):
    return dsn.replace("postgres://", "postgresql+asyncpg://", 1)
  return dsn


def build_engine(dsn: str, *, debug: bool = False) -> AsyncEngine:
  """Create an async engine for the given DSN."""
  return create_async_engine(normalize_database_url(dsn), echo=debug, future=True, pool_pre_ping=True)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
  return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
