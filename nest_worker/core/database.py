"""Async SQLAlchemy engine and session factory shared by the worker and the API."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from nest_worker.config import get_settings


class Base(DeclarativeBase):
  pass


_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def database_url() -> str | None:
  """Return the configured DSN rewritten for the asyncpg driver."""
  dsn = get_settings().pg_dsn
  if dsn and dsn.startswith("postgresql://"):
    dsn = dsn.replace("postgresql://", "postgresql+asyncpg://", 1)
  return dsn


def get_db_engine() -> AsyncEngine | None:
  global _engine
  url = database_url()
  if _engine is None and url:
    _engine = create_async_engine(url, echo=get_settings().debug, pool_pre_ping=True)
  return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession] | None:
  global _session_factory
  if _session_factory is None:
    engine = get_db_engine()
    if engine is not None:
      _session_factory = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
  return _session_factory


def require_session_factory() -> async_sessionmaker[AsyncSession]:
  """Return the session factory or fail loudly when no database is configured."""
  session_factory = get_session_factory()
  if session_factory is None:
    raise RuntimeError("Database connection is not configured (NEST_PG_DSN is missing).")
  return session_factory


async def dispose_engine() -> None:
  """Close pooled connections on shutdown."""
  global _engine, _session_factory
  if _engine is not None:
    await _engine.dispose()
  _engine = None
  _session_factory = None

