from __future__ import annotations

from typing import Optional
import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from .config import Settings, get_settings
from .schema import metadata


logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def build_engine(database_url: str) -> Engine:
    """Create an engine for the given URL.

    SQLite needs ``check_same_thread=False`` because the batch runner and the
    API hand connections to worker threads.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            future=True,
        )
    return create_engine(database_url, pool_pre_ping=True, pool_recycle=300, future=True)


def get_engine(settings: Settings | None = None) -> Engine:
    global _engine

    if _engine is not None:
        return _engine

    settings = settings or get_settings()
    # No loguear la URL completa: puede llevar credenciales.
    logger.info("[DB] Creating engine dialect=%s", settings.database_url.split(":", 1)[0])
    _engine = build_engine(settings.database_url)
    return _engine


def reset_engine() -> None:
    """Drop the cached engine (used by tests and after settings change)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def ensure_schema(engine: Engine) -> None:
    """Create missing tables. Safe to call multiple times."""
    logger.info("[DB] Ensuring schema exists")
    metadata.create_all(engine)


def ping(engine: Engine) -> None:
    """Raise if the database cannot be reached."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
