"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

from functools import lru_cache
from typing import Iterator

from fastapi import Depends
from sqlalchemy.engine import Connection, Engine

from ..common.config import Settings, get_settings
from ..common.db import get_engine
from .cache.frame_cache import FrameCache


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_db_engine(settings: Settings = Depends(get_app_settings)) -> Engine:
    return get_engine(settings)


def get_connection(engine: Engine = Depends(get_db_engine)) -> Iterator[Connection]:
    with engine.connect() as conn:
        yield conn


def get_frame_cache(
    settings: Settings = Depends(get_app_settings),
    engine: Engine = Depends(get_db_engine),
) -> FrameCache:
    return FrameCache(engine, csv_dir=settings.csv_dir, cache_dir=settings.cache_dir)
