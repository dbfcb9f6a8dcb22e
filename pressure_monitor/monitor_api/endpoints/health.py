"""Health and readiness endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.engine import Engine

from ...common.db import ping
from ..dependencies import get_db_engine

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Liveness probe: ok while the process is up."""
    return {"status": "ok"}


@router.get("/ready")
def ready(engine: Engine = Depends(get_db_engine)):
    """Readiness probe: checks DB connectivity."""
    try:
        ping(engine)
        return {"status": "ready"}
    except Exception:
        raise HTTPException(status_code=503, detail="not ready")
