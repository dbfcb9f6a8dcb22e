"""Administrative trigger: ingest every pending CSV in the source directory."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from ...common.config import Settings
from ...jobs.ingest.config import RunnerConfig
from ...jobs.ingest.runner import run_once
from ..dependencies import get_app_settings, get_db_engine
from ..ingest.common.errors import SourceDirectoryNotFound
from ..schemas import IngestRunResult, SkippedFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/ingest", response_model=IngestRunResult)
def ingest_pending_files(
    settings: Settings = Depends(get_app_settings),
    engine: Engine = Depends(get_db_engine),
):
    """Run the batch ingestion over the configured CSV folder.

    Per-file problems show up in ``skipped``; only directory- or
    database-level failures fail the request.
    """
    try:
        result = run_once(RunnerConfig.from_settings(settings), engine=engine)
    except SourceDirectoryNotFound as e:
        logger.error("[INGEST] %s", e)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except OperationalError:
        logger.exception("[INGEST] Database unavailable")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable.")

    return IngestRunResult(
        datasets=result.datasets,
        frames=result.frames,
        alerts=result.alerts,
        cancelled=result.cancelled,
        skipped=[
            SkippedFile(file=f.file_name, status=f.status, reason=f.reason, detail=f.detail)
            for f in result.skipped
        ],
    )
