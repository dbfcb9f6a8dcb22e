"""Data-serving endpoints consumed by the pressure playback UI."""

from __future__ import annotations

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.engine import Connection

from ...common.config import Settings
from ..cache.frame_cache import FrameCache
from ..dependencies import get_app_settings, get_connection, get_frame_cache
from ..ingest.common.errors import DatasetNotFound, SourceFileMissing
from ..queries import (
    dataset_exists,
    get_metrics_window,
    get_recording_meta,
    list_dataset_alerts,
    list_recording_dates,
)
from ..schemas import AlertOut, FrameMetricOut, FramesWindow, RecordingMeta

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/monitor", tags=["monitor"])


def _clamp_count(count: int, limit: int) -> int:
    return min(max(count, 1), limit)


def _require_dataset(conn: Connection, dataset_id: int) -> None:
    if not dataset_exists(conn, dataset_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dataset not found.")


@router.get("/dates", response_model=List[str])
def get_dates(pid: int = Query(...), conn: Connection = Depends(get_connection)):
    """Fechas con grabaciones del paciente (yyyy-mm-dd)."""
    return list_recording_dates(conn, pid)


@router.get("/meta", response_model=RecordingMeta)
def get_meta(
    pid: int = Query(...),
    date_: str = Query(..., alias="date"),
    conn: Connection = Depends(get_connection),
):
    """Metadatos de la grabación de un paciente para una fecha."""
    try:
        day = date.fromisoformat(date_[:10])
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid date.")

    meta = get_recording_meta(conn, pid, day)
    if meta is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dataset not found for date.")
    return meta


@router.get("/frames", response_model=FramesWindow)
def get_frames(
    dataset_id: int = Query(..., alias="datasetId"),
    offset: int = Query(0),
    count: int = Query(1),
    settings: Settings = Depends(get_app_settings),
    cache: FrameCache = Depends(get_frame_cache),
):
    """Frames ``[offset, offset + count)`` como listas de ``width*height`` enteros.

    ``count`` se acota a [1, max_frames_per_request]; ventanas fuera de rango
    devuelven solo los frames existentes.
    """
    count = _clamp_count(count, settings.max_frames_per_request)
    try:
        info = cache.ensure_cache(dataset_id)
        data = cache.read_window(info, offset, count)
    except DatasetNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Dataset not found.")
    except SourceFileMissing:
        logger.error("[CACHE] Original CSV missing for dataset %d", dataset_id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recording source not available.")

    return FramesWindow(
        offset=min(max(offset, 0), info.frames),
        frames=data.astype(int).tolist(),
        width=info.width,
        height=info.height,
    )


@router.get("/metrics", response_model=List[FrameMetricOut])
def get_metrics(
    dataset_id: int = Query(..., alias="datasetId"),
    offset: int = Query(0),
    count: int = Query(1),
    settings: Settings = Depends(get_app_settings),
    conn: Connection = Depends(get_connection),
):
    """Métricas por frame para ``[offset, offset + count)`` ordenadas por índice."""
    count = _clamp_count(count, settings.max_metrics_per_request)
    _require_dataset(conn, dataset_id)
    return get_metrics_window(conn, dataset_id, max(offset, 0), count)


@router.get("/alerts", response_model=List[AlertOut])
def get_alerts(
    dataset_id: int = Query(..., alias="datasetId"),
    conn: Connection = Depends(get_connection),
):
    """Intervalos de presión sostenida detectados en la ingesta."""
    _require_dataset(conn, dataset_id)
    return list_dataset_alerts(conn, dataset_id)
