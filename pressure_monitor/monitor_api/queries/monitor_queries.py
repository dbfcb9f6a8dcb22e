"""Queries de lectura para la API de monitorización.

Funciones puras de consulta a BD: fechas disponibles, metadatos de una
grabación, ventana de métricas por frame y alertas de un dataset.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Connection

from ...common.schema import alerts, datasets, frame_metrics, frames
from ..schemas import AlertOut, FrameMetricOut, RecordingMeta


def list_recording_dates(conn: Connection, patient_id: int) -> List[str]:
    """Fechas (yyyy-mm-dd) con grabaciones del paciente, ascendentes y sin repetir."""
    rows = conn.execute(
        select(datasets.c.file_date)
        .where(datasets.c.patient_id == patient_id)
        .where(datasets.c.file_date.is_not(None))
        .distinct()
        .order_by(datasets.c.file_date)
    ).scalars().all()
    return [d.isoformat() for d in rows]


def get_recording_meta(conn: Connection, patient_id: int, day: date) -> Optional[RecordingMeta]:
    """Metadatos de la primera grabación del paciente en ``day``."""
    row = conn.execute(
        select(datasets)
        .where(datasets.c.patient_id == patient_id)
        .where(datasets.c.file_date == day)
        .order_by(datasets.c.dataset_id)
        .limit(1)
    ).mappings().first()

    if not row:
        return None

    return RecordingMeta(
        dataset_id=int(row["dataset_id"]),
        fps=float(row["fps"]),
        frames=int(row["frames_count"]),
        duration_sec=int(row["duration_s"]),
        width=int(row["width"]),
        height=int(row["height"]),
        start_utc=row["start_time_utc"],
        min_au=row["min_au_dataset"],
        max_au=row["max_au_dataset"],
    )


def dataset_exists(conn: Connection, dataset_id: int) -> bool:
    row = conn.execute(
        select(datasets.c.dataset_id).where(datasets.c.dataset_id == dataset_id)
    ).first()
    return row is not None


def get_metrics_window(
    conn: Connection,
    dataset_id: int,
    offset: int,
    count: int,
) -> List[FrameMetricOut]:
    """Métricas por frame para ``[offset, offset + count)`` ordenadas por índice."""
    rows = conn.execute(
        select(
            frames.c.frame_index,
            frame_metrics.c.peak_pressure_au,
            frame_metrics.c.avg_pressure_au,
            frame_metrics.c.contact_area_pct,
            frame_metrics.c.cov_percent,
            frame_metrics.c.ppi_au_10s,
        )
        .select_from(frames.join(frame_metrics, frames.c.frame_id == frame_metrics.c.frame_id))
        .where(frames.c.dataset_id == dataset_id)
        .where(frames.c.frame_index >= offset)
        .where(frames.c.frame_index < offset + count)
        .order_by(frames.c.frame_index)
    ).fetchall()

    return [
        FrameMetricOut(
            i=int(r.frame_index),
            peak=r.peak_pressure_au,
            avg=r.avg_pressure_au,
            contact_pct=r.contact_area_pct,
            cov=r.cov_percent,
            ppi=r.ppi_au_10s,
        )
        for r in rows
    ]


def list_dataset_alerts(conn: Connection, dataset_id: int) -> List[AlertOut]:
    rows = conn.execute(
        select(alerts)
        .where(alerts.c.dataset_id == dataset_id)
        .order_by(alerts.c.start_frame_index)
    ).mappings().all()

    return [
        AlertOut(
            alert_id=int(r["alert_id"]),
            triggered_utc=r["triggered_ts_utc"],
            start_frame=int(r["start_frame_index"]),
            end_frame=int(r["end_frame_index"]),
            threshold_au=int(r["threshold_au"]),
            above_for_seconds=int(r["above_for_seconds"]),
            severity=str(r["severity"]),
        )
        for r in rows
    ]
