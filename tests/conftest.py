"""Fixtures compartidos: BD SQLite temporal, CSVs de grabación y settings."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import numpy as np
import pytest
from sqlalchemy import insert

from pressure_monitor.common.config import Settings
from pressure_monitor.common.db import build_engine, ensure_schema
from pressure_monitor.common.schema import patient_profile

WIDTH = 32
HEIGHT = 32
PIXELS = WIDTH * HEIGHT


# =============================================================================
# HELPERS
# =============================================================================

def make_frame(value: int = 0) -> np.ndarray:
    """Frame uniforme: los 1024 píxeles con el mismo valor."""
    return np.full(PIXELS, value, dtype=np.int64)


def ramp_frame(k: int) -> np.ndarray:
    """Frame distinto por índice, útil para comprobar orden y round-trip."""
    return (np.arange(PIXELS, dtype=np.int64) + 7 * k) % 4096


def write_recording(path: Path, frames: Iterable[np.ndarray], extra_rows: int = 0) -> Path:
    """Escribe frames como CSV sin cabecera (32 filas de 32 enteros por frame)."""
    with open(path, "w", encoding="utf-8") as fh:
        for frame in frames:
            for row in np.asarray(frame).reshape(HEIGHT, WIDTH):
                fh.write(",".join(str(int(v)) for v in row) + "\n")
        for _ in range(extra_rows):
            fh.write(",".join(["1"] * WIDTH) + "\n")
    return path


def seed_patient(
    engine,
    patient_id: int,
    sensor_id: str,
    base_seating_threshold_au: Optional[int] = None,
    alert_threshold_au: Optional[int] = None,
) -> None:
    with engine.begin() as conn:
        conn.execute(
            insert(patient_profile),
            {
                "patient_id": patient_id,
                "sensor_id": sensor_id,
                "base_seating_threshold_au": base_seating_threshold_au,
                "alert_threshold_au": alert_threshold_au,
            },
        )


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        database_url=f"sqlite:///{tmp_path / 'monitor.db'}",
        csv_dir=tmp_path / "csv",
        cache_dir=tmp_path / "cache",
        fps=15.0,
        ppi_window_seconds=10.0,
        recording_start_hour=15,
        recording_tz="UTC",
        default_contact_threshold_au=25,
        alert_disabled_threshold_au=999999,
        alert_severity="high",
        max_frames_per_request=1000,
        max_metrics_per_request=2000,
        ingest_workers=1,
    )
    values.update(overrides)
    return Settings(**values)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine(tmp_path):
    """Engine SQLite en fichero temporal con el esquema creado."""
    eng = build_engine(f"sqlite:///{tmp_path / 'monitor.db'}")
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def csv_dir(tmp_path) -> Path:
    d = tmp_path / "csv"
    d.mkdir()
    return d


@pytest.fixture
def cache_dir(tmp_path) -> Path:
    return tmp_path / "cache"


def ingest_directory(engine, source_dir: Path, **ingestion):
    """Ejecuta el runner de ingesta sobre ``source_dir`` con la config dada."""
    from pressure_monitor.jobs.ingest.config import RunnerConfig
    from pressure_monitor.jobs.ingest.runner import run_once
    from pressure_monitor.monitor_api.ingest.recording_ingest import IngestionConfig

    cfg = RunnerConfig(source_dir=source_dir, ingestion=IngestionConfig(**ingestion))
    return run_once(cfg, engine=engine)


def alert_recording(path: Path) -> Path:
    """30 frames: 0-9 a 0 AU, 10-19 a 500 AU, 20-29 a 0 AU."""
    frames = [make_frame(0)] * 10 + [make_frame(500)] * 10 + [make_frame(0)] * 10
    return write_recording(path, frames)
