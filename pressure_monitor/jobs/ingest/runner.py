"""Batch ingest orchestrator: one transaction per CSV file."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import CancelledError, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional

from prometheus_client import Counter, Histogram
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError

from ...common.db import get_engine, ping
from ...monitor_api.ingest.common.errors import (
    IngestionCancelled,
    IngestSkipped,
    SourceDirectoryNotFound,
)
from ...monitor_api.ingest.contracts.records import BatchIngestResult, FileIngestResult
from ...monitor_api.ingest.persistence.recording_store import SqlRecordingStore
from ...monitor_api.ingest.recording_ingest import RecordingIngestor
from .config import RunnerConfig

logger = logging.getLogger(__name__)

INGEST_FILES = Counter(
    "pressure_ingest_files_total",
    "CSV recordings processed by the batch runner",
    ["status"],  # ingested, skipped, failed
)
INGEST_FRAMES = Counter(
    "pressure_ingest_frames_total",
    "Frames persisted by the batch runner",
)
INGEST_BATCH_SECONDS = Histogram(
    "pressure_ingest_batch_seconds",
    "Wall time of one directory ingest run",
)


def list_source_files(source_dir: Path) -> List[Path]:
    """Top-level ``*.csv`` files, sorted by name."""
    if not source_dir.is_dir():
        raise SourceDirectoryNotFound(f"CSV folder not found: {source_dir}")
    return sorted(p for p in source_dir.glob("*.csv") if p.is_file())


def _process_file(
    engine: Engine,
    cfg: RunnerConfig,
    path: Path,
    cancel_event: Optional[threading.Event],
) -> FileIngestResult:
    """Process ONE file in its own transaction."""
    with engine.begin() as conn:
        ingestor = RecordingIngestor(SqlRecordingStore(conn), cfg.ingestion)
        return ingestor.ingest_file(path, cancel_event=cancel_event)


def run_once(
    cfg: RunnerConfig,
    engine: Engine | None = None,
    cancel_event: Optional[threading.Event] = None,
) -> BatchIngestResult:
    """Ingest every pending CSV in ``cfg.source_dir``.

    Per-file problems are logged and reported in ``BatchIngestResult.files``;
    only a missing source directory or an unreachable database abort the run.
    """
    engine = engine or get_engine()
    files = list_source_files(cfg.source_dir)
    ping(engine)

    result = BatchIngestResult()
    t0 = time.monotonic()
    workers = max(1, cfg.workers)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {
            pool.submit(_process_file, engine, cfg, path, cancel_event): path
            for path in files
        }
        for fut in as_completed(futures):
            path = futures[fut]
            try:
                result.add(fut.result())
            except IngestSkipped as e:
                logger.warning("[INGEST] Skipping %s: %s", path.name, e)
                result.add(FileIngestResult(path.name, "skipped", reason=e.reason, detail=str(e)))
            except (IngestionCancelled, CancelledError):
                logger.warning("[INGEST] Cancelled before finishing %s", path.name)
                result.cancelled = True
                result.add(FileIngestResult(path.name, "skipped", reason="cancelled"))
            except OperationalError:
                for pending in futures:
                    pending.cancel()
                raise
            except Exception as e:
                logger.exception("[INGEST] Failed to ingest %s", path.name)
                result.add(FileIngestResult(path.name, "failed", reason="error", detail=str(e)))

            if cancel_event is not None and cancel_event.is_set() and not result.cancelled:
                result.cancelled = True
                for pending in futures:
                    pending.cancel()

    for f in result.files:
        INGEST_FILES.labels(status=f.status).inc()
    INGEST_FRAMES.inc(result.frames)
    INGEST_BATCH_SECONDS.observe(time.monotonic() - t0)

    cycle_ms = (time.monotonic() - t0) * 1000
    logger.info(
        "[INGEST] batch ms=%.1f files=%d datasets=%d frames=%d alerts=%d skipped=%d workers=%d",
        cycle_ms, len(files), result.datasets, result.frames, result.alerts,
        len(result.skipped), workers,
    )
    return result
