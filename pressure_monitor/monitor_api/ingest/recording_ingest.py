"""Ingestion of one pressure recording CSV.

Flow for a single file (strictly sequential, each stage needs the complete
output of the previous one):

    filename → patient → dedup → parse + frame stats → rolling index (PPI)
    → dataset row → frame rows → frame_metrics rows → alert detection → alerts
"""

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo

from ...common.config import Settings
from ..transports.csv.frame_parser import FrameParser
from .alerts.alert_detector import detect_alert_runs, run_trigger_time
from .common.errors import DuplicateDataset, EmptyRecording, UnknownSensor
from .common.filenames import parse_recording_filename
from .common.precision import round_ppi, round_stat
from .contracts.records import (
    AlertRecord,
    FileIngestResult,
    FrameMetricsRecord,
    FrameRecord,
    FrameStats,
    Recording,
)
from .metrics.frame_metrics import compute_frame_stats
from .metrics.rolling_index import ppi_window_frames, rolling_pressure_index
from .persistence.recording_store import RecordingStore

logger = logging.getLogger(__name__)

START_TIME_SOURCE = "filename_date_15h"


@dataclass(frozen=True)
class IngestionConfig:
    """Recording assumptions and threshold fallbacks."""
    fps: float = 15.0
    ppi_window_seconds: float = 10.0
    recording_start_hour: int = 15
    recording_tz: str = "UTC"
    default_contact_threshold_au: int = 25
    alert_disabled_threshold_au: int = 999999
    alert_severity: str = "high"

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestionConfig":
        return cls(
            fps=settings.fps,
            ppi_window_seconds=settings.ppi_window_seconds,
            recording_start_hour=settings.recording_start_hour,
            recording_tz=settings.recording_tz,
            default_contact_threshold_au=settings.default_contact_threshold_au,
            alert_disabled_threshold_au=settings.alert_disabled_threshold_au,
            alert_severity=settings.alert_severity,
        )

    @property
    def window_frames(self) -> int:
        return ppi_window_frames(self.fps, self.ppi_window_seconds)


def file_sha256(path: Path, block_size: int = 1 << 20) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as fh:
        for block in iter(lambda: fh.read(block_size), b""):
            digest.update(block)
    return digest.hexdigest()


class RecordingIngestor:
    """Runs the full pipeline for one file against a ``RecordingStore``."""

    def __init__(
        self,
        store: RecordingStore,
        config: Optional[IngestionConfig] = None,
        parser: Optional[FrameParser] = None,
    ):
        self.store = store
        self.config = config or IngestionConfig()
        self.parser = parser or FrameParser()

    def recording_start_utc(self, file_date) -> datetime:
        local_start = datetime(
            file_date.year, file_date.month, file_date.day,
            self.config.recording_start_hour,
            tzinfo=ZoneInfo(self.config.recording_tz),
        )
        return local_start.astimezone(timezone.utc)

    def ingest_file(
        self,
        path: str | Path,
        cancel_event: Optional[threading.Event] = None,
    ) -> FileIngestResult:
        """Ingest ``path``.

        Raises:
            IngestSkipped: malformed name, unknown sensor, duplicate, no frames
            IngestionCancelled: ``cancel_event`` set while parsing
        """
        path = Path(path)
        cfg = self.config
        name = parse_recording_filename(path)

        patient = self.store.find_patient_by_sensor(name.sensor_id)
        if patient is None:
            raise UnknownSensor(f"no patient profile for sensor {name.sensor_id}")

        code = name.dataset_code
        if self.store.dataset_exists(patient.patient_id, code):
            raise DuplicateDataset(f"dataset already ingested: {code}")

        contact_threshold = patient.base_seating_threshold_au
        if contact_threshold is None:
            contact_threshold = cfg.default_contact_threshold_au

        stats: List[FrameStats] = []
        for frame in self.parser.iter_frames(path, cancel_event=cancel_event):
            stats.append(compute_frame_stats(frame, contact_threshold))

        if not stats:
            raise EmptyRecording(f"no frames parsed from {path.name}")

        peaks = [s.peak_au for s in stats]
        ppi = rolling_pressure_index(peaks, cfg.fps, cfg.ppi_window_seconds)

        start_utc = self.recording_start_utc(name.file_date)
        frames_count = len(stats)
        recording = Recording(
            patient_id=patient.patient_id,
            sensor_id=name.sensor_id,
            dataset_code=code,
            original_name=path.name,
            file_date=name.file_date,
            start_time_utc=start_utc,
            start_time_source=START_TIME_SOURCE,
            duration_s=int(round(frames_count / cfg.fps)),
            frames_count=frames_count,
            fps=cfg.fps,
            width=self.parser.width,
            height=self.parser.height,
            min_au_dataset=float(min(s.min_au for s in stats)),
            max_au_dataset=float(max(peaks)),
            checksum=file_sha256(path),
            ingested_at=datetime.now(timezone.utc),
        )
        dataset_id = self.store.insert_dataset(recording)

        frame_rows = [
            FrameRecord(
                dataset_id=dataset_id,
                frame_index=i,
                ts_utc=start_utc + timedelta(seconds=i / cfg.fps),
                min_au=float(s.min_au),
                max_au=float(s.max_au),
                mean_au=round_stat(s.mean_au),
                std_au=round_stat(s.std_au),
            )
            for i, s in enumerate(stats)
        ]
        frame_ids = self.store.insert_frames(frame_rows)

        metric_rows = [
            FrameMetricsRecord(
                frame_id=frame_id,
                peak_pressure_au=float(s.max_au),
                avg_pressure_au=round_stat(s.mean_au),
                contact_area_px=s.contact_px,
                contact_area_pct=s.contact_pct,
                cov_percent=s.cov_pct,
                ppi_au_10s=round_ppi(ppi[i]),
            )
            for i, (frame_id, s) in enumerate(zip(frame_ids, stats))
        ]
        self.store.insert_frame_metrics(metric_rows)

        alert_threshold = patient.alert_threshold_au
        if alert_threshold is None:
            alert_threshold = cfg.alert_disabled_threshold_au

        runs = detect_alert_runs(ppi, alert_threshold, cfg.window_frames, cfg.fps)
        created_at = datetime.now(timezone.utc)
        alert_rows = [
            AlertRecord(
                patient_id=patient.patient_id,
                dataset_id=dataset_id,
                triggered_ts_utc=run_trigger_time(start_utc, run, cfg.fps),
                start_frame_index=run.start_frame,
                end_frame_index=run.end_frame,
                threshold_au=int(alert_threshold),
                above_for_seconds=run.above_for_seconds,
                severity=cfg.alert_severity,
                created_at=created_at,
            )
            for run in runs
        ]
        created_alerts = self.store.insert_alerts(alert_rows)

        logger.info(
            "[INGEST] Ingested file=%s patient=%d dataset=%d frames=%d alerts=%d",
            path.name, patient.patient_id, dataset_id, frames_count, created_alerts,
        )
        return FileIngestResult(
            file_name=path.name,
            status="ingested",
            datasets=1,
            frames=frames_count,
            alerts=created_alerts,
        )
