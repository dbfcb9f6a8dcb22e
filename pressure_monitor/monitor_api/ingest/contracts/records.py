"""Plain records flowing through the ingestion pipeline.

CSV → FrameStats (per frame) → Recording / FrameRecord / FrameMetricsRecord
→ AlertRecord. Identifiers are plain ints assigned by the store; nothing here
knows about SQLAlchemy.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

FRAME_WIDTH = 32
FRAME_HEIGHT = 32


@dataclass(frozen=True)
class PatientThresholds:
    """Patient profile fields the pipeline depends on."""
    patient_id: int
    sensor_id: str
    base_seating_threshold_au: Optional[int] = None
    alert_threshold_au: Optional[int] = None


@dataclass(frozen=True)
class FrameStats:
    """Per-frame statistics, computed once from the raw samples."""
    min_au: int
    max_au: int
    mean_au: float
    std_au: float
    contact_px: int
    contact_pct: float
    cov_pct: float

    @property
    def peak_au(self) -> int:
        return self.max_au


@dataclass
class Recording:
    """One ingested source file (``datasets`` row)."""
    patient_id: int
    sensor_id: str
    dataset_code: str
    original_name: str
    file_date: date
    start_time_utc: datetime
    start_time_source: str
    duration_s: int
    frames_count: int
    fps: float
    width: int = FRAME_WIDTH
    height: int = FRAME_HEIGHT
    min_au_dataset: Optional[float] = None
    max_au_dataset: Optional[float] = None
    checksum: Optional[str] = None
    ingested_at: Optional[datetime] = None
    dataset_id: Optional[int] = None


@dataclass(frozen=True)
class FrameRecord:
    dataset_id: int
    frame_index: int
    ts_utc: datetime
    min_au: float
    max_au: float
    mean_au: float
    std_au: float


@dataclass(frozen=True)
class FrameMetricsRecord:
    frame_id: int
    peak_pressure_au: float
    avg_pressure_au: float
    contact_area_px: int
    contact_area_pct: float
    cov_percent: float
    ppi_au_10s: float


@dataclass(frozen=True)
class AlertRun:
    """Maximal run of frames with the rolling index at/above threshold."""
    start_frame: int
    end_frame: int
    frame_count: int
    above_for_seconds: int


@dataclass(frozen=True)
class AlertRecord:
    patient_id: int
    dataset_id: int
    triggered_ts_utc: datetime
    start_frame_index: int
    end_frame_index: int
    threshold_au: int
    above_for_seconds: int
    severity: str = "high"
    created_at: Optional[datetime] = None


@dataclass
class FileIngestResult:
    """Outcome of ingesting one CSV file."""
    file_name: str
    status: str  # "ingested" | "skipped" | "failed"
    datasets: int = 0
    frames: int = 0
    alerts: int = 0
    reason: Optional[str] = None
    detail: Optional[str] = None


@dataclass
class BatchIngestResult:
    """Aggregate counts for a directory run plus per-file diagnostics."""
    datasets: int = 0
    frames: int = 0
    alerts: int = 0
    cancelled: bool = False
    files: List[FileIngestResult] = field(default_factory=list)

    def add(self, result: FileIngestResult) -> None:
        self.files.append(result)
        self.datasets += result.datasets
        self.frames += result.frames
        self.alerts += result.alerts

    @property
    def skipped(self) -> List[FileIngestResult]:
        return [f for f in self.files if f.status != "ingested"]
