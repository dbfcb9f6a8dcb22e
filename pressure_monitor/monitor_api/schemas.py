from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _ApiModel(BaseModel):
    # Field names in Python, camelCase on the wire (the playback UI expects it).
    model_config = ConfigDict(populate_by_name=True)


class RecordingMeta(_ApiModel):
    dataset_id: int = Field(..., alias="datasetId")
    fps: float
    frames: int
    duration_sec: int = Field(..., alias="durationSec")
    width: int
    height: int
    start_utc: Optional[datetime] = Field(None, alias="startUtc")
    min_au: Optional[float] = Field(None, alias="minAu")
    max_au: Optional[float] = Field(None, alias="maxAu")


class FramesWindow(_ApiModel):
    offset: int
    frames: List[List[int]] = Field(default_factory=list)
    width: int
    height: int


class FrameMetricOut(_ApiModel):
    i: int
    peak: Optional[float] = None
    avg: Optional[float] = None
    contact_pct: Optional[float] = Field(None, alias="contactPct")
    cov: Optional[float] = None
    ppi: Optional[float] = None


class AlertOut(_ApiModel):
    alert_id: int = Field(..., alias="alertId")
    triggered_utc: datetime = Field(..., alias="triggeredUtc")
    start_frame: int = Field(..., alias="startFrame")
    end_frame: int = Field(..., alias="endFrame")
    threshold_au: int = Field(..., alias="thresholdAu")
    above_for_seconds: int = Field(..., alias="aboveForSeconds")
    severity: str


class SkippedFile(_ApiModel):
    file: str
    status: str
    reason: Optional[str] = None
    detail: Optional[str] = None


class IngestRunResult(_ApiModel):
    datasets: int
    frames: int
    alerts: int
    cancelled: bool = False
    skipped: List[SkippedFile] = Field(default_factory=list)
