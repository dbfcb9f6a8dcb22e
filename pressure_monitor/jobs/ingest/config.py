"""Batch ingest runner configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ...common.config import Settings
from ...monitor_api.ingest.recording_ingest import IngestionConfig


@dataclass(frozen=True)
class RunnerConfig:
    """Configuración del runner de ingesta por directorio."""
    source_dir: Path
    workers: int = 1
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RunnerConfig":
        return cls(
            source_dir=settings.csv_dir,
            workers=settings.ingest_workers,
            ingestion=IngestionConfig.from_settings(settings),
        )
