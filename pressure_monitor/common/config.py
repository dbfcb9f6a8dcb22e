from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _default_env_file() -> str:
    return str(Path.cwd() / ".env")


def _default_data_dir() -> Path:
    return Path.cwd() / "App_Data"


@dataclass(frozen=True)
class Settings:
    database_url: str

    csv_dir: Path
    cache_dir: Path

    # Recording assumptions: the sensor does not write timing into the file.
    fps: float
    ppi_window_seconds: float
    recording_start_hour: int
    recording_tz: str

    # Fallbacks when the patient profile leaves a threshold unset.
    default_contact_threshold_au: int
    alert_disabled_threshold_au: int
    alert_severity: str

    max_frames_per_request: int
    max_metrics_per_request: int
    ingest_workers: int


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("PRESSURE_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    data_dir = _default_data_dir()
    database_url = os.getenv("DATABASE_URL", f"sqlite:///{data_dir / 'pressure_monitor.db'}")

    return Settings(
        database_url=database_url,
        csv_dir=Path(os.getenv("PRESSURE_CSV_DIR", str(data_dir / "csv"))),
        cache_dir=Path(os.getenv("PRESSURE_CACHE_DIR", str(data_dir / "cache"))),
        fps=float(os.getenv("PRESSURE_FPS", "15.0")),
        ppi_window_seconds=float(os.getenv("PRESSURE_PPI_WINDOW_SECONDS", "10")),
        recording_start_hour=int(os.getenv("PRESSURE_RECORDING_START_HOUR", "15")),
        recording_tz=os.getenv("PRESSURE_RECORDING_TZ", "UTC"),
        default_contact_threshold_au=int(os.getenv("PRESSURE_DEFAULT_CONTACT_THRESHOLD_AU", "25")),
        alert_disabled_threshold_au=int(os.getenv("PRESSURE_ALERT_DISABLED_THRESHOLD_AU", "999999")),
        alert_severity=os.getenv("PRESSURE_ALERT_SEVERITY", "high"),
        max_frames_per_request=int(os.getenv("PRESSURE_MAX_FRAMES_PER_REQUEST", "1000")),
        max_metrics_per_request=int(os.getenv("PRESSURE_MAX_METRICS_PER_REQUEST", "2000")),
        ingest_workers=max(1, int(os.getenv("PRESSURE_INGEST_WORKERS", "1"))),
    )
