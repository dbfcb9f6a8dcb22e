"""Relational schema for patients' pressure recordings.

Tables mirror the clinical database: one ``datasets`` row per ingested CSV,
one ``frames`` row per 32x32 sample, a 1:1 ``frame_metrics`` row and the
``alerts`` intervals detected at ingestion time. ``patient_profile`` is owned
by the admin side of the application; the pipeline only reads it.
"""

from __future__ import annotations

from sqlalchemy import (
    BigInteger,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
    UniqueConstraint,
)

metadata = MetaData()

# SQLite only autoincrements INTEGER primary keys.
_BigId = BigInteger().with_variant(Integer(), "sqlite")


patient_profile = Table(
    "patient_profile",
    metadata,
    Column("patient_id", Integer, primary_key=True),
    Column("sensor_id", String(64), nullable=False, unique=True),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("base_seating_threshold_au", Integer),
    Column("alert_threshold_au", Integer),
)


datasets = Table(
    "datasets",
    metadata,
    Column("dataset_id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, nullable=False, index=True),
    Column("sensor_id", String(64), nullable=False),
    Column("dataset_code", String(80), nullable=False),
    Column("original_name", String(255), nullable=False),
    Column("file_date", Date),
    Column("start_time_utc", DateTime(timezone=True)),
    Column("start_time_source", String(40)),
    Column("duration_s", Integer, nullable=False),
    Column("frames_count", Integer, nullable=False),
    Column("fps", Float, nullable=False),
    Column("width", SmallInteger, nullable=False),
    Column("height", SmallInteger, nullable=False),
    Column("min_au_dataset", Float),
    Column("max_au_dataset", Float),
    Column("checksum", String(64)),
    Column("ingested_at", DateTime(timezone=True)),
    UniqueConstraint("patient_id", "dataset_code", name="uq_datasets_patient_code"),
)


frames = Table(
    "frames",
    metadata,
    Column("frame_id", _BigId, primary_key=True, autoincrement=True),
    Column("dataset_id", Integer, ForeignKey("datasets.dataset_id"), nullable=False),
    Column("frame_index", Integer, nullable=False),
    Column("ts_utc", DateTime(timezone=True)),
    Column("min_au", Float),
    Column("max_au", Float),
    Column("mean_au", Float),
    Column("std_au", Float),
    UniqueConstraint("dataset_id", "frame_index", name="uq_frames_dataset_index"),
)


frame_metrics = Table(
    "frame_metrics",
    metadata,
    Column("frame_id", _BigId, ForeignKey("frames.frame_id"), primary_key=True, autoincrement=False),
    Column("peak_pressure_au", Float),
    Column("avg_pressure_au", Float),
    Column("contact_area_px", Integer),
    Column("contact_area_pct", Float),
    Column("cov_percent", Float),
    Column("ppi_au_10s", Float),
)


alerts = Table(
    "alerts",
    metadata,
    Column("alert_id", Integer, primary_key=True, autoincrement=True),
    Column("patient_id", Integer, nullable=False, index=True),
    Column("dataset_id", Integer, ForeignKey("datasets.dataset_id"), nullable=False),
    Column("triggered_ts_utc", DateTime(timezone=True), nullable=False),
    Column("start_frame_index", Integer, nullable=False),
    Column("end_frame_index", Integer, nullable=False),
    Column("threshold_au", Integer, nullable=False),
    Column("above_for_seconds", Integer, nullable=False),
    Column("severity", String(20), nullable=False, default="high"),
    Column("created_at", DateTime(timezone=True)),
)
