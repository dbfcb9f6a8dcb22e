"""Persistencia de grabaciones: datasets, frames, métricas y alertas.

``RecordingStore`` es la interfaz de la que depende el orquestador de ingesta;
``SqlRecordingStore`` la implementa sobre una ``Connection`` de SQLAlchemy
dentro de la transacción del archivo que se está ingestando.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import List, Optional, Sequence

from sqlalchemy import insert, select
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ....common.schema import alerts, datasets, frame_metrics, frames, patient_profile
from ..common.errors import DuplicateDataset
from ..contracts.records import (
    AlertRecord,
    FrameMetricsRecord,
    FrameRecord,
    PatientThresholds,
    Recording,
)

logger = logging.getLogger(__name__)


class RecordingStore(ABC):
    """Storage capabilities needed by recording ingestion.

    Implementations:
    - SqlRecordingStore: SQLAlchemy connection (one transaction per file)
    """

    @abstractmethod
    def find_patient_by_sensor(self, sensor_id: str) -> Optional[PatientThresholds]:
        pass

    @abstractmethod
    def dataset_exists(self, patient_id: int, dataset_code: str) -> bool:
        pass

    @abstractmethod
    def insert_dataset(self, recording: Recording) -> int:
        """Insert the dataset row and return its id.

        Raises:
            DuplicateDataset: (patient_id, dataset_code) already exists
        """
        pass

    @abstractmethod
    def insert_frames(self, rows: Sequence[FrameRecord]) -> List[int]:
        """Bulk insert frames; returns frame ids ordered by frame_index."""
        pass

    @abstractmethod
    def insert_frame_metrics(self, rows: Sequence[FrameMetricsRecord]) -> int:
        pass

    @abstractmethod
    def insert_alerts(self, rows: Sequence[AlertRecord]) -> int:
        pass

    @abstractmethod
    def get_dataset(self, dataset_id: int) -> Optional[Recording]:
        pass


class SqlRecordingStore(RecordingStore):
    def __init__(self, conn: Connection):
        self._conn = conn

    def find_patient_by_sensor(self, sensor_id: str) -> Optional[PatientThresholds]:
        row = self._conn.execute(
            select(
                patient_profile.c.patient_id,
                patient_profile.c.sensor_id,
                patient_profile.c.base_seating_threshold_au,
                patient_profile.c.alert_threshold_au,
            ).where(patient_profile.c.sensor_id == sensor_id)
        ).mappings().first()
        if row is None:
            return None
        return PatientThresholds(**row)

    def dataset_exists(self, patient_id: int, dataset_code: str) -> bool:
        row = self._conn.execute(
            select(datasets.c.dataset_id)
            .where(datasets.c.patient_id == patient_id)
            .where(datasets.c.dataset_code == dataset_code)
            .limit(1)
        ).first()
        return row is not None

    def insert_dataset(self, recording: Recording) -> int:
        values = asdict(recording)
        values.pop("dataset_id", None)
        try:
            self._conn.execute(insert(datasets), values)
        except IntegrityError as e:
            # Otro worker ganó la carrera por el mismo dataset lógico.
            raise DuplicateDataset(f"dataset already ingested: {recording.dataset_code}") from e

        dataset_id = self._conn.execute(
            select(datasets.c.dataset_id)
            .where(datasets.c.patient_id == recording.patient_id)
            .where(datasets.c.dataset_code == recording.dataset_code)
        ).scalar_one()
        recording.dataset_id = int(dataset_id)
        return recording.dataset_id

    def insert_frames(self, rows: Sequence[FrameRecord]) -> List[int]:
        if not rows:
            return []
        self._conn.execute(insert(frames), [asdict(r) for r in rows])

        dataset_id = rows[0].dataset_id
        ids = self._conn.execute(
            select(frames.c.frame_id)
            .where(frames.c.dataset_id == dataset_id)
            .order_by(frames.c.frame_index)
        ).scalars().all()
        return [int(i) for i in ids]

    def insert_frame_metrics(self, rows: Sequence[FrameMetricsRecord]) -> int:
        if not rows:
            return 0
        self._conn.execute(insert(frame_metrics), [asdict(r) for r in rows])
        return len(rows)

    def insert_alerts(self, rows: Sequence[AlertRecord]) -> int:
        if not rows:
            return 0
        self._conn.execute(insert(alerts), [asdict(r) for r in rows])
        return len(rows)

    def get_dataset(self, dataset_id: int) -> Optional[Recording]:
        row = self._conn.execute(
            select(datasets).where(datasets.c.dataset_id == dataset_id)
        ).mappings().first()
        if row is None:
            return None
        return Recording(**dict(row))
