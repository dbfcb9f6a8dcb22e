"""Recording file naming: ``{sensorId}_{yyyyMMdd}.csv``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

from .errors import MalformedFilename

_DATE_SEGMENT = re.compile(r"^\d{8}$")


@dataclass(frozen=True)
class RecordingFileName:
    sensor_id: str
    file_date: date

    @property
    def dataset_code(self) -> str:
        return dataset_code(self.sensor_id, self.file_date)


def dataset_code(sensor_id: str, file_date: date) -> str:
    """Deduplication key of a logical recording."""
    return f"{sensor_id}_{file_date:%Y%m%d}"


def parse_recording_filename(path: str | Path) -> RecordingFileName:
    """Split a file name into sensor id and recording date.

    Raises:
        MalformedFilename: fewer than two ``_``-separated segments, or the
            second segment is not a valid ``yyyyMMdd`` date.
    """
    name = Path(path).name
    parts = [p for p in Path(path).stem.split("_") if p]
    if len(parts) < 2:
        raise MalformedFilename(f"unexpected file name: {name}")

    sensor_id, date_part = parts[0], parts[1]
    if not _DATE_SEGMENT.match(date_part):
        raise MalformedFilename(f"unparseable date in file name: {name}")
    try:
        file_date = datetime.strptime(date_part, "%Y%m%d").date()
    except ValueError as e:
        raise MalformedFilename(f"unparseable date in file name: {name}") from e

    return RecordingFileName(sensor_id=sensor_id, file_date=file_date)
