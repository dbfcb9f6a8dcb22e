"""Binary frame cache for low-latency playback.

Serves chunked 32x32 AU frames for a dataset. The cache is built lazily from
the original CSV on first access:

    {cache_dir}/{dataset_code}.bin

Format: little-endian uint16, row-major within a frame, frames concatenated
in index order. No header; the file length is the only validity check
(``frames * width * height * 2`` bytes). A mismatch triggers a full rebuild.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, Optional

import numpy as np
from sqlalchemy.engine import Engine

from ..ingest.common.errors import DatasetNotFound, ReadCancelled, SourceFileMissing
from ..ingest.contracts.records import Recording
from ..ingest.persistence.recording_store import SqlRecordingStore
from ..transports.csv.frame_parser import FrameParser

logger = logging.getLogger(__name__)

SAMPLE_DTYPE = np.dtype("<u2")
SAMPLE_BYTES = SAMPLE_DTYPE.itemsize
SAMPLE_MAX = np.iinfo(np.uint16).max

# One writer per cache file, shared by every FrameCache in the process.
_build_locks: Dict[str, threading.Lock] = {}
_build_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = str(path.resolve())
    with _build_locks_guard:
        lock = _build_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _build_locks[key] = lock
        return lock


@dataclass(frozen=True)
class CacheInfo:
    path: Path
    frames: int
    width: int
    height: int

    @property
    def pixels_per_frame(self) -> int:
        return self.width * self.height


def expected_cache_size(frames: int, width: int, height: int) -> int:
    return frames * width * height * SAMPLE_BYTES


def write_cache_frames(fh: BinaryIO, frames: Iterable[np.ndarray]) -> int:
    """Write frames as clamped little-endian uint16. Returns frames written."""
    written = 0
    for frame in frames:
        samples = np.clip(np.asarray(frame), 0, SAMPLE_MAX).astype(SAMPLE_DTYPE)
        fh.write(samples.tobytes())
        written += 1
    return written


class FrameCache:
    """Builds and reads the per-dataset binary frame cache."""

    READ_CHUNK_BYTES = 1 << 20

    def __init__(
        self,
        engine: Engine,
        csv_dir: str | Path,
        cache_dir: str | Path,
        parser: Optional[FrameParser] = None,
    ):
        self._engine = engine
        self.csv_dir = Path(csv_dir)
        self.cache_dir = Path(cache_dir)
        self.parser = parser or FrameParser()

    def cache_path(self, recording: Recording) -> Path:
        return self.cache_dir / f"{recording.dataset_code}.bin"

    def _load_recording(self, dataset_id: int) -> Recording:
        with self._engine.connect() as conn:
            recording = SqlRecordingStore(conn).get_dataset(dataset_id)
        if recording is None:
            raise DatasetNotFound(f"dataset {dataset_id} not found")
        return recording

    def ensure_cache(self, dataset_id: int) -> CacheInfo:
        """Make sure a structurally valid cache file exists for the dataset.

        Raises:
            DatasetNotFound: unknown dataset id
            SourceFileMissing: cache must be built but the CSV is gone
        """
        recording = self._load_recording(dataset_id)
        path = self.cache_path(recording)
        width, height = recording.width, recording.height

        with _lock_for(path):
            if path.exists():
                expected = expected_cache_size(recording.frames_count, width, height)
                actual = path.stat().st_size
                if actual == expected:
                    return CacheInfo(path, recording.frames_count, width, height)
                logger.warning(
                    "[CACHE] Size mismatch for %s (expected=%d actual=%d); rebuilding",
                    path, expected, actual,
                )
                path.unlink()

            written = self._build(recording, path)

        if written != recording.frames_count:
            logger.warning(
                "[CACHE] %s has %d frames but dataset %d declares %d",
                path, written, dataset_id, recording.frames_count,
            )
        return CacheInfo(path, written, width, height)

    def _build(self, recording: Recording, path: Path) -> int:
        csv_path = self.csv_dir / recording.original_name
        if not csv_path.exists():
            raise SourceFileMissing(f"original CSV not found: {csv_path}")

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with open(tmp_path, "wb") as fh:
                written = write_cache_frames(fh, self.parser.iter_frames(csv_path))
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info("[CACHE] Built cache %s with %d frames", path, written)
        return written

    def read_frames(
        self,
        dataset_id: int,
        offset: int,
        count: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> np.ndarray:
        """Read frames ``[offset, offset + count)`` as a ``(n, pixels)`` uint16 array.

        Out-of-range windows are clamped, never rejected; the result only
        holds the frames that actually exist.

        Raises:
            ReadCancelled: ``cancel_event`` set before the read completed
        """
        return self.read_window(self.ensure_cache(dataset_id), offset, count, cancel_event)

    def read_window(
        self,
        info: CacheInfo,
        offset: int,
        count: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> np.ndarray:
        """Same as ``read_frames`` for a cache already validated by ``ensure_cache``."""
        total = info.frames
        pixels = info.pixels_per_frame

        offset = min(max(offset, 0), total)
        count = min(max(count, 0), total - offset)
        if count == 0:
            return np.empty((0, pixels), dtype=np.uint16)

        frame_bytes = pixels * SAMPLE_BYTES
        wanted = count * frame_bytes
        buf = bytearray(wanted)
        view = memoryview(buf)
        read = 0

        with open(info.path, "rb") as fh:
            fh.seek(offset * frame_bytes)
            while read < wanted:
                if cancel_event is not None and cancel_event.is_set():
                    raise ReadCancelled(f"read of {info.path.name} cancelled")
                n = fh.readinto(view[read:min(wanted, read + self.READ_CHUNK_BYTES)])
                if not n:
                    break
                read += n

        whole = read // frame_bytes
        data = np.frombuffer(buf, dtype=SAMPLE_DTYPE, count=whole * pixels)
        return data.astype(np.uint16).reshape(whole, pixels)
