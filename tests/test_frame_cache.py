"""Tests de la caché binaria de frames (uint16 little-endian)."""

import io
import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from pressure_monitor.monitor_api.cache.frame_cache import (
    FrameCache,
    expected_cache_size,
    write_cache_frames,
)
from pressure_monitor.monitor_api.ingest.common.errors import (
    DatasetNotFound,
    ReadCancelled,
    SourceFileMissing,
)

from .conftest import PIXELS, ingest_directory, make_frame, ramp_frame, seed_patient, write_recording

TOTAL = 12


@pytest.fixture
def originals():
    return [ramp_frame(k) for k in range(TOTAL)]


@pytest.fixture
def cache(engine, csv_dir, cache_dir, originals):
    seed_patient(engine, 1, "S1")
    write_recording(csv_dir / "S1_20240105.csv", originals)
    result = ingest_directory(engine, csv_dir, fps=1.0, ppi_window_seconds=3.0)
    assert result.datasets == 1
    return FrameCache(engine, csv_dir=csv_dir, cache_dir=cache_dir)


# =============================================================================
# CONSTRUCCIÓN
# =============================================================================

class TestEnsureCache:

    def test_built_lazily_with_expected_size(self, cache, cache_dir):
        path = cache_dir / "S1_20240105.bin"
        assert not path.exists()

        info = cache.ensure_cache(1)

        assert info.path == path
        assert info.frames == TOTAL
        assert (info.width, info.height) == (32, 32)
        assert path.stat().st_size == expected_cache_size(TOTAL, 32, 32) == TOTAL * PIXELS * 2

    def test_valid_cache_is_reused(self, cache):
        info = cache.ensure_cache(1)
        mtime = info.path.stat().st_mtime_ns

        again = cache.ensure_cache(1)

        assert again.path.stat().st_mtime_ns == mtime

    def test_corrupted_cache_is_rebuilt(self, cache, originals):
        info = cache.ensure_cache(1)
        info.path.write_bytes(b"\x00" * 100)

        rebuilt = cache.ensure_cache(1)

        assert rebuilt.path.stat().st_size == expected_cache_size(TOTAL, 32, 32)
        np.testing.assert_array_equal(cache.read_frames(1, 3, 1)[0], originals[3])

    def test_unknown_dataset(self, cache):
        with pytest.raises(DatasetNotFound):
            cache.ensure_cache(999)

    def test_missing_source_csv(self, cache, csv_dir):
        (csv_dir / "S1_20240105.csv").unlink()

        with pytest.raises(SourceFileMissing):
            cache.ensure_cache(1)

    def test_existing_cache_survives_missing_csv(self, cache, csv_dir):
        cache.ensure_cache(1)
        (csv_dir / "S1_20240105.csv").unlink()

        assert cache.read_frames(1, 0, 2).shape == (2, PIXELS)


# =============================================================================
# LECTURA
# =============================================================================

class TestReadFrames:

    def test_window_matches_source(self, cache, originals):
        data = cache.read_frames(1, 4, 3)

        assert data.dtype == np.uint16
        assert data.shape == (3, PIXELS)
        for got, expected in zip(data, originals[4:7]):
            np.testing.assert_array_equal(got, expected)

    def test_count_clamped_to_available(self, cache):
        assert cache.read_frames(1, TOTAL - 5, 100).shape == (5, PIXELS)

    def test_negative_offset_starts_at_zero(self, cache, originals):
        data = cache.read_frames(1, -3, 2)

        assert data.shape == (2, PIXELS)
        np.testing.assert_array_equal(data[0], originals[0])

    def test_offset_beyond_end_is_empty(self, cache):
        assert cache.read_frames(1, TOTAL + 10, 5).shape == (0, PIXELS)

    def test_zero_count_is_empty(self, cache):
        assert cache.read_frames(1, 0, 0).shape == (0, PIXELS)

    def test_cancelled_read(self, cache):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(ReadCancelled):
            cache.read_frames(1, 0, 4, cancel_event=cancel)


class TestClamping:

    def test_out_of_range_samples_are_clamped(self, engine, csv_dir, cache_dir):
        seed_patient(engine, 1, "S1")
        frame = make_frame(100)
        frame[0] = 70000
        frame[1] = -5
        write_recording(csv_dir / "S1_20240105.csv", [frame])
        ingest_directory(engine, csv_dir, fps=1.0, ppi_window_seconds=3.0)

        data = FrameCache(engine, csv_dir, cache_dir).read_frames(1, 0, 1)

        assert data[0, 0] == 65535
        assert data[0, 1] == 0
        assert data[0, 2] == 100


class TestWriteHelpers:

    def test_little_endian_uint16(self):
        buf = io.BytesIO()
        frame = np.zeros(PIXELS, dtype=np.int64)
        frame[0] = 0x0102

        written = write_cache_frames(buf, [frame, make_frame(7)])

        raw = buf.getvalue()
        assert written == 2
        assert len(raw) == 2 * PIXELS * 2
        assert raw[:2] == b"\x02\x01"
        assert np.frombuffer(raw, dtype="<u2")[PIXELS] == 7


# =============================================================================
# CONCURRENCIA
# =============================================================================

class TestConcurrentAccess:

    @pytest.mark.parametrize("corrupted", [False, True])
    def test_one_build_for_concurrent_readers(
        self, cache, engine, csv_dir, cache_dir, originals, caplog, corrupted
    ):
        path = cache_dir / "S1_20240105.bin"
        if corrupted:
            cache_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"\x01" * 10)
        caplog.set_level(logging.INFO, logger="pressure_monitor.monitor_api.cache.frame_cache")
        barrier = threading.Barrier(8)

        def read():
            # Una instancia por hilo: el lock de construcción es por fichero, no por objeto.
            reader = FrameCache(engine, csv_dir=csv_dir, cache_dir=cache_dir)
            barrier.wait()
            return reader.read_frames(1, 2, 5)

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = [f.result() for f in [pool.submit(read) for _ in range(8)]]

        builds = [r for r in caplog.records if "Built cache" in r.getMessage()]
        assert len(builds) == 1
        assert path.stat().st_size == expected_cache_size(TOTAL, 32, 32)
        assert not path.with_name(path.name + ".tmp").exists()
        for data in results:
            np.testing.assert_array_equal(data, np.stack(originals[2:7]))
        mismatches = [r for r in caplog.records if "Size mismatch" in r.getMessage()]
        assert len(mismatches) == (1 if corrupted else 0)


class TestReadWindow:

    def test_reuses_validated_cache_info(self, cache, originals):
        info = cache.ensure_cache(1)

        data = cache.read_window(info, 10, 5)

        assert data.shape == (2, PIXELS)
        np.testing.assert_array_equal(data[1], originals[11])
