"""Tests de detección de presión sostenida sobre el PPI."""

from datetime import datetime, timedelta, timezone

import pytest

from pressure_monitor.monitor_api.ingest.alerts.alert_detector import (
    detect_alert_runs,
    run_trigger_time,
)


def _series(length, high_ranges, high=420.0, low=100.0):
    values = [low] * length
    for start, end in high_ranges:
        for i in range(start, end):
            values[i] = high
    return values


class TestAlertRuns:

    def test_single_sustained_run(self):
        values = _series(200, [(20, 180)])

        runs = detect_alert_runs(values, threshold_au=400, min_frames=150, fps=15.0)

        assert len(runs) == 1
        run = runs[0]
        assert run.start_frame == 20
        assert run.end_frame == 179
        assert run.frame_count == 160
        assert run.above_for_seconds == 11

    def test_short_run_is_discarded(self):
        values = _series(200, [(20, 169)])  # 149 frames

        assert detect_alert_runs(values, threshold_au=400, min_frames=150, fps=15.0) == []

    def test_run_open_at_end_of_sequence(self):
        values = _series(200, [(40, 200)])

        runs = detect_alert_runs(values, threshold_au=400, min_frames=150, fps=15.0)

        assert len(runs) == 1
        assert runs[0].start_frame == 40
        assert runs[0].end_frame == 199

    def test_runs_split_by_one_low_frame_are_not_merged(self):
        values = _series(20, [(0, 10), (11, 20)])

        runs = detect_alert_runs(values, threshold_au=400, min_frames=5, fps=1.0)

        assert [(r.start_frame, r.end_frame) for r in runs] == [(0, 9), (11, 19)]
        assert [r.above_for_seconds for r in runs] == [10, 9]

    def test_whole_sequence_above_threshold(self):
        values = [500.0] * 30

        runs = detect_alert_runs(values, threshold_au=400, min_frames=30, fps=15.0)

        assert len(runs) == 1
        assert (runs[0].start_frame, runs[0].end_frame) == (0, 29)
        assert runs[0].above_for_seconds == 2

    def test_threshold_is_inclusive(self):
        runs = detect_alert_runs([400.0, 400.0], threshold_au=400, min_frames=2, fps=1.0)

        assert len(runs) == 1

    def test_disabled_threshold_never_fires(self):
        values = [60000.0] * 500

        assert detect_alert_runs(values, threshold_au=999999, min_frames=150, fps=15.0) == []

    def test_empty_sequence(self):
        assert detect_alert_runs([], threshold_au=1, min_frames=1, fps=15.0) == []

    def test_invalid_fps(self):
        with pytest.raises(ValueError):
            detect_alert_runs([1.0], threshold_au=1, min_frames=1, fps=0)


class TestTriggerTime:

    def test_trigger_is_first_frame_of_run(self):
        start = datetime(2024, 1, 5, 15, tzinfo=timezone.utc)
        run = detect_alert_runs(_series(200, [(30, 200)]), 400, 150, 15.0)[0]

        assert run_trigger_time(start, run, 15.0) == start + timedelta(seconds=2)
