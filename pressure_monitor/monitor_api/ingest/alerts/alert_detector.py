"""Sustained-pressure alert detection over the rolling index.

Rules:
- a run starts at the first frame with index >= threshold
- a run closes at the frame before the first sub-threshold frame, or at the
  last frame if the sequence ends while still above threshold
- a closed run produces one alert when it lasts at least ``min_frames``
- shorter runs are discarded; two runs separated by any sub-threshold frame
  are never merged
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Sequence

from ..contracts.records import AlertRun


def _close_run(start: int, end: int, min_frames: int, fps: float) -> AlertRun | None:
    length = end - start + 1
    if length < min_frames:
        return None
    return AlertRun(
        start_frame=start,
        end_frame=end,
        frame_count=length,
        above_for_seconds=int(round(length / fps)),
    )


def detect_alert_runs(
    index_values: Sequence[float],
    threshold_au: float,
    min_frames: int,
    fps: float,
) -> List[AlertRun]:
    """Scan the sequence once and return every qualifying run, in order."""
    if fps <= 0:
        raise ValueError("fps must be > 0")

    runs: List[AlertRun] = []
    run_start = -1

    for i, value in enumerate(index_values):
        above = value >= threshold_au
        if above:
            if run_start < 0:
                run_start = i
            continue
        if run_start >= 0:
            run = _close_run(run_start, i - 1, min_frames, fps)
            if run is not None:
                runs.append(run)
            run_start = -1

    if run_start >= 0:
        run = _close_run(run_start, len(index_values) - 1, min_frames, fps)
        if run is not None:
            runs.append(run)

    return runs


def run_trigger_time(start_utc: datetime, run: AlertRun, fps: float) -> datetime:
    """Timestamp of the first frame of ``run``."""
    return start_utc + timedelta(seconds=run.start_frame / fps)
