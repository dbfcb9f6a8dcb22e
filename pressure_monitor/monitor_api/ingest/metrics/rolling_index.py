"""Pressure performance index (PPI): rolling average of frame peaks.

The index for frame ``i`` is the mean of the last ``window`` peak values
(``window = round(window_seconds * fps)``, at least 1). Until the buffer
fills it is an expanding average over the frames seen so far.
"""

from __future__ import annotations

from typing import Iterable, List

DEFAULT_WINDOW_SECONDS = 10.0


def ppi_window_frames(fps: float, window_seconds: float = DEFAULT_WINDOW_SECONDS) -> int:
    """Number of frames covered by the PPI window."""
    if fps <= 0:
        raise ValueError("fps must be > 0")
    return max(1, int(round(window_seconds * fps)))


class PeakRingBuffer:
    """Fixed-capacity circular buffer with a running sum.

    - ``push`` overwrites the oldest slot once the buffer is full
    - the running sum is adjusted on every push, so the average is O(1)
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._slots: List[float] = [0.0] * capacity
        self._capacity = capacity
        self._head = 0  # next slot to write
        self._size = 0
        self._sum = 0.0

    def __len__(self) -> int:
        return self._size

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def total(self) -> float:
        return self._sum

    def push(self, value: float) -> float:
        """Add a peak and return the current average."""
        if self._size == self._capacity:
            self._sum -= self._slots[self._head]
        else:
            self._size += 1
        self._slots[self._head] = value
        self._sum += value
        self._head = (self._head + 1) % self._capacity
        return self._sum / self._size


def rolling_pressure_index(
    peaks: Iterable[float],
    fps: float,
    window_seconds: float = DEFAULT_WINDOW_SECONDS,
) -> List[float]:
    """Compute the PPI sequence for a whole recording.

    Pure function of its inputs: the same peaks always produce the same
    sequence. The result feeds both the per-frame metric and alert detection.
    """
    buf = PeakRingBuffer(ppi_window_frames(fps, window_seconds))
    return [buf.push(float(p)) for p in peaks]
