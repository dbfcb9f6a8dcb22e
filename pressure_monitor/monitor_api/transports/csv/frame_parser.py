"""CSV frame parser for pressure-mat recordings.

Reads headerless CSV files in line batches to avoid memory issues with long
recordings and regroups consecutive rows into fixed-size frames. Each batch
is split and converted with vectorised pandas string ops.
"""

from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from itertools import islice
from pathlib import Path
from typing import IO, Iterator, List, Optional, Union

import numpy as np
import pandas as pd

from ...ingest.common.errors import IngestionCancelled
from ...ingest.contracts.records import FRAME_HEIGHT, FRAME_WIDTH

logger = logging.getLogger(__name__)

CsvSource = Union[str, Path, IO[str]]

_INT32_MAX = 2**31 - 1


class FrameParser:
    """Turns a headerless integer CSV into flattened ``width*height`` frames.

    Data-quality rules:
    - fields beyond ``width`` are ignored
    - missing fields and non-integer tokens become ``default_value``
    - undecodable bytes are replaced, so only the field holding them is lost
    - rows without any non-empty field are treated as blank and skipped
    - a trailing group with fewer than ``height`` rows is dropped
    """

    def __init__(
        self,
        width: int = FRAME_WIDTH,
        height: int = FRAME_HEIGHT,
        default_value: int = 0,
        chunk_size: int = 32 * 256,
    ):
        """Initialize the parser.

        Args:
            width: Columns per row (frame width)
            height: Rows per frame
            default_value: Substitute for malformed or missing samples
            chunk_size: Number of CSV lines converted per batch
        """
        self.width = width
        self.height = height
        self.default_value = default_value
        self.chunk_size = chunk_size

    @property
    def pixels_per_frame(self) -> int:
        return self.width * self.height

    def iter_frames(
        self,
        source: CsvSource,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[np.ndarray]:
        """Yield each complete frame as a row-major int64 array.

        Args:
            source: Path or text stream of the CSV file
            cancel_event: Checked at every frame boundary

        Raises:
            IngestionCancelled: ``cancel_event`` was set while parsing
        """
        logger.debug("[CSV] Parsing frames from %s", source)

        pending = np.empty((0, self.width), dtype=np.int64)
        frames_emitted = 0

        with self._open_text(source) as fh:
            for lines in self._iter_batches(fh):
                rows = self._lines_to_rows(lines)
                if pending.size:
                    rows = np.vstack([pending, rows])

                full = len(rows) // self.height
                for f in range(full):
                    if cancel_event is not None and cancel_event.is_set():
                        raise IngestionCancelled(f"cancelled after {frames_emitted} frames")
                    block = rows[f * self.height:(f + 1) * self.height]
                    frames_emitted += 1
                    yield block.reshape(-1)

                pending = rows[full * self.height:]

        if len(pending):
            logger.debug(
                "[CSV] Dropping trailing partial frame (%d of %d rows) from %s",
                len(pending), self.height, source,
            )

    @staticmethod
    def _open_text(source: CsvSource):
        if isinstance(source, (str, Path)):
            return open(source, "r", encoding="utf-8", errors="replace", newline=None)
        return nullcontext(source)

    def _iter_batches(self, fh: IO[str]) -> Iterator[List[str]]:
        while True:
            batch = list(islice(fh, self.chunk_size))
            if not batch:
                return
            yield batch

    def _lines_to_rows(self, lines: List[str]) -> np.ndarray:
        fields = (
            pd.Series(lines, dtype=object)
            .str.rstrip("\r\n")
            .str.split(",", n=self.width, expand=True)
            .reindex(columns=range(self.width))
        )
        stripped = fields.replace(r"^\s+|\s+$", "", regex=True)
        non_blank = (stripped.notna() & (stripped != "")).any(axis=1)
        stripped = stripped[non_blank]
        if stripped.empty:
            return np.empty((0, self.width), dtype=np.int64)

        numeric = stripped.apply(pd.to_numeric, errors="coerce").astype(np.float64)
        # Only whole numbers in int32 range are valid samples.
        numeric = numeric.where((numeric.mod(1) == 0) & (numeric.abs() <= _INT32_MAX))
        numeric = numeric.fillna(self.default_value)
        return numeric.to_numpy(dtype=np.int64)


def read_all_frames(source: CsvSource, parser: Optional[FrameParser] = None) -> list[np.ndarray]:
    """Parse a whole file into memory. Convenience for tests and tooling."""
    return list((parser or FrameParser()).iter_frames(source))
