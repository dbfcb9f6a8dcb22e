"""Error taxonomy for recording ingestion and frame serving.

``IngestSkipped`` and its subclasses are file-level conditions: the batch
runner logs them, records the file as skipped and carries on. Everything else
is either a per-file failure (logged, batch continues) or escalates to the
caller of the batch operation.
"""

from __future__ import annotations


class IngestSkipped(Exception):
    """File was not ingested; batch continues."""

    reason = "skipped"


class MalformedFilename(IngestSkipped):
    reason = "malformed_filename"


class UnknownSensor(IngestSkipped):
    reason = "unknown_sensor"


class DuplicateDataset(IngestSkipped):
    reason = "duplicate"


class EmptyRecording(IngestSkipped):
    reason = "no_frames"


class IngestionCancelled(Exception):
    """Cancellation requested between frame groups."""


class ReadCancelled(Exception):
    """Cancellation requested while reading cached frames."""


class SourceDirectoryNotFound(Exception):
    """The batch source directory does not exist (fatal for the batch)."""


class DatasetNotFound(LookupError):
    pass


class SourceFileMissing(FileNotFoundError):
    """Original CSV needed to (re)build a frame cache is gone."""
