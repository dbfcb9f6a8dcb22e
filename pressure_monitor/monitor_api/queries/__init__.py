"""Read-side queries for the monitoring API."""

from .monitor_queries import (
    dataset_exists,
    get_metrics_window,
    get_recording_meta,
    list_dataset_alerts,
    list_recording_dates,
)

__all__ = [
    "dataset_exists",
    "get_metrics_window",
    "get_recording_meta",
    "list_dataset_alerts",
    "list_recording_dates",
]
