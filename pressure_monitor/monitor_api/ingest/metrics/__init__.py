from .frame_metrics import compute_frame_stats, contact_area_pct
from .rolling_index import PeakRingBuffer, ppi_window_frames, rolling_pressure_index

__all__ = [
    "compute_frame_stats",
    "contact_area_pct",
    "PeakRingBuffer",
    "ppi_window_frames",
    "rolling_pressure_index",
]
