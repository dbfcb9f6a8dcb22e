"""CSV transport for pressure-mat recordings."""

from .frame_parser import FrameParser, read_all_frames

__all__ = ["FrameParser", "read_all_frames"]
