"""Binary frame cache for playback."""

from .frame_cache import CacheInfo, FrameCache, expected_cache_size, write_cache_frames

__all__ = ["CacheInfo", "FrameCache", "expected_cache_size", "write_cache_frames"]
