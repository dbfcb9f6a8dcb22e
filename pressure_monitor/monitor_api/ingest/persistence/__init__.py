from .recording_store import RecordingStore, SqlRecordingStore

__all__ = ["RecordingStore", "SqlRecordingStore"]
