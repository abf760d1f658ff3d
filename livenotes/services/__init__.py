"""Services layer for LiveNotes application logic."""

from .recording_service import RecordingSession
from .upload_service import UploadResult, UploadTranscriptionJob

__all__ = [
    "RecordingSession",
    "UploadResult",
    "UploadTranscriptionJob",
]
