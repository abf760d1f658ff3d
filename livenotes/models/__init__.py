"""Data models for the LiveNotes application."""

from .audio import AudioClip, AudioFrame, AudioStats
from .tasks import BackgroundTask, TaskKind, TaskPartition, TaskStatus
from .transcription import (
    Chunk,
    MeetingSummary,
    SessionReport,
    SuggestionBatch,
    SuggestionResult,
)

__all__ = [
    "AudioClip",
    "AudioFrame",
    "AudioStats",
    # Background tasks
    "BackgroundTask",
    "TaskKind",
    "TaskPartition",
    "TaskStatus",
    # Live transcription
    "Chunk",
    "MeetingSummary",
    "SessionReport",
    "SuggestionBatch",
    "SuggestionResult",
]
