"""Durable storage for background tasks and meetings."""

from .file_manager import MeetingArchive
from .persistence import InMemoryPersistence, JsonDirectoryPersistence, KeyValuePersistence
from .task_store import BackgroundTaskStore

__all__ = [
    "BackgroundTaskStore",
    "InMemoryPersistence",
    "JsonDirectoryPersistence",
    "KeyValuePersistence",
    "MeetingArchive",
]
