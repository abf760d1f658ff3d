"""Terminal user interface components."""

from .task_panel import TaskPanel
from .transcript_view import LiveTranscriptView

__all__ = ["TaskPanel", "LiveTranscriptView"]
