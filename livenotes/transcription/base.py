"""Abstract base classes for the external collaborators of the live pipeline."""

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional
import logging
import mimetypes

from ..models.audio import AudioClip
from ..models.transcription import MeetingSummary, SuggestionResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class TranscriptionError(RuntimeError):
    """A transcription service call failed."""


class AnalyzerError(RuntimeError):
    """A suggestion analysis or summarization call failed."""


class AbstractTranscriptionBackend(ABC):
    """Abstract base class for transcription backends."""

    def __init__(self, language: str = "fr-FR"):
        """Initialize backend with language preference."""
        self.language = language

    @abstractmethod
    async def transcribe(self, clip: AudioClip, start_offset_seconds: float, filename: str) -> str:
        """Transcribe one window of audio.

        Args:
            clip: Encoded audio window
            start_offset_seconds: Approximate position of the window in the recording
            filename: Synthetic filename, for traceability on the service side

        Returns:
            Transcribed text (possibly empty)

        Raises:
            TranscriptionError: If the service call fails
        """

    async def transcribe_file(self, path: str, progress_callback: Optional[ProgressCallback] = None) -> str:
        """Transcribe a complete audio file.

        Backends with a dedicated long-audio endpoint override this; the
        default sends the whole file as a single clip.
        """
        file_path = Path(path)
        mime_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
        data = await asyncio.to_thread(file_path.read_bytes)
        clip = AudioClip(data=data, duration_seconds=0.0, mime_type=mime_type)

        if progress_callback:
            progress_callback(f"Transcribing {file_path.name}...")
        return await self.transcribe(clip, 0.0, file_path.name)

    async def close(self) -> None:
        """Release backend resources."""


class AbstractSuggestionAnalyzer(ABC):
    """Produces clarification questions and topics from recent transcript context."""

    @abstractmethod
    async def analyze(self, window_text: str) -> SuggestionResult:
        """Analyze the rolling transcript window.

        Raises:
            AnalyzerError: If the analysis call fails
        """


class AbstractSummarizer(ABC):
    """Produces a title and summary for a complete transcript."""

    @abstractmethod
    async def summarize(self, transcript: str) -> MeetingSummary:
        """Summarize a transcript.

        Raises:
            AnalyzerError: If the summarization call fails
        """
