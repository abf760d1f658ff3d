"""Google Speech-to-Text transcription backend."""

import asyncio
import time
import logging
from typing import Optional

from .base import AbstractTranscriptionBackend, TranscriptionError
from ..models.audio import AudioClip

from google.cloud import speech
from google.api_core import exceptions as gax_exceptions
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


class GoogleSpeechBackend(AbstractTranscriptionBackend):
    """Google Speech-to-Text API backend for window clips.

    Clips are WAV-framed 16-bit PCM, which the synchronous recognize API
    accepts as LINEAR16. The blocking RPC runs in a worker thread so the
    event loop keeps ticking.
    """

    def __init__(self,
                 credentials_path: str,
                 sample_rate: int = 16000,
                 language: str = "fr-FR",
                 use_enhanced: bool = True,
                 enable_automatic_punctuation: bool = True,
                 request_timeout: float = 10.0):
        """Initialize Google Speech backend.

        Args:
            credentials_path: Path to Google Cloud service account JSON file
            sample_rate: Sample rate of the clips in Hz
            language: Language code (e.g., 'fr-FR', 'en-US')
            use_enhanced: Whether to use enhanced model (costs more but better quality)
            enable_automatic_punctuation: Enable automatic punctuation
            request_timeout: RPC deadline in seconds
        """
        super().__init__(language)
        if not credentials_path:
            raise ValueError("Google credentials path is required - cannot initialize without credentials")
        self.credentials_path = credentials_path
        self.use_enhanced = use_enhanced
        self.enable_automatic_punctuation = enable_automatic_punctuation
        self.request_timeout = request_timeout
        self.client: Optional[speech.SpeechClient] = None
        self.project_id = None
        self.config = speech.RecognitionConfig(
            encoding=speech.RecognitionConfig.AudioEncoding.LINEAR16,
            sample_rate_hertz=sample_rate,
            language_code=self.language,
            use_enhanced=self.use_enhanced,
            enable_automatic_punctuation=self.enable_automatic_punctuation,
        )

    def initialize(self) -> None:
        """Create the Speech client from the service account file."""
        logger.info(f"Loading Google credentials from: {self.credentials_path}")
        credentials = service_account.Credentials.from_service_account_file(self.credentials_path)
        self.client = speech.SpeechClient(credentials=credentials)
        self.project_id = credentials.project_id
        logger.info(f"Google Speech-to-Text backend initialized (project {self.project_id})")

    async def transcribe(self, clip: AudioClip, start_offset_seconds: float, filename: str) -> str:
        if self.client is None:
            self.initialize()
        return await asyncio.to_thread(self._recognize, clip, filename)

    def _recognize(self, clip: AudioClip, filename: str) -> str:
        start_time = time.time()
        audio = speech.RecognitionAudio(content=clip.data)

        try:
            response = self.client.recognize(config=self.config, audio=audio, timeout=self.request_timeout)
        except gax_exceptions.DeadlineExceeded as e:
            raise TranscriptionError(f"Google Speech recognize timeout ({filename}): {e}") from e
        except gax_exceptions.ServiceUnavailable as e:
            raise TranscriptionError(f"Google Speech service unavailable ({filename}): {e}") from e
        except gax_exceptions.GoogleAPICallError as e:
            raise TranscriptionError(f"Google Speech API error ({filename}): {e}") from e

        # One result per consecutive speech segment, best alternative first
        text = ' '.join(
            result.alternatives[0].transcript.strip()
            for result in response.results
            if result.alternatives
        ).strip()

        logger.debug(f"Google STT {filename}: '{text[:50]}' in {time.time() - start_time:.3f}s")
        return text
