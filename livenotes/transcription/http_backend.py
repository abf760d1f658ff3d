"""HTTP transcription backend posting audio to a speech-to-text service."""

import asyncio
import logging
import aiohttp
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.audio import AudioClip
from .base import AbstractTranscriptionBackend, ProgressCallback, TranscriptionError

logger = logging.getLogger(__name__)


class HttpTranscriptionBackend(AbstractTranscriptionBackend):
    """Sends clips as multipart uploads and reads the text from a JSON reply.

    The service is expected to answer `{"text": "..."}` (or `"transcript"`).
    """

    def __init__(self,
                 endpoint: str,
                 long_endpoint: Optional[str] = None,
                 api_key: Optional[str] = None,
                 language: str = "fr-FR",
                 timeout_seconds: Optional[float] = None):
        """Initialize HTTP backend.

        Args:
            endpoint: URL accepting short clips
            long_endpoint: URL accepting complete files; defaults to `endpoint`
            api_key: Optional bearer token
            language: Language code sent with every request
            timeout_seconds: Total request timeout, None for no limit
        """
        super().__init__(language)
        if not endpoint:
            raise ValueError("Transcription endpoint is required")
        self.endpoint = endpoint
        self.long_endpoint = long_endpoint or endpoint
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else None
            self._session = aiohttp.ClientSession(headers=headers, timeout=self.timeout)
        return self._session

    async def transcribe(self, clip: AudioClip, start_offset_seconds: float, filename: str) -> str:
        form = aiohttp.FormData()
        form.add_field("file", clip.data, filename=filename, content_type=clip.mime_type)
        form.add_field("start_offset", f"{start_offset_seconds:.1f}")
        form.add_field("language", self.language)

        logger.debug(f"Posting {filename} ({clip.size} bytes, offset {start_offset_seconds:.1f}s)")
        payload = await self._post(self.endpoint, form, filename)
        return _extract_text(payload, filename)

    async def transcribe_file(self, path: str, progress_callback: Optional[ProgressCallback] = None) -> str:
        file_path = Path(path)
        if progress_callback:
            progress_callback(f"Uploading {file_path.name} for transcription...")

        # Read off the event loop
        data = await asyncio.to_thread(file_path.read_bytes)
        form = aiohttp.FormData()
        form.add_field("file", data, filename=file_path.name)
        form.add_field("language", self.language)

        payload = await self._post(self.long_endpoint, form, file_path.name)
        if progress_callback:
            progress_callback("Transcription received")
        return _extract_text(payload, file_path.name)

    async def _post(self, url: str, form: aiohttp.FormData, filename: str) -> Dict[str, Any]:
        try:
            async with self._get_session().post(url, data=form) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise TranscriptionError(
                        f"Transcription API error for {filename}: {response.status} - {error_text}")
                return await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise TranscriptionError(f"Transcription request failed for {filename}: {e}") from e

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None


def _extract_text(payload: Any, filename: str) -> str:
    if not isinstance(payload, dict):
        raise TranscriptionError(f"Unexpected transcription response for {filename}: {payload!r}")
    text = payload.get("text", payload.get("transcript"))
    if text is None:
        raise TranscriptionError(f"No text in transcription response for {filename}")
    return str(text)
