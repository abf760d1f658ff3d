"""Background job transcribing and summarizing an uploaded audio file."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from ..models.tasks import TaskKind, TaskStatus
from ..models.transcription import MeetingSummary
from ..storage.task_store import BackgroundTaskStore
from ..transcription.base import AbstractSummarizer, AbstractTranscriptionBackend

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".m4a", ".webm", ".ogg", ".flac", ".aac", ".wma", ".mp4"})


@dataclass
class UploadResult:
    """Outcome of a finished upload job, handed to the result sink."""
    task_id: str
    source_path: str
    title: str
    transcript: str
    summary: Optional[str]


# Persists the result (e.g. as a meeting record) and returns its id
ResultSink = Callable[[UploadResult], Optional[str]]


class UploadTranscriptionJob:
    """Runs an upload transcription while reporting progress in the task store.

    The job owns its task: it creates it, updates its progress, and finalizes
    it exactly once as completed or error. Failures never propagate to the
    caller; they are recorded on the task for observers to display.
    """

    def __init__(self,
                 store: BackgroundTaskStore,
                 transcriber: AbstractTranscriptionBackend,
                 summarizer: Optional[AbstractSummarizer] = None,
                 result_sink: Optional[ResultSink] = None):
        self.store = store
        self.transcriber = transcriber
        self.summarizer = summarizer
        self.result_sink = result_sink

    def start(self, path: str, title: Optional[str] = None) -> "asyncio.Task[str]":
        """Launch the job in the background on the running event loop."""
        return asyncio.get_running_loop().create_task(self.run(path, title))

    async def run(self, path: str, title: Optional[str] = None) -> str:
        """Transcribe, summarize and store one audio file.

        Args:
            path: Audio file to process
            title: Optional meeting title; the summary title is used otherwise

        Returns:
            The id of the task tracking this job
        """
        file_path = Path(path)
        task_id = self.store.create(TaskKind.UPLOAD_TRANSCRIPTION, "Reading audio file...", 0)

        try:
            self._check_file(file_path)

            self.store.update(task_id, progress_text="Transcribing...", progress_percent=10)
            transcript = await self.transcriber.transcribe_file(
                str(file_path),
                progress_callback=lambda message: self.store.update(task_id, progress_text=message),
            )
            if not transcript.strip():
                raise ValueError("No speech detected in the uploaded file")

            summary: Optional[MeetingSummary] = None
            if self.summarizer:
                self.store.update(task_id, progress_text="Generating AI summary...", progress_percent=70)
                summary = await self.summarizer.summarize(transcript)

            final_title = title or (summary.title if summary else None) or file_path.stem
            self.store.update(task_id, progress_text="Saving meeting...", progress_percent=90)

            related_id = None
            if self.result_sink:
                related_id = self.result_sink(UploadResult(
                    task_id=task_id,
                    source_path=str(file_path),
                    title=final_title,
                    transcript=transcript,
                    summary=summary.summary if summary else None,
                ))

            self.store.update(
                task_id,
                status=TaskStatus.COMPLETED,
                progress_text="Done!",
                progress_percent=100,
                related_entity_id=related_id,
            )
            logger.info(f"Upload job {task_id} completed for {file_path.name}")

        except Exception as e:
            logger.error(f"Upload job {task_id} failed for {file_path.name}: {e}", exc_info=True)
            self.store.update(task_id, status=TaskStatus.ERROR, error_message=str(e) or type(e).__name__)

        return task_id

    @staticmethod
    def _check_file(file_path: Path) -> None:
        if not file_path.is_file():
            raise FileNotFoundError(f"Audio file not found: {file_path}")
        if file_path.suffix.lower() not in AUDIO_EXTENSIONS:
            raise ValueError(f"Unsupported audio file type: {file_path.suffix or file_path.name}")
