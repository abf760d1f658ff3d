"""Recording session service that owns the live transcription pipeline."""

import time
import random
import string
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any

from ..audio.base import AbstractAudioSource
from ..config import SamplingSettings
from ..models.transcription import Chunk, SessionReport, SuggestionBatch
from ..transcription.accumulator import RollingTranscriptAccumulator
from ..transcription.base import AbstractSuggestionAnalyzer, AbstractTranscriptionBackend
from ..transcription.dedup import CanonicalizationLexicon, FRENCH_LEXICON, dedupe_suggestions
from ..transcription.publisher import TranscriptPublisher
from ..transcription.sampling import SamplingLoop

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Create a session id from the start time with a random suffix."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"{timestamp}_{random_suffix}"


class RecordingSession:
    """One live recording: a fresh accumulator and sampling loop per start.

    Must be driven from a running asyncio event loop.
    """

    def __init__(self,
                 audio_source: AbstractAudioSource,
                 transcriber: AbstractTranscriptionBackend,
                 analyzer: Optional[AbstractSuggestionAnalyzer] = None,
                 settings: Optional[SamplingSettings] = None,
                 lexicon: CanonicalizationLexicon = FRENCH_LEXICON,
                 publish_events: bool = True):
        """Initialize recording session.

        Args:
            audio_source: Capture layer handing out recent audio windows
            transcriber: Transcription collaborator
            analyzer: Optional suggestion analyzer
            settings: Sampling settings, defaults when None
            lexicon: Word lists for suggestion deduplication at finalize
            publish_events: Publish accepted chunks and suggestions on pub/sub
        """
        self.audio_source = audio_source
        self.transcriber = transcriber
        self.analyzer = analyzer
        self.settings = settings or SamplingSettings()
        self.lexicon = lexicon
        self.publish_events = publish_events

        self.session_id: Optional[str] = None
        self.accumulator: Optional[RollingTranscriptAccumulator] = None
        self.sampling_loop: Optional[SamplingLoop] = None
        self.started_at: Optional[float] = None
        self.stopped_at: Optional[float] = None

    @property
    def is_recording(self) -> bool:
        return self.sampling_loop is not None and self.sampling_loop.is_running

    def start(self) -> str:
        """Start a new recording with fresh transcript state.

        Returns:
            The new session id

        Raises:
            RuntimeError: If already recording or no event loop is running
        """
        if self.is_recording:
            raise RuntimeError(f"Already recording session {self.session_id}")

        self.session_id = generate_session_id()
        self.accumulator = RollingTranscriptAccumulator(
            window_seconds=self.settings.window_seconds,
            recent_window_size=self.settings.recent_window_size,
        )
        publisher = TranscriptPublisher(self.session_id) if self.publish_events else None
        self.sampling_loop = SamplingLoop(
            audio_source=self.audio_source,
            transcriber=self.transcriber,
            accumulator=self.accumulator,
            analyzer=self.analyzer,
            publisher=publisher,
            min_clip_bytes=self.settings.min_clip_bytes,
            min_text_chars=self.settings.min_text_chars,
        )
        self.sampling_loop.start(self.settings.window_seconds, self.settings.tick_interval_ms)
        self.started_at = time.time()
        self.stopped_at = None

        logger.info(f"Started recording session: {self.session_id}")
        return self.session_id

    async def stop(self, drain_timeout: Optional[float] = None) -> None:
        """Stop sampling and let in-flight ticks merge their results.

        Args:
            drain_timeout: Maximum seconds to wait for in-flight ticks; the
                remaining ones are cancelled and their results dropped
        """
        if self.sampling_loop is None:
            return

        self.sampling_loop.stop()
        if self.stopped_at is None:
            self.stopped_at = time.time()

        if not await self.sampling_loop.drain(timeout=drain_timeout):
            self.sampling_loop.cancel_in_flight()
            await self.sampling_loop.drain()

        logger.info(f"Stopped recording session: {self.session_id}")

    @property
    def cumulative_text(self) -> str:
        return self.accumulator.cumulative_text if self.accumulator else ""

    @property
    def recent_window(self) -> List[str]:
        return self.accumulator.recent_window if self.accumulator else []

    @property
    def chunks(self) -> List[Chunk]:
        return self.accumulator.accepted_chunks if self.accumulator else []

    @property
    def suggestions(self) -> List[SuggestionBatch]:
        return self.accumulator.suggestions if self.accumulator else []

    def finalize(self) -> SessionReport:
        """Build the session report with deduplicated clarifications and topics.

        Raises:
            RuntimeError: If the session was never started
        """
        if self.accumulator is None or self.session_id is None:
            raise RuntimeError("No recording session to finalize")
        if self.is_recording:
            logger.warning(f"Finalizing session {self.session_id} while still recording")

        batches = self.accumulator.suggestions
        threshold = self.settings.similarity_threshold
        clarifications = dedupe_suggestions(
            [q for batch in batches for q in batch.clarifications], self.lexicon, threshold)
        topics = dedupe_suggestions(
            [t for batch in batches for t in batch.topics_to_explore], self.lexicon, threshold)

        end = self.stopped_at or time.time()
        report = SessionReport(
            session_id=self.session_id,
            transcript=self.accumulator.cumulative_text,
            display_transcript=self.accumulator.display_transcript(),
            chunks=self.accumulator.accepted_chunks,
            clarifications=clarifications,
            topics_to_explore=topics,
            suggestion_batches=batches,
            duration_seconds=end - self.started_at if self.started_at else 0.0,
            finished_at=datetime.now(),
        )

        logger.info(f"Finalized session {self.session_id}: {len(report.chunks)} chunks, "
                    f"{len(clarifications)} clarifications, {len(topics)} topics")
        return report

    def get_status(self) -> Dict[str, Any]:
        """Get a status snapshot for display."""
        status: Dict[str, Any] = {
            "session_id": self.session_id,
            "is_recording": self.is_recording,
            "chunk_count": len(self.chunks),
            "suggestion_batches": len(self.suggestions),
            "current_text": self.cumulative_text,
        }
        if self.sampling_loop:
            status["sampling"] = self.sampling_loop.get_stats()
        return status
