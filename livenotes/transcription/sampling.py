"""Windowed capture driver for live incremental transcription.

While a recording is active, a timer fires every `tick_interval_ms`. Each
firing spawns an independent tick that grabs the last `window_seconds` of
audio, transcribes it, merges the text into the session's accumulator and
asks the suggestion analyzer about the refreshed context window.

The timer never waits for a tick: a slow transcription call simply overlaps
with the next one. Chunk indexes are assigned when a result is merged, so
overlapping ticks that finish out of order are still numbered in acceptance
order.
"""

import time
import asyncio
import logging
from typing import Any, Callable, Dict, Optional, Set

from ..audio.base import AbstractAudioSource
from ..models.transcription import Chunk, SuggestionBatch
from .accumulator import RollingTranscriptAccumulator
from .base import AbstractSuggestionAnalyzer, AbstractTranscriptionBackend
from .publisher import TranscriptPublisher

logger = logging.getLogger(__name__)


class SamplingLoop:
    """Owns the sampling timer of one recording session."""

    def __init__(self,
                 audio_source: AbstractAudioSource,
                 transcriber: AbstractTranscriptionBackend,
                 accumulator: RollingTranscriptAccumulator,
                 analyzer: Optional[AbstractSuggestionAnalyzer] = None,
                 publisher: Optional[TranscriptPublisher] = None,
                 min_clip_bytes: int = 5000,
                 min_text_chars: int = 6,
                 clock: Callable[[], float] = time.time):
        """Initialize sampling loop.

        Args:
            audio_source: Provides the most recent window of audio
            transcriber: Transcription collaborator
            accumulator: Session transcript state, fresh per recording
            analyzer: Optional suggestion analyzer, called after each accepted chunk
            publisher: Optional pub/sub publisher for accepted chunks and suggestions
            min_clip_bytes: Clips smaller than this are treated as silence
            min_text_chars: Transcriptions shorter than this (trimmed) are discarded
            clock: Time source in seconds, used for filenames and offsets
        """
        self.audio_source = audio_source
        self.transcriber = transcriber
        self.accumulator = accumulator
        self.analyzer = analyzer
        self.publisher = publisher
        self.min_clip_bytes = min_clip_bytes
        self.min_text_chars = min_text_chars
        self.clock = clock

        self.window_seconds = accumulator.window_seconds
        self.tick_interval_ms: Optional[int] = None
        self.started_at: Optional[float] = None

        self._timer_task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

        self.stats = {
            "ticks_started": 0,
            "ticks_skipped": 0,
            "ticks_failed": 0,
            "texts_discarded": 0,
            "chunks_accepted": 0,
            "analyses_failed": 0,
        }

    @property
    def is_running(self) -> bool:
        return self._timer_task is not None and not self._timer_task.done()

    @property
    def pending_tick_count(self) -> int:
        return len(self._in_flight)

    def start(self, window_seconds: int = 15, tick_interval_ms: int = 15000) -> None:
        """Start the recurring timer on the running event loop.

        Args:
            window_seconds: Length of audio requested from the capture layer per tick
            tick_interval_ms: Delay between two ticks

        Raises:
            ValueError: If a duration is not positive
            RuntimeError: If called outside a running event loop
        """
        if self.is_running:
            logger.warning("Sampling loop already running")
            return
        if window_seconds <= 0 or tick_interval_ms <= 0:
            raise ValueError("window_seconds and tick_interval_ms must be positive")

        loop = asyncio.get_running_loop()
        self.window_seconds = window_seconds
        self.tick_interval_ms = tick_interval_ms
        self.started_at = self.clock()
        self._timer_task = loop.create_task(self._run_timer(tick_interval_ms / 1000.0))

        logger.info(f"Sampling started: {window_seconds}s window every {tick_interval_ms}ms")

    def stop(self) -> None:
        """Cancel the timer. Ticks already in flight are left to complete."""
        if self._timer_task is None:
            return

        self._timer_task.cancel()
        self._timer_task = None
        logger.info(f"Sampling stopped ({len(self._in_flight)} ticks still in flight)")

    async def drain(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight ticks to finish.

        Returns:
            True if every tick completed within the timeout
        """
        if not self._in_flight:
            return True

        _, pending = await asyncio.wait(set(self._in_flight), timeout=timeout)
        if pending:
            logger.warning(f"{len(pending)} ticks still pending after {timeout}s")
        return not pending

    def cancel_in_flight(self) -> int:
        """Cancel ticks still waiting on the network; their results are dropped."""
        count = 0
        for task in list(self._in_flight):
            if task.cancel():
                count += 1
        if count:
            logger.info(f"Cancelled {count} in-flight ticks")
        return count

    async def _run_timer(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            self._spawn_tick()

    def _spawn_tick(self) -> None:
        task = asyncio.get_running_loop().create_task(self._guarded_tick())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _guarded_tick(self) -> None:
        try:
            await self.run_tick()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.stats["ticks_failed"] += 1
            logger.error(f"Unhandled exception in sampling tick: {e}", exc_info=True)

    async def run_tick(self) -> Optional[Chunk]:
        """Run one capture, transcribe and merge cycle.

        Returns:
            The accepted chunk, or None if the tick produced nothing
        """
        tick_time = self.clock()
        self.stats["ticks_started"] += 1

        clip = self.audio_source.get_last_window_clip(self.window_seconds)
        if clip is None or clip.size < self.min_clip_bytes:
            self.stats["ticks_skipped"] += 1
            logger.debug(f"Skipping tick: clip {'missing' if clip is None else f'too small ({clip.size} bytes)'}")
            return None

        filename = f"chunk_{int(tick_time * 1000)}.{clip.extension}"
        start_offset = self._start_offset(tick_time)

        try:
            text = await self.transcriber.transcribe(clip, start_offset, filename)
        except Exception as e:
            self.stats["ticks_failed"] += 1
            logger.warning(f"Transcription failed for {filename}: {e}")
            logger.debug("Transcription failure details", exc_info=True)
            return None

        text = (text or "").strip()
        if len(text) < self.min_text_chars:
            self.stats["texts_discarded"] += 1
            logger.debug(f"Discarding short transcription for {filename}: '{text}'")
            return None

        chunk = self.accumulator.accept(text)
        if chunk is None:
            self.stats["texts_discarded"] += 1
            return None

        self.stats["chunks_accepted"] += 1
        if self.publisher:
            self.publisher.publish_chunk(chunk)

        await self._analyze(chunk)
        return chunk

    async def _analyze(self, chunk: Chunk) -> None:
        if self.analyzer is None:
            return

        window_text = self.accumulator.window_text()
        try:
            result = await self.analyzer.analyze(window_text)
        except Exception as e:
            self.stats["analyses_failed"] += 1
            logger.warning(f"Suggestion analysis failed for segment {chunk.sequence_index}: {e}")
            logger.debug("Analysis failure details", exc_info=True)
            return

        batch = SuggestionBatch(
            segment_number=chunk.sequence_index,
            clarifications=tuple(result.clarifications),
            topics_to_explore=tuple(result.topics_to_explore),
        )
        self.accumulator.add_suggestions(batch)
        if self.publisher:
            self.publisher.publish_suggestions(batch)

    def _start_offset(self, tick_time: float) -> float:
        if self.started_at is None:
            return 0.0
        return max(0.0, tick_time - self.started_at - self.window_seconds)

    def get_stats(self) -> Dict[str, Any]:
        """Get loop counters and state."""
        stats: Dict[str, Any] = dict(self.stats)
        stats["is_running"] = self.is_running
        stats["pending_ticks"] = len(self._in_flight)
        stats["window_seconds"] = self.window_seconds
        stats["tick_interval_ms"] = self.tick_interval_ms
        return stats
