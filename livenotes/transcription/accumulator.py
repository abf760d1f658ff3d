"""Rolling transcript accumulator for one recording session.

Owns the cumulative transcript, the ordered list of accepted chunks, the short
sliding window used as analysis context and the suggestion batches produced
along the way. Only the sampling loop's merge step mutates it.
"""

import re
import logging
import threading
from collections import deque
from typing import Deque, List, Optional, Tuple

from ..models.transcription import Chunk, SuggestionBatch
from .dedup import is_duplicate_chunk

logger = logging.getLogger(__name__)

_OFFSET_MARKER = re.compile(r"--- (\d+)s ---")


class RollingTranscriptAccumulator:
    """Accumulates accepted chunks into a monotonically growing transcript."""

    def __init__(self, window_seconds: int = 15, recent_window_size: int = 2):
        """Initialize accumulator.

        Args:
            window_seconds: Length of each capture window, used for offset labels
            recent_window_size: How many recent chunks form the analysis context
        """
        if recent_window_size < 1:
            raise ValueError("recent_window_size must be at least 1")

        self.window_seconds = window_seconds
        self._cumulative_text = ""
        self._chunks: List[Chunk] = []
        self._recent: Deque[str] = deque(maxlen=recent_window_size)
        self._suggestions: List[SuggestionBatch] = []

        # Readers (UI) may poll from another thread
        self.lock = threading.RLock()

    def accept(self, text: str) -> Optional[Chunk]:
        """Merge a transcribed text unless it repeats an accepted chunk.

        The sequence index is assigned here, at acceptance time, so results of
        overlapping ticks are numbered in the order they are merged.

        Args:
            text: Transcribed text of one tick

        Returns:
            The new Chunk, or None if the text was empty or a duplicate
        """
        cleaned = text.strip()
        if not cleaned:
            return None

        with self.lock:
            if is_duplicate_chunk(cleaned, (c.text for c in self._chunks)):
                logger.debug(f"Duplicate chunk rejected: '{cleaned[:50]}'")
                return None

            index = len(self._chunks)
            chunk = Chunk(
                text=cleaned,
                sequence_index=index,
                approx_offset_seconds=index * self.window_seconds,
            )
            self._chunks.append(chunk)
            self._cumulative_text = f"{self._cumulative_text} {cleaned}" if self._cumulative_text else cleaned
            self._recent.append(cleaned)

        logger.info(f"Accepted chunk #{chunk.sequence_index}: '{cleaned[:50]}'")
        return chunk

    def add_suggestions(self, batch: SuggestionBatch) -> None:
        """Append an analyzer response to the session's suggestion list."""
        with self.lock:
            self._suggestions.append(batch)

    @property
    def cumulative_text(self) -> str:
        with self.lock:
            return self._cumulative_text

    @property
    def accepted_chunks(self) -> List[Chunk]:
        with self.lock:
            return list(self._chunks)

    @property
    def recent_window(self) -> List[str]:
        with self.lock:
            return list(self._recent)

    @property
    def suggestions(self) -> List[SuggestionBatch]:
        with self.lock:
            return list(self._suggestions)

    def window_text(self) -> str:
        """Concatenate the recent window into the analyzer context."""
        with self.lock:
            return ' '.join(self._recent)

    def display_transcript(self) -> str:
        """Render the transcript with approximate offset markers per chunk.

        Returns:
            Text such as "--- 0s ---\\nBonjour\\n\\n--- 15s ---\\nPassons au budget"
        """
        with self.lock:
            return "\n\n".join(
                f"--- {c.approx_offset_seconds}s ---\n{c.text}" for c in self._chunks
            )


def split_display_transcript(display_text: str, window_seconds: int = 15) -> List[Tuple[int, str]]:
    """Split a display transcript back into (offset seconds, text) sections.

    Offsets are recomputed from the section position, like the display
    labels, so the markers themselves only act as separators. Empty sections
    are skipped without consuming an offset.
    """
    sections = []
    for part in _OFFSET_MARKER.split(display_text)[::2]:
        text = part.strip()
        if text:
            sections.append(text)
    return [(i * window_seconds, text) for i, text in enumerate(sections)]
