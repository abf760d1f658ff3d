"""Transcription-related data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Chunk:
    """One accepted unit of transcribed text from a single sampling tick."""
    text: str
    sequence_index: int  # 0-based, order of acceptance
    approx_offset_seconds: int  # sequence_index * window_seconds, display only
    accepted_at: datetime = field(default_factory=datetime.now, compare=False)


@dataclass(frozen=True)
class SuggestionResult:
    """Raw analyzer output for one context window."""
    clarifications: Tuple[str, ...] = ()
    topics_to_explore: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SuggestionBatch:
    """One analyzer response, tagged with the chunk that triggered it."""
    segment_number: int
    clarifications: Tuple[str, ...] = ()
    topics_to_explore: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MeetingSummary:
    """Title and summary produced for a full transcript."""
    title: str
    summary: str


@dataclass
class SessionReport:
    """Final, deduplicated result of a recording session."""
    session_id: str
    transcript: str
    display_transcript: str
    chunks: List[Chunk]
    clarifications: List[str]
    topics_to_explore: List[str]
    suggestion_batches: List[SuggestionBatch]
    duration_seconds: float = 0.0
    finished_at: Optional[datetime] = None
