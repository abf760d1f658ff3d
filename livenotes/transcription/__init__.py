"""Live transcription module for LiveNotes."""

from .base import (
    AbstractSuggestionAnalyzer,
    AbstractSummarizer,
    AbstractTranscriptionBackend,
    AnalyzerError,
    TranscriptionError,
)
from .accumulator import RollingTranscriptAccumulator, split_display_transcript
from .chatgpt_engine import ChatGPTEngine, ChatGPTSuggestionAnalyzer, ChatGPTSummarizer
from .dedup import (
    CanonicalizationLexicon,
    FRENCH_LEXICON,
    canonical_form,
    dedupe_suggestions,
    is_duplicate_chunk,
    jaccard_similarity,
)
from .http_backend import HttpTranscriptionBackend
from .publisher import TranscriptPublisher
from .sampling import SamplingLoop

__all__ = [
    "AbstractSuggestionAnalyzer",
    "AbstractSummarizer",
    "AbstractTranscriptionBackend",
    "AnalyzerError",
    "TranscriptionError",
    "RollingTranscriptAccumulator",
    "split_display_transcript",
    "ChatGPTEngine",
    "ChatGPTSuggestionAnalyzer",
    "ChatGPTSummarizer",
    "CanonicalizationLexicon",
    "FRENCH_LEXICON",
    "canonical_form",
    "dedupe_suggestions",
    "is_duplicate_chunk",
    "jaccard_similarity",
    "HttpTranscriptionBackend",
    "TranscriptPublisher",
    "SamplingLoop",
]
