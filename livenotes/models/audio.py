"""Audio-related data models."""

from dataclasses import dataclass


@dataclass
class AudioFrame:
    """A single audio frame with timestamp."""
    data: bytes
    timestamp: float  # Time when this frame was captured
    frame_number: int


@dataclass
class AudioClip:
    """An encoded window of recent audio, ready for transcription."""
    data: bytes
    duration_seconds: float
    mime_type: str = "audio/wav"
    peak_level: float = 0.0

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return self.mime_type.split('/')[-1]


@dataclass
class AudioStats:
    """Audio recording statistics."""
    is_recording: bool
    duration_seconds: float
    sample_rate: int
    chunk_size: int
    total_chunks: int
    peak_level: float = 0.0
