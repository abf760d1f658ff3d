"""Rolling audio buffer that serves recent windows of a live recording."""

import io
import time
import wave
import logging
import threading
from collections import deque
from typing import Callable, Optional, Tuple

import numpy as np

from ..models.audio import AudioClip, AudioFrame
from .base import AbstractAudioSource

logger = logging.getLogger(__name__)

SAMPLE_WIDTH_BYTES = 2  # 16-bit PCM


class RollingAudioBuffer(AbstractAudioSource):
    """Rolling PCM buffer that keeps a fixed duration of the latest audio."""

    def __init__(self, duration_seconds: float = 60.0, sample_rate: int = 16000, channels: int = 1,
                 clock: Callable[[], float] = time.time):
        """Initialize rolling audio buffer.

        Args:
            duration_seconds: How many seconds of audio to keep in buffer
            sample_rate: Audio sample rate
            channels: Number of audio channels
            clock: Time source used to timestamp frames
        """
        self.duration_seconds = duration_seconds
        self.sample_rate = sample_rate
        self.channels = channels
        self.clock = clock

        self.bytes_per_second = sample_rate * channels * SAMPLE_WIDTH_BYTES
        self.max_buffer_bytes = int(self.bytes_per_second * duration_seconds)

        # Capture thread writes, sampling loop reads
        self.buffer = deque()
        self.lock = threading.Lock()
        self.total_bytes = 0
        self.frame_counter = 0
        self.peak_level = 0.0  # of the latest chunk, 0.0 to 1.0

        logger.info(f"RollingAudioBuffer initialized: {duration_seconds}s capacity, "
                    f"{self.max_buffer_bytes} bytes max")

    def add_audio_chunk(self, audio_data: bytes) -> None:
        """Add a PCM chunk to the rolling buffer, evicting the oldest frames."""
        if not audio_data:
            return

        with self.lock:
            frame = AudioFrame(
                data=audio_data,
                timestamp=self.clock(),
                frame_number=self.frame_counter
            )
            self.frame_counter += 1
            self.buffer.append(frame)
            self.total_bytes += len(audio_data)

            while self.total_bytes > self.max_buffer_bytes and self.buffer:
                old_frame = self.buffer.popleft()
                self.total_bytes -= len(old_frame.data)

            self.peak_level = _peak_level(audio_data)

    def get_audio_window(self, duration_seconds: float) -> Optional[Tuple[bytes, float, float]]:
        """Get the raw PCM captured during the last `duration_seconds`.

        Returns:
            Tuple of (pcm_bytes, first_timestamp, last_timestamp) or None if no frames
        """
        target_start_time = self.clock() - duration_seconds

        with self.lock:
            selected_frames = [f for f in self.buffer if f.timestamp >= target_start_time]

        if not selected_frames:
            logger.debug(f"No frames newer than {target_start_time:.3f}")
            return None

        combined_audio = b''.join(frame.data for frame in selected_frames)
        return combined_audio, selected_frames[0].timestamp, selected_frames[-1].timestamp

    def get_last_window_clip(self, window_seconds: float) -> Optional[AudioClip]:
        """Encode the last `window_seconds` of audio as a WAV clip."""
        window = self.get_audio_window(window_seconds)
        if window is None:
            return None

        pcm, _, _ = window
        # WAV frames must hold whole samples
        pcm = pcm[:len(pcm) - len(pcm) % SAMPLE_WIDTH_BYTES]
        if not pcm:
            return None

        return AudioClip(
            data=encode_wav(pcm, self.sample_rate, self.channels),
            duration_seconds=len(pcm) / self.bytes_per_second,
            mime_type="audio/wav",
            peak_level=_peak_level(pcm),
        )

    def get_buffer_stats(self) -> dict:
        """Get buffer statistics."""
        with self.lock:
            oldest_timestamp = self.buffer[0].timestamp if self.buffer else None
            newest_timestamp = self.buffer[-1].timestamp if self.buffer else None
            frame_count = len(self.buffer)
            total_bytes = self.total_bytes

        buffer_duration = (newest_timestamp - oldest_timestamp) if frame_count else 0
        return {
            "frame_count": frame_count,
            "total_bytes": total_bytes,
            "buffer_duration_seconds": buffer_duration,
            "oldest_timestamp": oldest_timestamp,
            "newest_timestamp": newest_timestamp,
            "capacity_seconds": self.duration_seconds,
            "capacity_bytes": self.max_buffer_bytes
        }

    def clear(self) -> None:
        """Clear the buffer."""
        with self.lock:
            self.buffer.clear()
            self.total_bytes = 0
            self.frame_counter = 0
            self.peak_level = 0.0
            logger.debug("Audio buffer cleared")


def _peak_level(pcm: bytes) -> float:
    """Peak amplitude of 16-bit PCM, 0.0 to 1.0."""
    usable = len(pcm) - len(pcm) % SAMPLE_WIDTH_BYTES
    if usable <= 0:
        return 0.0
    samples = np.frombuffer(pcm[:usable], dtype=np.int16)
    return float(np.abs(samples.astype(np.int32)).max()) / 32768.0


def encode_wav(pcm: bytes, sample_rate: int, channels: int) -> bytes:
    """Wrap 16-bit PCM in a WAV container."""
    output = io.BytesIO()
    with wave.open(output, 'wb') as wf:
        wf.setnchannels(channels)
        wf.setsampwidth(SAMPLE_WIDTH_BYTES)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)
    return output.getvalue()
