"""Microphone capture feeding the rolling audio buffer.

Requires the `microphone` extra (PyAudio).
"""

import pyaudio
import logging
from threading import Thread, Event
from typing import Optional
from datetime import datetime

from ..models.audio import AudioClip, AudioStats
from .base import AbstractAudioSource
from .buffer import RollingAudioBuffer

logger = logging.getLogger(__name__)


class MicrophoneCapture(AbstractAudioSource):
    """Continuous microphone capture into a rolling buffer."""

    def __init__(
        self,
        buffer: Optional[RollingAudioBuffer] = None,
        sample_rate: int = 16000,
        chunk_size: int = 1024,
        channels: int = 1,
        buffer_seconds: float = 60.0,
    ):
        """Initialize audio capture with specified parameters.

        Args:
            buffer: Rolling buffer to feed; created if not given
            sample_rate: Audio sample rate
            chunk_size: Size of each audio chunk in samples
            channels: Number of audio channels (1 for mono)
            buffer_seconds: Capacity of the created buffer
        """
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self.channels = channels
        self.buffer = buffer or RollingAudioBuffer(
            duration_seconds=buffer_seconds, sample_rate=sample_rate, channels=channels)

        # Recording thread management
        self.recording_thread: Optional[Thread] = None
        self.stop_event = Event()
        self.is_recording = False

        # Statistics tracking
        self.start_time: Optional[datetime] = None
        self.total_chunks = 0

        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None

    def start_recording(self) -> None:
        """Start continuous recording in background thread."""
        if self.is_recording:
            logger.warning("Recording already in progress")
            return

        logger.info("Starting audio recording")
        self.stop_event.clear()
        self.buffer.clear()
        self.start_time = datetime.now()
        self.total_chunks = 0

        self.recording_thread = Thread(target=self._record_continuously, daemon=True)
        self.recording_thread.name = "AudioCaptureThread"
        self.recording_thread.start()
        self.is_recording = True

    def stop_recording(self) -> None:
        """Stop recording and clean up resources."""
        if not self.is_recording:
            logger.warning("No recording in progress")
            return

        logger.info("Stopping audio recording")
        self.stop_event.set()

        if self.recording_thread and self.recording_thread.is_alive():
            self.recording_thread.join(timeout=2.0)
            if self.recording_thread.is_alive():
                logger.warning("Recording thread did not stop cleanly")

        self.is_recording = False
        logger.info(f"Recording stopped. Total chunks: {self.total_chunks}")

    def get_last_window_clip(self, window_seconds: float) -> Optional[AudioClip]:
        return self.buffer.get_last_window_clip(window_seconds)

    def _open_audio_stream(self) -> pyaudio.Stream:
        self.pyaudio_instance = pyaudio.PyAudio()
        stream = self.pyaudio_instance.open(
            format=pyaudio.paInt16,
            channels=self.channels,
            rate=self.sample_rate,
            input=True,
            frames_per_buffer=self.chunk_size,
            stream_callback=None
        )
        logger.info(f"Audio stream opened: {self.sample_rate}Hz, "
                    f"{self.chunk_size} samples/chunk")
        return stream

    def _record_continuously(self) -> None:
        """Internal method: continuous recording loop in background thread."""
        stream = None
        try:
            stream = self._open_audio_stream()
            while not self.stop_event.is_set():
                audio_chunk = stream.read(self.chunk_size, exception_on_overflow=False)
                self.total_chunks += 1
                self.buffer.add_audio_chunk(audio_chunk)
        except Exception as e:
            logger.error(f"Audio capture failed: {e}", exc_info=True)
        finally:
            if stream:
                stream.stop_stream()
                stream.close()
            if self.pyaudio_instance:
                self.pyaudio_instance.terminate()
                self.pyaudio_instance = None

    def get_recording_stats(self) -> AudioStats:
        """Get current recording statistics."""
        duration = 0.0
        if self.start_time:
            duration = (datetime.now() - self.start_time).total_seconds()

        return AudioStats(
            is_recording=self.is_recording,
            duration_seconds=duration,
            sample_rate=self.sample_rate,
            chunk_size=self.chunk_size,
            total_chunks=self.total_chunks,
            peak_level=self.buffer.peak_level,
        )
