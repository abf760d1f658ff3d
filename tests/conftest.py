"""Pytest configuration and fixtures for LiveNotes tests."""

import asyncio
import logging
import tempfile
import wave
from pathlib import Path
from unittest.mock import Mock, patch
from typing import Dict, List, Optional

import numpy as np
import pytest
from pubsub import pub

from livenotes.audio.base import AbstractAudioSource
from livenotes.audio.buffer import encode_wav
from livenotes.models.audio import AudioClip
from livenotes.models.transcription import MeetingSummary, SuggestionResult
from livenotes.transcription.base import (
    AbstractSuggestionAnalyzer,
    AbstractSummarizer,
    AbstractTranscriptionBackend,
    TranscriptionError,
)


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without I/O beyond temp dirs")
    config.addinivalue_line("markers", "integration: end-to-end pipeline tests")
    config.addinivalue_line("markers", "hardware: requires a real microphone")


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop listeners left behind by a test."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


def generate_sine_pcm(duration_seconds: float = 1.0, sample_rate: int = 16000,
                      freq: float = 440.0, amplitude: float = 0.5) -> bytes:
    """Generate 16-bit mono PCM of a sine wave."""
    samples = int(duration_seconds * sample_rate)
    t = np.linspace(0, duration_seconds, samples, False)
    wave_data = amplitude * np.sin(2 * np.pi * freq * t)
    return (wave_data * 32767).astype(np.int16).tobytes()


@pytest.fixture
def sample_audio_chunk():
    """1024 samples of a 440 Hz sine at half amplitude."""
    return generate_sine_pcm(duration_seconds=1024 / 16000)


@pytest.fixture
def speech_clip():
    """A one second WAV clip, well above the minimum clip size."""
    return AudioClip(data=encode_wav(generate_sine_pcm(1.0), 16000, 1), duration_seconds=1.0)


@pytest.fixture
def sample_audio_file(temp_data_dir, sample_audio_chunk):
    """Create a sample WAV file for testing."""
    file_path = Path(temp_data_dir) / "test_audio.wav"

    with wave.open(str(file_path), 'wb') as wf:
        wf.setnchannels(1)  # Mono
        wf.setsampwidth(2)  # 16-bit
        wf.setframerate(16000)  # 16kHz
        for _ in range(50):
            wf.writeframes(sample_audio_chunk)

    return str(file_path)


class FakeAudioSource(AbstractAudioSource):
    """Hands out the same clip on every request and records window sizes."""

    def __init__(self, clip: Optional[AudioClip]):
        self.clip = clip
        self.requested_windows: List[float] = []

    def get_last_window_clip(self, window_seconds: float) -> Optional[AudioClip]:
        self.requested_windows.append(window_seconds)
        return self.clip


class ScriptedTranscriber(AbstractTranscriptionBackend):
    """Returns scripted texts in call order.

    An Exception instance in the script is raised instead of returned. An
    asyncio.Event in `gates` (keyed by call number) is awaited before the
    call returns, which lets tests force out-of-order completion.
    """

    def __init__(self, script: List, gates: Optional[Dict[int, asyncio.Event]] = None):
        super().__init__("fr-FR")
        self.script = list(script)
        self.gates = gates or {}
        self.calls: List[Dict] = []
        self.file_text = "Texte complet du fichier audio"
        self.closed = False

    async def transcribe(self, clip: AudioClip, start_offset_seconds: float, filename: str) -> str:
        call_number = len(self.calls)
        self.calls.append({
            "filename": filename,
            "start_offset_seconds": start_offset_seconds,
            "size": clip.size,
        })
        gate = self.gates.get(call_number)
        if gate is not None:
            await gate.wait()

        outcome = self.script[call_number] if call_number < len(self.script) else ""
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def transcribe_file(self, path, progress_callback=None) -> str:
        if progress_callback:
            progress_callback("Uploading audio...")
        self.calls.append({"filename": Path(path).name})
        if isinstance(self.file_text, Exception):
            raise self.file_text
        return self.file_text

    async def close(self) -> None:
        self.closed = True


class ScriptedAnalyzer(AbstractSuggestionAnalyzer):
    """Returns scripted suggestion results and records the context windows."""

    def __init__(self, results: Optional[List] = None):
        self.results = list(results or [])
        self.windows: List[str] = []

    async def analyze(self, window_text: str) -> SuggestionResult:
        call_number = len(self.windows)
        self.windows.append(window_text)
        outcome = self.results[call_number] if call_number < len(self.results) else SuggestionResult()
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class StaticSummarizer(AbstractSummarizer):
    def __init__(self, summary: Optional[MeetingSummary] = None, error: Optional[Exception] = None):
        self.summary = summary or MeetingSummary(title="Point budget", summary="Le budget est validé.")
        self.error = error
        self.transcripts: List[str] = []

    async def summarize(self, transcript: str) -> MeetingSummary:
        self.transcripts.append(transcript)
        if self.error:
            raise self.error
        return self.summary


@pytest.fixture
def fake_audio_source(speech_clip):
    return FakeAudioSource(speech_clip)


@pytest.fixture
def transcription_error():
    return TranscriptionError("service unavailable")


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeClockMs(FakeClock):
    """Manually advanced time source in epoch milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000):
        super().__init__(start)

    def __call__(self) -> int:
        return int(self.now)

    def advance_seconds(self, seconds: float) -> None:
        self.now += int(seconds * 1000)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_clock_ms():
    return FakeClockMs()


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.read.return_value = b'\x00' * 2048  # Silent audio
        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }
