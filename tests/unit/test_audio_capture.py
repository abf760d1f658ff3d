"""Unit tests for MicrophoneCapture (requires the microphone extra)."""

import time
from unittest.mock import patch

import numpy as np
import pytest

pytest.importorskip("pyaudio")

from livenotes.audio.buffer import RollingAudioBuffer  # noqa: E402
from livenotes.audio.capture import MicrophoneCapture  # noqa: E402


@pytest.mark.unit
class TestMicrophoneCapture:
    """Test cases for MicrophoneCapture class."""

    def test_initialization(self):
        capture = MicrophoneCapture()

        assert capture.sample_rate == 16000
        assert capture.chunk_size == 1024
        assert capture.channels == 1
        assert capture.is_recording is False
        assert capture.total_chunks == 0
        assert capture.buffer.duration_seconds == 60.0

    def test_uses_given_buffer(self):
        buffer = RollingAudioBuffer(duration_seconds=5)
        assert MicrophoneCapture(buffer=buffer).buffer is buffer

    def test_start_recording(self, mock_pyaudio):
        capture = MicrophoneCapture()

        with patch.object(capture, '_record_continuously') as mock_record:
            capture.start_recording()

            assert capture.is_recording is True
            assert capture.start_time is not None
            assert capture.recording_thread.daemon is True
            capture.recording_thread.join(timeout=1)
            mock_record.assert_called_once()

        capture.stop_recording()
        assert capture.is_recording is False

    def test_stop_when_not_recording(self):
        capture = MicrophoneCapture()
        capture.stop_recording()
        assert capture.is_recording is False

    def test_recording_feeds_buffer(self, mock_pyaudio):
        samples = np.array([0, 16384, 0, -16384], dtype=np.int16)
        mock_pyaudio['stream'].read.return_value = samples.tobytes() * 256

        capture = MicrophoneCapture(chunk_size=1024)
        capture.start_recording()
        time.sleep(0.1)
        capture.stop_recording()

        stats = capture.get_recording_stats()
        assert stats.total_chunks > 0
        assert stats.peak_level == pytest.approx(0.5)
        assert capture.get_last_window_clip(15) is not None
        mock_pyaudio['stream'].close.assert_called_once()
        mock_pyaudio['instance'].terminate.assert_called_once()
