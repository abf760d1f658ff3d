"""Unit tests for LiveTranscriptView."""

import pytest
from rich.console import Console

from livenotes.models.transcription import Chunk, SessionReport, SuggestionBatch
from livenotes.transcription.publisher import TranscriptPublisher
from livenotes.ui.transcript_view import LiveTranscriptView


@pytest.fixture
def console():
    return Console(record=True, width=100, color_system=None)


@pytest.mark.unit
class TestLiveTranscriptView:
    """Test cases for the live transcript console view."""

    def test_prints_published_events(self, console):
        view = LiveTranscriptView("session_1", console)
        publisher = TranscriptPublisher("session_1")

        publisher.publish_chunk(Chunk(text="Passons au budget", sequence_index=1, approx_offset_seconds=15))
        publisher.publish_suggestions(SuggestionBatch(
            segment_number=1, clarifications=("Quel budget ?",), topics_to_explore=("Marketing",)))

        output = console.export_text()
        assert "--- 15s --- Passons au budget" in output
        assert "? Quel budget ?" in output
        assert "→ Marketing" in output
        assert (view.chunks_shown, view.batches_shown) == (1, 1)

    def test_ignores_other_sessions(self, console):
        view = LiveTranscriptView("session_1", console)
        TranscriptPublisher("session_2").publish_chunk(
            Chunk(text="Autre réunion", sequence_index=0, approx_offset_seconds=0))

        assert view.chunks_shown == 0
        assert console.export_text() == ""

    def test_close_unsubscribes(self, console):
        view = LiveTranscriptView(console=console)
        view.close()
        TranscriptPublisher("session_1").publish_chunk(
            Chunk(text="Bonjour tout le monde", sequence_index=0, approx_offset_seconds=0))
        assert view.chunks_shown == 0

    def test_show_report(self, console):
        view = LiveTranscriptView(console=console)
        view.show_report(SessionReport(
            session_id="s1", transcript="", display_transcript="", chunks=[],
            clarifications=["Qui valide le devis ?"], topics_to_explore=[], suggestion_batches=[],
        ))

        output = console.export_text()
        assert "Session s1" in output
        assert "- Qui valide le devis ?" in output
        assert "Topics to explore" not in output
