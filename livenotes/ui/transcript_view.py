"""Console view printing live transcript events as they arrive."""

import logging
from typing import Optional

from pubsub import pub
from rich.console import Console
from rich.markup import escape

from ..models.events import TRANSCRIPT_CHUNK_TOPIC, TRANSCRIPT_SUGGESTIONS_TOPIC
from ..models.transcription import Chunk, SessionReport, SuggestionBatch

logger = logging.getLogger(__name__)


class LiveTranscriptView:
    """Prints accepted chunks and suggestions of one session."""

    def __init__(self, session_id: Optional[str] = None, console: Optional[Console] = None):
        """Initialize the view.

        Args:
            session_id: Only show events of this session; all sessions when None
            console: Rich console to print to
        """
        self.session_id = session_id
        self.console = console or Console()
        self.chunks_shown = 0
        self.batches_shown = 0

        pub.subscribe(self._on_chunk, TRANSCRIPT_CHUNK_TOPIC)
        pub.subscribe(self._on_suggestions, TRANSCRIPT_SUGGESTIONS_TOPIC)

    def _on_chunk(self, session_id: str, chunk: Chunk) -> None:
        if self.session_id and session_id != self.session_id:
            return
        self.chunks_shown += 1
        self.console.print(f"[dim]--- {chunk.approx_offset_seconds}s ---[/dim] {escape(chunk.text)}",
                           highlight=False)

    def _on_suggestions(self, session_id: str, batch: SuggestionBatch) -> None:
        if self.session_id and session_id != self.session_id:
            return
        self.batches_shown += 1
        for question in batch.clarifications:
            self.console.print(f"  [yellow]?[/yellow] {escape(question)}", highlight=False)
        for topic in batch.topics_to_explore:
            self.console.print(f"  [cyan]→[/cyan] {escape(topic)}", highlight=False)

    def show_report(self, report: SessionReport) -> None:
        """Print the deduplicated suggestions of a finished session."""
        self.console.print(f"\n[bold blue]Session {report.session_id}[/bold blue] "
                           f"({len(report.chunks)} chunks, {report.duration_seconds:.0f}s)")
        if report.clarifications:
            self.console.print("[bold]Clarifications:[/bold]")
            for question in report.clarifications:
                self.console.print(f"  - {escape(question)}", highlight=False)
        if report.topics_to_explore:
            self.console.print("[bold]Topics to explore:[/bold]")
            for topic in report.topics_to_explore:
                self.console.print(f"  - {escape(topic)}", highlight=False)

    def close(self) -> None:
        if pub.isSubscribed(self._on_chunk, TRANSCRIPT_CHUNK_TOPIC):
            pub.unsubscribe(self._on_chunk, TRANSCRIPT_CHUNK_TOPIC)
        if pub.isSubscribed(self._on_suggestions, TRANSCRIPT_SUGGESTIONS_TOPIC):
            pub.unsubscribe(self._on_suggestions, TRANSCRIPT_SUGGESTIONS_TOPIC)
