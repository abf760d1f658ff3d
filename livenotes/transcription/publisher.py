"""Transcript publisher module for pub/sub event publishing."""

import logging
from pubsub import pub

from ..models.events import TRANSCRIPT_CHUNK_TOPIC, TRANSCRIPT_SUGGESTIONS_TOPIC
from ..models.transcription import Chunk, SuggestionBatch

logger = logging.getLogger(__name__)


class TranscriptPublisher:
    """Publishes accepted chunks and suggestion batches of one session."""

    def __init__(self, session_id: str,
                 chunk_topic: str = TRANSCRIPT_CHUNK_TOPIC,
                 suggestions_topic: str = TRANSCRIPT_SUGGESTIONS_TOPIC):
        """Initialize transcript publisher.

        Args:
            session_id: Recording session the events belong to
            chunk_topic: Topic for accepted chunks
            suggestions_topic: Topic for suggestion batches
        """
        self.session_id = session_id
        self.chunk_topic = chunk_topic
        self.suggestions_topic = suggestions_topic
        logger.debug(f"TranscriptPublisher initialized for session {session_id}")

    def publish_chunk(self, chunk: Chunk) -> None:
        pub.sendMessage(self.chunk_topic, session_id=self.session_id, chunk=chunk)
        logger.debug(f"Published chunk #{chunk.sequence_index} for {self.session_id}")

    def publish_suggestions(self, batch: SuggestionBatch) -> None:
        pub.sendMessage(self.suggestions_topic, session_id=self.session_id, batch=batch)
        logger.debug(f"Published suggestions for segment {batch.segment_number} of {self.session_id}")
