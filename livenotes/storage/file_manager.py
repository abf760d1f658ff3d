"""Meeting archive storing finished recordings and uploads on disk."""

import json
import logging
import random
import string
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.transcription import SessionReport

logger = logging.getLogger(__name__)

MEETING_FILE = "meeting.json"
TRANSCRIPT_FILE = "transcript.txt"


def generate_meeting_id() -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=4))
    return f"meeting_{timestamp}_{random_suffix}"


class MeetingArchive:
    """Stores one directory per meeting: metadata JSON plus readable transcript."""

    def __init__(self, data_dir: str = "./data"):
        """Initialize meeting archive.

        Args:
            data_dir: Base directory for storing all data
        """
        self.data_dir = Path(data_dir)
        self.meetings_dir = self.data_dir / "meetings"
        self.meetings_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"MeetingArchive initialized with data_dir: {self.data_dir}")

    def save_session_report(self, report: SessionReport, title: Optional[str] = None) -> str:
        """Save a finalized live session. Returns the meeting id."""
        meeting = {
            "source": "live",
            "session_id": report.session_id,
            "title": title or f"Session {report.session_id}",
            "duration_seconds": round(report.duration_seconds, 1),
            "finished_at": (report.finished_at or datetime.now()).isoformat(),
            "transcript": report.transcript,
            "chunks": [
                {"index": c.sequence_index, "offset_seconds": c.approx_offset_seconds, "text": c.text}
                for c in report.chunks
            ],
            "clarifications": report.clarifications,
            "topics_to_explore": report.topics_to_explore,
        }
        return self._write(meeting, report.display_transcript)

    def save_upload(self, title: str, transcript: str, summary: Optional[str] = None,
                    source_path: Optional[str] = None) -> str:
        """Save a transcribed upload. Returns the meeting id."""
        meeting = {
            "source": "upload",
            "title": title,
            "source_path": source_path,
            "finished_at": datetime.now().isoformat(),
            "transcript": transcript,
            "summary": summary,
        }
        return self._write(meeting, transcript)

    def load_meeting(self, meeting_id: str) -> Optional[Dict[str, Any]]:
        meeting_file = self.meetings_dir / meeting_id / MEETING_FILE
        if not meeting_file.exists():
            logger.warning(f"Meeting file not found: {meeting_file}")
            return None

        with open(meeting_file, 'r', encoding='utf-8') as f:
            return json.load(f)

    def list_meetings(self) -> List[str]:
        """List meeting ids, oldest first."""
        return sorted(
            path.name for path in self.meetings_dir.iterdir()
            if path.is_dir() and (path / MEETING_FILE).exists()
        )

    def _write(self, meeting: Dict[str, Any], readable_transcript: str) -> str:
        meeting_id = generate_meeting_id()
        meeting_path = self.meetings_dir / meeting_id
        while meeting_path.exists():
            meeting_id = generate_meeting_id()
            meeting_path = self.meetings_dir / meeting_id
        meeting_path.mkdir()

        meeting["id"] = meeting_id
        with open(meeting_path / MEETING_FILE, 'w', encoding='utf-8') as f:
            json.dump(meeting, f, indent=2, ensure_ascii=False)
        (meeting_path / TRANSCRIPT_FILE).write_text(readable_transcript, encoding='utf-8')

        logger.info(f"Meeting saved: {meeting_path}")
        return meeting_id
