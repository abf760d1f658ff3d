"""Unit tests for MeetingArchive."""

import json
import re
from pathlib import Path

import pytest

from livenotes.models.transcription import Chunk, SessionReport
from livenotes.storage.file_manager import MeetingArchive, generate_meeting_id


def make_report() -> SessionReport:
    chunks = [
        Chunk(text="Bonjour tout le monde", sequence_index=0, approx_offset_seconds=0),
        Chunk(text="Passons au budget", sequence_index=1, approx_offset_seconds=15),
    ]
    return SessionReport(
        session_id="20250101_100000_abcd",
        transcript="Bonjour tout le monde Passons au budget",
        display_transcript="--- 0s ---\nBonjour tout le monde\n\n--- 15s ---\nPassons au budget",
        chunks=chunks,
        clarifications=["Quel est le budget ?"],
        topics_to_explore=["Planning"],
        suggestion_batches=[],
        duration_seconds=31.27,
    )


@pytest.mark.unit
class TestMeetingArchive:
    """Test cases for MeetingArchive class."""

    def test_initialization(self, temp_data_dir):
        archive = MeetingArchive(temp_data_dir)

        assert archive.meetings_dir == Path(temp_data_dir) / "meetings"
        assert archive.meetings_dir.is_dir()
        assert archive.list_meetings() == []

    def test_generate_meeting_id(self):
        assert re.fullmatch(r"meeting_\d{8}_\d{6}_[a-z0-9]{4}", generate_meeting_id())

    def test_save_session_report(self, temp_data_dir):
        archive = MeetingArchive(temp_data_dir)

        meeting_id = archive.save_session_report(make_report())

        meeting = archive.load_meeting(meeting_id)
        assert meeting["id"] == meeting_id
        assert meeting["source"] == "live"
        assert meeting["title"] == "Session 20250101_100000_abcd"
        assert meeting["duration_seconds"] == 31.3
        assert meeting["chunks"][1] == {"index": 1, "offset_seconds": 15, "text": "Passons au budget"}
        assert meeting["clarifications"] == ["Quel est le budget ?"]

        transcript = (archive.meetings_dir / meeting_id / "transcript.txt").read_text(encoding="utf-8")
        assert transcript.startswith("--- 0s ---\nBonjour tout le monde")

    def test_save_upload(self, temp_data_dir):
        archive = MeetingArchive(temp_data_dir)

        meeting_id = archive.save_upload("Point budget", "Le budget est validé.", "Résumé", "/tmp/a.wav")

        meeting_file = archive.meetings_dir / meeting_id / "meeting.json"
        with open(meeting_file, encoding="utf-8") as f:
            meeting = json.load(f)
        assert meeting["source"] == "upload"
        assert meeting["title"] == "Point budget"
        assert meeting["summary"] == "Résumé"
        assert "validé" in meeting_file.read_text(encoding="utf-8")

    def test_list_meetings(self, temp_data_dir):
        archive = MeetingArchive(temp_data_dir)
        first = archive.save_upload("A", "texte a")
        second = archive.save_upload("B", "texte b")

        assert sorted([first, second]) == archive.list_meetings()

    def test_load_missing_meeting(self, temp_data_dir):
        assert MeetingArchive(temp_data_dir).load_meeting("meeting_missing") is None
