"""End-to-end tests of the upload command against a local transcription service."""

import asyncio
from pathlib import Path

import pytest
import yaml
from aiohttp import web
from aiohttp import test_utils
from rich.console import Console

from livenotes.config import LiveNotesConfig
from livenotes.main import create_task_store, run_tasks, run_upload
from livenotes.models.tasks import TaskStatus
from livenotes.storage.file_manager import MeetingArchive


def write_config(temp_data_dir: str, endpoint: str) -> LiveNotesConfig:
    path = Path(temp_data_dir) / "livenotes.yaml"
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump({
            "transcription": {"backend": "http", "http": {"endpoint": endpoint}},
            "storage": {"data_directory": "data"},
            "logging": {"console_output": False},
        }, f)
    return LiveNotesConfig(str(path))


def transcription_app(status: int = 200) -> web.Application:
    async def handler(request):
        await request.post()
        if status != 200:
            return web.Response(status=status, text="overloaded")
        return web.json_response({"text": "Bonjour tout le monde. Passons au budget."})

    app = web.Application()
    app.router.add_post("/transcribe", handler)
    return app


@pytest.mark.integration
def test_upload_creates_meeting_and_completed_task(temp_data_dir, sample_audio_file):
    console = Console(record=True, width=100, color_system=None)

    async def scenario():
        async with test_utils.TestServer(transcription_app()) as server:
            config = write_config(temp_data_dir, str(server.make_url("/transcribe")))
            return config, await run_upload(config, console, sample_audio_file, None)

    config, exit_code = asyncio.run(scenario())

    assert exit_code == 0
    tasks = create_task_store(config).list_all()
    assert len(tasks) == 1
    assert tasks[0].status is TaskStatus.COMPLETED

    archive = MeetingArchive(config.get_data_directory())
    meeting = archive.load_meeting(tasks[0].related_entity_id)
    assert meeting["title"] == "test_audio"
    assert meeting["transcript"] == "Bonjour tout le monde. Passons au budget."
    assert "Transcription complete" in console.export_text()


@pytest.mark.integration
def test_upload_failure_leaves_error_task(temp_data_dir, sample_audio_file):
    console = Console(record=True, width=100, color_system=None)

    async def scenario():
        async with test_utils.TestServer(transcription_app(status=503)) as server:
            config = write_config(temp_data_dir, str(server.make_url("/transcribe")))
            return config, await run_upload(config, console, sample_audio_file, "Réunion")

    config, exit_code = asyncio.run(scenario())

    assert exit_code == 1
    assert "503" in console.export_text()

    task = create_task_store(config).list_all()[0]
    assert task.status is TaskStatus.ERROR

    assert run_tasks(config, console, dismiss=task.id, clear_completed=False) == 0
    assert create_task_store(config).list_all() == []
    assert run_tasks(config, console, dismiss=task.id, clear_completed=False) == 1
    assert run_tasks(config, console, dismiss="no such task", clear_completed=False) == 1
    assert "Unknown task: no such task" in console.export_text()
