"""Main application entry point for LiveNotes."""

import sys
import asyncio
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import LiveNotesConfig
from .models.tasks import TaskStatus
from .services import RecordingSession, UploadResult, UploadTranscriptionJob
from .storage import BackgroundTaskStore, JsonDirectoryPersistence, MeetingArchive
from .transcription import (
    AbstractSuggestionAnalyzer,
    AbstractSummarizer,
    AbstractTranscriptionBackend,
    ChatGPTEngine,
    ChatGPTSuggestionAnalyzer,
    ChatGPTSummarizer,
    HttpTranscriptionBackend,
)
from .ui import LiveTranscriptView, TaskPanel

logger = logging.getLogger(__name__)


def setup_logging(config: LiveNotesConfig, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/livenotes.log')
    console_output = config.get('logging.console_output', True)

    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("LiveNotes application starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


def create_transcriber(config: LiveNotesConfig) -> AbstractTranscriptionBackend:
    """Build the transcription backend selected by `transcription.backend`."""
    backend = config.get('transcription.backend', 'http')
    language = config.get('transcription.language', 'fr-FR')

    if backend == 'google':
        from .transcription.google_backend import GoogleSpeechBackend
        google = GoogleSpeechBackend(
            credentials_path=config.get_google_credentials_path(),
            sample_rate=config.get('audio.sample_rate', 16000),
            language=config.get('google_cloud.language_code', language),
            use_enhanced=config.get('google_cloud.use_enhanced', True),
            enable_automatic_punctuation=config.get('google_cloud.enable_automatic_punctuation', True),
            request_timeout=config.get('google_cloud.request_timeout', 10.0),
        )
        google.initialize()
        return google

    if backend == 'http':
        return HttpTranscriptionBackend(
            endpoint=config.get('transcription.http.endpoint'),
            long_endpoint=config.get('transcription.http.long_endpoint'),
            api_key=config.get('transcription.http.api_key'),
            language=language,
            timeout_seconds=config.get('transcription.http.timeout_seconds'),
        )

    raise ValueError(f"Unknown transcription backend: {backend}")


def create_chatgpt_engine(config: LiveNotesConfig) -> Optional[ChatGPTEngine]:
    api_key = config.get('openai.api_key')
    if not api_key:
        logger.warning("openai.api_key not configured - suggestions and summaries disabled")
        return None
    return ChatGPTEngine(api_key=api_key, model=config.get('openai.model', 'gpt-4o-mini'))


def create_analyzer(config: LiveNotesConfig) -> Optional[AbstractSuggestionAnalyzer]:
    engine = create_chatgpt_engine(config)
    return ChatGPTSuggestionAnalyzer(engine) if engine else None


def create_summarizer(config: LiveNotesConfig) -> Optional[AbstractSummarizer]:
    engine = create_chatgpt_engine(config)
    return ChatGPTSummarizer(engine) if engine else None


def create_task_store(config: LiveNotesConfig) -> BackgroundTaskStore:
    settings = config.get_task_store_settings()
    return BackgroundTaskStore(
        JsonDirectoryPersistence(settings.storage_directory),
        max_age_seconds=settings.max_age_seconds,
        stale_processing_seconds=settings.stale_processing_seconds,
    )


async def run_record(config: LiveNotesConfig, console: Console, duration: Optional[int]) -> int:
    """Record from the microphone until the duration elapses or Ctrl+C."""
    # PyAudio ships in the `microphone` extra
    from .audio.capture import MicrophoneCapture

    capture = MicrophoneCapture(
        sample_rate=config.get('audio.sample_rate', 16000),
        chunk_size=config.get('audio.chunk_size', 1024),
        channels=config.get('audio.channels', 1),
        buffer_seconds=config.get('audio.buffer_seconds', 60.0),
    )
    transcriber = create_transcriber(config)
    session = RecordingSession(
        audio_source=capture,
        transcriber=transcriber,
        analyzer=create_analyzer(config),
        settings=config.get_sampling_settings(),
        lexicon=config.get_lexicon(),
    )
    view = LiveTranscriptView(console=console)

    capture.start_recording()
    session_id = session.start()
    console.print(f"[bold red]Recording[/bold red] session {session_id} - press Ctrl+C to stop")

    try:
        if duration:
            await asyncio.sleep(duration)
        else:
            await asyncio.Event().wait()
    finally:
        await session.stop(drain_timeout=config.get('sampling.drain_timeout_seconds', 30.0))
        capture.stop_recording()
        await transcriber.close()

        report = session.finalize()
        view.show_report(report)
        view.close()

        meeting_id = MeetingArchive(config.get_data_directory()).save_session_report(report)
        console.print(f"Saved meeting [bold]{meeting_id}[/bold]")

    return 0


async def run_upload(config: LiveNotesConfig, console: Console, path: str, title: Optional[str]) -> int:
    """Transcribe and summarize an audio file as a tracked background task."""
    store = create_task_store(config)
    archive = MeetingArchive(config.get_data_directory())
    transcriber = create_transcriber(config)

    def save_meeting(result: UploadResult) -> str:
        return archive.save_upload(result.title, result.transcript, result.summary, result.source_path)

    job = UploadTranscriptionJob(store, transcriber, create_summarizer(config), result_sink=save_meeting)
    panel = TaskPanel(store, console)
    try:
        task_id = await job.run(path, title)
    finally:
        await transcriber.close()

    panel.render()
    panel.close()

    task = store.get(task_id)
    return 0 if task is not None and task.status is TaskStatus.COMPLETED else 1


def run_tasks(config: LiveNotesConfig, console: Console, dismiss: Optional[str], clear_completed: bool) -> int:
    """Show background tasks, optionally dismissing some first."""
    store = create_task_store(config)
    panel = TaskPanel(store, console)

    exit_code = 0
    if dismiss and not panel.dismiss(dismiss):
        console.print(f"[red]Unknown task: {dismiss}[/red]")
        exit_code = 1
    if clear_completed:
        console.print(f"Cleared {store.clear_completed()} completed task(s)")

    panel.render()
    panel.close()
    return exit_code


def main() -> None:
    """Main entry point for LiveNotes application."""
    parser = argparse.ArgumentParser(
        description="LiveNotes - Live meeting transcription with AI suggestions"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: looks for livenotes.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="LiveNotes v0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    record_parser = subparsers.add_parser("record", help="Record and transcribe a live meeting")
    record_parser.add_argument(
        "--duration",
        type=int,
        help="Stop automatically after this many seconds (default: until Ctrl+C)"
    )

    upload_parser = subparsers.add_parser("upload", help="Transcribe and summarize an audio file")
    upload_parser.add_argument("file", help="Audio file to transcribe")
    upload_parser.add_argument("--title", type=str, help="Meeting title (default: AI-generated)")

    tasks_parser = subparsers.add_parser("tasks", help="Show background tasks")
    tasks_parser.add_argument("--dismiss", type=str, metavar="TASK_ID", help="Remove a finished task")
    tasks_parser.add_argument("--clear-completed", action="store_true", help="Remove all completed tasks")

    args = parser.parse_args()

    console = Console()
    try:
        config = LiveNotesConfig(args.config)
        setup_logging(config, args.log_level or config.get('logging.level', 'INFO'))

        if args.command == "record":
            exit_code = asyncio.run(run_record(config, console, args.duration))
        elif args.command == "upload":
            exit_code = asyncio.run(run_upload(config, console, args.file, args.title))
        else:
            exit_code = run_tasks(config, console, args.dismiss, args.clear_completed)
    except KeyboardInterrupt:
        console.print("\nGoodbye!")
        exit_code = 0
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        logger.error(f"Application error: {e}", exc_info=True)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
