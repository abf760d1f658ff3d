"""LiveNotes: live meeting transcription with AI suggestions."""

__version__ = "0.1.0"
