"""Simple YAML configuration loader for LiveNotes."""

import os
import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..transcription.dedup import CanonicalizationLexicon, FRENCH_LEXICON

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "livenotes.yaml"

# Keys holding paths that are resolved relative to the config file
_PATH_KEYS = (
    ('google_cloud', 'credentials_path'),
    ('storage', 'data_directory'),
    ('logging', 'file_path'),
    ('tasks', 'storage_directory'),
)


@dataclass(frozen=True)
class SamplingSettings:
    """Tuning of the live sampling loop."""
    window_seconds: int = 15
    tick_interval_ms: int = 15000
    min_clip_bytes: int = 5000
    min_text_chars: int = 6
    recent_window_size: int = 2
    similarity_threshold: float = 0.8


@dataclass(frozen=True)
class TaskStoreSettings:
    """Location and garbage collection bounds of the background task store."""
    storage_directory: str = "data/tasks"
    max_age_seconds: float = 300.0
    stale_processing_seconds: float = 120.0


class LiveNotesConfig:
    """LiveNotes configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, uses livenotes.yaml
                        in the current directory.
        """
        self.config_file = Path(config_path or DEFAULT_CONFIG_FILE)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not config:
            raise ValueError("Configuration file is empty")
        if not isinstance(config, dict):
            raise ValueError("Configuration file must contain a mapping at top level")

        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        for section, key in _PATH_KEYS:
            if section in config and isinstance(config[section], dict) and key in config[section]:
                value = config[section][key]
                if value and not os.path.isabs(value):
                    config[section][key] = str(config_dir / value)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'sampling.window_seconds').

        Args:
            key_path: Dot-separated key path
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'tasks.max_age_seconds')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_sampling_settings(self) -> SamplingSettings:
        """Build sampling loop settings, falling back to defaults per key."""
        defaults = SamplingSettings()
        return SamplingSettings(
            window_seconds=int(self.get('sampling.window_seconds', defaults.window_seconds)),
            tick_interval_ms=int(self.get('sampling.tick_interval_ms', defaults.tick_interval_ms)),
            min_clip_bytes=int(self.get('sampling.min_clip_bytes', defaults.min_clip_bytes)),
            min_text_chars=int(self.get('sampling.min_text_chars', defaults.min_text_chars)),
            recent_window_size=int(self.get('sampling.recent_window_size', defaults.recent_window_size)),
            similarity_threshold=float(
                self.get('suggestions.similarity_threshold', defaults.similarity_threshold)),
        )

    def get_task_store_settings(self) -> TaskStoreSettings:
        """Build task store settings; the storage directory defaults under the data directory."""
        defaults = TaskStoreSettings()
        storage_dir = self.get('tasks.storage_directory')
        if not storage_dir:
            storage_dir = str(Path(self.get_data_directory()) / "tasks")

        settings = TaskStoreSettings(
            storage_directory=storage_dir,
            max_age_seconds=float(self.get('tasks.max_age_seconds', defaults.max_age_seconds)),
            stale_processing_seconds=float(
                self.get('tasks.stale_processing_seconds', defaults.stale_processing_seconds)),
        )
        if settings.stale_processing_seconds > settings.max_age_seconds:
            logger.warning(
                f"tasks.stale_processing_seconds ({settings.stale_processing_seconds}) exceeds "
                f"tasks.max_age_seconds ({settings.max_age_seconds}); the stale bound has no effect")
        return settings

    def get_lexicon(self) -> CanonicalizationLexicon:
        """Get the canonicalization word lists, defaulting to the French lexicon."""
        lexicon = self.get('suggestions.lexicon')
        if not lexicon:
            return FRENCH_LEXICON

        prefixes = lexicon.get('prefixes', FRENCH_LEXICON.prefixes)
        stopwords = lexicon.get('stopwords', FRENCH_LEXICON.stopwords)
        return CanonicalizationLexicon(prefixes=tuple(prefixes), stopwords=frozenset(stopwords))

    def get_google_credentials_path(self) -> str:
        """Get Google credentials path - CRASHES if not found."""
        creds_path = self.get('google_cloud.credentials_path')
        if not creds_path:
            raise ValueError("Google credentials path not configured in livenotes.yaml")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")

        return str(creds_file.absolute())

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())
