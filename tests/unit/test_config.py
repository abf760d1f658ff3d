"""Unit tests for LiveNotesConfig."""

from pathlib import Path

import pytest
import yaml

from livenotes.config import LiveNotesConfig, SamplingSettings, TaskStoreSettings
from livenotes.transcription.dedup import FRENCH_LEXICON


def write_config(directory: str, data, name: str = "livenotes.yaml") -> str:
    path = Path(directory) / name
    with open(path, 'w', encoding='utf-8') as f:
        if isinstance(data, str):
            f.write(data)
        else:
            yaml.safe_dump(data, f, allow_unicode=True)
    return str(path)


@pytest.mark.unit
class TestLiveNotesConfig:
    """Test cases for YAML configuration loading."""

    def test_missing_file(self, temp_data_dir):
        with pytest.raises(FileNotFoundError):
            LiveNotesConfig(str(Path(temp_data_dir) / "absent.yaml"))

    def test_empty_file(self, temp_data_dir):
        with pytest.raises(ValueError):
            LiveNotesConfig(write_config(temp_data_dir, ""))

    def test_invalid_yaml(self, temp_data_dir):
        with pytest.raises(ValueError):
            LiveNotesConfig(write_config(temp_data_dir, "sampling: [unclosed"))

    def test_non_mapping_yaml(self, temp_data_dir):
        with pytest.raises(ValueError):
            LiveNotesConfig(write_config(temp_data_dir, "- a\n- b\n"))

    def test_get_and_set_dot_paths(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {"openai": {"model": "gpt-4o"}}))

        assert config.get("openai.model") == "gpt-4o"
        assert config.get("openai.api_key", "none") == "none"
        assert config.get("missing.deeply.nested") is None

        config.set("tasks.max_age_seconds", 60)
        assert config.get("tasks.max_age_seconds") == 60

    def test_relative_paths_resolved(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {
            "storage": {"data_directory": "data"},
            "logging": {"file_path": "logs/app.log"},
            "tasks": {"storage_directory": "/absolute/tasks"},
        }))

        assert config.get("storage.data_directory") == str(Path(temp_data_dir) / "data")
        assert config.get("logging.file_path") == str(Path(temp_data_dir) / "logs/app.log")
        assert config.get("tasks.storage_directory") == "/absolute/tasks"

    def test_sampling_defaults(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {"openai": {"model": "gpt-4o"}}))
        assert config.get_sampling_settings() == SamplingSettings()

    def test_sampling_overrides(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {
            "sampling": {"window_seconds": 10, "tick_interval_ms": 5000},
            "suggestions": {"similarity_threshold": 0.6},
        }))

        settings = config.get_sampling_settings()
        assert settings.window_seconds == 10
        assert settings.tick_interval_ms == 5000
        assert settings.min_clip_bytes == 5000
        assert settings.similarity_threshold == 0.6

    def test_task_store_settings_default_directory(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {"storage": {"data_directory": "data"}}))

        settings = config.get_task_store_settings()

        assert settings.storage_directory == str(Path(temp_data_dir) / "data" / "tasks")
        assert settings.max_age_seconds == TaskStoreSettings().max_age_seconds
        assert settings.stale_processing_seconds == 120.0

    def test_task_store_settings_overrides(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {
            "tasks": {"storage_directory": "jobs", "max_age_seconds": 600, "stale_processing_seconds": 60},
        }))

        settings = config.get_task_store_settings()
        assert settings.storage_directory == str(Path(temp_data_dir) / "jobs")
        assert settings.max_age_seconds == 600.0
        assert settings.stale_processing_seconds == 60.0

    def test_default_lexicon(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {"openai": {"model": "gpt-4o"}}))
        assert config.get_lexicon() is FRENCH_LEXICON

    def test_custom_lexicon(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {
            "suggestions": {"lexicon": {"prefixes": ["Could you "], "stopwords": ["the", "a"]}},
        }))

        lexicon = config.get_lexicon()
        assert lexicon.prefixes == ("could you ",)
        assert lexicon.stopwords == frozenset({"the", "a"})

    def test_google_credentials_required(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {"openai": {"model": "gpt-4o"}}))
        with pytest.raises(ValueError):
            config.get_google_credentials_path()

    def test_google_credentials_must_exist(self, temp_data_dir):
        config = LiveNotesConfig(write_config(temp_data_dir, {
            "google_cloud": {"credentials_path": "missing.json"},
        }))
        with pytest.raises(FileNotFoundError):
            config.get_google_credentials_path()

    def test_example_config_loads(self):
        example = Path(__file__).resolve().parents[2] / "livenotes.example.yaml"
        config = LiveNotesConfig(str(example))

        assert config.get_sampling_settings() == SamplingSettings()
        assert config.get("transcription.backend") == "http"
