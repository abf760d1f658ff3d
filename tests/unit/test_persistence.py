"""Unit tests for task record persistence."""

import json
from pathlib import Path

import pytest

from livenotes.storage.persistence import InMemoryPersistence, JsonDirectoryPersistence


@pytest.mark.unit
class TestJsonDirectoryPersistence:
    """Test cases for the one-file-per-record directory store."""

    def test_creates_directory(self, temp_data_dir):
        directory = Path(temp_data_dir) / "nested" / "tasks"
        JsonDirectoryPersistence(str(directory))
        assert directory.is_dir()

    def test_put_get_delete(self, temp_data_dir):
        persistence = JsonDirectoryPersistence(temp_data_dir)

        persistence.put("task_1_abc", {"id": "task_1_abc", "progress_text": "Transcription…"})

        assert persistence.get("task_1_abc") == {"id": "task_1_abc", "progress_text": "Transcription…"}
        assert persistence.delete("task_1_abc") is True
        assert persistence.get("task_1_abc") is None
        assert persistence.delete("task_1_abc") is False

    def test_put_replaces_record(self, temp_data_dir):
        persistence = JsonDirectoryPersistence(temp_data_dir)
        persistence.put("task_1_abc", {"status": "processing"})
        persistence.put("task_1_abc", {"status": "completed"})

        assert persistence.get("task_1_abc") == {"status": "completed"}
        assert sorted(p.name for p in Path(temp_data_dir).iterdir()) == ["task_1_abc.json"]

    def test_load_all(self, temp_data_dir):
        persistence = JsonDirectoryPersistence(temp_data_dir)
        persistence.put("a", {"n": 1})
        persistence.put("b", {"n": 2})

        assert persistence.load_all() == {"a": {"n": 1}, "b": {"n": 2}}

    def test_unreadable_records_skipped(self, temp_data_dir):
        persistence = JsonDirectoryPersistence(temp_data_dir)
        persistence.put("good", {"n": 1})
        (Path(temp_data_dir) / "broken.json").write_text("{not json", encoding="utf-8")
        (Path(temp_data_dir) / "list.json").write_text(json.dumps([1, 2]), encoding="utf-8")

        assert persistence.load_all() == {"good": {"n": 1}}
        assert persistence.get("broken") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", "with space"])
    def test_invalid_keys_rejected(self, temp_data_dir, key):
        persistence = JsonDirectoryPersistence(temp_data_dir)
        with pytest.raises(ValueError):
            persistence.put(key, {})

    @pytest.mark.parametrize("key", ["../escape", "with space"])
    def test_delete_invalid_key_is_missing(self, temp_data_dir, key):
        persistence = JsonDirectoryPersistence(temp_data_dir)
        assert persistence.delete(key) is False


@pytest.mark.unit
class TestInMemoryPersistence:
    """Test cases for the process-local store."""

    def test_records_are_copied(self):
        persistence = InMemoryPersistence()
        record = {"status": "processing"}
        persistence.put("task", record)

        record["status"] = "mutated"
        persistence.get("task")["status"] = "mutated too"

        assert persistence.get("task") == {"status": "processing"}

    def test_delete_missing(self):
        assert InMemoryPersistence().delete("missing") is False
