"""Durable key-value persistence for background task records."""

import os
import re
import json
import logging
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_VALID_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")

Record = Dict[str, Any]


class KeyValuePersistence(ABC):
    """Storage medium holding one JSON-compatible record per key."""

    @abstractmethod
    def load_all(self) -> Dict[str, Record]:
        """Read every stored record."""

    @abstractmethod
    def get(self, key: str) -> Optional[Record]:
        """Read one record, or None if absent."""

    @abstractmethod
    def put(self, key: str, record: Record) -> None:
        """Insert or replace one record atomically."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete one record. Returns False if it did not exist."""


class InMemoryPersistence(KeyValuePersistence):
    """Process-local persistence, for tests and ephemeral stores."""

    def __init__(self):
        self._records: Dict[str, Record] = {}
        self._lock = threading.Lock()

    def load_all(self) -> Dict[str, Record]:
        with self._lock:
            return {key: dict(record) for key, record in self._records.items()}

    def get(self, key: str) -> Optional[Record]:
        with self._lock:
            record = self._records.get(key)
            return dict(record) if record is not None else None

    def put(self, key: str, record: Record) -> None:
        with self._lock:
            self._records[key] = dict(record)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._records.pop(key, None) is not None


class JsonDirectoryPersistence(KeyValuePersistence):
    """One JSON file per key in a directory.

    Each write goes to a temporary file in the same directory and is moved
    into place with `os.replace`, so a record is either fully old or fully
    new and writers of different keys never touch each other's files.
    """

    def __init__(self, directory: str):
        """Initialize persistence directory.

        Args:
            directory: Directory holding the records; created if missing
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"JsonDirectoryPersistence initialized with directory: {self.directory}")

    def _path_for(self, key: str) -> Path:
        if not _VALID_KEY.match(key):
            raise ValueError(f"Invalid record key: {key!r}")
        return self.directory / f"{key}.json"

    def _read(self, path: Path) -> Optional[Record]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable record {path.name}: {e}")
            return None

        if not isinstance(record, dict):
            logger.warning(f"Skipping malformed record {path.name}")
            return None
        return record

    def load_all(self) -> Dict[str, Record]:
        records = {}
        for path in sorted(self.directory.glob("*.json")):
            record = self._read(path)
            if record is not None:
                records[path.stem] = record
        return records

    def get(self, key: str) -> Optional[Record]:
        return self._read(self._path_for(key))

    def put(self, key: str, record: Record) -> None:
        path = self._path_for(key)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise

    def delete(self, key: str) -> bool:
        if not _VALID_KEY.match(key):
            return False
        try:
            self._path_for(key).unlink()
            return True
        except FileNotFoundError:
            return False
