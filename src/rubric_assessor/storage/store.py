"""
Local persistence for saved assessments.

The whole assessment collection is one JSON array stored under one key of
a key-value backend, read and rewritten as a unit on every change.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from ..assessment.models import SavedAssessment
from ..config.models import DEFAULT_STORE_KEY
from ..utils.files import write_text_atomic
from ..utils.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-process key-value store."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """Key-value store kept as a single JSON object on disk.

    Every write replaces the file atomically. A file that cannot be read or
    decoded is treated as empty.
    """

    def __init__(self, path: Path):
        """Initialize the file store.

        Args:
            path: JSON file holding the key-value pairs (created on first write)
        """
        self.path = path

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error(f"Store file {self.path} is unreadable, treating it as empty: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.error(f"Store file {self.path} does not hold an object, treating it as empty")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _dump(self, data: dict[str, str]) -> None:
        write_text_atomic(self.path, json.dumps(data, ensure_ascii=False, indent=2))


class AssessmentStore:
    """Saved assessments, newest first, under one namespaced key."""

    def __init__(self, backend: KeyValueStore, key: str = DEFAULT_STORE_KEY):
        """Initialize the assessment store.

        Args:
            backend: Key-value store the collection is kept in
            key: Key holding the JSON array of records
        """
        self.backend = backend
        self.key = key

    def save(self, record: SavedAssessment) -> None:
        """Insert or replace ``record`` and move it to the front."""
        existing = [a for a in self.list() if a.id != record.id]
        self._write([record, *existing])
        logger.info(f"Saved assessment {record.id} for '{record.student_name}'")

    def list(self) -> list[SavedAssessment]:
        """All saved assessments, most recently saved first.

        Unreadable or malformed content yields an empty list.
        """
        try:
            raw = self.backend.get(self.key)
            if not raw:
                return []
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [SavedAssessment.from_dict(item) for item in data]
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            logger.error(f"Failed to parse assessments: {exc}")
            return []

    def delete(self, assessment_id: str) -> None:
        """Remove an assessment. Unknown ids are ignored."""
        existing = self.list()
        remaining = [a for a in existing if a.id != assessment_id]
        if len(remaining) == len(existing):
            logger.debug(f"No assessment with id {assessment_id} to delete")
            return
        self._write(remaining)
        logger.info(f"Deleted assessment {assessment_id}")

    def get_by_id(self, assessment_id: str) -> SavedAssessment | None:
        for record in self.list():
            if record.id == assessment_id:
                return record
        return None

    def _write(self, records: list[SavedAssessment]) -> None:
        payload = json.dumps([r.to_dict() for r in records], ensure_ascii=False)
        self.backend.set(self.key, payload)


def open_store(path: Path, key: str = DEFAULT_STORE_KEY) -> AssessmentStore:
    """Open the assessment store kept in the JSON file at ``path``."""
    return AssessmentStore(JsonFileStore(path.expanduser()), key=key)
