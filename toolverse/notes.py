"""Local notes: a JSON file of string keys, the ``notes`` key holding an ordered list."""
import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, List

from loguru import logger


NOTES_KEY = "notes"


class KeyValueStore:
    """
    String-keyed store persisted as one JSON object.

    The file is read once on construction and rewritten whole on every set.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store {self.path}: top level is not an object")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)


class NotesStore:
    """Ordered list of note strings kept JSON-encoded under one key."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._notes: List[str] = self._decode(store.get(NOTES_KEY))

    @staticmethod
    def _decode(raw: Any) -> List[str]:
        if not raw:
            return []
        try:
            notes = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupt notes entry: {e}")
            return []
        if not isinstance(notes, list):
            return []
        return [n for n in notes if isinstance(n, str)]

    def _save(self) -> None:
        self.store.set(NOTES_KEY, json.dumps(self._notes, ensure_ascii=False))

    def list(self) -> List[str]:
        return list(self._notes)

    def add(self, text: str) -> bool:
        """Append a note; blank notes are ignored. Returns True if added."""
        if not text.strip():
            return False
        self._notes.append(text)
        self._save()
        return True

    def delete(self, index: int) -> str:
        """
        Remove the note at ``index``.

        Raises:
            IndexError: no note at that position
        """
        if not 0 <= index < len(self._notes):
            raise IndexError(f"No note at index {index}")
        removed = self._notes.pop(index)
        self._save()
        return removed


def open_notes(path: str) -> NotesStore:
    logger.info(f"Notes store: {path}")
    return NotesStore(KeyValueStore(path))
