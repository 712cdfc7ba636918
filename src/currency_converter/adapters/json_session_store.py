"""File-backed key-value slot for the session snapshot."""

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from currency_converter.services.sessions import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class JsonFileSessionStore(SessionStore):
    """Stores string values under string keys in a single JSON file."""

    path: Path
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def get(self, key: str) -> str | None:
        """Return the value stored under a key, if present."""
        with self._lock:
            value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        """Store a value under a key, replacing any previous value."""
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        """Remove a key; missing keys are ignored."""
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            # ValueError covers both JSONDecodeError and UnicodeDecodeError.
            logger.warning("Ignoring unreadable session file %s", self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.path)
