"""
Key-value persistence used to survive application restarts.

The dashboard persists a handful of independent keys (last reading, alarm
ledger, acknowledged ids, settings, force-stop flag). Each key is read once at
startup (absent key -> caller's default) and rewritten whenever the owning
state changes.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """
    Protocol interface for persisted state.

    Values must be JSON-serializable.
    """

    def get(self, key: str, default: Any = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


@dataclass
class InMemoryKeyValueStore:
    """
    Volatile store, used when no state file is configured and in tests.
    """

    data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonFileKeyValueStore:
    """
    Key-value store backed by a single JSON document on disk.

    Notes
    -----
    - The whole document is rewritten on every ``set`` through a temporary
      file and ``os.replace``, so a crash never leaves a truncated file.
    - An unreadable or corrupt file is logged and treated as empty.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._flush()

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read state file %s: %r", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("State file %s does not contain a JSON object, ignoring it", self._path)
            return {}
        return data

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self._path.name, suffix=".tmp", dir=str(self._path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2)
            os.replace(tmp, self._path)
        except OSError:
            logger.exception("Could not write state file %s", self._path)
            try:
                os.unlink(tmp)
            except OSError:
                pass
