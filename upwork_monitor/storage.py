"""Key-value persistence for monitor state (JSON file with file locking)."""
from __future__ import annotations

import copy
import fcntl
import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from upwork_monitor.log import get_logger

log = get_logger(__name__)


class KeyValueStore(ABC):
    """JSON-serializable values by key. No transactions."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set_many(self, items: dict[str, Any]) -> None:
        ...

    def set(self, key: str, value: Any) -> None:
        self.set_many({key: value})


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return copy.deepcopy(self._data.get(key, default))

    def set_many(self, items: dict[str, Any]) -> None:
        # Round-trip through JSON so both stores reject the same values.
        self._data.update(json.loads(json.dumps(items)))

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class JsonFileStore(KeyValueStore):
    """Whole-file JSON document; each write rewrites the file atomically."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                _lock(f, exclusive=False)
                try:
                    data = json.load(f)
                finally:
                    _unlock(f)
        except (OSError, ValueError) as exc:
            log.error("Could not read state file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            log.error("State file %s does not hold a JSON object, ignoring it", self.path)
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set_many(self, items: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = self._read()
        data.update(items)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                _lock(f)
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
                _unlock(f)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
        os.replace(tmp, self.path)
