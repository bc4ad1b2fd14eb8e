"""
Key-value stores and JSON document persistence.

State is kept in memory and each mutation rewrites the whole JSON document.
A failed write is logged and the in-memory value stays authoritative for the
rest of the process.
"""

import json
import logging
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from .errors import PersistenceWriteError

logger = logging.getLogger(__name__)

_MISSING = object()


def read_json(path: Path, default: Any = None) -> Any:
    """Read a JSON document, returning ``default`` when missing or unreadable."""
    if not path.exists():
        return default
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        logger.exception(f"Could not read {path}, starting from defaults")
        return default


def write_json(path: Path, data: Any) -> None:
    """Overwrite a JSON document (write to a temp file, then replace)."""
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        tmp_path.replace(path)
    except (OSError, TypeError, ValueError) as e:
        raise PersistenceWriteError(f"Could not write {path}: {e}") from e


def save_json(path: Path, data: Any) -> bool:
    """Write a JSON document; failures are logged and reported as False."""
    try:
        write_json(path, data)
        return True
    except PersistenceWriteError:
        logger.exception("State write failed, keeping in-memory value")
        return False


class KeyValueStore(ABC):
    """Minimal store keyed by client id."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove a key; returns True if it existed."""
        pass

    @abstractmethod
    def items(self) -> Iterator[tuple[str, Any]]:
        pass

    def __contains__(self, key: object) -> bool:
        return self.get(str(key), _MISSING) is not _MISSING

    def __len__(self) -> int:
        return sum(1 for _ in self.items())


class MemoryStore(KeyValueStore):
    """Process-lifetime store; evicts the oldest key when ``max_entries`` is set."""

    def __init__(self, max_entries: int | None = None):
        self.max_entries = max_entries
        self._data: OrderedDict[str, Any] = OrderedDict()

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._data.move_to_end(key)
        if self.max_entries and len(self._data) > self.max_entries:
            evicted, _ = self._data.popitem(last=False)
            logger.debug(f"Evicted oldest entry {evicted}")

    def delete(self, key: str) -> bool:
        return self._data.pop(key, _MISSING) is not _MISSING

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(list(self._data.items()))


class JsonFileStore(KeyValueStore):
    """Durable string-keyed map persisted as one JSON object."""

    def __init__(self, path: Path):
        self.path = path
        data = read_json(path, default={})
        if not isinstance(data, dict):
            logger.warning(f"{path} is not a JSON object, ignoring its contents")
            data = {}
        self._data: dict[str, Any] = data
        logger.info(f"Loaded {len(self._data)} entries from {path}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        save_json(self.path, self._data)

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        save_json(self.path, self._data)
        return True

    def items(self) -> Iterator[tuple[str, Any]]:
        return iter(list(self._data.items()))
