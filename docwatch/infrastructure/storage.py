"""Key-value storage port used by the company repository and the alert throttler."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

LOGGER = logging.getLogger(__name__)


class StoreError(str, Enum):
    EMPTY = "empty"
    CORRUPT = "corrupt"


@dataclass(slots=True, frozen=True)
class StoreReadResult:
    """Value read from a store, or the reason nothing usable was found."""

    value: Any = None
    error: StoreError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class KeyValueStore(Protocol):
    """Persistence contract for JSON-serialisable values."""

    def get(self, key: str) -> StoreReadResult: ...

    def set(self, key: str, value: Any) -> None: ...

    def clear(self) -> None: ...


class InMemoryKeyValueStore:
    """Simple in-memory store for fast iteration and tests.

    Values are kept as serialised JSON so reads behave like the file store.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> StoreReadResult:
        raw = self._data.get(key)
        if raw is None:
            return StoreReadResult(error=StoreError.EMPTY)
        return _decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def set_raw(self, key: str, raw: str) -> None:
        self._data[key] = raw

    def clear(self) -> None:
        self._data.clear()


class JsonFileKeyValueStore:
    """Durable store keeping one ``<key>.json`` file per key."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self._root / f"{Path(key).name}.json"

    def get(self, key: str) -> StoreReadResult:
        path = self._path(key)
        if not path.exists():
            return StoreReadResult(error=StoreError.EMPTY)
        raw = path.read_text(encoding="utf-8")
        if not raw.strip():
            return StoreReadResult(error=StoreError.EMPTY)
        return _decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(json.dumps(value, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(path)

    def clear(self) -> None:
        for path in self._root.glob("*.json"):
            path.unlink()


def _decode(key: str, raw: str) -> StoreReadResult:
    try:
        return StoreReadResult(value=json.loads(raw))
    except json.JSONDecodeError as exc:
        LOGGER.warning("Stored value for %s is not valid JSON: %s", key, exc)
        return StoreReadResult(error=StoreError.CORRUPT)
