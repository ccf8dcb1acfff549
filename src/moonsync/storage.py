"""Synchronous string key/value storage."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from moonsync.exceptions import MoonsyncStorageError

_logger = logging.getLogger(__name__)


class KeyValueStorage(Protocol):
    """Structural storage interface.

    Mirrors browser ``localStorage``: string keys, string values, no
    expiry.  Test doubles only need these two methods.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryStorage:
    """Process-local storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class JsonFileStorage:
    """Storage backed by a single JSON object file.

    Every :meth:`set` rewrites the file atomically (temp file + rename).
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise MoonsyncStorageError(f"Cannot read {self._path}: {exc}") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise MoonsyncStorageError(f"Invalid JSON in {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise MoonsyncStorageError(f"{self._path} does not contain a JSON object")
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, separators=(",", ":"))
            os.replace(tmp_name, self._path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise MoonsyncStorageError(f"Cannot write {self._path}: {exc}", key=key) from exc
        _logger.debug("Stored key=%s path=%s", key, self._path)


def load_json(storage: KeyValueStorage, key: str) -> Any:
    """Decode the JSON value stored at *key*; ``None`` when absent."""
    text = storage.get(key)
    if text is None:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise MoonsyncStorageError(f"Invalid JSON stored at {key!r}: {exc}", key=key) from exc


def dump_json(storage: KeyValueStorage, key: str, value: Any) -> None:
    storage.set(key, json.dumps(value, separators=(",", ":")))
