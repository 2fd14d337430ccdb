"""Synchronous key-value stores for small pieces of process-local state."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Mapping, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Durable byte store keyed by string."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...

    def remove(self, key: str) -> None: ...

    def update(self, values: Mapping[str, bytes], remove: Iterable[str] = ()) -> None:
        """Set several keys and drop others as one write."""
        ...


class MemoryStore:
    """In-memory store, mostly for tests."""

    def __init__(self, initial: dict[str, bytes] | None = None):
        self._data: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        self._data[key] = bytes(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def update(self, values: Mapping[str, bytes], remove: Iterable[str] = ()) -> None:
        for key in remove:
            self._data.pop(key, None)
        for key, value in values.items():
            self._data[key] = bytes(value)

    def keys(self) -> list[str]:
        return sorted(self._data)


class JsonFileStore:
    """Key-value store backed by a single JSON file.

    The whole file is rewritten on every change through a temp file and
    rename, so a crash mid-write leaves the previous contents intact.
    Values must be UTF-8 encodable bytes.
    """

    def __init__(self, path: Path):
        self.path = path

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected content in {self.path}")
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".kv-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> bytes | None:
        value = self._read_all().get(key)
        if value is None:
            return None
        return value.encode("utf-8")

    def set(self, key: str, value: bytes) -> None:
        self.update({key: value})

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)

    def update(self, values: Mapping[str, bytes], remove: Iterable[str] = ()) -> None:
        data = self._read_all()
        before = dict(data)
        for key in remove:
            data.pop(key, None)
        for key, value in values.items():
            data[key] = value.decode("utf-8")
        if data != before:
            self._write_all(data)
