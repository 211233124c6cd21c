from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path

import orjson
from filelock import FileLock, Timeout

from adapters.filesystem.json_utils import (
    dump_json_bytes,
    load_json_object,
    lock_path_for,
    write_bytes_atomic,
)
from adapters.memory.key_value_store import entry_size
from domain.errors import StorageQuotaExceededError, StorageUnavailableError


class JsonFileKeyValueStore:
    """All keys live in one JSON object on disk; every write replaces the file atomically."""

    def __init__(
        self,
        path: Path,
        *,
        capacity_bytes: int | None = None,
        lock_timeout: float = 10.0,
    ) -> None:
        self.path = path
        self.capacity_bytes = capacity_bytes
        self._lock = FileLock(str(lock_path_for(path)), timeout=lock_timeout)

    def get_item(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._locked():
            items = self._read()
            items[key] = value
            if self.capacity_bytes is not None:
                used = sum(entry_size(k, v) for k, v in items.items() if isinstance(v, str))
                if used > self.capacity_bytes:
                    msg = f"Storage quota exceeded while writing {key!r}"
                    raise StorageQuotaExceededError(msg)
            self._write(items)

    def remove_item(self, key: str) -> None:
        with self._locked():
            items = self._read()
            if items.pop(key, None) is not None:
                self._write(items)

    def keys(self) -> list[str]:
        return list(self._read())

    def _locked(self) -> AbstractContextManager[object]:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            return self._lock.acquire()
        except (OSError, Timeout) as exc:
            msg = f"Cannot lock store at {self.path}: {exc}"
            raise StorageUnavailableError(msg) from exc

    def _read(self) -> dict[str, str]:
        try:
            return load_json_object(self.path)
        except (OSError, orjson.JSONDecodeError) as exc:
            msg = f"Cannot read store at {self.path}: {exc}"
            raise StorageUnavailableError(msg) from exc

    def _write(self, items: dict[str, str]) -> None:
        try:
            write_bytes_atomic(self.path, dump_json_bytes(items, pretty=False))
        except OSError as exc:
            msg = f"Cannot write store at {self.path}: {exc}"
            raise StorageUnavailableError(msg) from exc
