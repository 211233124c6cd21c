from __future__ import annotations

from domain.errors import StorageQuotaExceededError, StorageUnavailableError


def entry_size(key: str, value: str) -> int:
    return len(key.encode("utf-8")) + len(value.encode("utf-8"))


class InMemoryKeyValueStore:
    """Process-local store with an optional byte budget over keys and values."""

    def __init__(
        self,
        initial: dict[str, str] | None = None,
        *,
        capacity_bytes: int | None = None,
        available: bool = True,
    ) -> None:
        self._items: dict[str, str] = dict(initial or {})
        self.capacity_bytes = capacity_bytes
        self.available = available

    def get_item(self, key: str) -> str | None:
        self._ensure_available()
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._ensure_available()
        if self.capacity_bytes is not None:
            projected = self.used_bytes() - self._size_of(key) + entry_size(key, value)
            if projected > self.capacity_bytes:
                msg = f"Storage quota exceeded while writing {key!r}"
                raise StorageQuotaExceededError(msg)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._ensure_available()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        self._ensure_available()
        return list(self._items)

    def used_bytes(self) -> int:
        return sum(entry_size(key, value) for key, value in self._items.items())

    def _size_of(self, key: str) -> int:
        value = self._items.get(key)
        return 0 if value is None else entry_size(key, value)

    def _ensure_available(self) -> None:
        if not self.available:
            msg = "Storage is not available"
            raise StorageUnavailableError(msg)
