from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class KeyValueStore(Protocol):
    """Synchronous string store with a fixed capacity budget.

    Implementations raise ``StorageQuotaExceededError`` when a write would exceed the budget
    and ``StorageUnavailableError`` when the backing medium cannot be used at all.
    """

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> Sequence[str]: ...
