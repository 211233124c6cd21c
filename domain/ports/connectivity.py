from __future__ import annotations

from typing import Protocol


class ConnectivityProbe(Protocol):
    async def check(self) -> bool: ...
