from __future__ import annotations

from typing import Protocol


class FileDownloader(Protocol):
    def download(self, payload: str, filename: str) -> None: ...
