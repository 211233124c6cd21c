from __future__ import annotations

import logging
from pathlib import Path

from adapters.filesystem.json_utils import write_bytes_atomic

logger = logging.getLogger(__name__)


class DirectoryDownloader:
    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def download(self, payload: str, filename: str) -> None:
        target = self.directory / Path(filename).name
        write_bytes_atomic(target, payload.encode("utf-8"))
        logger.info("Saved %s", target)
