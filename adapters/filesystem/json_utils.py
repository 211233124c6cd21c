from __future__ import annotations

from pathlib import Path
from typing import Any

import orjson


def load_json_object(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    raw = path.read_bytes()
    if not raw.strip():
        return {}
    data = orjson.loads(raw)
    return data if isinstance(data, dict) else {}


def dump_json_bytes(payload: Any, *, pretty: bool = True) -> bytes:
    return orjson.dumps(payload, option=orjson.OPT_INDENT_2 if pretty else 0)


def write_bytes_atomic(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(f"{path.suffix}.tmp")
    tmp_path.write_bytes(payload)
    tmp_path.replace(path)



def lock_path_for(path: Path) -> Path:
    return path.with_suffix(f"{path.suffix}.lock")
