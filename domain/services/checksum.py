from __future__ import annotations

import zlib
from typing import Any, Protocol

import orjson

_FNV_OFFSET_BASIS = 0x811C9DC5
_FNV_PRIME = 0x01000193


class Checksum(Protocol):
    def digest(self, payload: bytes) -> str: ...


class Fnv1aChecksum:
    """32-bit FNV-1a; detects accidental corruption, offers no tamper resistance."""

    def digest(self, payload: bytes) -> str:
        value = _FNV_OFFSET_BASIS
        for byte in payload:
            value ^= byte
            value = (value * _FNV_PRIME) & 0xFFFFFFFF
        return f"{value:08x}"


class Crc32Checksum:
    def digest(self, payload: bytes) -> str:
        return f"{zlib.crc32(payload) & 0xFFFFFFFF:08x}"


def canonical_json(data: Any) -> bytes:
    return orjson.dumps(data, option=orjson.OPT_SORT_KEYS)


def compute_data_checksum(data: Any, checksum: Checksum | None = None) -> str:
    return (checksum or Fnv1aChecksum()).digest(canonical_json(data))
