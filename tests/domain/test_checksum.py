from __future__ import annotations

from domain.services.checksum import (
    Crc32Checksum,
    Fnv1aChecksum,
    canonical_json,
    compute_data_checksum,
)

from tests.helpers.content import full_data


def test_fnv1a_known_vectors() -> None:
    fnv = Fnv1aChecksum()

    assert fnv.digest(b"") == "811c9dc5"
    assert fnv.digest(b"a") == "e40c292c"


def test_crc32_digest_is_zero_padded_hex() -> None:
    assert Crc32Checksum().digest(b"") == "00000000"
    assert len(Crc32Checksum().digest(b"payload")) == 8


def test_canonical_json_ignores_key_order() -> None:
    assert canonical_json({"b": 1, "a": {"y": 2, "x": 1}}) == b'{"a":{"x":1,"y":2},"b":1}'


def test_checksum_is_sensitive_to_single_character() -> None:
    data = full_data()
    tampered = full_data(heroContent={**data["heroContent"], "name": "Minh Nguyeo"})

    assert compute_data_checksum(data) != compute_data_checksum(tampered)
    assert compute_data_checksum(data) == compute_data_checksum(full_data())


def test_checksum_algorithm_is_pluggable() -> None:
    data = full_data()

    assert compute_data_checksum(data, Crc32Checksum()) != compute_data_checksum(data)
