from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta
from itertools import count

import orjson
import pytest

from adapters.memory.key_value_store import InMemoryKeyValueStore
from domain.errors import ImageStorageError
from domain.models import ImageMetadata, StorageKey
from domain.services.image_storage import ImageStore, default_image_id

from tests.helpers.clock import SteppingClock

PIXEL = "data:image/png;base64," + "A" * 100
METADATA = ImageMetadata(width=1, height=1, type="image/png")


def _sequential_ids() -> Callable[[datetime], str]:
    numbers = count(1)
    return lambda _moment: f"img-{next(numbers)}"


@pytest.fixture
def images(store: InMemoryKeyValueStore, clock: SteppingClock) -> ImageStore:
    return ImageStore(store, clock=clock, id_factory=_sequential_ids())


def _store(images: ImageStore, category: str = "hero", name: str = "a.png") -> str:
    return images.store_image(category=category, filename=name, data=PIXEL, metadata=METADATA)


def test_store_and_read_back(images: ImageStore, store: InMemoryKeyValueStore) -> None:
    image_id = _store(images)

    image = images.get_image_by_id(image_id)
    assert image is not None
    assert image.filename == "a.png"
    assert image.metadata.width == 1
    raw = orjson.loads(store.get_item(StorageKey.UPLOADED_IMAGES) or "[]")
    assert raw[0]["uploadDate"] == "2024-05-01T12:00:00+00:00"


def test_oldest_images_are_evicted_to_fit_budget(
    store: InMemoryKeyValueStore, clock: SteppingClock
) -> None:
    images = ImageStore(store, clock=clock, id_factory=_sequential_ids(), max_bytes=700)

    for name in ("one.png", "two.png", "three.png"):
        _store(images, name=name)

    assert [image.id for image in images.get_stored_images()] == ["img-2", "img-3"]
    assert images.get_storage_usage().used <= 700


def test_image_larger_than_budget_is_rejected(store: InMemoryKeyValueStore) -> None:
    images = ImageStore(store, max_bytes=200)

    with pytest.raises(ImageStorageError):
        _store(images)
    assert store.get_item(StorageKey.UPLOADED_IMAGES) is None


def test_filter_and_delete_by_category(images: ImageStore) -> None:
    first = _store(images, category="hero")
    _store(images, category="projects")
    _store(images, category="projects")

    assert [image.id for image in images.get_stored_images("hero")] == [first]
    assert images.delete_images_by_category("projects") == 2
    assert images.delete_image(first)
    assert not images.delete_image(first)
    assert images.get_stored_images() == []


def test_cleanup_old_images(images: ImageStore, clock: SteppingClock) -> None:
    _store(images, name="old.png")
    clock.advance(timedelta(days=40))
    recent = _store(images, name="new.png")

    assert images.cleanup_old_images(max_age_days=30) == 1
    assert [image.id for image in images.get_stored_images()] == [recent]


def test_storage_stats(images: ImageStore) -> None:
    oldest = _store(images, category="hero")
    newest = _store(images, category="about")

    stats = images.get_storage_stats()

    assert stats.total_images == 2
    assert set(stats.size_by_category) == {"hero", "about"}
    assert stats.oldest_image is not None and stats.oldest_image.id == oldest
    assert stats.newest_image is not None and stats.newest_image.id == newest
    assert stats.total_size == images.get_storage_usage().used
    assert 0 < images.get_storage_usage().percentage < 1


def test_import_skips_duplicates_and_incomplete_entries(images: ImageStore) -> None:
    existing = _store(images)
    payload = orjson.loads(images.export_images())
    payload.append({**payload[0], "id": "img-new"})
    payload.append({"id": "img-partial", "category": "hero"})

    assert images.import_images(orjson.dumps(payload).decode()) == 1
    assert [image.id for image in images.get_stored_images()] == [existing, "img-new"]


def test_import_rejects_non_list_payloads(images: ImageStore) -> None:
    with pytest.raises(ImageStorageError, match="Invalid import data format"):
        images.import_images('{"id": 1}')
    with pytest.raises(ImageStorageError):
        images.import_images("not json")


def test_validate_image_data_reports_broken_entries(
    images: ImageStore, store: InMemoryKeyValueStore
) -> None:
    _store(images)
    raw = orjson.loads(store.get_item(StorageKey.UPLOADED_IMAGES) or "[]")
    raw.append({"category": "hero", "filename": "x.png", "data": "http://x", "uploadDate": "1"})
    store.set_item(StorageKey.UPLOADED_IMAGES, orjson.dumps(raw).decode())

    report = images.validate_image_data()

    assert report.valid == 1
    assert report.invalid == 1
    assert report.errors == ["Image 1: missing ID, invalid data URL"]


def test_default_image_id_format() -> None:
    image_id = default_image_id(datetime.fromtimestamp(1.5).astimezone())

    prefix, millis, suffix = image_id.split("_")
    assert (prefix, millis) == ("img", "1500")
    assert len(suffix) == 9
