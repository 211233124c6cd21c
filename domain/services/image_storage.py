from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

import orjson
from pydantic import ValidationError

from domain.errors import ImageStorageError
from domain.models import ImageMetadata, StorageKey, StoredImage
from domain.ports.storage import KeyValueStore

MAX_IMAGE_STORAGE_BYTES = 4 * 1024 * 1024

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[datetime], str]


def default_image_id(moment: datetime) -> str:
    return f"img_{int(moment.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class ImageStorageStats:
    total_images: int
    total_size: int
    size_by_category: dict[str, int] = field(default_factory=dict)
    oldest_image: StoredImage | None = None
    newest_image: StoredImage | None = None


@dataclass(frozen=True)
class StorageUsage:
    used: int
    total: int

    @property
    def percentage(self) -> float:
        return self.used / self.total * 100 if self.total else 0.0


@dataclass
class ImageIntegrityReport:
    valid: int = 0
    invalid: int = 0
    errors: list[str] = field(default_factory=list)


class ImageStore:
    """Uploaded images kept as one JSON array under a single key, bounded by a byte budget."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock | None = None,
        id_factory: IdFactory = default_image_id,
        max_bytes: int = MAX_IMAGE_STORAGE_BYTES,
        key: str = StorageKey.UPLOADED_IMAGES,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(UTC))
        self._id_factory = id_factory
        self._max_bytes = max_bytes
        self._key = key

    def get_stored_images(self, category: str | None = None) -> list[StoredImage]:
        images: list[StoredImage] = []
        for raw in self._load_raw():
            try:
                image = StoredImage.model_validate(raw)
            except ValidationError:
                logger.warning("Skipping malformed stored image entry")
                continue
            if category is None or image.category == category:
                images.append(image)
        return images

    def get_image_by_id(self, image_id: str) -> StoredImage | None:
        return next((image for image in self.get_stored_images() if image.id == image_id), None)

    def store_image(
        self,
        *,
        category: str,
        filename: str,
        data: str,
        metadata: ImageMetadata,
        thumbnail: str | None = None,
    ) -> str:
        now = self._clock()
        image = StoredImage(
            id=self._id_factory(now),
            category=category,
            filename=filename,
            data=data,
            thumbnail=thumbnail,
            metadata=metadata,
            upload_date=now.isoformat(),
        )
        entry = image.to_dict()
        entry_size = len(_encode(entry))
        if entry_size > self._max_bytes:
            msg = f"Image {filename} ({entry_size} bytes) exceeds the storage budget"
            raise ImageStorageError(msg)

        kept = sorted(self._load_raw(), key=_upload_time)
        while kept and len(_encode([*kept, entry])) > self._max_bytes:
            removed = kept.pop(0)
            logger.info("Evicted image %s to make space", removed.get("filename"))
        kept.append(entry)
        self._save(kept)
        return image.id

    def delete_image(self, image_id: str) -> bool:
        images = self._load_raw()
        remaining = [image for image in images if image.get("id") != image_id]
        if len(remaining) == len(images):
            return False
        self._save(remaining)
        return True

    def delete_images_by_category(self, category: str) -> int:
        images = self._load_raw()
        remaining = [image for image in images if image.get("category") != category]
        self._save(remaining)
        return len(images) - len(remaining)

    def cleanup_old_images(self, max_age_days: int = 30) -> int:
        cutoff = self._clock() - timedelta(days=max_age_days)
        images = self._load_raw()
        remaining = [image for image in images if _upload_time(image) > cutoff]
        self._save(remaining)
        return len(images) - len(remaining)

    def get_storage_stats(self) -> ImageStorageStats:
        images = self.get_stored_images()
        size_by_category: dict[str, int] = {}
        for image in images:
            size = len(_encode(image.to_dict()))
            size_by_category[image.category] = size_by_category.get(image.category, 0) + size
        by_date = sorted(images, key=lambda image: _upload_time(image.to_dict()))
        return ImageStorageStats(
            total_images=len(images),
            total_size=self.get_storage_usage().used,
            size_by_category=size_by_category,
            oldest_image=by_date[0] if by_date else None,
            newest_image=by_date[-1] if by_date else None,
        )

    def get_storage_usage(self) -> StorageUsage:
        raw = self._store.get_item(self._key) or "[]"
        return StorageUsage(used=len(raw.encode("utf-8")), total=self._max_bytes)

    def export_images(self) -> str:
        return orjson.dumps(self._load_raw(), option=orjson.OPT_INDENT_2).decode("utf-8")

    def import_images(self, json_text: str, *, overwrite: bool = False) -> int:
        try:
            incoming = orjson.loads(json_text)
        except orjson.JSONDecodeError as exc:
            msg = f"Failed to import images: {exc}"
            raise ImageStorageError(msg) from exc
        if not isinstance(incoming, list):
            msg = "Failed to import images: Invalid import data format"
            raise ImageStorageError(msg)

        images = [] if overwrite else self._load_raw()
        known_ids = {image.get("id") for image in images}
        imported = 0
        for entry in incoming:
            if not _has_required_fields(entry) or entry["id"] in known_ids:
                continue
            images.append(entry)
            known_ids.add(entry["id"])
            imported += 1
        self._save(images)
        return imported

    def validate_image_data(self) -> ImageIntegrityReport:
        report = ImageIntegrityReport()
        for index, image in enumerate(self._load_raw()):
            issues = _image_issues(image)
            if issues:
                report.invalid += 1
                report.errors.append(f"Image {index}: {', '.join(issues)}")
            else:
                report.valid += 1
        return report

    def _load_raw(self) -> list[dict[str, Any]]:
        raw = self._store.get_item(self._key)
        if not raw:
            return []
        try:
            images = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("Stored image list is not valid JSON; treating it as empty")
            return []
        if not isinstance(images, list):
            return []
        return [image for image in images if isinstance(image, dict)]

    def _save(self, images: Sequence[dict[str, Any]]) -> None:
        self._store.set_item(self._key, _encode(list(images)).decode("utf-8"))


def _encode(payload: Any) -> bytes:
    return orjson.dumps(payload)


def _upload_time(image: dict[str, Any]) -> datetime:
    try:
        moment = datetime.fromisoformat(str(image.get("uploadDate", "")).replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def _has_required_fields(entry: object) -> bool:
    if not isinstance(entry, dict):
        return False
    return all(entry.get(name) for name in ("id", "category", "filename", "data", "uploadDate"))


def _image_issues(image: dict[str, Any]) -> list[str]:
    issues: list[str] = []
    if not image.get("id"):
        issues.append("missing ID")
    if not image.get("category"):
        issues.append("missing category")
    if not image.get("filename"):
        issues.append("missing filename")
    data = image.get("data")
    if not isinstance(data, str) or not data.startswith("data:"):
        issues.append("invalid data URL")
    if not image.get("uploadDate"):
        issues.append("missing upload date")
    return issues
