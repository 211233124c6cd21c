from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import orjson

from domain.errors import MigrationError
from domain.models import (
    CURRENT_SCHEMA_VERSION,
    DATA_SECTIONS,
    SUPPORTED_VERSIONS,
    AdminDataExport,
    ExportMetadata,
)
from domain.ports.downloads import FileDownloader
from domain.ports.notifications import NotificationSink
from domain.ports.storage import KeyValueStore
from domain.services.checksum import Checksum, Fnv1aChecksum, compute_data_checksum
from domain.services.events import DataChangeBus, DataChangeEvent
from domain.services.migrations import (
    DEFAULT_MIGRATIONS,
    MigrationRule,
    apply_migrations,
    compare_versions,
)

BACKUP_KEY_PREFIX = "admin_backup_"

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class BackupConfig:
    include_messages: bool = True
    max_backups: int = 10
    schema_version: str = CURRENT_SCHEMA_VERSION
    supported_versions: tuple[str, ...] = SUPPORTED_VERSIONS


@dataclass
class ImportValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    data: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None


@dataclass(frozen=True)
class BackupEntry:
    key: str
    reason: str
    timestamp: int
    date: datetime
    size: int


def parse_backup_key(key: str) -> tuple[str, int] | None:
    """Split ``admin_backup_<reason>_<millis>``; reasons may contain underscores."""
    if not key.startswith(BACKUP_KEY_PREFIX):
        return None
    reason, _, stamp = key[len(BACKUP_KEY_PREFIX) :].rpartition("_")
    if not reason or not stamp.isdigit():
        return None
    return reason, int(stamp)


def count_items(data: Mapping[str, Any]) -> int:
    total = 0
    for value in data.values():
        if isinstance(value, list):
            total += len(value)
        elif value is not None:
            total += 1
    return total


class BackupService:
    def __init__(
        self,
        store: KeyValueStore,
        notifier: NotificationSink,
        events: DataChangeBus,
        *,
        checksum: Checksum | None = None,
        clock: Clock | None = None,
        config: BackupConfig | None = None,
        migrations: Sequence[MigrationRule] = DEFAULT_MIGRATIONS,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._events = events
        self._checksum = checksum or Fnv1aChecksum()
        self._clock = clock or (lambda: datetime.now(UTC))
        self._config = config or BackupConfig()
        self._migrations = tuple(migrations)

    @property
    def config(self) -> BackupConfig:
        return self._config

    def collect_data(self) -> dict[str, Any]:
        return {
            section.name: self._read_json(section.storage_key, section.empty())
            for section in DATA_SECTIONS
        }

    def export_admin_data(self, include_messages: bool | None = None) -> str:
        try:
            document = self._build_export(include_messages)
        except Exception as exc:
            logger.exception("Admin data export failed")
            self._notifier.notify("error", "Export Failed", f"Failed to export data: {exc}")
            raise
        metadata = orjson.loads(document)["metadata"]
        self._notifier.notify(
            "success",
            "Data Exported",
            f"Successfully exported {metadata['totalItems']} items "
            f"({metadata['dataSize'] / 1024:.1f} KB)",
        )
        return document

    def _build_export(self, include_messages: bool | None = None) -> str:
        include = self._config.include_messages if include_messages is None else include_messages
        data = self.collect_data()
        if not include:
            data["contactMessages"] = []

        now = self._clock()
        document = AdminDataExport(
            version=self._config.schema_version,
            export_date=now.isoformat(),
            export_id=f"export_{_millis(now)}",
            data=data,
            metadata=ExportMetadata(total_items=count_items(data)),
        )
        document.metadata.data_size = len(_dump(_as_json(document)).encode("utf-8"))
        document.metadata.checksum = compute_data_checksum(data, self._checksum)
        return _dump(_as_json(document))

    def download_exported_data(self, downloader: FileDownloader) -> str | None:
        try:
            document = self.export_admin_data()
            filename = f"admin-data-export-{self._clock().date().isoformat()}.json"
            downloader.download(document, filename)
        except Exception as exc:
            logger.exception("Admin data download failed")
            self._notifier.notify("error", "Download Failed", f"Failed to download export: {exc}")
            return None
        self._notifier.notify("success", "Download Started", f"Export saved as {filename}.")
        return filename

    def validate_import_data(self, json_text: str) -> ImportValidationResult:
        errors: list[str] = []
        warnings: list[str] = []
        try:
            document = orjson.loads(json_text)
        except ValueError:
            return ImportValidationResult(is_valid=False, errors=["Invalid JSON format"])
        if not isinstance(document, dict):
            return ImportValidationResult(
                is_valid=False, errors=["Export document must be a JSON object"]
            )

        version = document.get("version")
        if not version:
            errors.append("Missing version information")

        data = document.get("data")
        if not isinstance(data, dict):
            errors.append("Missing data section")
            return ImportValidationResult(is_valid=False, errors=errors, warnings=warnings)

        # Integrity is judged on the data exactly as exported, before any migration.
        metadata = document.get("metadata")
        if metadata is not None and not isinstance(metadata, dict):
            warnings.append("Metadata section is malformed and was ignored")
        declared = metadata.get("checksum") if isinstance(metadata, dict) else None
        if declared and compute_data_checksum(data, self._checksum) != declared:
            warnings.append("Data integrity check failed - data may be corrupted")

        if version:
            data = self._upgrade(str(version), data, errors, warnings)

        for section in DATA_SECTIONS:
            if section.name not in data:
                errors.append(f"Missing required field: {section.name}")
            elif section.is_collection and not isinstance(data[section.name], list):
                errors.append(f"Field {section.name} must be an array")
            elif not section.is_collection and not isinstance(data[section.name], dict):
                errors.append(f"Field {section.name} must be an object")

        item_counts = {
            key: len(value) if isinstance(value, list) else int(isinstance(value, dict))
            for key, value in data.items()
        }
        is_valid = not errors
        return ImportValidationResult(
            is_valid=is_valid,
            errors=errors,
            warnings=warnings,
            data=data if is_valid else None,
            metadata={
                "version": version,
                "exportDate": document.get("exportDate"),
                "itemCounts": item_counts,
            },
        )

    def _upgrade(
        self,
        version: str,
        data: dict[str, Any],
        errors: list[str],
        warnings: list[str],
    ) -> dict[str, Any]:
        target = self._config.schema_version
        if version in self._config.supported_versions:
            return data
        try:
            is_older = compare_versions(version, target) < 0
        except ValueError:
            is_older = False
        if not is_older:
            warnings.append(f"Version {version} may not be fully compatible")
            return data
        try:
            migrated = apply_migrations(data, version, target, self._migrations)
        except MigrationError as exc:
            errors.append(str(exc))
            return data
        warnings.append(f"Data migrated from version {version} to {target}")
        return migrated

    def import_admin_data(
        self,
        json_text: str,
        *,
        overwrite: bool = False,
        create_backup: bool = True,
    ) -> bool:
        validation = self.validate_import_data(json_text)
        if not validation.is_valid or validation.data is None:
            self._notifier.notify(
                "error",
                "Import Failed",
                f"Import validation failed: {', '.join(validation.errors)}",
            )
            return False
        if validation.warnings:
            self._notifier.notify(
                "info", "Import Warnings", f"Import has warnings: {', '.join(validation.warnings)}"
            )

        # Nothing is written unless the safety backup succeeded or was explicitly skipped.
        if create_backup and self.create_automatic_backup("pre_import") is None:
            self._notifier.notify(
                "error", "Import Failed", "Import aborted because the pre-import backup failed"
            )
            return False

        try:
            self._write_sections(validation.data, overwrite=overwrite)
        except Exception as exc:
            logger.exception("Admin data import failed")
            self._notifier.notify("error", "Import Failed", f"Failed to import data: {exc}")
            return False

        mode = "overwrite" if overwrite else "merge"
        self._events.publish(DataChangeEvent(type="all", action="import", data={"mode": mode}))
        metadata = validation.metadata or {}
        total = sum(metadata.get("itemCounts", {}).values())
        self._notifier.notify(
            "success",
            "Import Successful",
            f"Successfully imported {total} items from {metadata.get('exportDate') or 'unknown date'}",
        )
        logger.info("Imported %d items (%s)", total, mode)
        return True

    def _write_sections(self, data: Mapping[str, Any], *, overwrite: bool) -> None:
        for section in DATA_SECTIONS:
            incoming = data.get(section.name)
            if incoming is None:
                continue
            if overwrite:
                value = incoming
            elif section.is_collection:
                existing = self._read_json(section.storage_key, [])
                value = [*existing, *incoming] if isinstance(existing, list) else incoming
            else:
                existing = self._read_json(section.storage_key, {})
                value = {**existing, **incoming} if isinstance(existing, dict) else incoming
            self._store.set_item(section.storage_key, _dump(value, pretty=False))

    def create_automatic_backup(self, reason: str = "manual") -> str | None:
        try:
            document = self._build_export()
            key = self._next_backup_key(reason)
            self._store.set_item(key, document)
        except Exception as exc:
            logger.exception("Backup creation failed (%s)", reason)
            self._notifier.notify("error", "Backup Failed", f"Failed to create backup: {exc}")
            return None
        self.cleanup_old_backups()
        self._notifier.notify("info", "Backup Created", f"Automatic backup created: {reason}")
        logger.info("Created backup %s", key)
        return key

    def _next_backup_key(self, reason: str) -> str:
        stamp = _millis(self._clock())
        existing = set(self._store.keys())
        while f"{BACKUP_KEY_PREFIX}{reason}_{stamp}" in existing:
            stamp += 1
        return f"{BACKUP_KEY_PREFIX}{reason}_{stamp}"

    def get_available_backups(self) -> list[BackupEntry]:
        entries: list[BackupEntry] = []
        for key in self._store.keys():
            parsed = parse_backup_key(key)
            if parsed is None:
                continue
            payload = self._store.get_item(key)
            if not payload:
                continue
            reason, stamp = parsed
            entries.append(
                BackupEntry(
                    key=key,
                    reason=reason,
                    timestamp=stamp,
                    date=datetime.fromtimestamp(stamp / 1000, tz=UTC),
                    size=len(payload.encode("utf-8")),
                )
            )
        entries.sort(key=lambda entry: (entry.timestamp, entry.key), reverse=True)
        return entries

    def restore_from_backup(self, backup_key: str) -> bool:
        document = self._store.get_item(backup_key)
        if not document:
            self._notifier.notify("error", "Restore Failed", "Backup not found")
            return False
        if self.create_automatic_backup("pre_restore") is None:
            self._notifier.notify(
                "error", "Restore Failed", "Restore aborted because the safety backup failed"
            )
            return False
        if not self.import_admin_data(document, overwrite=True, create_backup=False):
            return False
        self._notifier.notify("success", "Restore Successful", "Data has been restored from backup")
        return True

    def delete_backup(self, backup_key: str) -> bool:
        try:
            self._store.remove_item(backup_key)
        except Exception as exc:
            logger.exception("Failed to delete backup %s", backup_key)
            self._notifier.notify("error", "Delete Failed", f"Failed to delete backup: {exc}")
            return False
        self._notifier.notify("info", "Backup Deleted", "Backup has been deleted")
        return True

    def cleanup_old_backups(self, max_backups: int | None = None) -> int:
        limit = self._config.max_backups if max_backups is None else max_backups
        stale = self.get_available_backups()[limit:]
        for entry in stale:
            self._store.remove_item(entry.key)
        if stale:
            self._notifier.notify("info", "Backups Cleaned", f"Removed {len(stale)} old backups")
        return len(stale)

    def _read_json(self, key: str, default: Any) -> Any:
        raw = self._store.get_item(key)
        if raw is None:
            return default
        try:
            return orjson.loads(raw)
        except ValueError:
            logger.warning("Stored value under %s is not valid JSON; using default", key)
            return default


def _millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def _as_json(document: AdminDataExport) -> dict[str, Any]:
    return document.model_dump(mode="json", by_alias=True)


def _dump(payload: Any, *, pretty: bool = True) -> str:
    option = orjson.OPT_INDENT_2 if pretty else 0
    return orjson.dumps(payload, option=option).decode("utf-8")
