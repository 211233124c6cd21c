from __future__ import annotations

import logging
import webbrowser
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from functools import partial
from typing import TypeVar

import orjson

from domain.errors import StorageError, StorageQuotaExceededError, StorageUnavailableError
from domain.models import StorageKey
from domain.ports.notifications import NotificationAction, NotificationSink
from domain.ports.storage import KeyValueStore

STORAGE_HELP_URL = (
    "https://developer.mozilla.org/en-US/docs/Web/API/Web_Storage_API/"
    "Using_the_Web_Storage_API"
)
BACKUP_KEY_MARKER = "_backup_"
BACKUPS_TO_KEEP = 2
ERROR_REPORT_MAX_AGE = timedelta(days=7)

_PROBE_KEY = "__storage_test__"

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]


def is_storage_quota_exceeded(error: BaseException) -> bool:
    if isinstance(error, StorageQuotaExceededError):
        return True
    message = str(error).lower()
    return "quota" in message or "storage" in message


@dataclass(frozen=True)
class CleanupSummary:
    backups_removed: int = 0
    reports_removed: int = 0


class StorageGuard:
    def __init__(
        self,
        store: KeyValueStore,
        notifier: NotificationSink,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._clock = clock or (lambda: datetime.now(UTC))

    def safe_storage_operation(
        self,
        operation: Callable[[], T],
        fallback: T,
        context: str = "storage operation",
    ) -> T:
        try:
            return operation()
        except Exception as exc:
            logger.exception("%s failed", context)
            self._report_failure(exc, context)
            return fallback

    def _report_failure(self, error: Exception, context: str) -> None:
        if isinstance(error, StorageUnavailableError) or not self.is_storage_available():
            self._notifier.notify(
                "error",
                "Storage Unavailable",
                "Local storage is not available. Changes may not be saved.",
                [NotificationAction("Learn More", partial(webbrowser.open, STORAGE_HELP_URL))],
            )
        elif is_storage_quota_exceeded(error):
            self._notifier.notify(
                "error",
                "Storage Full",
                "Local storage is full. Please clear some data or use a different browser.",
                [NotificationAction("Clear Old Data", self.clear_old_storage_data, "danger")],
            )
        else:
            self._notifier.notify("error", "Storage Error", f"Failed to {context}: {error}")

    def is_storage_available(self) -> bool:
        try:
            self._store.set_item(_PROBE_KEY, _PROBE_KEY)
            self._store.remove_item(_PROBE_KEY)
        except StorageQuotaExceededError:
            # A full store is still a usable store.
            return True
        except (StorageError, OSError):
            return False
        return True

    def clear_old_storage_data(self) -> CleanupSummary:
        try:
            backups = sorted(
                (key for key in self._store.keys() if BACKUP_KEY_MARKER in key),
                key=_backup_sort_key,
                reverse=True,
            )
            stale = backups[BACKUPS_TO_KEEP:]
            for key in stale:
                self._store.remove_item(key)
            reports_removed = self._prune_error_reports()
        except StorageError:
            logger.exception("Failed to clear old storage data")
            return CleanupSummary()

        self._notifier.notify(
            "info", "Storage Cleaned", "Old data has been cleared to free up storage space."
        )
        return CleanupSummary(backups_removed=len(stale), reports_removed=reports_removed)

    def _prune_error_reports(self) -> int:
        raw = self._store.get_item(StorageKey.ERROR_REPORTS)
        try:
            reports = orjson.loads(raw) if raw else []
        except orjson.JSONDecodeError:
            reports = []
        if not isinstance(reports, list):
            reports = []
        cutoff = self._clock() - ERROR_REPORT_MAX_AGE
        recent = [report for report in reports if _reported_after(report, cutoff)]
        self._store.set_item(StorageKey.ERROR_REPORTS, orjson.dumps(recent).decode("utf-8"))
        return len(reports) - len(recent)


def _backup_sort_key(key: str) -> tuple[int, str]:
    _, _, stamp = key.rpartition("_")
    return (int(stamp) if stamp.isdigit() else 0, key)


def _reported_after(report: object, cutoff: datetime) -> bool:
    if not isinstance(report, dict):
        return False
    try:
        moment = datetime.fromisoformat(str(report.get("timestamp", "")).replace("Z", "+00:00"))
    except ValueError:
        return False
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment > cutoff
