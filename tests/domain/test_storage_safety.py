from __future__ import annotations

from datetime import timedelta

import orjson
import pytest

from adapters.memory.key_value_store import InMemoryKeyValueStore
from adapters.notifications.console import CollectingNotificationSink
from domain.errors import StorageError, StorageQuotaExceededError
from domain.models import StorageKey
from domain.services.storage_safety import (
    CleanupSummary,
    StorageGuard,
    is_storage_quota_exceeded,
)

from tests.helpers.clock import SteppingClock


def _guard(
    store: InMemoryKeyValueStore, notifier: CollectingNotificationSink, clock: SteppingClock
) -> StorageGuard:
    return StorageGuard(store, notifier, clock=clock)


def test_successful_operation_returns_its_result(
    store: InMemoryKeyValueStore, notifier: CollectingNotificationSink, clock: SteppingClock
) -> None:
    guard = _guard(store, notifier, clock)

    assert guard.safe_storage_operation(lambda: 42, fallback=0) == 42
    assert notifier.notifications == []


def test_quota_failure_offers_cleanup(
    notifier: CollectingNotificationSink, clock: SteppingClock
) -> None:
    small = InMemoryKeyValueStore(capacity_bytes=64)
    guard = _guard(small, notifier, clock)

    result = guard.safe_storage_operation(
        lambda: small.set_item("settings", "x" * 200), fallback=None, context="save settings"
    )

    assert result is None
    full = notifier.notifications[-1]
    assert (full.kind, full.title) == ("error", "Storage Full")
    assert [(a.label, a.variant) for a in full.actions] == [("Clear Old Data", "danger")]


def test_unavailable_store_is_reported(
    notifier: CollectingNotificationSink, clock: SteppingClock
) -> None:
    offline = InMemoryKeyValueStore(available=False)
    guard = _guard(offline, notifier, clock)

    assert guard.safe_storage_operation(lambda: offline.get_item("x"), fallback="fallback") == (
        "fallback"
    )
    assert not guard.is_storage_available()
    unavailable = notifier.notifications[-1]
    assert unavailable.title == "Storage Unavailable"
    assert [action.label for action in unavailable.actions] == ["Learn More"]


def test_other_failures_name_the_context(
    store: InMemoryKeyValueStore, notifier: CollectingNotificationSink, clock: SteppingClock
) -> None:
    guard = _guard(store, notifier, clock)

    def explode() -> int:
        msg = "boom"
        raise RuntimeError(msg)

    assert guard.safe_storage_operation(explode, fallback=-1, context="load projects") == -1
    assert notifier.notifications[-1].title == "Storage Error"
    assert notifier.notifications[-1].message == "Failed to load projects: boom"


def test_full_store_still_counts_as_available(
    notifier: CollectingNotificationSink, clock: SteppingClock
) -> None:
    full = InMemoryKeyValueStore({"k": "v" * 30}, capacity_bytes=32)

    assert _guard(full, notifier, clock).is_storage_available()


def test_clear_old_storage_data(
    store: InMemoryKeyValueStore, notifier: CollectingNotificationSink, clock: SteppingClock
) -> None:
    for key in (
        "admin_backup_manual_1000",
        "admin_backup_manual_3000",
        "admin_backup_pre_import_2000",
        "settings_backup_500",
    ):
        store.set_item(key, "{}")
    now = clock.now
    reports = [
        {"type": "data_corruption", "timestamp": (now - timedelta(days=10)).isoformat()},
        {"type": "data_corruption", "timestamp": (now - timedelta(days=1)).isoformat()},
    ]
    store.set_item(StorageKey.ERROR_REPORTS, orjson.dumps(reports).decode())

    summary = _guard(store, notifier, clock).clear_old_storage_data()

    assert summary == CleanupSummary(backups_removed=2, reports_removed=1)
    assert sorted(key for key in store.keys() if "_backup_" in key) == [
        "admin_backup_manual_3000",
        "admin_backup_pre_import_2000",
    ]
    remaining = orjson.loads(store.get_item(StorageKey.ERROR_REPORTS) or "[]")
    assert [report["timestamp"] for report in remaining] == [reports[1]["timestamp"]]
    assert notifier.titles() == ["Storage Cleaned"]


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (StorageQuotaExceededError("full"), True),
        (StorageError("QuotaExceededError: DOM exception 22"), True),
        (RuntimeError("Local storage rejected the write"), True),
        (RuntimeError("disk on fire"), False),
    ],
)
def test_is_storage_quota_exceeded(error: Exception, expected: bool) -> None:
    assert is_storage_quota_exceeded(error) is expected
