from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from functools import partial
from typing import Any

import orjson
from pydantic import BaseModel, ValidationError

from domain.errors import StorageError
from domain.models import StorageKey
from domain.ports.notifications import NotificationAction, NotificationSink
from domain.ports.storage import KeyValueStore

logger = logging.getLogger(__name__)

Validator = Callable[[object], bool]
Clock = Callable[[], datetime]


def record_error_report(
    store: KeyValueStore,
    report_type: str,
    details: Mapping[str, Any] | None = None,
    *,
    clock: Clock | None = None,
) -> dict[str, Any]:
    """Append a report to the error log kept in the store and return it."""
    moment = (clock or (lambda: datetime.now(UTC)))()
    report = {"type": report_type, **(details or {}), "timestamp": moment.isoformat()}
    raw = store.get_item(StorageKey.ERROR_REPORTS)
    try:
        reports = orjson.loads(raw) if raw else []
    except orjson.JSONDecodeError:
        reports = []
    if not isinstance(reports, list):
        reports = []
    reports.append(report)
    store.set_item(
        StorageKey.ERROR_REPORTS, orjson.dumps(reports, default=str).decode("utf-8")
    )
    return report


def recover_corrupted_data(
    store: KeyValueStore,
    notifier: NotificationSink,
    corrupted: object,
    backup_key: str,
    defaults: Mapping[str, Any],
    validator: Validator,
    *,
    clock: Clock | None = None,
) -> dict[str, Any]:
    backup = _load_backup(store, backup_key)
    if backup is not None and validator(backup):
        logger.warning("Recovered corrupted data from backup %s", backup_key)
        notifier.notify(
            "warning",
            "Data Recovered",
            "Corrupted data was recovered from backup.",
            [NotificationAction("View Details", partial(logger.info, "Recovered data: %s", backup))],
        )
        return backup

    if isinstance(corrupted, Mapping):
        merged = {**defaults, **corrupted}
        if validator(merged):
            logger.warning("Partially recovered corrupted data over defaults")
            notifier.notify(
                "warning",
                "Data Partially Recovered",
                "Some data was recovered, but some fields were reset to defaults.",
            )
            return merged

    logger.warning("Corrupted data could not be recovered; resetting to defaults")
    report = partial(
        record_error_report,
        store,
        "data_corruption",
        {"corruptedData": corrupted, "backupKey": backup_key},
        clock=clock,
    )
    notifier.notify(
        "error",
        "Data Reset",
        "Data was corrupted and could not be recovered. Reset to defaults.",
        [NotificationAction("Report Issue", report)],
    )
    return dict(defaults)


def _load_backup(store: KeyValueStore, backup_key: str) -> Any:
    try:
        raw = store.get_item(backup_key)
    except StorageError:
        logger.warning("Backup %s could not be read", backup_key, exc_info=True)
        return None
    if not raw:
        return None
    try:
        return orjson.loads(raw)
    except orjson.JSONDecodeError:
        logger.warning("Backup %s is not valid JSON", backup_key)
        return None


def shape_validator(model: type[BaseModel]) -> Validator:
    def is_valid(data: object) -> bool:
        try:
            model.model_validate(data)
        except ValidationError:
            return False
        return True

    return is_valid
