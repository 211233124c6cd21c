from __future__ import annotations

import os
from collections.abc import Callable, Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from adapters.memory.key_value_store import InMemoryKeyValueStore
from adapters.notifications.console import CollectingNotificationSink
from app.config import AppSettings, StorageSettings
from domain.services.backup import BackupConfig, BackupService
from domain.services.events import DataChangeBus, DataChangeEvent

from tests.helpers.clock import SteppingClock

ENV_PREFIX = "PORTFOLIO_ADMIN_"


def _clear_admin_env() -> None:
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            os.environ.pop(key, None)


_clear_admin_env()


@pytest.fixture(autouse=True)
def clear_admin_env() -> Generator[None, None, None]:
    _clear_admin_env()
    yield
    _clear_admin_env()


@pytest.fixture
def clock() -> SteppingClock:
    return SteppingClock(datetime(2024, 5, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def notifier() -> CollectingNotificationSink:
    return CollectingNotificationSink()


@pytest.fixture
def events() -> DataChangeBus:
    return DataChangeBus()


@pytest.fixture
def published_events(events: DataChangeBus) -> list[DataChangeEvent]:
    received: list[DataChangeEvent] = []
    events.subscribe(received.append)
    return received


@pytest.fixture
def backup_service_factory(
    store: InMemoryKeyValueStore,
    notifier: CollectingNotificationSink,
    events: DataChangeBus,
    clock: SteppingClock,
) -> Callable[..., BackupService]:
    def _factory(**overrides: object) -> BackupService:
        config = BackupConfig(**overrides)  # type: ignore[arg-type]
        return BackupService(store, notifier, events, clock=clock, config=config)

    return _factory


@pytest.fixture
def backup_service(backup_service_factory: Callable[..., BackupService]) -> BackupService:
    return backup_service_factory()


@pytest.fixture
def app_settings(tmp_path: Path) -> AppSettings:
    return AppSettings(
        storage=StorageSettings(
            backend="file",
            path=tmp_path / "store.json",
            downloads_dir=tmp_path / "exports",
        )
    )


@pytest.fixture
def app_settings_factory(app_settings: AppSettings) -> Callable[..., AppSettings]:
    def _factory(**overrides: object) -> AppSettings:
        return app_settings.model_copy(update=overrides)

    return _factory
