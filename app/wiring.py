from __future__ import annotations

from dataclasses import dataclass

from adapters.filesystem.file_downloader import DirectoryDownloader
from adapters.filesystem.key_value_store import JsonFileKeyValueStore
from adapters.http.admin_api_client import AdminApiClient, HttpConnectivityProbe
from adapters.memory.key_value_store import InMemoryKeyValueStore
from app.config import AppSettings
from domain.ports.notifications import NotificationSink
from domain.ports.storage import KeyValueStore
from domain.services.backup import BackupService
from domain.services.events import DataChangeBus
from domain.services.image_storage import ImageStore
from domain.services.network import NetworkStatusMonitor
from domain.services.storage_safety import StorageGuard


def build_store(settings: AppSettings) -> KeyValueStore:
    storage = settings.storage
    if storage.backend == "memory":
        return InMemoryKeyValueStore(capacity_bytes=storage.capacity_bytes)
    return JsonFileKeyValueStore(storage.path, capacity_bytes=storage.capacity_bytes)


@dataclass
class AdminServices:
    store: KeyValueStore
    notifier: NotificationSink
    events: DataChangeBus
    backups: BackupService
    images: ImageStore
    guard: StorageGuard
    downloader: DirectoryDownloader


def build_services(
    settings: AppSettings,
    notifier: NotificationSink,
    store: KeyValueStore | None = None,
) -> AdminServices:
    store = store if store is not None else build_store(settings)
    events = DataChangeBus()
    return AdminServices(
        store=store,
        notifier=notifier,
        events=events,
        backups=BackupService(store, notifier, events, config=settings.backup.to_config()),
        images=ImageStore(store, max_bytes=settings.storage.image_budget_bytes),
        guard=StorageGuard(store, notifier),
        downloader=DirectoryDownloader(settings.storage.downloads_dir),
    )


def build_api_client(settings: AppSettings, notifier: NotificationSink) -> AdminApiClient:
    api = settings.api
    if not api.base_url:
        msg = "api.base_url is required to talk to the admin API"
        raise ValueError(msg)
    monitor = None
    probe_url = settings.probe_url()
    if probe_url:
        monitor = NetworkStatusMonitor(
            notifier,
            HttpConnectivityProbe(probe_url),
            max_reconnect_attempts=settings.network.max_reconnect_attempts,
            reconnect_delay=settings.network.reconnect_delay,
        )
    return AdminApiClient(
        api.base_url,
        api.token,
        retry=settings.retry.to_config(),
        monitor=monitor,
        notifier=notifier,
        timeout=api.timeout,
    )
