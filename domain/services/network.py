from __future__ import annotations

import asyncio
import logging
import random
import re
from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TypeVar

from domain.errors import AdminDataError
from domain.ports.connectivity import ConnectivityProbe
from domain.ports.notifications import NotificationAction, NotificationSink

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})
DEFAULT_RETRYABLE_CODES = ("NETWORK_ERROR", "TIMEOUT", "SERVER_ERROR", "RATE_LIMITED")

_RETRYABLE_MESSAGE = re.compile(r"network|timeout|connection|fetch|cors", re.IGNORECASE)

logger = logging.getLogger(__name__)

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[Any]]
Listener = Callable[[bool], None]


class NetworkError(AdminDataError):
    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status: int | None = None,
        retryable: bool | None = None,
        response: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
        self.retryable = retryable
        self.response = response
        self.timestamp = datetime.now(UTC)


@dataclass(frozen=True)
class RetryConfig:
    """Delays are in seconds; each computed delay gets up to one extra second of jitter."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    retryable_errors: tuple[str, ...] = DEFAULT_RETRYABLE_CODES

    def delay_for(self, attempt: int) -> float:
        return min(self.base_delay * self.backoff_multiplier ** (attempt - 1), self.max_delay)


def is_retryable_error(
    error: BaseException,
    retryable_codes: Collection[str] = DEFAULT_RETRYABLE_CODES,
    *,
    online: bool = True,
) -> bool:
    if not online:
        return True
    code = getattr(error, "code", None)
    if code and code in retryable_codes:
        return True
    status = getattr(error, "status", None)
    if status in RETRYABLE_STATUS_CODES:
        return True
    return bool(_RETRYABLE_MESSAGE.search(str(error)))


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    *,
    monitor: NetworkStatusMonitor | None = None,
    notifier: NotificationSink | None = None,
    sleep: Sleep = asyncio.sleep,
    jitter: Callable[[], float] = lambda: random.uniform(0, 1),
) -> T:
    cfg = config or RetryConfig()
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as exc:
            online = monitor.is_online if monitor is not None else True
            if not is_retryable_error(exc, cfg.retryable_errors, online=online):
                raise
            if attempt >= cfg.max_attempts:
                raise
            delay = cfg.delay_for(attempt) + jitter()
            logger.warning("Attempt %d failed, retrying in %.2fs: %s", attempt, delay, exc)
            if attempt > 1 and notifier is not None:
                notifier.notify(
                    "warning",
                    "Retrying Operation",
                    f"Attempt {attempt} failed. Retrying in {round(delay)} seconds...",
                )
            await sleep(delay)
            attempt += 1


class NetworkStatusMonitor:
    def __init__(
        self,
        notifier: NotificationSink,
        probe: ConnectivityProbe,
        *,
        max_reconnect_attempts: int = 5,
        reconnect_delay: float = 2.0,
        sleep: Sleep = asyncio.sleep,
        online: bool = True,
    ) -> None:
        self._notifier = notifier
        self._probe = probe
        self._max_reconnect_attempts = max_reconnect_attempts
        self._reconnect_delay = reconnect_delay
        self._sleep = sleep
        self._online = online
        self._reconnect_attempts = 0
        self._listeners: list[Listener] = []

    @property
    def is_online(self) -> bool:
        return self._online

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def set_online(self) -> None:
        self._online = True
        self._reconnect_attempts = 0
        self._notify_listeners(True)
        self._notifier.notify(
            "info",
            "Connection Restored",
            "Internet connection has been restored. Syncing data...",
        )

    def set_offline(self) -> None:
        self._online = False
        self._notify_listeners(False)
        self._notifier.notify(
            "warning",
            "Connection Lost",
            "Internet connection lost. Changes will be saved locally and synced when "
            "connection is restored.",
            [NotificationAction("Retry Connection", self.attempt_reconnect)],
        )

    async def attempt_reconnect(self) -> bool:
        while self._reconnect_attempts < self._max_reconnect_attempts:
            self._reconnect_attempts += 1
            attempt = self._reconnect_attempts
            self._notifier.notify(
                "info",
                "Reconnecting...",
                f"Attempting to reconnect ({attempt}/{self._max_reconnect_attempts})...",
            )
            await self._sleep(self._reconnect_delay * attempt)
            if await self._probe_succeeds():
                self.set_online()
                return True
        self._notifier.notify(
            "error",
            "Connection Failed",
            "Unable to restore connection after multiple attempts. "
            "Please check your internet connection.",
        )
        return False

    async def _probe_succeeds(self) -> bool:
        try:
            return await self._probe.check()
        except Exception:
            logger.warning("Connectivity probe failed", exc_info=True)
            return False

    def _notify_listeners(self, online: bool) -> None:
        for listener in list(self._listeners):
            listener(online)
