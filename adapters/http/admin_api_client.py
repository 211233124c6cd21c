from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from types import TracebackType
from typing import Any

import httpx
from pydantic import BaseModel, Field

from domain.ports.notifications import NotificationSink
from domain.services.network import NetworkError, NetworkStatusMonitor, RetryConfig, with_retry

DEFAULT_TIMEOUT_SECONDS = 10.0

# Admin API routes per exported data section.
SECTION_PATHS: dict[str, str] = {
    "heroContent": "hero",
    "aboutContent": "about",
    "services": "services",
    "projects": "projects",
    "blogPosts": "blog",
    "contactMessages": "contacts/messages",
    "contactInfo": "contacts/info",
    "systemSettings": "settings",
}

logger = logging.getLogger(__name__)


class ApiEnvelope(BaseModel):
    success: bool
    message: str | None = None
    data: Any = None
    errors: dict[str, list[str]] = Field(default_factory=dict)


async def fetch_with_retry(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    retry: RetryConfig | None = None,
    monitor: NetworkStatusMonitor | None = None,
    notifier: NotificationSink | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
    sleep: Callable[[float], Awaitable[Any]] | None = None,
    **request_kwargs: Any,
) -> httpx.Response:
    async def attempt() -> httpx.Response:
        if monitor is not None and not monitor.is_online:
            raise NetworkError("Network is offline", code="NETWORK_OFFLINE", retryable=True)
        try:
            response = await client.request(method, url, timeout=timeout, **request_kwargs)
        except httpx.TimeoutException as exc:
            msg = f"Request timeout after {timeout}s: {url}"
            raise NetworkError(msg, code="TIMEOUT", retryable=True) from exc
        except httpx.TransportError as exc:
            msg = f"Network request failed: {exc}"
            raise NetworkError(msg, code="NETWORK_ERROR", retryable=True) from exc
        if response.is_error:
            status = response.status_code
            raise NetworkError(
                f"HTTP {status}: {response.reason_phrase}",
                status=status,
                retryable=status >= 500 or status == 429,
                response=response,
            )
        return response

    extra: dict[str, Any] = {} if sleep is None else {"sleep": sleep}
    return await with_retry(attempt, retry, monitor=monitor, notifier=notifier, **extra)


class AdminApiClient:
    """Bearer-authenticated client for the admin REST API and its ``{success, data}`` envelope."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        retry: RetryConfig | None = None,
        monitor: NetworkStatusMonitor | None = None,
        notifier: NotificationSink | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/", headers=headers, transport=transport
        )
        self._retry = retry
        self._monitor = monitor
        self._notifier = notifier
        self._timeout = timeout
        self._sleep = sleep

    async def __aenter__(self) -> AdminApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(self, method: str, path: str, **kwargs: Any) -> ApiEnvelope:
        try:
            response = await fetch_with_retry(
                self._client,
                method,
                path.lstrip("/"),
                retry=self._retry,
                monitor=self._monitor,
                notifier=self._notifier,
                timeout=self._timeout,
                sleep=self._sleep,
                **kwargs,
            )
        except NetworkError as exc:
            # Validation failures come back as an envelope carrying per-field errors.
            if exc.status == 422 and exc.response is not None:
                return ApiEnvelope.model_validate(exc.response.json())
            raise
        return ApiEnvelope.model_validate(response.json())

    async def get_section(self, section: str) -> ApiEnvelope:
        return await self.request("GET", _section_path(section))

    async def update_section(self, section: str, payload: Any) -> ApiEnvelope:
        return await self.request("PUT", _section_path(section), json=payload)

    async def fetch_all_sections(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for section in SECTION_PATHS:
            envelope = await self.get_section(section)
            if not envelope.success:
                msg = f"API refused {section}: {envelope.message or 'unknown error'}"
                raise NetworkError(msg, retryable=False)
            data[section] = envelope.data
            logger.debug("Fetched %s", section)
        return data


class HttpConnectivityProbe:
    """Any HTTP answer counts as connectivity; only transport failures count as offline."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport

    async def check(self) -> bool:
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                await client.head(
                    self._url, timeout=self._timeout, headers={"Cache-Control": "no-cache"}
                )
            except httpx.TransportError:
                return False
        return True


def _section_path(section: str) -> str:
    try:
        return SECTION_PATHS[section]
    except KeyError as exc:
        msg = f"Unknown data section: {section}"
        raise ValueError(msg) from exc
