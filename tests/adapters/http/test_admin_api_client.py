from __future__ import annotations

import asyncio
from collections.abc import Callable

import httpx
import orjson
import pytest

from adapters.http.admin_api_client import (
    SECTION_PATHS,
    AdminApiClient,
    ApiEnvelope,
    HttpConnectivityProbe,
)
from adapters.notifications.console import CollectingNotificationSink
from domain.services.network import NetworkError, NetworkStatusMonitor, RetryConfig

BASE_URL = "https://api.example.com/admin"

Handler = Callable[[httpx.Request], httpx.Response]


async def _no_sleep(_delay: float) -> None:
    return None


def _client(handler: Handler, **kwargs: object) -> AdminApiClient:
    return AdminApiClient(
        BASE_URL,
        "secret-token",
        retry=RetryConfig(base_delay=0.0, max_delay=0.0),
        transport=httpx.MockTransport(handler),
        sleep=_no_sleep,
        **kwargs,  # type: ignore[arg-type]
    )


def _run_get(client: AdminApiClient, section: str) -> ApiEnvelope:
    async def scenario() -> ApiEnvelope:
        async with client:
            return await client.get_section(section)

    return asyncio.run(scenario())


def test_requests_carry_bearer_token_and_section_path() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"name": "Minh"}})

    envelope = _run_get(_client(handler), "heroContent")

    assert envelope.success
    assert envelope.data == {"name": "Minh"}
    assert str(seen[0].url) == f"{BASE_URL}/hero"
    assert seen[0].headers["Authorization"] == "Bearer secret-token"


def test_update_section_puts_json_payload() -> None:
    seen: list[httpx.Request] = []
    payload = {"email": "hello@example.com", "phone": "+84 123"}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "message": "Saved", "data": payload})

    async def scenario() -> ApiEnvelope:
        async with _client(handler) as client:
            return await client.update_section("contactInfo", payload)

    envelope = asyncio.run(scenario())

    assert envelope.success
    assert envelope.message == "Saved"
    assert seen[0].method == "PUT"
    assert str(seen[0].url) == f"{BASE_URL}/contacts/info"
    assert orjson.loads(seen[0].content) == payload


def test_server_errors_are_retried() -> None:
    responses = iter(
        [
            httpx.Response(503),
            httpx.Response(200, json={"success": True, "data": []}),
        ]
    )
    calls: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return next(responses)

    envelope = _run_get(_client(handler), "services")

    assert envelope.data == []
    assert calls == ["/admin/services", "/admin/services"]


def test_validation_failures_return_envelope() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = {"success": False, "message": "Invalid", "errors": {"name": ["required"]}}
        return httpx.Response(422, json=body)

    envelope = _run_get(_client(handler), "heroContent")

    assert not envelope.success
    assert envelope.errors == {"name": ["required"]}


def test_client_errors_are_not_retried() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404)

    with pytest.raises(NetworkError) as excinfo:
        _run_get(_client(handler), "projects")

    assert excinfo.value.status == 404
    assert str(excinfo.value) == "HTTP 404: Not Found"
    assert calls == [1]


def test_timeouts_become_network_errors() -> None:
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(NetworkError) as excinfo:
        _run_get(_client(handler), "blogPosts")

    assert excinfo.value.code == "TIMEOUT"
    assert len(calls) == 3


def test_offline_monitor_blocks_requests() -> None:
    notifier = CollectingNotificationSink()
    calls: list[int] = []

    class NeverOnline:
        async def check(self) -> bool:
            return False

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"success": True})

    monitor = NetworkStatusMonitor(notifier, NeverOnline(), online=False)

    with pytest.raises(NetworkError) as excinfo:
        _run_get(_client(handler, monitor=monitor, notifier=notifier), "services")

    assert excinfo.value.code == "NETWORK_OFFLINE"
    assert calls == []
    assert notifier.titles() == ["Retrying Operation"]


def test_fetch_all_sections() -> None:
    by_path = {f"/admin/{path}": section for section, path in SECTION_PATHS.items()}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True, "data": by_path[request.url.path]})

    async def scenario() -> dict[str, object]:
        async with _client(handler) as client:
            return await client.fetch_all_sections()

    data = asyncio.run(scenario())

    assert data == {section: section for section in SECTION_PATHS}


def test_fetch_all_sections_stops_on_refusal() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "message": "Maintenance"})

    async def scenario() -> None:
        async with _client(handler) as client:
            await client.fetch_all_sections()

    with pytest.raises(NetworkError, match="API refused heroContent: Maintenance"):
        asyncio.run(scenario())


def test_unknown_section_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": True})

    with pytest.raises(ValueError, match="Unknown data section"):
        _run_get(_client(handler), "guestbook")


def test_connectivity_check_treats_any_response_as_online() -> None:
    def answering(request: httpx.Request) -> httpx.Response:
        assert request.method == "HEAD"
        return httpx.Response(500)

    def refusing(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    online = HttpConnectivityProbe(BASE_URL, transport=httpx.MockTransport(answering))
    offline = HttpConnectivityProbe(BASE_URL, transport=httpx.MockTransport(refusing))

    assert asyncio.run(online.check())
    assert not asyncio.run(offline.check())
