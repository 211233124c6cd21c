from __future__ import annotations

from domain.services.events import ADMIN_DATA_UPDATE, DataChangeBus, DataChangeEvent


def test_subscribers_receive_events_in_order() -> None:
    bus = DataChangeBus()
    calls: list[str] = []
    bus.subscribe(lambda event: calls.append(f"first:{event.action}"))
    bus.subscribe(lambda event: calls.append(f"second:{event.action}"))

    bus.notify_data_change("services", "update", {"id": "s1"})

    assert calls == ["first:update", "second:update"]
    assert bus.name == ADMIN_DATA_UPDATE


def test_unsubscribe_stops_delivery() -> None:
    bus = DataChangeBus()
    received: list[DataChangeEvent] = []
    unsubscribe = bus.subscribe(received.append)

    unsubscribe()
    unsubscribe()
    bus.publish(DataChangeEvent(type="all", action="import"))

    assert received == []


def test_event_serializes_with_timestamp() -> None:
    event = DataChangeEvent(type="hero", action="update", data={"name": "x"})

    payload = event.to_dict()

    assert payload["type"] == "hero"
    assert payload["data"] == {"name": "x"}
    assert payload["timestamp"]
