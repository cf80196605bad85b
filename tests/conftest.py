"""Shared test fixtures: an in-memory transport and request builders.

``FakeTransport`` satisfies the ``Transport`` protocol without any I/O.  Tests
drive the connection by calling ``open()``, ``receive()`` and
``peer_close()`` on it, and inspect ``sent`` / ``close_calls`` afterwards.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import pytest

from fhircast.connection import FhircastConnection
from fhircast.models.enums import EventName, NotificationKind
from fhircast.models.subscription import SubscriptionRequest
from fhircast.settings import _get_settings_cached
from fhircast.transport.base import TransportListener

ENDPOINT = "wss://hub.example.org/ws/topic-1"


class FakeTransport:
    """Records everything the connection asks of it."""

    def __init__(self, endpoint: str, *, close_is_synchronous: bool = False) -> None:
        self.endpoint = endpoint
        self.listener: TransportListener | None = None
        self.started = False
        self.sent: list[str] = []
        self.close_calls = 0
        self.close_is_synchronous = close_is_synchronous

    # -- Transport protocol ----------------------------------------------------

    def bind(self, listener: TransportListener) -> None:
        self.listener = listener

    def start(self) -> None:
        self.started = True

    def send(self, text: str) -> None:
        self.sent.append(text)

    def close(self) -> None:
        self.close_calls += 1
        if self.close_is_synchronous:
            self.peer_close()

    # -- Test drivers ----------------------------------------------------------

    def open(self) -> None:
        assert self.listener is not None
        self.listener.handle_open()

    def receive(self, frame: Any) -> None:
        assert self.listener is not None
        if not isinstance(frame, str | bytes):
            frame = json.dumps(frame)
        self.listener.handle_message(frame)

    def peer_close(self) -> None:
        assert self.listener is not None
        self.listener.handle_close()

    @property
    def acks(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]


class Recorder:
    """Subscribes to every notification kind and keeps them in arrival order."""

    def __init__(self, connection: FhircastConnection) -> None:
        self.notifications: list[Any] = []
        for kind in NotificationKind:
            connection.subscribe(kind, self.notifications.append)

    def of(self, kind: NotificationKind) -> list[Any]:
        return [n for n in self.notifications if n.kind == kind]

    @property
    def kinds(self) -> list[NotificationKind]:
        return [n.kind for n in self.notifications]


def event_frame(message_id: str = "msg-1", event: str = "patient-open") -> dict[str, Any]:
    return {
        "timestamp": "2024-05-01T12:00:00.000Z",
        "id": message_id,
        "event": {
            "hub.topic": "topic-1",
            "hub.event": event,
            "context": [{"key": "patient", "resource": {"resourceType": "Patient", "id": "p1"}}],
        },
    }


def confirmation_frame() -> dict[str, Any]:
    return {
        "hub.channel.type": "websocket",
        "hub.mode": "subscribe",
        "hub.topic": "topic-1",
        "hub.events": "patient-open,patient-close",
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _fresh_settings() -> None:
    _get_settings_cached.cache_clear()


@pytest.fixture
def pending_request() -> SubscriptionRequest:
    return SubscriptionRequest(
        mode="subscribe",
        events=[EventName.PATIENT_OPEN, EventName.PATIENT_CLOSE],
        topic="topic-1",
    )


@pytest.fixture
def completed_request(pending_request: SubscriptionRequest) -> SubscriptionRequest:
    return pending_request.with_endpoint(ENDPOINT)


@pytest.fixture
def transports() -> list[FakeTransport]:
    return []


@pytest.fixture
def transport_factory(transports: list[FakeTransport]) -> Callable[[str], FakeTransport]:
    def _factory(endpoint: str) -> FakeTransport:
        transport = FakeTransport(endpoint)
        transports.append(transport)
        return transport

    return _factory


@pytest.fixture
def connection(
    completed_request: SubscriptionRequest,
    transport_factory: Callable[[str], FakeTransport],
) -> FhircastConnection:
    return FhircastConnection(completed_request, transport_factory=transport_factory)


@pytest.fixture
def transport(connection: FhircastConnection, transports: list[FakeTransport]) -> FakeTransport:
    assert transports == [connection.transport]
    return transports[0]
