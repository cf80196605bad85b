"""Unit tests for subscription request validation and serialization."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs

import pytest
from pydantic import ValidationError

from fhircast.errors import FhircastValidationError
from fhircast.models.enums import ChannelType, EventName, SubscriptionMode
from fhircast.models.subscription import SubscriptionRequest
from fhircast.subscription import (
    is_completed_subscription_request,
    serialize_subscription_request,
    validate_subscription_request,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _wire_request(**overrides: Any) -> dict[str, Any]:
    request: dict[str, Any] = {
        "channelType": "websocket",
        "mode": "subscribe",
        "events": ["patient-open"],
        "topic": "topic-1",
    }
    request.update(overrides)
    return request


# ---------------------------------------------------------------------------
# SubscriptionRequest model
# ---------------------------------------------------------------------------


def test_model_defaults() -> None:
    request = SubscriptionRequest(events=["patient-open"], topic="topic-1")
    assert request.channel_type == ChannelType.WEBSOCKET
    assert request.mode == SubscriptionMode.SUBSCRIBE
    assert request.events == [EventName.PATIENT_OPEN]
    assert request.endpoint is None
    assert request.is_completed is False


def test_model_accepts_wire_names() -> None:
    request = SubscriptionRequest.model_validate(_wire_request(mode="unsubscribe"))
    assert request.mode == SubscriptionMode.UNSUBSCRIBE
    assert request.model_dump(by_alias=True)["channelType"] == "websocket"


def test_model_rejects_unknown_event() -> None:
    with pytest.raises(ValidationError):
        SubscriptionRequest(events=["patient-view"], topic="topic-1")


def test_model_rejects_unknown_mode() -> None:
    with pytest.raises(ValidationError):
        SubscriptionRequest(mode="publish", events=["patient-open"], topic="topic-1")


def test_with_endpoint_completes_a_copy(pending_request: SubscriptionRequest) -> None:
    completed = pending_request.with_endpoint("wss://hub.example.org/ws/abc")

    assert completed.endpoint == "wss://hub.example.org/ws/abc"
    assert completed.is_completed is True
    assert pending_request.endpoint is None
    assert completed.topic == pending_request.topic


# ---------------------------------------------------------------------------
# validate_subscription_request -- accepted
# ---------------------------------------------------------------------------


def test_validate_pending_model(pending_request: SubscriptionRequest) -> None:
    assert validate_subscription_request(pending_request) is True


def test_validate_completed_model(completed_request: SubscriptionRequest) -> None:
    assert validate_subscription_request(completed_request) is True


def test_validate_wire_mapping() -> None:
    assert validate_subscription_request(_wire_request()) is True


def test_validate_snake_case_mapping() -> None:
    request = {"channel_type": "websocket", "mode": "unsubscribe", "events": ("syncerror",), "topic": "t"}
    assert validate_subscription_request(request) is True


@pytest.mark.parametrize("endpoint", ["ws://localhost:8103/ws/abc", "wss://hub.example.org/ws/abc"])
def test_validate_ws_endpoints(endpoint: str) -> None:
    assert validate_subscription_request(_wire_request(endpoint=endpoint)) is True


def test_validate_all_events() -> None:
    assert validate_subscription_request(_wire_request(events=[e.value for e in EventName])) is True


# ---------------------------------------------------------------------------
# validate_subscription_request -- rejected
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("request_value", [None, "topic-1", 42, ["patient-open"]])
def test_validate_rejects_non_objects(request_value: object) -> None:
    assert validate_subscription_request(request_value) is False


@pytest.mark.parametrize("field", ["channelType", "mode", "topic", "events"])
def test_validate_rejects_missing_field(field: str) -> None:
    request = _wire_request()
    del request[field]
    assert validate_subscription_request(request) is False


@pytest.mark.parametrize(
    ("overrides", "reason"),
    [
        ({"topic": ""}, "empty topic"),
        ({"topic": 123}, "topic not a string"),
        ({"events": []}, "empty events"),
        ({"events": "patient-open"}, "events is a string, not a list"),
        ({"events": {"event": "patient-open"}}, "events is a mapping"),
        ({"events": ["patient-open", "patient-view"]}, "unknown event"),
        ({"events": [None]}, "null event"),
        ({"channelType": "webhook"}, "unsupported channel"),
        ({"mode": "publish"}, "unsupported mode"),
        ({"mode": ["subscribe"]}, "mode not a string"),
        ({"endpoint": "https://hub.example.org/ws/abc"}, "endpoint not ws"),
        ({"endpoint": 8103}, "endpoint not a string"),
    ],
)
def test_validate_rejects(overrides: dict[str, Any], reason: str) -> None:
    assert validate_subscription_request(_wire_request(**overrides)) is False, reason


def test_validate_rejects_model_with_empty_topic() -> None:
    request = SubscriptionRequest(events=["patient-open"], topic="")
    assert validate_subscription_request(request) is False


def test_validate_rejects_model_with_http_endpoint(pending_request: SubscriptionRequest) -> None:
    assert validate_subscription_request(pending_request.with_endpoint("http://hub.example.org")) is False


# ---------------------------------------------------------------------------
# is_completed_subscription_request
# ---------------------------------------------------------------------------


def test_is_completed(pending_request: SubscriptionRequest, completed_request: SubscriptionRequest) -> None:
    assert is_completed_subscription_request(pending_request) is False
    assert is_completed_subscription_request(completed_request) is True
    assert is_completed_subscription_request(_wire_request(endpoint="ws://x")) is True
    assert is_completed_subscription_request(_wire_request(endpoint="")) is False
    assert is_completed_subscription_request(None) is False


# ---------------------------------------------------------------------------
# serialize_subscription_request
# ---------------------------------------------------------------------------


def test_serialize_pending(pending_request: SubscriptionRequest) -> None:
    assert serialize_subscription_request(pending_request) == (
        "hub.channel.type=websocket&hub.mode=subscribe&hub.topic=topic-1&hub.events=patient-open%2Cpatient-close"
    )


def test_serialize_completed(completed_request: SubscriptionRequest) -> None:
    serialized = serialize_subscription_request(completed_request)

    assert serialized.endswith("&endpoint=wss%3A%2F%2Fhub.example.org%2Fws%2Ftopic-1")
    assert parse_qs(serialized) == {
        "hub.channel.type": ["websocket"],
        "hub.mode": ["subscribe"],
        "hub.topic": ["topic-1"],
        "hub.events": ["patient-open,patient-close"],
        "endpoint": ["wss://hub.example.org/ws/topic-1"],
    }


def test_serialize_unsubscribe_mapping() -> None:
    serialized = serialize_subscription_request(_wire_request(mode="unsubscribe", events=["syncerror"]))
    assert serialized == "hub.channel.type=websocket&hub.mode=unsubscribe&hub.topic=topic-1&hub.events=syncerror"


def test_serialize_encodes_topic() -> None:
    serialized = serialize_subscription_request(_wire_request(topic="a topic&more"))
    assert parse_qs(serialized)["hub.topic"] == ["a topic&more"]


def test_serialize_is_stable(completed_request: SubscriptionRequest) -> None:
    assert serialize_subscription_request(completed_request) == serialize_subscription_request(completed_request)


@pytest.mark.parametrize(
    "request_value",
    [None, _wire_request(topic=""), _wire_request(events=[]), _wire_request(endpoint="http://x")],
)
def test_serialize_rejects_invalid(request_value: object) -> None:
    with pytest.raises(FhircastValidationError, match="conforming to SubscriptionRequest"):
        serialize_subscription_request(request_value)
