"""Subscription request validation and handshake serialization.

``validate_subscription_request`` is a predicate: it never raises, so it can
gate both ``serialize_subscription_request`` and connection construction.
The serialized form is the url-encoded body the client POSTs to the hub; the
HTTP exchange itself happens elsewhere.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import urlencode

from loguru import logger
from pydantic import BaseModel

from fhircast.errors import FhircastValidationError
from fhircast.models.enums import ChannelType, SubscriptionMode
from fhircast.schema import is_valid_event_name

_MODES = frozenset(m.value for m in SubscriptionMode)

# Wire name -> python attribute name.  Either spelling is accepted on input.
_FIELD_ALIASES = {
    "channelType": "channel_type",
    "mode": "mode",
    "topic": "topic",
    "events": "events",
    "endpoint": "endpoint",
}


def _as_fields(request: Any) -> dict[str, Any] | None:
    """Normalize a model or mapping to a dict keyed by wire names."""
    if isinstance(request, BaseModel):
        return request.model_dump(by_alias=True)
    if not isinstance(request, Mapping):
        return None
    return {wire: request.get(wire, request.get(attr)) for wire, attr in _FIELD_ALIASES.items()}


def _reject(reason: str) -> bool:
    logger.debug("Subscription request rejected: {}", reason)
    return False


def is_completed_subscription_request(request: Any) -> bool:
    """Return ``True`` once the hub has supplied an endpoint for *request*."""
    fields = _as_fields(request)
    return bool(fields and fields["endpoint"])


def validate_subscription_request(request: Any) -> bool:
    """Check *request* against the subscription rules, stopping at the first failure."""
    fields = _as_fields(request)
    if fields is None:
        return _reject("not a structured object")

    channel_type = fields["channelType"]
    mode = fields["mode"]
    topic = fields["topic"]
    events = fields["events"]
    if not (channel_type and mode and topic and events):
        return _reject("channelType, mode, topic and events are all required")
    if not isinstance(topic, str):
        return _reject("topic must be a string")
    if isinstance(events, str | bytes) or not isinstance(events, Sequence) or len(events) < 1:
        return _reject("events must be a non-empty list")
    if channel_type != ChannelType.WEBSOCKET:
        return _reject(f"unsupported channelType {channel_type!r}")
    if not isinstance(mode, str) or mode not in _MODES:
        return _reject(f"unsupported mode {mode!r}")
    for event in events:
        if not is_valid_event_name(event):
            return _reject(f"unknown event {event!r}")

    endpoint = fields["endpoint"]
    if endpoint and not (isinstance(endpoint, str) and endpoint.startswith("ws")):
        return _reject("endpoint must be a ws:// or wss:// URL")
    return True


def serialize_subscription_request(request: Any) -> str:
    """Encode *request* as the url-encoded handshake body.

    Raises ``FhircastValidationError`` if the request does not validate.
    """
    if not validate_subscription_request(request):
        msg = "subscription request must be an object conforming to SubscriptionRequest"
        raise FhircastValidationError(msg)

    fields = _as_fields(request)
    assert fields is not None  # noqa: S101
    form = {
        "hub.channel.type": str(fields["channelType"]),
        "hub.mode": str(fields["mode"]),
        "hub.topic": fields["topic"],
        "hub.events": ",".join(str(event) for event in fields["events"]),
    }
    if is_completed_subscription_request(request):
        form["endpoint"] = fields["endpoint"]
    return urlencode(form)
