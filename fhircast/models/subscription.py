"""Subscription request model.

A request without an ``endpoint`` is *pending*: it is what the client POSTs
to the hub.  The hub answers with a WebSocket endpoint, after which the
request is *completed* and can open a connection.

The model only enforces types.  Emptiness, the endpoint scheme and every
other protocol rule are checked by
:func:`fhircast.subscription.validate_subscription_request`, which also
accepts plain mappings.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fhircast.models.enums import ChannelType, EventName, SubscriptionMode


class SubscriptionRequest(BaseModel):
    """A subscribe or unsubscribe request for one topic.

    Attributes
    ----------
    channel_type:
        Delivery channel (wire name ``channelType``).  Only ``websocket``.
    mode:
        ``subscribe`` or ``unsubscribe``.
    events:
        Event names of interest.
    topic:
        Opaque topic identifier shared by all participants of a session.
    endpoint:
        WebSocket URL returned by the hub; ``None`` while pending.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    channel_type: ChannelType = Field(default=ChannelType.WEBSOCKET, alias="channelType")
    mode: SubscriptionMode = SubscriptionMode.SUBSCRIBE
    events: list[EventName]
    topic: str
    endpoint: str | None = None

    @property
    def is_completed(self) -> bool:
        return bool(self.endpoint)

    def with_endpoint(self, endpoint: str) -> SubscriptionRequest:
        """Return the completed request for the endpoint the hub handed back."""
        return self.model_copy(update={"endpoint": endpoint})
