"""Data models for the FHIRcast client."""

from fhircast.models.enums import (
    ChannelType,
    ConnectionState,
    EventName,
    NotificationKind,
    ResourceType,
    SubscriptionMode,
)
from fhircast.models.events import (
    AcknowledgmentFrame,
    EventContext,
    EventPayload,
    FhirResource,
    MessagePayload,
)
from fhircast.models.notifications import (
    ConnectNotification,
    DisconnectNotification,
    ErrorNotification,
    MessageNotification,
    Notification,
)
from fhircast.models.subscription import SubscriptionRequest

__all__ = [
    # Events
    "AcknowledgmentFrame",
    # Enums
    "ChannelType",
    # Notifications
    "ConnectNotification",
    "ConnectionState",
    "DisconnectNotification",
    "ErrorNotification",
    "EventContext",
    "EventName",
    "EventPayload",
    "FhirResource",
    "MessageNotification",
    "MessagePayload",
    "Notification",
    "NotificationKind",
    "ResourceType",
    "SubscriptionMode",
    # Subscription
    "SubscriptionRequest",
]
