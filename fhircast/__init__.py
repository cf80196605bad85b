"""FHIRcast client: context-synchronization subscriptions over WebSocket."""

from loguru import logger

from fhircast.connection import FhircastConnection
from fhircast.errors import ConnectionConstructionError, FhircastError, FhircastValidationError
from fhircast.log import setup_logging
from fhircast.models import (
    AcknowledgmentFrame,
    ConnectionState,
    EventContext,
    EventName,
    EventPayload,
    FhirResource,
    MessagePayload,
    NotificationKind,
    ResourceType,
    SubscriptionMode,
    SubscriptionRequest,
)
from fhircast.payload import build_event_payload, validate_event_contexts
from fhircast.schema import (
    ContextKeySchema,
    canonical_key_for,
    is_valid_event_name,
    is_valid_resource_type,
    resource_type_for_key,
    schema_for,
)
from fhircast.settings import FhircastSettings, get_settings
from fhircast.subscription import (
    is_completed_subscription_request,
    serialize_subscription_request,
    validate_subscription_request,
)

# Library logging stays off until the application calls setup_logging().
logger.disable("fhircast")

__all__ = [
    "AcknowledgmentFrame",
    "ConnectionConstructionError",
    "ConnectionState",
    "ContextKeySchema",
    "EventContext",
    "EventName",
    "EventPayload",
    "FhirResource",
    "FhircastConnection",
    "FhircastError",
    "FhircastSettings",
    "FhircastValidationError",
    "MessagePayload",
    "NotificationKind",
    "ResourceType",
    "SubscriptionMode",
    "SubscriptionRequest",
    "build_event_payload",
    "canonical_key_for",
    "get_settings",
    "is_completed_subscription_request",
    "is_valid_event_name",
    "is_valid_resource_type",
    "resource_type_for_key",
    "schema_for",
    "serialize_subscription_request",
    "setup_logging",
    "validate_event_contexts",
    "validate_subscription_request",
]
