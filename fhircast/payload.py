"""Event message building and context validation.

Contexts are checked against the schema registry one at a time, in order,
and the first violation raises ``FhircastValidationError``.  Per-key counts
are collected during the scan so required and non-repeatable keys can be
checked once all contexts have been seen.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import BaseModel

from fhircast.errors import FhircastValidationError
from fhircast.models.enums import EventName
from fhircast.models.events import EventContext, EventPayload, MessagePayload, new_message_id
from fhircast.schema import canonical_key_for, is_valid_event_name, is_valid_resource_type, schema_for

if TYPE_CHECKING:
    from collections.abc import Callable

    from fhircast.schema import ContextKeySchema


def _plain(context: Any) -> Any:
    """Turn model contexts (or model resources) into plain mappings."""
    if isinstance(context, BaseModel):
        return context.model_dump(by_alias=True)
    if isinstance(context, Mapping) and isinstance(context.get("resource"), BaseModel):
        return {**context, "resource": context["resource"].model_dump(by_alias=True)}
    return context


def _invalid(i: int, reason: str) -> FhircastValidationError:
    return FhircastValidationError(f"context[{i}] is invalid. {reason}")


# ---------------------------------------------------------------------------
# Context validation
# ---------------------------------------------------------------------------


def _validate_context(
    event: str,
    context: Mapping[str, Any],
    i: int,
    key_schema: ContextKeySchema,
) -> None:
    """Raise if a single context, already known to use a declared key, is invalid."""
    key = context["key"]
    resource = context.get("resource")
    if not isinstance(resource, Mapping):
        raise _invalid(i, "Context must contain a single valid FHIR resource! Resource is not an object.")

    resource_id = resource.get("id")
    if not (resource_id and isinstance(resource_id, str)):
        raise _invalid(i, "Resource must contain a valid string ID.")

    resource_type = resource.get("resourceType")
    if not resource_type:
        raise _invalid(i, "Resource must contain a resource type. No resource type found.")
    if not is_valid_resource_type(resource_type):
        raise _invalid(
            i,
            "Resource must contain a valid FHIRcast resource type. Resource type is not a known resource type.",
        )

    expected_type = key_schema.resource_type
    if expected_type and resource_type != expected_type:
        raise _invalid(i, f"Key '{key}' for the '{event}' event should contain resource of type {expected_type}.")

    expected_key = canonical_key_for(resource_type)
    if expected_key != key:
        raise _invalid(i, f"Context key for type {resource_type} must be {expected_key}.")


def validate_event_contexts(event: str, contexts: Sequence[Any]) -> None:
    """Raise ``FhircastValidationError`` if *contexts* do not satisfy *event*'s schema."""
    event_schema = schema_for(event)
    keys_seen: Counter[str] = Counter()

    for i, context in enumerate(contexts):
        if not isinstance(context, Mapping):
            raise _invalid(i, "Context must be an object.")
        key = context.get("key")
        if not (key and isinstance(key, str) and key in event_schema):
            msg = f"Key '{key}' not found for event '{event}'. Make sure to add only valid keys."
            raise FhircastValidationError(msg)
        keys_seen[key] += 1
        _validate_context(event, context, i, event_schema[key])

    for key, details in event_schema.items():
        count = keys_seen[key]
        if not details.optional and count == 0:
            msg = f"Missing required key '{key}' on context for '{event}' event."
            raise FhircastValidationError(msg)
        if not details.many_allowed and count > 1:
            msg = f"{count} context entries with key '{key}' found for the '{event}' event when schema only allows for 1."
            raise FhircastValidationError(msg)


# ---------------------------------------------------------------------------
# Message building
# ---------------------------------------------------------------------------


def build_event_payload(
    topic: str,
    event: EventName | str,
    contexts: Any,
    *,
    version_id: str | None = None,
    id_factory: Callable[[], str] | None = None,
) -> MessagePayload:
    """Create a message for publishing *event* on *topic*.

    Parameters
    ----------
    topic:
        The topic the message will be published on, usually a UUID.
    event:
        The event name, e.g. ``patient-open``.
    contexts:
        One context or a list of contexts, each ``{"key": ..., "resource":
        {...}}`` or an ``EventContext``.
    version_id:
        Optional ``context.versionId`` for the new context.
    id_factory:
        Message id generator; defaults to uuid4.  Ids must stay unique across
        independent publishers sharing the topic.

    Returns
    -------
    MessagePayload
        A fresh, immutable message stamped with the current time.
    """
    if not (topic and isinstance(topic, str)):
        msg = "Must provide a topic."
        raise FhircastValidationError(msg)
    if not is_valid_event_name(event):
        msg = f"Must provide a valid FHIRcast event name. Supported events: {', '.join(EventName)}"
        raise FhircastValidationError(msg)
    if version_id is not None and not isinstance(version_id, str):
        msg = "context.versionId must be a string."
        raise FhircastValidationError(msg)

    if isinstance(contexts, Mapping | BaseModel):
        normalized = [contexts]
    elif isinstance(contexts, Sequence) and not isinstance(contexts, str | bytes):
        normalized = list(contexts)
    else:
        msg = "context must be a context object or list of context objects."
        raise FhircastValidationError(msg)

    normalized = [_plain(context) for context in normalized]
    validate_event_contexts(event, normalized)

    payload = MessagePayload(
        id=(id_factory or new_message_id)(),
        event=EventPayload(
            hub_topic=topic,
            hub_event=EventName(event),
            context=[EventContext.model_validate(context) for context in normalized],
            context_version_id=version_id,
        ),
    )
    logger.debug("Built {} message {} for topic {}", event, payload.id, topic)
    return payload
