"""Event context schema registry.

Static, read-only tables describing which context keys each event carries,
the resource type bound to each key, and whether the key is optional or may
repeat.  Lookups never raise: unknown input yields ``False``, ``None`` or an
empty mapping and the caller decides whether that is an error.

Both STU2 and STU3 are satisfied.  Where STU3 dropped a key that STU2 had
(``encounter`` on the patient events), the key stays valid but optional.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from fhircast.models.enums import EventName, ResourceType

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True)
class ContextKeySchema:
    """Binding of one context key within one event.

    ``optional`` only concerns the schema; the protocol often expects these
    references whenever they exist for the anchor resource.
    """

    resource_type: ResourceType
    optional: bool = False
    many_allowed: bool = False


def _keys(**bindings: ContextKeySchema) -> Mapping[str, ContextKeySchema]:
    return MappingProxyType(bindings)


_PATIENT_KEYS = _keys(
    patient=ContextKeySchema(ResourceType.PATIENT),
    encounter=ContextKeySchema(ResourceType.ENCOUNTER, optional=True),
)

_IMAGINGSTUDY_KEYS = _keys(
    study=ContextKeySchema(ResourceType.IMAGING_STUDY),
    encounter=ContextKeySchema(ResourceType.ENCOUNTER, optional=True),
    patient=ContextKeySchema(ResourceType.PATIENT, optional=True),
)

_ENCOUNTER_KEYS = _keys(
    encounter=ContextKeySchema(ResourceType.ENCOUNTER),
    patient=ContextKeySchema(ResourceType.PATIENT),
)

_DIAGNOSTICREPORT_KEYS = _keys(
    report=ContextKeySchema(ResourceType.DIAGNOSTIC_REPORT),
    encounter=ContextKeySchema(ResourceType.ENCOUNTER, optional=True),
    study=ContextKeySchema(ResourceType.IMAGING_STUDY, optional=True, many_allowed=True),
    patient=ContextKeySchema(ResourceType.PATIENT),
)

_SYNCERROR_KEYS = _keys(
    operationoutcome=ContextKeySchema(ResourceType.OPERATION_OUTCOME),
)

EVENT_CONTEXT_SCHEMAS: Mapping[EventName, Mapping[str, ContextKeySchema]] = MappingProxyType({
    EventName.PATIENT_OPEN: _PATIENT_KEYS,
    EventName.PATIENT_CLOSE: _PATIENT_KEYS,
    EventName.IMAGINGSTUDY_OPEN: _IMAGINGSTUDY_KEYS,
    EventName.IMAGINGSTUDY_CLOSE: _IMAGINGSTUDY_KEYS,
    EventName.ENCOUNTER_OPEN: _ENCOUNTER_KEYS,
    EventName.ENCOUNTER_CLOSE: _ENCOUNTER_KEYS,
    EventName.DIAGNOSTICREPORT_OPEN: _DIAGNOSTICREPORT_KEYS,
    EventName.DIAGNOSTICREPORT_CLOSE: _DIAGNOSTICREPORT_KEYS,
    EventName.SYNCERROR: _SYNCERROR_KEYS,
})

# Context key -> resource type, and its inverse (the canonical key).
CONTEXT_KEY_RESOURCE_TYPES: Mapping[str, ResourceType] = MappingProxyType({
    "study": ResourceType.IMAGING_STUDY,
    "patient": ResourceType.PATIENT,
    "encounter": ResourceType.ENCOUNTER,
    "report": ResourceType.DIAGNOSTIC_REPORT,
    "operationoutcome": ResourceType.OPERATION_OUTCOME,
})

CANONICAL_CONTEXT_KEYS: Mapping[ResourceType, str] = MappingProxyType({
    resource_type: key for key, resource_type in CONTEXT_KEY_RESOURCE_TYPES.items()
})

_EVENT_NAMES = frozenset(e.value for e in EventName)
_RESOURCE_TYPES = frozenset(t.value for t in ResourceType)

_EMPTY: Mapping[str, ContextKeySchema] = MappingProxyType({})


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def is_valid_event_name(value: Any) -> bool:
    return isinstance(value, str) and value in _EVENT_NAMES


def is_valid_resource_type(value: Any) -> bool:
    """Return ``True`` if *value* names a resource type usable in a context."""
    return isinstance(value, str) and value in _RESOURCE_TYPES


def schema_for(event: Any) -> Mapping[str, ContextKeySchema]:
    """Return the context key bindings for *event* (empty if unknown)."""
    if not is_valid_event_name(event):
        return _EMPTY
    return EVENT_CONTEXT_SCHEMAS[EventName(event)]


def canonical_key_for(resource_type: Any) -> str | None:
    """Return the context key a resource of *resource_type* must be filed under."""
    if not is_valid_resource_type(resource_type):
        return None
    return CANONICAL_CONTEXT_KEYS[ResourceType(resource_type)]


def resource_type_for_key(key: Any) -> ResourceType | None:
    if not isinstance(key, str):
        return None
    return CONTEXT_KEY_RESOURCE_TYPES.get(key)
