"""Shared enumerations used across the FHIRcast client.

Every value is a wire-exact literal; ``str(member)`` yields the string sent
to or received from the hub.
"""

from __future__ import annotations

from enum import StrEnum

# -- Protocol vocabulary -----------------------------------------------------


class EventName(StrEnum):
    """Context-change events a subscriber can receive or publish."""

    PATIENT_OPEN = "patient-open"
    PATIENT_CLOSE = "patient-close"
    IMAGINGSTUDY_OPEN = "imagingstudy-open"
    IMAGINGSTUDY_CLOSE = "imagingstudy-close"
    ENCOUNTER_OPEN = "encounter-open"
    ENCOUNTER_CLOSE = "encounter-close"
    DIAGNOSTICREPORT_OPEN = "diagnosticreport-open"
    DIAGNOSTICREPORT_CLOSE = "diagnosticreport-close"
    SYNCERROR = "syncerror"


class ResourceType(StrEnum):
    """FHIR resource types that may appear in an event context."""

    PATIENT = "Patient"
    ENCOUNTER = "Encounter"
    IMAGING_STUDY = "ImagingStudy"
    DIAGNOSTIC_REPORT = "DiagnosticReport"
    OPERATION_OUTCOME = "OperationOutcome"


# -- Subscription ------------------------------------------------------------


class ChannelType(StrEnum):
    WEBSOCKET = "websocket"


class SubscriptionMode(StrEnum):
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"


# -- Connection --------------------------------------------------------------


class ConnectionState(StrEnum):
    """Lifecycle state of a single subscriber session.

    ``closed`` is terminal; a new connection must be constructed to retry.
    """

    IDLE = "idle"
    OPEN = "open"
    CLOSED = "closed"


class NotificationKind(StrEnum):
    """Notifications a connection delivers to its subscribers."""

    CONNECT = "connect"
    MESSAGE = "message"
    DISCONNECT = "disconnect"
    ERROR = "error"
