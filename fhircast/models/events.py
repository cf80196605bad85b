"""Protocol message models.

Defines the event message envelope exchanged over the WebSocket channel and
the acknowledgment a subscriber returns for each event it receives.  Field
names containing dots (``hub.topic``, ``context.versionId``) are carried as
aliases; always dump with ``by_alias=True`` when producing wire data.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from fhircast.models.enums import EventName


def utc_now() -> datetime:
    return datetime.now(UTC)


def new_message_id() -> str:
    return str(uuid.uuid4())


class FhirResource(BaseModel):
    """A FHIR resource reference inside an event context.

    Only ``resourceType`` and ``id`` are interpreted; all other FHIR fields
    are kept as-is.  ``id`` may be absent on inbound resources (a syncerror
    OperationOutcome often has none); outbound contexts are checked by
    :func:`fhircast.payload.validate_event_contexts` before they get here.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    resource_type: str = Field(alias="resourceType")
    id: str | None = None


class EventContext(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    key: str
    resource: FhirResource


class EventPayload(BaseModel):
    """The ``event`` member of a message.

    ``hub_event`` is an :class:`EventName` when the name is known; other
    names the hub sends (``heartbeat`` for one) are kept as plain strings.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    hub_topic: str = Field(alias="hub.topic")
    hub_event: EventName | str = Field(alias="hub.event", union_mode="left_to_right")
    context: list[EventContext] = Field(default_factory=list)
    context_version_id: str | None = Field(default=None, alias="context.versionId")


class MessagePayload(BaseModel):
    """Wire-format event message sent to, or received from, the hub.

    Built once per publish and never mutated afterwards.  Fields the models do
    not name are kept, so a received message dumps back as it arrived.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)
    id: str = Field(default_factory=new_message_id)
    event: EventPayload

    def to_wire(self) -> dict[str, Any]:
        """Return a JSON-ready dict using the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class AcknowledgmentFrame(BaseModel):
    """Receipt a subscriber sends back for every event message.

    ``id`` echoes the message id and is left out when the message had none.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    timestamp: datetime = Field(default_factory=utc_now)

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)
