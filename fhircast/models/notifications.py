"""Notifications delivered by a connection to its subscribers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from fhircast.models.enums import NotificationKind

if TYPE_CHECKING:
    from fhircast.models.events import MessagePayload


@dataclass(frozen=True)
class ConnectNotification:
    """The WebSocket is open; fired once per connection."""

    kind: ClassVar[NotificationKind] = NotificationKind.CONNECT


@dataclass(frozen=True)
class MessageNotification:
    """An event message arrived.

    ``data`` is the decoded frame exactly as received.  ``payload`` is the same
    message parsed as a :class:`MessagePayload`, or ``None`` when the frame
    does not have the envelope shape; it is delivered and acknowledged anyway.
    """

    kind: ClassVar[NotificationKind] = NotificationKind.MESSAGE

    payload: MessagePayload | None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DisconnectNotification:
    """The WebSocket is closed; fired once per connection."""

    kind: ClassVar[NotificationKind] = NotificationKind.DISCONNECT


@dataclass(frozen=True)
class ErrorNotification:
    """An inbound frame could not be understood.

    The connection stays open; only the offending frame is dropped.
    """

    kind: ClassVar[NotificationKind] = NotificationKind.ERROR

    reason: str
    data: str | bytes


Notification = ConnectNotification | MessageNotification | DisconnectNotification | ErrorNotification
