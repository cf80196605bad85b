"""Subscriber connection state machine.

``FhircastConnection`` drives one WebSocket session for one completed
subscription::

    idle --open--> open --close--> closed
      \\---------------close--------/

It is the transport's only listener and the only writer of its state.  Each
transport notification has one handler, and every handler runs under a
per-connection reentrant lock so transitions and acknowledgment sends never
interleave, even when the transport calls back from another thread.

Subscribers register per notification kind::

    connection = FhircastConnection(request.with_endpoint(endpoint))
    connection.on_message(lambda n: print(n.data.get("event")))
    connection.on_disconnect(lambda n: print("gone"))

Transports never deliver notifications from inside ``start()``, so
registering right after construction cannot miss ``connect``.
"""

from __future__ import annotations

import json
import threading
from collections.abc import Callable, Mapping
from functools import partial
from typing import TYPE_CHECKING, Any

from loguru import logger
from pydantic import ValidationError

from fhircast.errors import ConnectionConstructionError
from fhircast.models.enums import ConnectionState, NotificationKind
from fhircast.models.events import AcknowledgmentFrame, MessagePayload
from fhircast.models.notifications import (
    ConnectNotification,
    DisconnectNotification,
    ErrorNotification,
    MessageNotification,
    Notification,
)
from fhircast.models.subscription import SubscriptionRequest
from fhircast.subscription import is_completed_subscription_request, validate_subscription_request
from fhircast.transport.websocket import WebSocketTransport

if TYPE_CHECKING:
    from fhircast.settings import FhircastSettings
    from fhircast.transport.base import Transport, TransportFactory

Listener = Callable[[Notification], None]


class FhircastConnection:
    """A live subscription session with the hub.

    Construction validates the request, creates the transport and starts it.
    Nothing is sent on the wire before both checks pass.

    Notifications:

    1. ``connect`` -- the socket opened.  Fired once.
    2. ``message`` -- an event message arrived; carries the decoded frame
       and, when it has the envelope shape, the parsed
       :class:`MessagePayload`.  Each one is acknowledged to the hub.
    3. ``disconnect`` -- the socket closed, from either side.  Fired once.
    4. ``error`` -- an inbound frame is not a JSON object; the frame is dropped
       and the session stays open.

    To close, call :meth:`disconnect` and wait for ``disconnect``.  A closed
    connection cannot be reopened; construct a new one.
    """

    def __init__(
        self,
        request: SubscriptionRequest | Mapping[str, Any],
        *,
        transport_factory: TransportFactory | None = None,
        settings: FhircastSettings | None = None,
    ) -> None:
        if not is_completed_subscription_request(request):
            msg = "Subscription request should contain an endpoint."
            raise ConnectionConstructionError(msg)
        if not validate_subscription_request(request):
            msg = "Subscription request failed validation."
            raise ConnectionConstructionError(msg)

        self.request = (
            request if isinstance(request, SubscriptionRequest) else SubscriptionRequest.model_validate(request)
        )
        self._lock = threading.RLock()
        self._state = ConnectionState.IDLE
        self._listeners: dict[NotificationKind, list[Listener]] = {kind: [] for kind in NotificationKind}

        factory = transport_factory or partial(WebSocketTransport, settings=settings)
        self._transport: Transport = factory(self.endpoint)
        self._transport.bind(self)
        logger.debug("Opening FHIRcast connection for topic {} at {}", self.request.topic, self.endpoint)
        self._transport.start()

    # -- Query -----------------------------------------------------------------

    @property
    def endpoint(self) -> str:
        assert self.request.endpoint is not None  # noqa: S101
        return self.request.endpoint

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state is ConnectionState.CLOSED

    @property
    def transport(self) -> Transport:
        return self._transport

    # -- Subscribers -----------------------------------------------------------

    def subscribe(self, kind: NotificationKind | str, listener: Listener) -> Callable[[], None]:
        """Register *listener* for *kind*.  Returns a callable that unregisters it."""
        kind = NotificationKind(kind)
        with self._lock:
            self._listeners[kind].append(listener)
        return lambda: self.unsubscribe(kind, listener)

    def unsubscribe(self, kind: NotificationKind | str, listener: Listener) -> None:
        """Remove *listener* from *kind*.  No-op if it is not registered."""
        kind = NotificationKind(kind)
        with self._lock:
            listeners = self._listeners[kind]
            if listener in listeners:
                listeners.remove(listener)

    def on_connect(self, listener: Callable[[ConnectNotification], None]) -> Callable[[], None]:
        return self.subscribe(NotificationKind.CONNECT, listener)  # type: ignore[arg-type]

    def on_message(self, listener: Callable[[MessageNotification], None]) -> Callable[[], None]:
        return self.subscribe(NotificationKind.MESSAGE, listener)  # type: ignore[arg-type]

    def on_disconnect(self, listener: Callable[[DisconnectNotification], None]) -> Callable[[], None]:
        return self.subscribe(NotificationKind.DISCONNECT, listener)  # type: ignore[arg-type]

    def on_error(self, listener: Callable[[ErrorNotification], None]) -> Callable[[], None]:
        return self.subscribe(NotificationKind.ERROR, listener)  # type: ignore[arg-type]

    # -- Control ---------------------------------------------------------------

    def disconnect(self) -> None:
        """Ask the transport to close.

        ``disconnect`` is emitted only from the transport's close callback, so
        calling this repeatedly still yields a single notification.
        """
        with self._lock:
            if self._state is ConnectionState.CLOSED:
                return
        logger.debug("Disconnect requested for {}", self.endpoint)
        self._transport.close()

    # -- Transport callbacks ---------------------------------------------------

    def handle_open(self) -> None:
        with self._lock:
            if self._state is not ConnectionState.IDLE:
                logger.warning("Ignoring open notification while {}", self._state)
                return
            self._state = ConnectionState.OPEN
            logger.info("FHIRcast connection open for topic {}", self.request.topic)
            self._emit(ConnectNotification())

    def handle_message(self, data: str | bytes) -> None:
        with self._lock:
            if self._state is not ConnectionState.OPEN:
                logger.warning("Ignoring frame received while {}", self._state)
                return

            try:
                message = json.loads(data)
            except ValueError:
                self._drop(data, "frame is not valid JSON")
                return
            if not isinstance(message, dict):
                self._drop(data, "frame is not a JSON object")
                return

            # Subscription confirmations echo the request and carry hub.topic;
            # event messages nest it under "event".  An event message with a
            # stray top-level hub.topic would be dropped here too.
            if "hub.topic" in message:
                logger.debug("Discarding subscription confirmation for topic {}", message["hub.topic"])
                return

            try:
                payload: MessagePayload | None = MessagePayload.model_validate(message)
            except ValidationError as exc:
                logger.warning(
                    "Event message on {} does not match the envelope ({} errors), delivering raw",
                    self.endpoint,
                    exc.error_count(),
                )
                payload = None

            message_id = message.get("id")
            if not isinstance(message_id, str):
                message_id = None
            logger.debug("Received message {}", message_id)
            self._emit(MessageNotification(payload=payload, data=message))
            self._transport.send(AcknowledgmentFrame(id=message_id).to_json())

    def handle_close(self) -> None:
        with self._lock:
            if self._state is ConnectionState.CLOSED:
                return
            self._state = ConnectionState.CLOSED
            logger.info("FHIRcast connection closed for topic {}", self.request.topic)
            self._emit(DisconnectNotification())

    # -- Internals -------------------------------------------------------------

    def _drop(self, data: str | bytes, reason: str) -> None:
        logger.warning("Dropping inbound frame on {}: {}", self.endpoint, reason)
        self._emit(ErrorNotification(reason=reason, data=data))

    def _emit(self, notification: Notification) -> None:
        for listener in list(self._listeners[notification.kind]):
            try:
                listener(notification)
            except Exception:
                logger.exception("{} listener failed", notification.kind)
