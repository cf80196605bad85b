"""Transport interface for a subscriber's WebSocket session.

A transport carries text frames between the client and the hub and reports
three things back to its listener: the socket opened, a frame arrived, the
socket closed.  ``FhircastConnection`` is the only listener in this package;
tests drive it with an in-memory transport.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransportListener(Protocol):
    """Receives transport notifications, in order, from a single source."""

    def handle_open(self) -> None:
        """The socket is open and frames may be sent."""
        ...

    def handle_message(self, data: str | bytes) -> None:
        """One inbound frame, exactly as received."""
        ...

    def handle_close(self) -> None:
        """The socket is closed, whoever closed it.  Called at most once."""
        ...


@runtime_checkable
class Transport(Protocol):
    """Protocol for a single outbound WebSocket session.

    A transport must not deliver ``handle_message`` or ``handle_close``
    before ``handle_open`` except when opening fails, in which case only
    ``handle_close`` is delivered.
    """

    def bind(self, listener: TransportListener) -> None:
        """Attach the listener.  Must be called before ``start``."""
        ...

    def start(self) -> None:
        """Begin opening the socket without blocking."""
        ...

    def send(self, text: str) -> None:
        """Queue a text frame.  Best-effort and non-blocking."""
        ...

    def close(self) -> None:
        """Request the socket to close.  Idempotent."""
        ...


class TransportFactory(Protocol):
    def __call__(self, endpoint: str) -> Transport: ...
