"""Transport backends for subscriber sessions."""

from fhircast.transport.base import Transport, TransportFactory, TransportListener
from fhircast.transport.websocket import WebSocketTransport

__all__ = ["Transport", "TransportFactory", "TransportListener", "WebSocketTransport"]
