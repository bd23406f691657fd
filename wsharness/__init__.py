from wsharness.launcher import ConnectionLauncher, wait_for_connection
from wsharness.recorder import EventRecorder
from wsharness.models import (
    ConnectionRequest,
    ConnectionState,
    Opened,
    Closed,
    Errored,
    EventRecord,
)
from wsharness.transport import AsyncWebSocketTransport, Listener, Transport
from wsharness.async_websocket import AsyncWebSocket
from wsharness.errors import (
    HarnessError,
    InvalidRequestError,
    ConnectionError,
    TLSNegotiationError,
    HandshakeError,
    ObservedTransportError,
    ConnectionClosedError,
)

__all__ = [
    "ConnectionLauncher",
    "wait_for_connection",
    "EventRecorder",
    "ConnectionRequest",
    "ConnectionState",
    "Opened",
    "Closed",
    "Errored",
    "EventRecord",
    "AsyncWebSocketTransport",
    "Listener",
    "Transport",
    "AsyncWebSocket",
    "HarnessError",
    "InvalidRequestError",
    "ConnectionError",
    "TLSNegotiationError",
    "HandshakeError",
    "ObservedTransportError",
    "ConnectionClosedError",
]
