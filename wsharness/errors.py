class HarnessError(Exception):
    """Base error for wsharness."""


class InvalidRequestError(HarnessError, ValueError):
    """Raised synchronously when a connection request is malformed."""


class ConnectionError(HarnessError):
    """Raised when the WebSocket connection cannot be established."""


class TLSNegotiationError(ConnectionError):
    """Raised when the TLS handshake fails."""


class HandshakeError(ConnectionError):
    """Raised when the server rejects the WebSocket upgrade."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ObservedTransportError(HarnessError):
    """Reported to a listener when an open connection fails. Never raised by the harness."""


class ConnectionClosedError(HarnessError):
    """Raised when using a WebSocket that has already been closed."""
