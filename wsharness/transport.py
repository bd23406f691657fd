from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Iterable
from typing import Any, Protocol

from .async_websocket import AsyncWebSocket, emit_event
from .errors import ConnectionError, TLSNegotiationError
from .utils import parse_ws_url

log = logging.getLogger(__name__)


class Listener(Protocol):
    """Receives lifecycle callbacks for one connection."""

    def on_opened(self, connection: Any) -> None: ...

    def on_closed(self, code: int, reason: str) -> None: ...

    def on_errored(self, error: BaseException) -> None: ...


class Transport(Protocol):
    """Performs the upgrade and drives ``listener`` for the connection lifetime."""

    async def connect(
        self,
        url: str,
        headers: Iterable[tuple[str, str]],
        listener: Listener,
    ) -> Any: ...


class AsyncWebSocketTransport:
    """
    Default transport built on AsyncWebSocket.

    Failures before the upgrade completes are raised (ConnectionError and
    subclasses) and never reach the listener. After the upgrade the listener
    gets ``on_opened`` and later exactly one of ``on_closed`` / ``on_errored``.

    Args:
        timeout: Seconds allowed for the TCP/TLS connect and for the upgrade
            response.
        ssl_context: Context for wss:// URLs (default: system defaults).
    """

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        ssl_context: ssl.SSLContext | None = None,
    ) -> None:
        self.timeout = timeout
        self.ssl_context = ssl_context

    async def connect(
        self,
        url: str,
        headers: Iterable[tuple[str, str]],
        listener: Listener,
    ) -> AsyncWebSocket:
        parsed, host, port, path = parse_ws_url(url)
        try:
            ws = await AsyncWebSocket.connect(
                host=host,
                port=port,
                resource=path,
                headers=list(headers),
                tls=parsed.scheme == "wss",
                timeout=self.timeout,
                ssl_context=self.ssl_context,
            )
        except ConnectionError:
            raise
        except ssl.SSLError as exc:
            raise TLSNegotiationError(f"TLS handshake with {host}:{port} failed: {exc}") from exc
        except (OSError, asyncio.TimeoutError) as exc:
            raise ConnectionError(f"Could not connect to {host}:{port}: {exc!r}") from exc

        emit_event(listener.on_opened, ws)
        ws.start(listener)
        return ws
