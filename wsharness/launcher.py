"""Opens one WebSocket connection per call and hands back a future for it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from .errors import ConnectionError
from .headers import merge_headers
from .models import ConnectionRequest
from .transport import AsyncWebSocketTransport, Listener, Transport
from .utils import parse_ws_url

log = logging.getLogger(__name__)


class ConnectionLauncher:
    """
    Issues a single outbound upgrade per ``connect`` call.

    The returned future resolves with the connection handle or fails with
    ConnectionError. Failures after the upgrade are reported only to the
    listener. No retries and no timeout; layer those on the future, e.g.
    with ``wait_for_connection``.

    Args:
        transport: Object with a ``connect(url, headers, listener)`` coroutine
            (default: AsyncWebSocketTransport()).
        default_headers: Headers sent with every request unless the request
            overrides them.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        *,
        default_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.transport = transport if transport is not None else AsyncWebSocketTransport()
        self.default_headers = dict(default_headers or {})

    def connect(self, request: ConnectionRequest, listener: Listener) -> asyncio.Future:
        """
        Validate ``request`` and start the connection attempt.

        Raises InvalidRequestError before any I/O when the URL, origin or
        headers are malformed. Must be called from a running event loop.
        """
        parse_ws_url(request.url)
        headers = merge_headers(self.default_headers, request.header_items())

        loop = asyncio.get_running_loop()
        log.debug("connecting to %s", request.url)
        return loop.create_task(self._open(request.url, headers, listener))

    def call(
        self,
        url: str,
        origin: str,
        listener: Listener,
        headers: Mapping[str, str] | None = None,
    ) -> asyncio.Future:
        """Shorthand for ``connect(ConnectionRequest(url, origin, headers), listener)``."""
        return self.connect(ConnectionRequest(url, origin, headers), listener)

    async def _open(
        self,
        url: str,
        headers: list[tuple[str, str]],
        listener: Listener,
    ) -> Any:
        try:
            connection = await self.transport.connect(url, headers, listener)
        except ConnectionError as exc:
            log.debug("connection to %s failed: %s", url, exc)
            raise
        except Exception as exc:
            log.debug("connection to %s failed: %r", url, exc)
            raise ConnectionError(f"Connection to {url} failed: {exc}") from exc
        log.debug("connected to %s", url)
        return connection


async def wait_for_connection(future: asyncio.Future, timeout: float) -> Any:
    """
    Wait up to ``timeout`` seconds for a connect future.

    On timeout raises asyncio.TimeoutError and leaves the attempt running:
    the connection is abandoned, not cancelled, and is not closed if it
    opens later.
    """
    return await asyncio.wait_for(asyncio.shield(future), timeout)
