from __future__ import annotations

import asyncio
import base64
import hashlib
import logging
import os
import ssl
import struct
from collections.abc import Iterable

from .errors import ConnectionClosedError, HandshakeError, ObservedTransportError

log = logging.getLogger(__name__)

WS_GUID = "258EAFA5-E914-47DA-95CA-C5AB0DC85B11"

OP_CONTINUATION = 0x0
OP_TEXT = 0x1
OP_BINARY = 0x2
OP_CLOSE = 0x8
OP_PING = 0x9
OP_PONG = 0xA

# Close codes that never appear on the wire (RFC 6455 section 7.4.1).
CLOSE_NO_STATUS = 1005
CLOSE_ABNORMAL = 1006


def parse_handshake_response(resp: bytes) -> tuple[int | None, dict[str, str]]:
    """Parse the status code and headers (lower-cased names) of an upgrade response."""
    text = resp.decode("latin-1")
    status_line, _, rest = text.partition("\r\n")
    parts = status_line.split(" ", 2)
    status: int | None = None
    if len(parts) >= 2 and parts[0].startswith("HTTP/") and parts[1].isdigit():
        status = int(parts[1])
    headers: dict[str, str] = {}
    for line in rest.split("\r\n"):
        if not line:
            continue
        name, sep, value = line.partition(":")
        if sep:
            headers[name.strip().lower()] = value.strip()
    return status, headers


def expected_accept(key: str) -> str:
    return base64.b64encode(hashlib.sha1((key + WS_GUID).encode()).digest()).decode()


def emit_event(callback, *args) -> None:
    """Invoke a listener callback; a failing listener must not stop dispatch."""
    try:
        callback(*args)
    except Exception:
        log.exception("websocket listener %r raised", callback)


class AsyncWebSocket:
    """
    Async WebSocket client (RFC6455) over asyncio streams.
    Supports text/binary recv and send; no extensions; no permessage-deflate.

    Once ``start`` has been called a background task owns the read side:
    data frames are queued for ``recv``, pings are answered, and the close
    or failure of the connection is reported to the listener exactly once.
    """

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self._closed = False
        self._close_sent = False
        self._messages: asyncio.Queue[tuple[int, bytes] | None] = asyncio.Queue()
        self._reader_task: asyncio.Task | None = None

    @classmethod
    async def connect(
        cls,
        host: str,
        port: int,
        resource: str,
        headers: Iterable[tuple[str, str]],
        tls: bool = False,
        timeout: float = 10.0,
        ssl_context: ssl.SSLContext | None = None,
    ) -> AsyncWebSocket:
        """Open the stream and perform the upgrade. Raises HandshakeError on rejection."""
        if tls and ssl_context is None:
            ssl_context = ssl.create_default_context()

        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(
                host=host,
                port=port,
                ssl=ssl_context if tls else None,
                server_hostname=host if tls else None,
            ),
            timeout=timeout,
        )

        key = base64.b64encode(os.urandom(16)).decode()
        host_header = host if port in (80, 443) else f"{host}:{port}"
        req_lines = [
            f"GET {resource} HTTP/1.1\r\n",
            f"Host: {host_header}\r\n",
            "Upgrade: websocket\r\n",
            "Connection: Upgrade\r\n",
            f"Sec-WebSocket-Key: {key}\r\n",
            "Sec-WebSocket-Version: 13\r\n",
        ]
        for name, value in headers:
            req_lines.append(f"{name}: {value}\r\n")
        req_lines.append("\r\n")

        try:
            writer.write("".join(req_lines).encode("latin-1"))
            await writer.drain()
            resp = await asyncio.wait_for(reader.readuntil(b"\r\n\r\n"), timeout=timeout)
        except asyncio.IncompleteReadError as exc:
            await cls._abort(writer)
            raise HandshakeError(f"Connection closed during upgrade: {exc.partial!r}") from exc
        except asyncio.LimitOverrunError as exc:
            await cls._abort(writer)
            raise HandshakeError("Upgrade response headers too large") from exc
        except BaseException:
            await cls._abort(writer)
            raise

        status, resp_headers = parse_handshake_response(resp)
        if status != 101:
            await cls._abort(writer)
            raise HandshakeError(f"WebSocket upgrade failed: {resp!r}", status_code=status)

        if resp_headers.get("sec-websocket-accept") != expected_accept(key):
            await cls._abort(writer)
            raise HandshakeError("WebSocket accept mismatch", status_code=status)

        log.debug("websocket upgraded %s:%s%s", host, port, resource)
        return cls(reader, writer)

    @staticmethod
    async def _abort(writer: asyncio.StreamWriter) -> None:
        writer.close()
        try:
            await writer.wait_closed()
        except Exception:
            pass

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self, listener) -> asyncio.Task:
        """Start dispatching frames and lifecycle events to ``listener``."""
        if self._reader_task is None:
            self._reader_task = asyncio.ensure_future(self._dispatch(listener))
        return self._reader_task

    async def send_text(self, text: str) -> None:
        """Send a text message."""
        await self._send_frame(OP_TEXT, text.encode("utf-8"))

    async def send_bytes(self, data: bytes) -> None:
        """Send a binary message."""
        await self._send_frame(OP_BINARY, data)

    async def recv(self) -> tuple[int, bytes]:
        """Receive a message and return (opcode, payload)."""
        if self._reader_task is None:
            if self._closed:
                raise ConnectionClosedError("WebSocket is closed")
            return await self._recv_frame()
        item = await self._messages.get()
        if item is None:
            # Leave the sentinel for any other waiter.
            self._messages.put_nowait(None)
            raise ConnectionClosedError("WebSocket is closed")
        return item

    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Start the closing handshake. With a running dispatcher the close is
        reported to the listener when the server answers.
        """
        if self._closed or self._close_sent:
            return
        payload = struct.pack("!H", code) + reason.encode("utf-8")
        try:
            await self._send_frame(OP_CLOSE, payload)
        except Exception:
            pass
        if self._reader_task is None:
            await self._shutdown()

    async def _shutdown(self) -> None:
        self._closed = True
        self._messages.put_nowait(None)
        try:
            self.writer.close()
            await self.writer.wait_closed()
        except Exception:
            pass

    async def _dispatch(self, listener) -> None:
        try:
            while True:
                try:
                    opcode, payload = await self._recv_frame()
                except asyncio.IncompleteReadError:
                    log.debug("websocket stream ended without close frame")
                    emit_event(listener.on_closed, CLOSE_ABNORMAL, "")
                    return
                if opcode in (OP_TEXT, OP_BINARY, OP_CONTINUATION):
                    self._messages.put_nowait((opcode, payload))
                elif opcode == OP_PING and not self._close_sent:
                    await self._send_frame(OP_PONG, payload)
                elif opcode == OP_CLOSE:
                    code, reason = self._parse_close(payload)
                    if not self._close_sent:
                        try:
                            await self._send_frame(OP_CLOSE, payload[:2])
                        except Exception as exc:
                            log.debug("could not echo close frame: %s", exc)
                    log.debug("websocket closed by peer: %s %r", code, reason)
                    emit_event(listener.on_closed, code, reason)
                    return
        except Exception as exc:
            log.debug("websocket read failed: %r", exc)
            error = ObservedTransportError(f"WebSocket failed after open: {exc}")
            error.__cause__ = exc
            emit_event(listener.on_errored, error)
        finally:
            await self._shutdown()

    @staticmethod
    def _parse_close(payload: bytes) -> tuple[int, str]:
        if len(payload) < 2:
            return CLOSE_NO_STATUS, ""
        code = struct.unpack("!H", payload[:2])[0]
        return code, payload[2:].decode("utf-8", errors="replace")

    async def _send_frame(self, opcode: int, payload: bytes) -> None:
        """Send a WebSocket frame."""
        if self._closed or self._close_sent:
            raise ConnectionClosedError("WebSocket is closed")
        if opcode == OP_CLOSE:
            self._close_sent = True

        fin_opcode = 0x80 | opcode
        mask_bit = 0x80
        length = len(payload)
        header = bytearray([fin_opcode])

        if length < 126:
            header.append(mask_bit | length)
        elif length < (1 << 16):
            header.append(mask_bit | 126)
            header.extend(struct.pack("!H", length))
        else:
            header.append(mask_bit | 127)
            header.extend(struct.pack("!Q", length))

        mask = os.urandom(4)
        header.extend(mask)
        masked = bytes(b ^ mask[i % 4] for i, b in enumerate(payload))

        self.writer.write(bytes(header) + masked)
        await self.writer.drain()

    async def _recv_frame(self) -> tuple[int, bytes]:
        """Receive a WebSocket frame."""
        header = await self.reader.readexactly(2)
        b1, b2 = header
        opcode = b1 & 0x0F
        masked = (b2 & 0x80) != 0
        length = b2 & 0x7F

        if length == 126:
            length = struct.unpack("!H", await self.reader.readexactly(2))[0]
        elif length == 127:
            length = struct.unpack("!Q", await self.reader.readexactly(8))[0]

        mask_key = await self.reader.readexactly(4) if masked else None
        payload = await self.reader.readexactly(length)

        if masked and mask_key:
            payload = bytes(b ^ mask_key[i % 4] for i, b in enumerate(payload))

        return opcode, payload

    async def __aenter__(self) -> AsyncWebSocket:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
        if self._reader_task is not None:
            try:
                await asyncio.wait_for(asyncio.shield(self._reader_task), timeout=5.0)
            except asyncio.TimeoutError:
                pass
