"""Listener that records WebSocket lifecycle events for test assertions.

The recorder never initiates anything. Transports call ``on_opened``,
``on_closed`` and ``on_errored``, possibly from their own I/O threads, and
tests read the accessors at any time.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from typing import Any

from .errors import ObservedTransportError
from .models import Closed, ConnectionState, Errored, EventRecord, Opened

log = logging.getLogger(__name__)

Observer = Callable[[EventRecord, ConnectionState], None]

_STATE_ORDER = {
    ConnectionState.IDLE: 0,
    ConnectionState.OPENED: 1,
    ConnectionState.CLOSED: 2,
    ConnectionState.ERRORED: 2,
}


def _resolve(fut: asyncio.Future) -> None:
    if not fut.done():
        fut.set_result(True)


class EventRecorder:
    """
    Records lifecycle events of one connection.

    State moves ``IDLE -> OPENED -> CLOSED | ERRORED``; ``ERRORED`` is also
    reachable straight from ``IDLE``. The first terminal event wins: later
    events are kept in ``events`` but never change the state, the close
    details or the recorded error.

    Args:
        observer: Optional callable ``(record, state)`` invoked after every
            delivered event, outside the lock. Exceptions it raises are
            recorded as secondary ``Errored`` events and never reach the
            transport.
        logger: Logger used for transition messages (default: module logger).
    """

    def __init__(
        self,
        observer: Observer | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._observer = observer
        self._log = logger or log
        self._lock = threading.Lock()
        self._terminal = threading.Event()
        self._waiters: list[tuple[asyncio.AbstractEventLoop, asyncio.Future, int]] = []
        self._state = ConnectionState.IDLE
        self._connection: Any = None
        self._error: BaseException | None = None
        self._close_code: int | None = None
        self._close_reason: str | None = None
        self._events: list[EventRecord] = []

    # Transport callbacks

    def on_opened(self, connection: Any) -> None:
        self._deliver(Opened(connection))

    def on_closed(self, code: int, reason: str) -> None:
        self._deliver(Closed(code, reason))

    def on_errored(self, error: BaseException) -> None:
        self._deliver(Errored(error))

    # Accessors

    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    def last_error(self) -> BaseException | None:
        with self._lock:
            return self._error

    @property
    def is_terminal(self) -> bool:
        return self.state().is_terminal

    @property
    def connection(self) -> Any:
        with self._lock:
            return self._connection

    @property
    def close_code(self) -> int | None:
        with self._lock:
            return self._close_code

    @property
    def close_reason(self) -> str | None:
        with self._lock:
            return self._close_reason

    @property
    def events(self) -> list[EventRecord]:
        """Snapshot of every delivered event, in delivery order."""
        with self._lock:
            return list(self._events)

    # Waiting

    def wait(self, timeout: float | None = None) -> bool:
        """Block until a terminal state is reached. Returns False on timeout."""
        return self._terminal.wait(timeout)

    async def wait_terminal(self, timeout: float | None = None) -> bool:
        """Like ``wait`` but without blocking the event loop."""
        return await self.wait_for_state(ConnectionState.CLOSED, timeout)

    async def wait_for_state(
        self, state: ConnectionState, timeout: float | None = None
    ) -> bool:
        """
        Wait until the recorder reaches ``state`` or a later one.

        ``CLOSED`` and ``ERRORED`` are the same step: waiting for either one
        returns once any terminal state is reached.
        """
        target = _STATE_ORDER[state]
        loop = asyncio.get_running_loop()
        with self._lock:
            if _STATE_ORDER[self._state] >= target:
                return True
            waiter = (loop, loop.create_future(), target)
            self._waiters.append(waiter)
        try:
            await asyncio.wait_for(waiter[1], timeout)
            return True
        except asyncio.TimeoutError:
            return False
        finally:
            with self._lock:
                if waiter in self._waiters:
                    self._waiters.remove(waiter)

    # Internals

    def _deliver(self, record: EventRecord) -> None:
        with self._lock:
            self._events.append(record)
            applied = self._apply(record)
            state = self._state
            ready = []
            if applied:
                if state.is_terminal:
                    self._terminal.set()
                reached = _STATE_ORDER[state]
                ready = [w for w in self._waiters if reached >= w[2]]
                for waiter in ready:
                    self._waiters.remove(waiter)

        for loop, fut, _ in ready:
            if not loop.is_closed():
                loop.call_soon_threadsafe(_resolve, fut)

        if applied:
            self._log.debug("websocket %s -> %s", type(record).__name__, state.value)
        else:
            self._log.debug(
                "websocket %s ignored in terminal state %s",
                type(record).__name__,
                state.value,
            )
        self._notify(record, state)

    def _apply(self, record: EventRecord) -> bool:
        """Apply ``record`` to the state. Caller holds the lock."""
        if self._state.is_terminal:
            return False
        if isinstance(record, Opened):
            self._connection = record.connection
            self._state = ConnectionState.OPENED
        elif isinstance(record, Closed):
            self._close_code = record.code
            self._close_reason = record.reason
            self._state = ConnectionState.CLOSED
        else:
            self._error = record.error
            self._state = ConnectionState.ERRORED
        return True

    def _notify(self, record: EventRecord, state: ConnectionState) -> None:
        if self._observer is None:
            return
        try:
            self._observer(record, state)
        except Exception as exc:
            self._log.warning("recorder observer failed on %r: %s", record, exc)
            wrapped = ObservedTransportError(f"observer failed: {exc}")
            wrapped.__cause__ = exc
            with self._lock:
                self._events.append(Errored(wrapped, secondary=True))

    def __repr__(self) -> str:
        return f"<EventRecorder state={self.state().value}>"
