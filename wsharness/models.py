from __future__ import annotations

import enum
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, NamedTuple, Union


class ConnectionRequest:
    """
    Immutable description of a single WebSocket connection attempt.

    The Origin header is sent first when ``origin`` is non-empty; an empty
    origin sends no Origin header at all.
    """

    __slots__ = ("_url", "_origin", "_headers")

    def __init__(
        self,
        url: str,
        origin: str = "",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        object.__setattr__(self, "_url", url)
        object.__setattr__(self, "_origin", origin)
        object.__setattr__(self, "_headers", MappingProxyType(dict(headers or {})))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("ConnectionRequest is immutable")

    @property
    def url(self) -> str:
        return self._url

    @property
    def origin(self) -> str:
        return self._origin

    @property
    def headers(self) -> Mapping[str, str]:
        return self._headers

    def header_items(self) -> list[tuple[str, str]]:
        items: list[tuple[str, str]] = []
        if self._origin:
            items.append(("Origin", self._origin))
        items.extend(
            (name, value)
            for name, value in self._headers.items()
            if name.lower() != "origin" or not self._origin
        )
        return items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConnectionRequest):
            return NotImplemented
        return (self._url, self._origin, dict(self._headers)) == (
            other._url,
            other._origin,
            dict(other._headers),
        )

    def __hash__(self) -> int:
        return hash((self._url, self._origin, tuple(sorted(self._headers.items()))))

    def __repr__(self) -> str:
        return f"<ConnectionRequest {self._url} origin={self._origin!r}>"


class ConnectionState(enum.Enum):
    IDLE = "idle"
    OPENED = "opened"
    CLOSED = "closed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (ConnectionState.CLOSED, ConnectionState.ERRORED)


class Opened(NamedTuple):
    connection: Any


class Closed(NamedTuple):
    code: int
    reason: str


class Errored(NamedTuple):
    error: BaseException
    # True when the error came from a caller-supplied observer, not the transport.
    secondary: bool = False


EventRecord = Union[Opened, Closed, Errored]
