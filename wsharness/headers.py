from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

from .errors import InvalidRequestError

# RFC 7230 token characters.
_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")

# Set by the transport during the upgrade; callers may not override them.
RESERVED_HEADERS = frozenset(
    {
        "host",
        "upgrade",
        "connection",
        "sec-websocket-key",
        "sec-websocket-version",
        "sec-websocket-accept",
    }
)


def validate_header(name: str, value: str) -> tuple[str, str]:
    """
    Reject header names that are not tokens and values containing control
    characters (CR, LF, NUL and friends). Unlike sanitizing, invalid input
    is an error: a test that sends a broken header should fail loudly.
    """
    if not isinstance(name, str) or not _TOKEN_RE.match(name):
        raise InvalidRequestError(f"Invalid header name: {name!r}")
    if not isinstance(value, str):
        raise InvalidRequestError(f"Header {name} value must be a string")
    try:
        value.encode("latin-1")
    except UnicodeEncodeError as exc:
        raise InvalidRequestError(f"Header {name} value is not Latin-1: {value!r}") from exc
    for ch in value:
        if (ord(ch) < 0x20 and ch != "\t") or ord(ch) == 0x7F:
            raise InvalidRequestError(f"Invalid character in header {name}: {value!r}")
    if name.lower() in RESERVED_HEADERS:
        raise InvalidRequestError(f"Header {name} is set by the transport")
    return name, value


def merge_headers(
    default_headers: Mapping[str, str] | None,
    request_headers: Iterable[tuple[str, str]],
) -> list[tuple[str, str]]:
    """
    Merge launcher defaults with request headers. Request headers win on a
    case-insensitive name clash; defaults keep their position otherwise.
    """
    merged: dict[str, tuple[str, str]] = {}
    for name, value in (default_headers or {}).items():
        name, value = validate_header(name, value)
        merged[name.lower()] = (name, value)
    for name, value in request_headers:
        name, value = validate_header(name, value)
        merged[name.lower()] = (name, value)
    return list(merged.values())
