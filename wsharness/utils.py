from __future__ import annotations

from urllib.parse import quote, urlparse

from .errors import InvalidRequestError

# Characters left as-is when percent-encoding a resource (RFC 3986 pchar, "/", "?", "%").
_RESOURCE_SAFE = "/?%:@!$&'()*+,;=-._~"


def parse_ws_url(url: str):
    if not isinstance(url, str) or not url:
        raise InvalidRequestError("URL must be a non-empty string")
    if any(ch.isspace() for ch in url):
        raise InvalidRequestError(f"URL contains whitespace: {url!r}")
    try:
        parsed = urlparse(url)
        port = parsed.port
    except ValueError as exc:
        raise InvalidRequestError(f"Malformed URL {url!r}: {exc}") from exc
    if parsed.scheme not in ("ws", "wss"):
        raise InvalidRequestError(f"Only ws and wss schemes are supported: {url!r}")
    host = parsed.hostname or ""
    if not host:
        raise InvalidRequestError(f"URL has no host: {url!r}")
    try:
        host = host.encode("idna").decode("ascii")
    except UnicodeError as exc:
        raise InvalidRequestError(f"Invalid host in URL {url!r}: {exc}") from exc
    if port == 0:
        raise InvalidRequestError(f"Port 0 is not a valid destination: {url!r}")
    if port is None:
        port = 443 if parsed.scheme == "wss" else 80
    path = parsed.path or "/"
    if parsed.query:
        path = f"{path}?{parsed.query}"
    return parsed, host, port, quote(path, safe=_RESOURCE_SAFE)
