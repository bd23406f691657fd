"""Tests for wsharness.utils module."""

import pytest
from wsharness.errors import InvalidRequestError
from wsharness.utils import parse_ws_url


class TestParseWsUrl:
    """Tests for parse_ws_url function."""

    def test_ws_default_port(self):
        """Test ws:// URL gets port 80."""
        parsed, host, port, path = parse_ws_url("ws://example.com/socket")
        assert parsed.scheme == "ws"
        assert host == "example.com"
        assert port == 80
        assert path == "/socket"

    def test_wss_default_port(self):
        """Test wss:// URL gets port 443."""
        _, host, port, path = parse_ws_url("wss://echo.example/socket")
        assert host == "echo.example"
        assert port == 443
        assert path == "/socket"

    def test_explicit_port(self):
        """Test explicit port is kept."""
        _, _, port, _ = parse_ws_url("ws://localhost:9000/ws")
        assert port == 9000

    def test_empty_path_becomes_root(self):
        """Test missing path defaults to /."""
        _, _, _, path = parse_ws_url("ws://example.com")
        assert path == "/"

    def test_query_is_kept(self):
        """Test query string is appended to the resource."""
        _, _, _, path = parse_ws_url("ws://example.com/ws?token=abc")
        assert path == "/ws?token=abc"

    @pytest.mark.parametrize(
        "url",
        [
            "not a url",
            "",
            "http://example.com/ws",
            "https://example.com/ws",
            "ws:///no-host",
            "ws://example.com:notaport/ws",
            "ws://example.com/with space",
        ],
    )
    def test_invalid_urls_raise(self, url):
        """Test malformed or non-websocket URLs raise InvalidRequestError."""
        with pytest.raises(InvalidRequestError):
            parse_ws_url(url)

    def test_port_zero_rejected(self):
        """Test an explicit port 0 is rejected rather than defaulted."""
        with pytest.raises(InvalidRequestError, match="Port 0"):
            parse_ws_url("ws://example.com:0/ws")

    def test_non_ascii_resource_percent_encoded(self):
        """Test non-ASCII path and query are percent-encoded."""
        _, _, _, path = parse_ws_url("ws://example.com/路径?q=ü")
        assert path == "/%E8%B7%AF%E5%BE%84?q=%C3%BC"
        path.encode("ascii")

    def test_encoded_resource_left_alone(self):
        """Test an already-encoded resource is not double-encoded."""
        _, _, _, path = parse_ws_url("ws://example.com/a%20b?x=1&y=2")
        assert path == "/a%20b?x=1&y=2"

    def test_non_ascii_host_idna_encoded(self):
        """Test an internationalized host becomes its ASCII form."""
        _, host, _, _ = parse_ws_url("ws://例え.jp/")
        assert host == "xn--r8jz45g.jp"

    def test_non_string_raises(self):
        """Test non-string URL raises InvalidRequestError."""
        with pytest.raises(InvalidRequestError):
            parse_ws_url(None)
