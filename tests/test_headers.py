"""Tests for wsharness.headers module."""

import pytest
from wsharness.errors import InvalidRequestError
from wsharness.headers import merge_headers, validate_header


class TestValidateHeader:
    """Tests for validate_header function."""

    def test_valid_header_returned(self):
        """Test a valid header passes through unchanged."""
        assert validate_header("Origin", "http://test.local") == ("Origin", "http://test.local")

    def test_tab_allowed_in_value(self):
        """Test horizontal tab is a legal value character."""
        assert validate_header("X-Test", "a\tb") == ("X-Test", "a\tb")

    @pytest.mark.parametrize("value", ["evil\r\nX-Injected: 1", "a\nb", "a\x00b", "a\x7fb"])
    def test_control_characters_rejected(self, value):
        """Test CRLF injection and control characters are rejected."""
        with pytest.raises(InvalidRequestError):
            validate_header("Origin", value)

    @pytest.mark.parametrize("name", ["", "Bad Name", "X:Y", "X\r\n"])
    def test_invalid_names_rejected(self, name):
        """Test non-token header names are rejected."""
        with pytest.raises(InvalidRequestError):
            validate_header(name, "value")

    @pytest.mark.parametrize("name", ["Host", "upgrade", "Sec-WebSocket-Key"])
    def test_reserved_headers_rejected(self, name):
        """Test headers set by the transport cannot be supplied."""
        with pytest.raises(InvalidRequestError, match="set by the transport"):
            validate_header(name, "x")

    @pytest.mark.parametrize("value", ["http://例え.jp", "emoji \U0001F600", "snowman ☃"])
    def test_non_latin1_value_rejected(self, value):
        """Test values that cannot go on the wire as Latin-1 are rejected."""
        with pytest.raises(InvalidRequestError, match="Latin-1"):
            validate_header("Origin", value)

    def test_latin1_value_accepted(self):
        """Test Latin-1 text outside ASCII passes."""
        assert validate_header("X-Name", "café") == ("X-Name", "café")

    def test_non_string_value_rejected(self):
        """Test non-string values are rejected."""
        with pytest.raises(InvalidRequestError):
            validate_header("X-Num", 5)


class TestMergeHeaders:
    """Tests for merge_headers function."""

    def test_request_overrides_default(self):
        """Test request headers win over defaults case-insensitively."""
        merged = merge_headers({"user-agent": "default"}, [("User-Agent", "custom")])
        assert merged == [("User-Agent", "custom")]

    def test_defaults_first_then_request(self):
        """Test default headers keep their position."""
        merged = merge_headers(
            {"X-Default": "1"}, [("Origin", "http://test.local"), ("X-Extra", "2")]
        )
        assert merged == [
            ("X-Default", "1"),
            ("Origin", "http://test.local"),
            ("X-Extra", "2"),
        ]

    def test_no_defaults(self):
        """Test None defaults is accepted."""
        assert merge_headers(None, [("Origin", "o")]) == [("Origin", "o")]

    def test_invalid_default_rejected(self):
        """Test invalid defaults are rejected too."""
        with pytest.raises(InvalidRequestError):
            merge_headers({"X-Bad": "a\r\nb"}, [])
