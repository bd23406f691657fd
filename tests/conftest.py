"""Pytest configuration and fixtures."""

import pytest
from wsharness.recorder import EventRecorder


class FakeTransport:
    """Transport double that records calls and opens or fails on demand."""

    def __init__(self, connection=None, error=None):
        self.connection = connection if connection is not None else object()
        self.error = error
        self.calls = []

    async def connect(self, url, headers, listener):
        self.calls.append((url, list(headers), listener))
        if self.error is not None:
            raise self.error
        listener.on_opened(self.connection)
        return self.connection


@pytest.fixture
def recorder():
    """Create a fresh EventRecorder."""
    return EventRecorder()


@pytest.fixture
def fake_transport():
    """Create a transport double that succeeds."""
    return FakeTransport()


@pytest.fixture
def frame_reader():
    """Build a mock reader.readexactly side effect serving ``data``."""

    def build(data: bytes):
        idx = [0]

        async def readexactly(n):
            import asyncio

            start = idx[0]
            if start + n > len(data):
                idx[0] = len(data)
                raise asyncio.IncompleteReadError(data[start:], n)
            idx[0] = start + n
            return data[start : start + n]

        return readexactly

    return build
