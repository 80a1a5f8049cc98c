"""Shared fixtures: an in-memory stand-in for USBConnection."""

from __future__ import annotations

import pytest


class FakeConnection:
    """Replays canned read responses and records every write.

    A response of ``None`` behaves like a timed-out transfer.
    """

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.writes: list[bytes] = []
        self.reads: list[tuple[int, int]] = []
        self.open_count = 0
        self.close_count = 0

    def open(self):
        self.open_count += 1

    def close(self):
        self.close_count += 1

    def write(self, data: bytes) -> int:
        self.writes.append(bytes(data))
        return len(data)

    def read(self, length: int, timeout_ms: int = 1000):
        self.reads.append((length, timeout_ms))
        if not self.responses:
            return None
        return self.responses.pop(0)


@pytest.fixture
def fake_connection():
    """Factory for FakeConnection instances."""
    return FakeConnection
