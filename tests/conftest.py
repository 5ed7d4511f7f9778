"""Shared fixtures for httpchain tests."""

from typing import Optional

import pytest
from httpchain import HttpClient, TransportRequest, TransportResult


class FakeTransport:
    """Transport that replays scripted outcomes and records every request."""

    def __init__(self, outcomes: Optional[list] = None):
        self.outcomes = list(outcomes or [])
        self.requests: list[TransportRequest] = []

    def send(self, request: TransportRequest) -> Optional[TransportResult]:
        self.requests.append(request)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def ok_result(body: bytes = b"ok", *headers: str, status: str = "HTTP/1.1 200 OK") -> TransportResult:
    """Build a transport result with a status line and header lines."""
    return TransportResult(body=body, header_lines=(status, *headers))


@pytest.fixture
def sleeps():
    """Recorded sleep durations (seconds)."""
    return []


@pytest.fixture
def sink_messages():
    """Recorded (message, level) log sink calls."""
    return []


@pytest.fixture
def make_client(sleeps, sink_messages):
    """Factory creating an HttpClient around a FakeTransport."""

    def factory(*outcomes, with_sink: bool = False):
        transport = FakeTransport(list(outcomes) or [ok_result()])
        client = HttpClient(
            transport=transport,
            log_sink=(lambda message, level: sink_messages.append((message, level))) if with_sink else None,
            sleep=sleeps.append,
        )
        return client, transport

    return factory
