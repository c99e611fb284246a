"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_DSN = "https://public@faultline.example.com/42"


class RecordingTransport:
    """In-memory transport keeping everything it was handed."""

    def __init__(self):
        self.events: list[dict] = []
        self.sessions: list[dict] = []
        self.lost: list[tuple] = []
        self.close_calls: list = []

    async def send_event(self, event):
        from faultline.models import EventStatus, TransportResponse

        self.events.append(event)
        return TransportResponse(status=EventStatus.SUCCESS)

    async def send_session(self, session):
        from faultline.models import EventStatus, TransportResponse

        self.sessions.append(session)
        return TransportResponse(status=EventStatus.SUCCESS)

    async def close(self, timeout=None):
        self.close_calls.append(timeout)
        return True

    def record_lost_event(self, outcome, category):
        self.lost.append((outcome, category))


@pytest.fixture
def registry():
    """Fresh processor registry, isolated from the process-wide one."""
    from faultline.hub import EventProcessorRegistry

    return EventProcessorRegistry()


@pytest.fixture
def transport():
    """Recording transport."""
    return RecordingTransport()


@pytest.fixture
def options(transport):
    """Enabled client options delivering to the recording transport."""
    from faultline.config import ClientOptions

    return ClientOptions(
        dsn=TEST_DSN,
        release="app@1.0.0",
        environment="test",
        default_integrations=False,
        transport=lambda _options: transport,
    )


@pytest.fixture
def client(options, registry):
    """Client wired to the recording transport."""
    from faultline.client import Client

    return Client(options, processors=registry)


@pytest.fixture
def hub(client, registry):
    """Hub with the test client bound."""
    from faultline.hub import Hub

    return Hub(client, processors=registry)


@pytest.fixture
def main_hub(hub):
    """Install the test hub as the process-wide hub for the test's duration."""
    from faultline.hub import make_main

    previous = make_main(hub)
    yield hub
    make_main(previous)


@pytest.fixture
def js_type_error():
    """Native TypeError with a two-frame V8 stack."""
    from faultline.models import JSError

    return JSError(
        name="TypeError",
        message="x is not a function",
        stack=(
            "TypeError: x is not a function\n"
            "    at handleClick (http://example.com/static/app.js:10:15)\n"
            "    at HTMLButtonElement.dispatch (http://example.com/static/vendor.js:2:300)"
        ),
    )
