"""Test fixtures for server tests.

Builds the app with an in-memory span source in place of the upstream API,
so every test controls the spans returned and can count upstream calls.
"""

import copy
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from spanheat.config.loader import DEFAULT_CONFIG
from spanheat.models.entities import Span
from spanheat.server.app import create_app


class FakeSpanSource:
    """Span source returning canned spans and counting fetches."""

    def __init__(self, spans=(), error=None):
        self.spans = tuple(spans)
        self.error = error
        self.calls = 0

    async def fetch_spans(self, user_id):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.spans


def one_hour_span_days_ago(days: int) -> Span:
    """A one-hour span at 12:00 UTC, `days` days before today (UTC)."""
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    start = (today - timedelta(days=days) + timedelta(hours=12)).timestamp()
    return Span(start_time=start, end_time=start + 3600, duration=3600)


@pytest.fixture
def test_config():
    """Default config, isolated per test."""
    return copy.deepcopy(DEFAULT_CONFIG)


@pytest.fixture
def span_source():
    return FakeSpanSource(spans=[one_hour_span_days_ago(10)])


@pytest.fixture
def app(test_config, span_source):
    return create_app(config=test_config, span_source=span_source)


@pytest.fixture
def metrics(app):
    """The Prometheus instruments of the test app."""
    return app.state.metrics


@pytest_asyncio.fixture
async def client(app):
    """Create an async test client bound to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fake_source():
    """The fake span source class, for tests that need their own instance."""
    return FakeSpanSource


@pytest_asyncio.fixture
async def client_for(test_config):
    """Factory for clients bound to an app using the given span source."""
    clients = []

    async def _make(source, metrics=None):
        app = create_app(config=test_config, span_source=source, metrics=metrics)
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(ac)
        return ac

    yield _make

    for ac in clients:
        await ac.aclose()
