"""
pytest configuration and shared fixtures for the Bridge API tests.

Key concern: tests must not share state or need a Gemini API key.
We achieve this by:
  1. Ensuring AI_MOCK_MODE=true so GeminiClient returns canned drafts.
  2. Overriding get_event_store / get_action_limiters / get_submissions
     with fresh instances per test, so no events, quotas or prayers leak
     between tests through the module-level singletons.
  3. Driving the action limiters and the event store from a FakeClock so
     tests can jump across windows without sleeping.
  4. Resetting slowapi's in-memory throttle counters before each test.
"""

import os
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

# Set env vars BEFORE importing the app so Settings picks them up correctly
os.environ.setdefault("AI_MOCK_MODE", "true")
os.environ.setdefault("ENVIRONMENT", "test")


class FakeClock:
    """
    Manually advanced clock.

    Calling the instance returns epoch seconds (what the rate limiter
    expects); utcnow() returns the same instant as an aware datetime (what
    the event store expects).
    """

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def utcnow(self) -> datetime:
        return datetime.fromtimestamp(self.now, tz=timezone.utc)

    def advance(self, seconds: float = 0, **delta) -> None:
        self.now += seconds + timedelta(**delta).total_seconds()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store(clock):
    from bridge_api.services.event_store import EventStore

    return EventStore(clock=clock.utcnow)


@pytest.fixture()
def limiters(clock):
    """Production quotas, fake time, cleanup sweep never fires on its own."""
    from bridge_api.core.rate_limit import build_action_limiters

    return build_action_limiters(clock=clock, rng=lambda: 1.0)


@pytest.fixture()
def subs():
    from bridge_api.services.submissions import Submissions

    return Submissions(max_records=50)


@pytest.fixture()
async def client(store, limiters, subs):
    """
    HTTPX async test client wired to the FastAPI app with isolated state.

    Usage:
        async def test_something(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    from bridge_api.core.rate_limit import get_action_limiters
    from bridge_api.core.throttle import limiter
    from bridge_api.main import app
    from bridge_api.services.event_store import get_event_store
    from bridge_api.services.submissions import get_submissions

    # Reset in-memory throttle counters so tests are independent.
    try:
        limiter._limiter.storage.reset()
    except Exception:
        pass  # Some storage backends don't support reset — safe to ignore.

    app.dependency_overrides[get_event_store] = lambda: store
    app.dependency_overrides[get_action_limiters] = lambda: limiters
    app.dependency_overrides[get_submissions] = lambda: subs
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
