import asyncio
import os
from collections.abc import AsyncGenerator

os.environ["APP_ENV"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ODDS_API_KEY"] = ""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from oddsgraph.adapters.odds_feed import FeedResult, OddsApiClient
from oddsgraph.api.deps import get_odds_feed
from oddsgraph.core.database import build_engine, build_session_factory, get_db
from oddsgraph.main import app
from oddsgraph.models import Base
from oddsgraph.store.odds_store import OddsStore


class FakeFeed:
    """In-memory stand-in for OddsApiClient that records every call."""

    def __init__(self) -> None:
        self.sports = FeedResult(data=[], remaining=500)
        self.odds = FeedResult(data=[], remaining=500)
        self.events = FeedResult(data=[], remaining=500)
        self.event_odds: dict[str, FeedResult] = {}
        self.event_odds_delay: dict[str, float] = {}
        self.calls: list[tuple[str, dict]] = []

    async def get_sports(self) -> FeedResult:
        self.calls.append(("get_sports", {}))
        return self.sports

    async def get_sport_by_key(self, sport_key: str) -> dict | None:
        self.calls.append(("get_sport_by_key", {"sport_key": sport_key}))
        for sport in self.sports.data:
            if sport.get("key") == sport_key:
                return sport
        return None

    async def get_odds(self, *, sport, regions=None, markets=None, odds_format="american") -> FeedResult:
        self.calls.append(
            ("get_odds", {"sport": sport, "regions": regions, "markets": markets, "odds_format": odds_format})
        )
        return self.odds

    async def get_events(self, *, sport) -> FeedResult:
        self.calls.append(("get_events", {"sport": sport}))
        return self.events

    async def get_event_odds(
        self, *, sport, event_id, regions=None, markets=None, odds_format="american"
    ) -> FeedResult:
        self.calls.append(("get_event_odds", {"sport": sport, "event_id": event_id, "markets": markets}))
        delay = self.event_odds_delay.get(event_id)
        if delay:
            await asyncio.sleep(delay)
        return self.event_odds.get(event_id, FeedResult(data=None, remaining=self.events.remaining))

    def call_names(self) -> list[str]:
        return [name for name, _kwargs in self.calls]


@pytest.fixture(autouse=True)
def _reset_circuit_state():
    OddsApiClient._consecutive_failures = 0
    OddsApiClient._circuit_open_until = None
    yield
    OddsApiClient._consecutive_failures = 0
    OddsApiClient._circuit_open_until = None


@pytest.fixture
def fake_feed() -> FakeFeed:
    return FakeFeed()


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fresh in-memory SQLite schema per test.

    Also overrides the app's get_db dependency so HTTP calls made through
    async_client read and write the same database.
    """
    engine = build_engine("sqlite+aiosqlite://")
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)

    session = build_session_factory(engine)()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield session
    finally:
        app.dependency_overrides.pop(get_db, None)
        await session.close()
        await engine.dispose()


@pytest.fixture
def store(db_session: AsyncSession) -> OddsStore:
    return OddsStore(db_session)


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession, fake_feed: FakeFeed) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_odds_feed] = lambda: fake_feed
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_odds_feed, None)
