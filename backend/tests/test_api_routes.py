from httpx import AsyncClient

from oddsgraph.adapters.odds_feed import NOT_CONFIGURED_WARNING, FeedResult


def _event() -> dict:
    return {
        "id": "evt-1",
        "commence_time": "2026-10-20T23:30:00Z",
        "home_team": "Boston Celtics",
        "away_team": "New York Knicks",
        "bookmakers": [
            {
                "key": "draftkings",
                "title": "DraftKings",
                "markets": [
                    {
                        "key": "h2h",
                        "outcomes": [
                            {"name": "Boston Celtics", "price": 150},
                            {"name": "New York Knicks", "price": -180},
                        ],
                    }
                ],
            },
            {
                "key": "fanduel",
                "title": "FanDuel",
                "markets": [
                    {
                        "key": "h2h",
                        "outcomes": [
                            {"name": "Boston Celtics", "price": 110},
                            {"name": "New York Knicks", "price": -120},
                        ],
                    }
                ],
            },
        ],
    }


async def test_health_live(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_refresh_status_and_archive_flow(async_client: AsyncClient, fake_feed) -> None:
    fake_feed.odds = FeedResult(data=[_event()], remaining=99)

    refreshed = await async_client.post(
        "/api/v1/odds-ingestion/refresh",
        json={"sportKey": "basketball_nba", "markets": ["h2h"]},
    )
    assert refreshed.status_code == 200
    assert refreshed.json() == {
        "success": True,
        "data": {"ingested_snapshots": 4, "remaining": 99, "warning": None},
    }

    status = await async_client.get("/api/v1/odds-ingestion/status")
    body = status.json()
    assert body["success"] is True
    assert body["data"]["snapshots"] == 4
    assert body["data"]["archived"] == 0
    assert body["data"]["last_fetched_at"] is not None

    archived = await async_client.post("/api/v1/odds-ingestion/archive", json={})
    assert archived.status_code == 200
    assert archived.json()["data"]["archived"] == 0


async def test_refresh_without_sport_key_is_a_400(async_client: AsyncClient, fake_feed) -> None:
    response = await async_client.post("/api/v1/odds-ingestion/refresh", json={})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": {"code": "VALIDATION_FAILED", "message": "sportKey is required"},
    }
    assert fake_feed.calls == []


async def test_refresh_in_degraded_mode_reports_the_warning(async_client: AsyncClient, fake_feed) -> None:
    fake_feed.odds = FeedResult(data=[], remaining=0, warning=NOT_CONFIGURED_WARNING)

    response = await async_client.post("/api/v1/odds-ingestion/refresh", json={"sportKey": "basketball_nba"})

    assert response.status_code == 200
    assert response.json()["data"] == {"ingested_snapshots": 0, "remaining": 0, "warning": NOT_CONFIGURED_WARNING}


async def test_archive_with_negative_days_is_a_400(async_client: AsyncClient) -> None:
    response = await async_client.post("/api/v1/odds-ingestion/archive", json={"daysOld": -3})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_FAILED"


async def test_arbitrage_endpoint(async_client: AsyncClient, fake_feed) -> None:
    fake_feed.odds = FeedResult(data=[_event()], remaining=55)

    response = await async_client.get(
        "/api/v1/sports-tools/arbitrage",
        params={"sport": "basketball_nba", "market": "h2h", "regions": "us,eu"},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["remaining"] == 55
    assert len(data["data"]) == 1
    assert data["data"][0]["event_id"] == "evt-1"
    assert {leg["best_bookmaker"] for leg in data["data"][0]["legs"]} == {"draftkings", "fanduel"}
    assert fake_feed.calls[0][1]["regions"] == ["us", "eu"]


async def test_arbitrage_on_totals_is_a_422(async_client: AsyncClient, fake_feed) -> None:
    response = await async_client.get(
        "/api/v1/sports-tools/arbitrage", params={"sport": "basketball_nba", "market": "totals"}
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "UNSUPPORTED_MARKET"
    assert fake_feed.calls == []


async def test_cheat_sheet_requires_market(async_client: AsyncClient) -> None:
    response = await async_client.get("/api/v1/sports-tools/cheat-sheet", params={"sport": "basketball_nba"})

    assert response.status_code == 400
    assert response.json()["error"] == {"code": "VALIDATION_FAILED", "message": "market is required"}


async def test_cheat_sheet_endpoint(async_client: AsyncClient, fake_feed) -> None:
    fake_feed.odds = FeedResult(data=[_event()], remaining=12)

    response = await async_client.get(
        "/api/v1/sports-tools/cheat-sheet", params={"sport": "basketball_nba", "market": "h2h", "top": 1}
    )

    rows = response.json()["data"]["data"]
    assert len(rows) == 1
    assert rows[0]["player"] == "Boston Celtics"
    assert rows[0]["best_price"] == 150


async def test_positive_ev_endpoint_uses_defaults(async_client: AsyncClient, fake_feed) -> None:
    fake_feed.odds = FeedResult(data=[], remaining=0, warning=NOT_CONFIGURED_WARNING)

    response = await async_client.get("/api/v1/sports-tools/positive-ev")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sport"] == {"key": "basketball_nba", "title": "basketball_nba", "group": "Unknown"}
    assert data["region"] == "us"
    assert data["count"] == 0
    assert data["warning"] == NOT_CONFIGURED_WARNING


async def test_invalid_odds_format_is_a_400(async_client: AsyncClient) -> None:
    response = await async_client.get(
        "/api/v1/sports-tools/cheat-sheet",
        params={"sport": "basketball_nba", "market": "h2h", "oddsFormat": "fractional"},
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_FAILED"


async def test_sports_listing(async_client: AsyncClient, fake_feed) -> None:
    fake_feed.sports = FeedResult(data=[{"key": "basketball_nba", "title": "NBA", "group": "Basketball"}], remaining=3)

    response = await async_client.get("/api/v1/sports-tools/sports")

    assert response.json()["data"] == {
        "sports": [{"key": "basketball_nba", "title": "NBA", "group": "Basketball"}],
        "remaining": 3,
        "warning": None,
    }
