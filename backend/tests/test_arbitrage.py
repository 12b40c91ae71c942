import pytest

from oddsgraph.adapters.odds_feed import NOT_CONFIGURED_WARNING, FeedResult
from oddsgraph.core.errors import UnsupportedMarketError, ValidationFailureError
from oddsgraph.services.arbitrage import ArbitrageService, find_arbitrage_opportunities


def _h2h_event(event_id: str, quotes: dict[str, dict[str, float]], market: str = "h2h") -> dict:
    return {
        "id": event_id,
        "commence_time": "2026-10-20T23:30:00Z",
        "home_team": "Home",
        "away_team": "Away",
        "bookmakers": [
            {
                "key": book,
                "markets": [{"key": market, "outcomes": [{"name": n, "price": p} for n, p in prices.items()]}],
            }
            for book, prices in quotes.items()
        ],
    }


def test_two_books_with_cross_prices_form_an_arbitrage() -> None:
    event = _h2h_event(
        "evt-1",
        {
            "draftkings": {"Home": 150, "Away": -180},
            "fanduel": {"Home": 110, "Away": -120},
        },
    )

    [opportunity] = find_arbitrage_opportunities([event], sport_key="basketball_nba")

    implied_sum = 100 / 250 + 120 / 220
    assert opportunity.implied_sum == pytest.approx(implied_sum)
    assert opportunity.edge_percent == pytest.approx((1 / implied_sum - 1) * 100)
    legs = {leg.outcome: leg for leg in opportunity.legs}
    assert legs["Home"].best_bookmaker == "draftkings"
    assert legs["Home"].best_price == 150
    assert legs["Away"].best_bookmaker == "fanduel"
    assert legs["Away"].decimal_odds == pytest.approx(1 + 100 / 120)


def test_overround_market_has_no_arbitrage() -> None:
    event = _h2h_event("evt-2", {"draftkings": {"Home": -200, "Away": 150}})

    assert find_arbitrage_opportunities([event], sport_key="basketball_nba") == []


def test_events_without_exactly_two_outcomes_are_skipped() -> None:
    three_way = _h2h_event("evt-3", {"bet365": {"Home": 400, "Draw": 400, "Away": 400}})
    one_sided = _h2h_event("evt-4", {"bet365": {"Home": 500}})

    assert find_arbitrage_opportunities([three_way, one_sided], sport_key="soccer_epl") == []


def test_null_outcome_entries_are_skipped() -> None:
    event = _h2h_event("evt-5", {"draftkings": {"Home": 150}, "fanduel": {"Away": 110}})
    event["bookmakers"][0]["markets"][0]["outcomes"].insert(0, None)

    [opportunity] = find_arbitrage_opportunities([event], sport_key="basketball_nba")

    assert {leg.outcome for leg in opportunity.legs} == {"Home", "Away"}


def test_opportunities_are_sorted_by_edge() -> None:
    small = _h2h_event("small", {"a": {"Home": 105, "Away": 100}})
    large = _h2h_event("large", {"a": {"Home": 150}, "b": {"Away": 150}})

    result = find_arbitrage_opportunities([small, large], sport_key="basketball_nba")

    assert [opp.event_id for opp in result] == ["large", "small"]


def test_decimal_feed_prices_are_compared_as_american() -> None:
    event = _h2h_event("evt-5", {"a": {"Home": 2.5, "Away": 1.5}, "b": {"Home": 2.1, "Away": 1.9}})

    [opportunity] = find_arbitrage_opportunities([event], sport_key="x", odds_format="decimal")

    legs = {leg.outcome: leg for leg in opportunity.legs}
    assert legs["Home"].best_price == pytest.approx(150)
    assert legs["Away"].best_bookmaker == "b"
    assert opportunity.implied_sum == pytest.approx(1 / 2.5 + 1 / 1.9)


async def test_non_h2h_market_is_rejected_without_an_upstream_call(fake_feed) -> None:
    with pytest.raises(UnsupportedMarketError) as excinfo:
        await ArbitrageService(fake_feed).get_arbitrage(sport="basketball_nba", market="totals")

    assert excinfo.value.code == "UNSUPPORTED_MARKET"
    assert excinfo.value.status_code == 422
    assert fake_feed.calls == []


async def test_missing_sport_is_a_validation_failure(fake_feed) -> None:
    with pytest.raises(ValidationFailureError):
        await ArbitrageService(fake_feed).get_arbitrage(sport=" ", market="h2h")
    assert fake_feed.calls == []


async def test_not_configured_warning_passes_through(fake_feed) -> None:
    fake_feed.odds = FeedResult(data=[], remaining=0, warning=NOT_CONFIGURED_WARNING)

    result = await ArbitrageService(fake_feed).get_arbitrage(sport="basketball_nba", market="h2h")

    assert result.data == []
    assert result.warning == NOT_CONFIGURED_WARNING


async def test_service_defaults_regions_and_clamps_top(fake_feed) -> None:
    events = [
        _h2h_event(f"evt-{i}", {"a": {"Home": 110 + i, "Away": 100}}) for i in range(5)
    ]
    fake_feed.odds = FeedResult(data=events, remaining=321)

    result = await ArbitrageService(fake_feed).get_arbitrage(sport="basketball_nba", market="h2h", top=0)

    assert len(result.data) == 1
    assert result.data[0].event_id == "evt-4"
    assert result.remaining == 321
    _name, kwargs = fake_feed.calls[0]
    assert kwargs["regions"] == ["us"]
    assert kwargs["markets"] == ["h2h"]
