import logging
from dataclasses import dataclass, field

from oddsgraph.adapters.odds_feed import OddsApiClient, OddsFeed
from oddsgraph.core.errors import UnsupportedMarketError, ValidationFailureError
from oddsgraph.services.odds_math import american_to_decimal, decimal_to_implied_probability, to_american

logger = logging.getLogger(__name__)

ARBITRAGE_MARKET = "h2h"
DEFAULT_TOP = 50
MAX_TOP = 200


@dataclass(frozen=True)
class ArbitrageLeg:
    outcome: str
    best_bookmaker: str | None
    best_price: float
    decimal_odds: float
    implied_probability: float


@dataclass(frozen=True)
class ArbitrageOpportunity:
    event_id: str
    commence_time: str | None
    home_team: str | None
    away_team: str | None
    sport_key: str
    market: str
    implied_sum: float
    edge_percent: float
    legs: list[ArbitrageLeg] = field(default_factory=list)


@dataclass(frozen=True)
class ArbitrageResult:
    data: list[ArbitrageOpportunity]
    remaining: int
    warning: str | None = None


def clamp_top(top: int | None, *, default: int, maximum: int) -> int:
    if top is None:
        return default
    return max(1, min(maximum, int(top)))


def _best_prices_by_outcome(event: dict, market: str, odds_format: str) -> dict[str, tuple[str | None, float]]:
    """Highest American price per outcome name across the event's bookmakers."""
    best: dict[str, tuple[str | None, float]] = {}
    for bookmaker in event.get("bookmakers") or []:
        if not isinstance(bookmaker, dict):
            continue
        market_entry = next(
            (m for m in bookmaker.get("markets") or [] if isinstance(m, dict) and m.get("key") == market),
            None,
        )
        if market_entry is None:
            continue
        for outcome in market_entry.get("outcomes") or []:
            if not isinstance(outcome, dict):
                continue
            name = str(outcome.get("name") or "").strip()
            raw_price = outcome.get("price")
            if not name or raw_price is None or isinstance(raw_price, bool):
                continue
            try:
                price = to_american(float(raw_price), odds_format)
            except (TypeError, ValueError):
                continue
            if price == 0:
                continue
            existing = best.get(name)
            if existing is None or existing[1] < price:
                best[name] = (bookmaker.get("key"), price)
    return best


def find_arbitrage_opportunities(
    events: list[dict],
    *,
    sport_key: str,
    market: str = ARBITRAGE_MARKET,
    odds_format: str = "american",
) -> list[ArbitrageOpportunity]:
    """Two-way arbitrage: best price per side across books, implied sum below 1.

    Events that do not resolve to exactly two outcome names are skipped.
    Results are ordered by edge, largest first.
    """
    opportunities: list[ArbitrageOpportunity] = []
    for event in events:
        if not isinstance(event, dict):
            continue
        best = _best_prices_by_outcome(event, market, odds_format)
        if len(best) != 2:
            continue

        legs: list[ArbitrageLeg] = []
        for outcome_name, (bookmaker_key, price) in best.items():
            decimal_odds = american_to_decimal(price)
            legs.append(
                ArbitrageLeg(
                    outcome=outcome_name,
                    best_bookmaker=bookmaker_key,
                    best_price=price,
                    decimal_odds=decimal_odds,
                    implied_probability=decimal_to_implied_probability(decimal_odds),
                )
            )

        implied_sum = sum(leg.implied_probability for leg in legs)
        if implied_sum <= 0 or implied_sum >= 1:
            continue

        opportunities.append(
            ArbitrageOpportunity(
                event_id=str(event.get("id") or ""),
                commence_time=event.get("commence_time"),
                home_team=event.get("home_team"),
                away_team=event.get("away_team"),
                sport_key=sport_key,
                market=market,
                implied_sum=implied_sum,
                edge_percent=(1 / implied_sum - 1) * 100,
                legs=legs,
            )
        )

    opportunities.sort(key=lambda opp: opp.edge_percent, reverse=True)
    return opportunities


class ArbitrageService:
    def __init__(self, client: OddsFeed | None = None) -> None:
        self.client = client if client is not None else OddsApiClient()

    async def get_arbitrage(
        self,
        *,
        sport: str,
        market: str,
        regions: list[str] | None = None,
        odds_format: str = "american",
        top: int | None = DEFAULT_TOP,
    ) -> ArbitrageResult:
        sport = (sport or "").strip()
        market = (market or "").strip()
        if not sport:
            raise ValidationFailureError("sport is required")
        if not market:
            raise ValidationFailureError("market is required")
        if market != ARBITRAGE_MARKET:
            raise UnsupportedMarketError(
                f"arbitrage currently supports market=h2h only (received: {market})",
                market=market,
            )

        feed = await self.client.get_odds(
            sport=sport,
            regions=regions or ["us"],
            markets=[market],
            odds_format=odds_format,
        )
        if feed.warning:
            return ArbitrageResult(data=[], remaining=feed.remaining, warning=feed.warning)

        events = feed.data if isinstance(feed.data, list) else []
        opportunities = find_arbitrage_opportunities(
            events, sport_key=sport, market=market, odds_format=odds_format
        )
        limit = clamp_top(top, default=DEFAULT_TOP, maximum=MAX_TOP)
        logger.info(
            "Arbitrage scan completed",
            extra={
                "sport_key": sport,
                "events_seen": len(events),
                "opportunities": len(opportunities),
                "requests_remaining": feed.remaining,
            },
        )
        return ArbitrageResult(data=opportunities[:limit], remaining=feed.remaining)
