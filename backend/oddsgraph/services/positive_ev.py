import logging
from dataclasses import dataclass, field
from statistics import median as stats_median

from oddsgraph.adapters.odds_feed import OddsApiClient, OddsFeed
from oddsgraph.core.config import get_settings
from oddsgraph.core.errors import ValidationFailureError
from oddsgraph.services.odds_math import american_to_decimal, american_to_implied_probability, to_american

logger = logging.getLogger(__name__)

DEFAULT_SPORT = "basketball_nba"
DEFAULT_REGION = "us"
DEFAULT_MARKETS = "h2h,spreads,totals"
UNKNOWN_GROUP = "Unknown"


@dataclass(frozen=True)
class PositiveEVBet:
    event_id: str
    sport_title: str
    sport_group: str
    region: str
    commence_time: str | None
    home_team: str | None
    away_team: str | None
    market: str
    outcome: str
    point: float | None
    best_bookmaker: str | None
    best_price: float
    decimal_odds: float
    implied_probability: float
    fair_probability: float
    ev_percent: float
    books_count: int


@dataclass(frozen=True)
class SportInfo:
    key: str
    title: str
    group: str


@dataclass(frozen=True)
class PositiveEVResult:
    sport: SportInfo
    region: str
    bets: list[PositiveEVBet] = field(default_factory=list)
    warning: str | None = None

    @property
    def count(self) -> int:
        return len(self.bets)


def _split_csv(value: str | list[str] | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, list):
        return [item.strip() for item in value if item and item.strip()]
    return [item.strip() for item in value.split(",") if item.strip()]


def _point(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def find_positive_ev_bets(
    events: list[dict],
    sport_title: str,
    sport_group: str,
    region: str,
    *,
    odds_format: str = "american",
    min_books: int = 3,
    min_edge_percent: float = 0.0,
) -> list[PositiveEVBet]:
    """Best price per proposition scored against the books' median implied probability.

    A proposition is one (event, market, outcome, point). Each book
    contributes its best quote once. No vig is removed from the median.
    """
    bets: list[PositiveEVBet] = []
    for event in events or []:
        if not isinstance(event, dict):
            continue

        # (market, outcome, point) -> {bookmaker_key: american price}
        quotes: dict[tuple[str, str, float | None], dict[str, float]] = {}
        for bookmaker in event.get("bookmakers") or []:
            if not isinstance(bookmaker, dict):
                continue
            book_key = str(bookmaker.get("key") or bookmaker.get("title") or "")
            if not book_key:
                continue
            for market in bookmaker.get("markets") or []:
                if not isinstance(market, dict):
                    continue
                market_key = str(market.get("key") or "")
                for outcome in market.get("outcomes") or []:
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
                    by_book = quotes.setdefault((market_key, name, _point(outcome.get("point"))), {})
                    if book_key not in by_book or by_book[book_key] < price:
                        by_book[book_key] = price

        for (market_key, name, point), by_book in quotes.items():
            if len(by_book) < min_books:
                continue
            fair_probability = float(stats_median(american_to_implied_probability(p) for p in by_book.values()))
            best_bookmaker, best_price = max(by_book.items(), key=lambda item: item[1])
            decimal_odds = american_to_decimal(best_price)
            ev_percent = (fair_probability * decimal_odds - 1) * 100
            if ev_percent <= min_edge_percent:
                continue
            bets.append(
                PositiveEVBet(
                    event_id=str(event.get("id") or ""),
                    sport_title=sport_title,
                    sport_group=sport_group,
                    region=region,
                    commence_time=event.get("commence_time"),
                    home_team=event.get("home_team"),
                    away_team=event.get("away_team"),
                    market=market_key,
                    outcome=name,
                    point=point,
                    best_bookmaker=best_bookmaker,
                    best_price=best_price,
                    decimal_odds=decimal_odds,
                    implied_probability=american_to_implied_probability(best_price),
                    fair_probability=fair_probability,
                    ev_percent=ev_percent,
                    books_count=len(by_book),
                )
            )

    bets.sort(key=lambda bet: bet.ev_percent, reverse=True)
    return bets


class PositiveEVService:
    def __init__(self, client: OddsFeed | None = None) -> None:
        self.client = client if client is not None else OddsApiClient()

    async def get_positive_ev(
        self,
        *,
        sport: str | None = DEFAULT_SPORT,
        region: str | None = DEFAULT_REGION,
        markets: str | list[str] | None = DEFAULT_MARKETS,
        odds_format: str = "american",
    ) -> PositiveEVResult:
        sport_key = (sport or DEFAULT_SPORT).strip()
        region = (region or DEFAULT_REGION).strip()
        market_keys = _split_csv(markets) or _split_csv(DEFAULT_MARKETS)
        regions = _split_csv(region)
        if not sport_key:
            raise ValidationFailureError("sport is required")
        if not regions:
            raise ValidationFailureError("region is required")

        metadata = await self.client.get_sport_by_key(sport_key)
        sport_info = SportInfo(
            key=sport_key,
            title=(metadata or {}).get("title") or sport_key,
            group=(metadata or {}).get("group") or UNKNOWN_GROUP,
        )

        feed = await self.client.get_odds(
            sport=sport_key, regions=regions, markets=market_keys, odds_format=odds_format
        )
        if feed.warning:
            return PositiveEVResult(sport=sport_info, region=region, warning=feed.warning)

        settings = get_settings()
        bets = find_positive_ev_bets(
            feed.data if isinstance(feed.data, list) else [],
            sport_info.title,
            sport_info.group,
            region,
            odds_format=odds_format,
            min_books=max(1, settings.positive_ev_min_books),
            min_edge_percent=settings.positive_ev_min_edge_percent,
        )
        logger.info(
            "Positive EV scan completed",
            extra={"sport_key": sport_key, "bets": len(bets), "requests_remaining": feed.remaining},
        )
        return PositiveEVResult(sport=sport_info, region=region, bets=bets)
