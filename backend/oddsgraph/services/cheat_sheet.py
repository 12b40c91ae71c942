import asyncio
import logging
from dataclasses import dataclass

from oddsgraph.adapters.odds_feed import OddsApiClient, OddsFeed, is_player_prop_market
from oddsgraph.core.config import get_settings
from oddsgraph.core.errors import ValidationFailureError
from oddsgraph.services.arbitrage import clamp_top
from oddsgraph.services.ingestion import parse_iso_datetime
from oddsgraph.services.odds_math import implied_probability

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_TOP = 50
MAX_TOP = 500


@dataclass
class CheatSheetRow:
    event_id: str
    commence_time: str | None
    home_team: str | None
    away_team: str | None
    sport_key: str
    player: str
    side: str
    line: float | None
    best_bookmaker: str | None
    best_price: float | None
    implied_probability: float | None


@dataclass(frozen=True)
class CheatSheetResult:
    data: list[CheatSheetRow]
    remaining: int
    warning: str | None = None


def _as_number(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _text(value) -> str:
    return str(value).strip() if value is not None else ""


def _sort_key(row: CheatSheetRow) -> tuple[float, float]:
    started = parse_iso_datetime(row.commence_time) if row.commence_time else None
    probability = row.implied_probability if row.implied_probability is not None else 1.0
    return (started.timestamp() if started is not None else 0.0, probability)


def build_cheat_sheet(
    events: list[dict],
    *,
    sport_key: str,
    market: str,
    odds_format: str = "american",
) -> list[CheatSheetRow]:
    """Best price per (event, player, side, line) across every bookmaker.

    Higher prices are better in every supported format, so candidates are
    compared on the raw feed price. A priced candidate replaces an unpriced
    entry; ties keep the entry seen first.
    """
    player_market = is_player_prop_market(market)
    best: dict[str, CheatSheetRow] = {}

    for event in events:
        if not isinstance(event, dict):
            continue
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
                outcome_name = _text(outcome.get("name"))
                participant = _text(outcome.get("description") or outcome.get("participant") or outcome.get("player"))
                if player_market:
                    player, side = participant, outcome_name
                else:
                    player, side = outcome_name or participant, market
                if not player or not side:
                    continue

                line = _as_number(outcome.get("point"))
                price = _as_number(outcome.get("price"))
                probability = implied_probability(price, odds_format) if price is not None else None

                candidate = CheatSheetRow(
                    event_id=_text(event.get("id")),
                    commence_time=event.get("commence_time"),
                    home_team=event.get("home_team"),
                    away_team=event.get("away_team"),
                    sport_key=sport_key,
                    player=player,
                    side=side,
                    line=line,
                    best_bookmaker=bookmaker.get("key"),
                    best_price=price,
                    implied_probability=probability or None,
                )

                key = f"{candidate.event_id}|{player}|{side}|{line if line is not None else 'null'}"
                existing = best.get(key)
                if existing is None:
                    best[key] = candidate
                elif candidate.best_price is not None and (
                    existing.best_price is None or candidate.best_price > existing.best_price
                ):
                    best[key] = candidate

    rows = list(best.values())
    rows.sort(key=_sort_key)
    return rows


class CheatSheetService:
    def __init__(self, client: OddsFeed | None = None) -> None:
        self.client = client if client is not None else OddsApiClient()

    async def get_cheat_sheet(
        self,
        *,
        sport: str,
        market: str,
        regions: list[str] | None = None,
        odds_format: str = "american",
        top: int | None = DEFAULT_TOP,
    ) -> CheatSheetResult:
        sport = (sport or "").strip()
        market = (market or "").strip()
        if not sport:
            raise ValidationFailureError("sport is required")
        if not market:
            raise ValidationFailureError("market is required")
        regions = regions or ["us"]

        if is_player_prop_market(market):
            events, remaining, warning = await self._player_prop_events(sport, market, regions, odds_format)
        else:
            feed = await self.client.get_odds(
                sport=sport, regions=regions, markets=[market], odds_format=odds_format
            )
            events = feed.data if isinstance(feed.data, list) else []
            remaining, warning = feed.remaining, feed.warning

        if warning:
            return CheatSheetResult(data=[], remaining=remaining, warning=warning)

        rows = build_cheat_sheet(events, sport_key=sport, market=market, odds_format=odds_format)
        limit = clamp_top(top, default=DEFAULT_TOP, maximum=MAX_TOP)
        logger.info(
            "Cheat sheet built",
            extra={"sport_key": sport, "market": market, "events_seen": len(events), "rows": len(rows)},
        )
        return CheatSheetResult(data=rows[:limit], remaining=remaining)

    async def _player_prop_events(
        self,
        sport: str,
        market: str,
        regions: list[str],
        odds_format: str,
    ) -> tuple[list[dict], int, str | None]:
        listing = await self.client.get_events(sport=sport)
        if listing.warning:
            return [], listing.remaining, listing.warning

        candidates = listing.data if isinstance(listing.data, list) else []
        event_ids = [
            _text(event.get("id"))
            for event in candidates[: max(1, settings.cheat_sheet_max_events)]
            if isinstance(event, dict) and _text(event.get("id"))
        ]

        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.cheat_sheet_budget_seconds
        per_call_timeout = settings.odds_api_timeout_seconds
        semaphore = asyncio.Semaphore(max(1, settings.cheat_sheet_concurrency))

        async def _fetch(event_id: str):
            async with semaphore:
                budget_left = deadline - loop.time()
                if budget_left <= 0:
                    logger.warning(
                        "Cheat sheet budget exhausted; skipping event",
                        extra={"sport_key": sport, "event_id": event_id},
                    )
                    return None
                try:
                    return await asyncio.wait_for(
                        self.client.get_event_odds(
                            sport=sport,
                            event_id=event_id,
                            regions=regions,
                            markets=[market],
                            odds_format=odds_format,
                        ),
                        timeout=min(per_call_timeout, budget_left),
                    )
                except TimeoutError:
                    logger.warning(
                        "Event odds call timed out; skipping event",
                        extra={"sport_key": sport, "event_id": event_id},
                    )
                    return None

        results = await asyncio.gather(*(_fetch(event_id) for event_id in event_ids), return_exceptions=True)

        remaining = listing.remaining
        events: list[dict] = []
        failure: BaseException | None = None
        for result in results:
            if isinstance(result, BaseException):
                failure = failure or result
                continue
            if result is None:
                continue
            remaining = min(remaining, result.remaining)
            if isinstance(result.data, dict):
                events.append(result.data)
        if failure is not None:
            raise failure
        return events, remaining, None
