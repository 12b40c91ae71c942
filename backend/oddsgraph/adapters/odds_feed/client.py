import asyncio
import logging
from datetime import UTC, datetime, timedelta

import httpx

from oddsgraph.adapters.odds_feed.base import NOT_CONFIGURED_WARNING, FeedResult, is_player_prop_market
from oddsgraph.core.config import get_settings
from oddsgraph.core.errors import UnsupportedMarketError, UpstreamFailureError

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_REGIONS = ["us"]
DEFAULT_MARKETS = ["h2h", "spreads", "totals"]


def _parse_remaining(headers: httpx.Headers) -> int:
    raw = headers.get("x-requests-remaining")
    if raw is None:
        return 0
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return 0


class OddsApiClient:
    """Gateway to The Odds API v4.

    Without an API key every method returns an empty ``FeedResult`` with a
    warning and makes no request. Transport failures are retried with
    backoff; once retries are exhausted, or while the circuit is open,
    ``UpstreamFailureError`` is raised.
    """

    _consecutive_failures: int = 0
    _circuit_open_until: datetime | None = None

    @classmethod
    def _is_circuit_open(cls, now: datetime) -> bool:
        if cls._circuit_open_until is None:
            return False
        if now >= cls._circuit_open_until:
            cls._circuit_open_until = None
            cls._consecutive_failures = 0
            return False
        return True

    @classmethod
    def _record_success(cls) -> None:
        cls._consecutive_failures = 0
        cls._circuit_open_until = None

    @classmethod
    def _record_failure(cls) -> None:
        cls._consecutive_failures += 1
        failures_to_open = max(1, settings.odds_api_circuit_failures_to_open)
        if cls._consecutive_failures < failures_to_open:
            return
        open_seconds = max(5, settings.odds_api_circuit_open_seconds)
        cls._circuit_open_until = datetime.now(UTC) + timedelta(seconds=open_seconds)
        logger.warning(
            "Odds API circuit opened",
            extra={
                "circuit_open_seconds": open_seconds,
                "consecutive_failures": cls._consecutive_failures,
            },
        )

    def _api_key(self) -> str:
        return settings.odds_api_key.strip()

    def _not_configured(self, empty: object) -> FeedResult:
        logger.warning("ODDS_API_KEY missing; skipping Odds API call")
        return FeedResult(data=empty, remaining=0, warning=NOT_CONFIGURED_WARNING)

    async def _get(self, path: str, params: dict[str, str]) -> tuple[object, int]:
        now = datetime.now(UTC)
        if self._is_circuit_open(now):
            logger.warning(
                "Odds API circuit is open; refusing fetch",
                extra={
                    "endpoint": path,
                    "circuit_open_until": self._circuit_open_until.isoformat()
                    if self._circuit_open_until is not None
                    else None,
                    "consecutive_failures": self._consecutive_failures,
                },
            )
            raise UpstreamFailureError("Odds API circuit is open", endpoint=path)

        url = f"{settings.odds_api_base_url}{path}"
        query = {"apiKey": self._api_key(), **params}

        attempts = max(1, settings.odds_api_retry_attempts)
        backoff_base = max(0.1, settings.odds_api_retry_backoff_seconds)
        backoff_cap = max(backoff_base, settings.odds_api_retry_backoff_max_seconds)

        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                async with httpx.AsyncClient(timeout=settings.odds_api_timeout_seconds) as client:
                    response = await client.get(url, params=query)
                    response.raise_for_status()
                    payload = response.json()
                self._record_success()
                return payload, _parse_remaining(response.headers)
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                self._record_failure()
                logger.warning(
                    "Odds API fetch attempt failed",
                    exc_info=True,
                    extra={
                        "endpoint": path,
                        "attempt": attempt,
                        "attempts_total": attempts,
                        "consecutive_failures": self._consecutive_failures,
                    },
                )
                if attempt >= attempts or self._is_circuit_open(datetime.now(UTC)):
                    break
                sleep_seconds = min(backoff_cap, backoff_base * (2 ** (attempt - 1)))
                await asyncio.sleep(sleep_seconds)

        logger.error("Odds API fetch failed after retries", extra={"endpoint": path})
        raise UpstreamFailureError(f"Odds API request failed: {last_error}", endpoint=path) from last_error

    async def get_sports(self) -> FeedResult:
        if not self._api_key():
            return self._not_configured([])
        payload, remaining = await self._get("/sports", {})
        return FeedResult(data=payload if isinstance(payload, list) else [], remaining=remaining)

    async def get_sport_by_key(self, sport_key: str) -> dict | None:
        try:
            result = await self.get_sports()
        except UpstreamFailureError:
            logger.exception("Sport lookup failed", extra={"sport_key": sport_key})
            return None
        for sport in result.data:
            if isinstance(sport, dict) and sport.get("key") == sport_key:
                return sport
        return None

    async def get_odds(
        self,
        *,
        sport: str,
        regions: list[str] | None = None,
        markets: list[str] | None = None,
        odds_format: str = "american",
    ) -> FeedResult:
        if not self._api_key():
            return self._not_configured([])

        markets = markets or DEFAULT_MARKETS
        # /sports/{sport}/odds cannot serve player props; those go through
        # get_events + get_event_odds.
        prop_markets = [market for market in markets if is_player_prop_market(market)]
        if prop_markets:
            raise UnsupportedMarketError(
                "Player prop markets are not supported on /odds. Use /events/{eventId}/odds instead.",
                market=prop_markets[0],
                code="INVALID_MARKET",
            )

        payload, remaining = await self._get(
            f"/sports/{sport}/odds",
            {
                "regions": ",".join(regions or DEFAULT_REGIONS),
                "markets": ",".join(markets),
                "oddsFormat": odds_format,
                "dateFormat": "iso",
            },
        )
        if not isinstance(payload, list):
            logger.warning("Unexpected odds payload type", extra={"type": str(type(payload))})
            payload = []
        logger.info(
            "Odds API response received",
            extra={"sport_key": sport, "events_seen": len(payload), "requests_remaining": remaining},
        )
        return FeedResult(data=payload, remaining=remaining)

    async def get_events(self, *, sport: str) -> FeedResult:
        if not self._api_key():
            return self._not_configured([])
        payload, remaining = await self._get(f"/sports/{sport}/events", {"dateFormat": "iso"})
        return FeedResult(data=payload if isinstance(payload, list) else [], remaining=remaining)

    async def get_event_odds(
        self,
        *,
        sport: str,
        event_id: str,
        regions: list[str] | None = None,
        markets: list[str] | None = None,
        odds_format: str = "american",
    ) -> FeedResult:
        if not self._api_key():
            return self._not_configured(None)
        payload, remaining = await self._get(
            f"/sports/{sport}/events/{event_id}/odds",
            {
                "regions": ",".join(regions or DEFAULT_REGIONS),
                "markets": ",".join(markets or ["h2h"]),
                "oddsFormat": odds_format,
                "dateFormat": "iso",
            },
        )
        return FeedResult(data=payload if isinstance(payload, dict) else None, remaining=remaining)
