"""Protocol and shared types for the odds feed adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

NOT_CONFIGURED_WARNING = "ODDS_API_KEY not configured"


@dataclass(frozen=True, slots=True)
class FeedResult:
    """One feed response.

    ``warning`` is set (and ``data`` empty) when no API key is configured;
    that is a degraded but successful call, not an error.
    """

    data: Any
    remaining: int = 0
    warning: str | None = None

    @property
    def degraded(self) -> bool:
        return self.warning is not None


def is_player_prop_market(market: str) -> bool:
    # The Odds API names every player prop market player_*.
    return market.strip().lower().startswith("player_")


@runtime_checkable
class OddsFeed(Protocol):
    """What the ingestion pipeline and analytics services need from the feed."""

    async def get_sports(self) -> FeedResult: ...

    async def get_sport_by_key(self, sport_key: str) -> dict | None: ...

    async def get_odds(
        self,
        *,
        sport: str,
        regions: list[str] | None = None,
        markets: list[str] | None = None,
        odds_format: str = "american",
    ) -> FeedResult: ...

    async def get_events(self, *, sport: str) -> FeedResult: ...

    async def get_event_odds(
        self,
        *,
        sport: str,
        event_id: str,
        regions: list[str] | None = None,
        markets: list[str] | None = None,
        odds_format: str = "american",
    ) -> FeedResult: ...
