"""Odds feed adapter: The Odds API v4 client and its result type."""

from oddsgraph.adapters.odds_feed.base import NOT_CONFIGURED_WARNING, FeedResult, OddsFeed, is_player_prop_market
from oddsgraph.adapters.odds_feed.client import OddsApiClient

__all__ = [
    "FeedResult",
    "NOT_CONFIGURED_WARNING",
    "OddsApiClient",
    "OddsFeed",
    "is_player_prop_market",
]
