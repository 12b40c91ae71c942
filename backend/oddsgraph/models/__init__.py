from oddsgraph.models.base import Base
from oddsgraph.models.market import Market
from oddsgraph.models.market_selection import MarketSelection
from oddsgraph.models.odds_snapshot import OddsFormat, OddsSnapshot
from oddsgraph.models.odds_snapshot_archive import OddsSnapshotArchive
from oddsgraph.models.sport import Sport
from oddsgraph.models.sport_event import SportEvent
from oddsgraph.models.sportsbook import Sportsbook
from oddsgraph.models.team import Team

__all__ = [
    "Base",
    "Market",
    "MarketSelection",
    "OddsFormat",
    "OddsSnapshot",
    "OddsSnapshotArchive",
    "Sport",
    "SportEvent",
    "Sportsbook",
    "Team",
]
