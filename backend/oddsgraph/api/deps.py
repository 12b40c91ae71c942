from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from oddsgraph.adapters.odds_feed import OddsApiClient, OddsFeed
from oddsgraph.core.database import get_db
from oddsgraph.store.odds_store import OddsStore


def get_odds_feed() -> OddsFeed:
    return OddsApiClient()


def get_redis(request: Request) -> Redis | None:
    return getattr(request.app.state, "redis", None)


async def get_odds_store(db: AsyncSession = Depends(get_db)) -> OddsStore:
    return OddsStore(db)


def split_csv_param(value: str | None) -> list[str] | None:
    if value is None:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None
