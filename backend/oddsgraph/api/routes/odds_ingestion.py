import logging

from fastapi import APIRouter, Depends
from redis.asyncio import Redis

from oddsgraph.adapters.odds_feed import OddsFeed
from oddsgraph.api.deps import get_odds_feed, get_odds_store, get_redis
from oddsgraph.schemas import (
    ArchiveOut,
    ArchiveRequest,
    IngestionStatusOut,
    RefreshOut,
    RefreshRequest,
    SuccessResponse,
)
from oddsgraph.services.ingestion import OddsIngestionService
from oddsgraph.store.odds_store import OddsStore

router = APIRouter()
logger = logging.getLogger(__name__)


def get_ingestion_service(
    store: OddsStore = Depends(get_odds_store),
    feed: OddsFeed = Depends(get_odds_feed),
    redis: Redis | None = Depends(get_redis),
) -> OddsIngestionService:
    return OddsIngestionService(store, feed, redis=redis)


@router.get("/status", response_model=SuccessResponse[IngestionStatusOut])
async def ingestion_status(
    service: OddsIngestionService = Depends(get_ingestion_service),
) -> SuccessResponse[IngestionStatusOut]:
    status = await service.status()
    return SuccessResponse(data=IngestionStatusOut.model_validate(status))


@router.post("/refresh", response_model=SuccessResponse[RefreshOut])
async def refresh_odds_now(
    payload: RefreshRequest | None = None,
    service: OddsIngestionService = Depends(get_ingestion_service),
) -> SuccessResponse[RefreshOut]:
    payload = payload or RefreshRequest()
    result = await service.refresh_odds(
        payload.sport_key,
        regions=payload.regions,
        markets=payload.markets,
        odds_format=payload.odds_format,
    )
    logger.info(
        "Manual odds refresh completed",
        extra={"sport_key": payload.sport_key, "ingested_snapshots": result.ingested_snapshots},
    )
    return SuccessResponse(data=RefreshOut.model_validate(result))


@router.post("/archive", response_model=SuccessResponse[ArchiveOut])
async def archive_odds_snapshots(
    payload: ArchiveRequest | None = None,
    service: OddsIngestionService = Depends(get_ingestion_service),
) -> SuccessResponse[ArchiveOut]:
    payload = payload or ArchiveRequest()
    result = await service.archive_old_snapshots(payload.days_old)
    return SuccessResponse(data=ArchiveOut.model_validate(result))
