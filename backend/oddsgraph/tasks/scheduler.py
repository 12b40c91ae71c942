import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from redis.asyncio import Redis

from oddsgraph.adapters.odds_feed import OddsFeed
from oddsgraph.core.config import get_settings
from oddsgraph.core.database import AsyncSessionLocal
from oddsgraph.core.logging import setup_logging
from oddsgraph.services.ingestion import OddsIngestionService
from oddsgraph.store.odds_store import OddsStore

settings = get_settings()
logger = logging.getLogger(__name__)

MAX_SLEEP_SECONDS = 60


def next_daily_run(now: datetime, hour: int, minute: int) -> datetime:
    """First ``hour:minute`` UTC strictly after ``now``."""
    candidate = now.astimezone(UTC).replace(hour=hour, minute=minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


@dataclass
class JobSchedule:
    refresh_interval_seconds: int
    archive_hour_utc: int
    archive_minute_utc: int
    next_refresh_at: datetime | None = None
    next_archive_at: datetime | None = None

    def due_jobs(self, now: datetime) -> list[str]:
        """Jobs that should run at ``now``; advances their next run times."""
        due: list[str] = []
        if self.next_refresh_at is None or now >= self.next_refresh_at:
            due.append("refresh")
            self.next_refresh_at = now + timedelta(seconds=max(1, self.refresh_interval_seconds))
        if self.next_archive_at is None:
            self.next_archive_at = next_daily_run(now, self.archive_hour_utc, self.archive_minute_utc)
        elif now >= self.next_archive_at:
            due.append("archive")
            self.next_archive_at = next_daily_run(now, self.archive_hour_utc, self.archive_minute_utc)
        return due

    def seconds_until_next(self, now: datetime) -> float:
        upcoming = [at for at in (self.next_refresh_at, self.next_archive_at) if at is not None]
        if not upcoming:
            return 0.0
        return max(0.0, min((at - now).total_seconds() for at in upcoming))


async def run_refresh_job(redis: Redis | None, client: OddsFeed | None = None) -> None:
    sport_key = settings.odds_default_sport_key
    started = time.monotonic()
    try:
        async with AsyncSessionLocal() as db:
            service = OddsIngestionService(OddsStore(db), client, redis=redis)
            result = await service.refresh_odds(
                sport_key,
                regions=settings.odds_default_regions_list,
                markets=settings.odds_default_markets_list,
            )
        logger.info(
            "Scheduled odds refresh completed",
            extra={
                "sport_key": sport_key,
                "ingested_snapshots": result.ingested_snapshots,
                "requests_remaining": result.remaining,
                "warning": result.warning,
                "duration_ms": int((time.monotonic() - started) * 1000),
            },
        )
    except Exception:
        logger.exception("Scheduled odds refresh failed", extra={"sport_key": sport_key})


async def run_archive_job() -> None:
    try:
        async with AsyncSessionLocal() as db:
            service = OddsIngestionService(OddsStore(db))
            result = await service.archive_old_snapshots(settings.odds_archive_days)
        logger.info(
            "Scheduled snapshot archive completed",
            extra={
                "archived": result.archived,
                "archive_inserted": result.archive_inserted,
                "archive_duplicates": result.archive_duplicates,
                "days_old": settings.odds_archive_days,
            },
        )
    except Exception:
        logger.exception("Scheduled snapshot archive failed")


async def main() -> None:
    setup_logging()
    if not settings.odds_ingestion_enabled:
        logger.info("Odds ingestion jobs disabled; scheduler exiting")
        return

    logger.info(
        "Starting odds scheduler",
        extra={
            "refresh_interval_seconds": settings.odds_refresh_interval_seconds,
            "archive_time_utc": f"{settings.odds_archive_hour_utc:02d}:{settings.odds_archive_minute_utc:02d}",
            "archive_days": settings.odds_archive_days,
            "sport_key": settings.odds_default_sport_key,
            "odds_api_configured": settings.odds_api_configured,
        },
    )

    redis: Redis | None = None
    try:
        redis = Redis.from_url(settings.redis_url, decode_responses=True)
        await redis.ping()
    except Exception:
        logger.exception("Redis unavailable, scheduler running with process-local refresh lock")
        redis = None

    schedule = JobSchedule(
        refresh_interval_seconds=settings.odds_refresh_interval_seconds,
        archive_hour_utc=settings.odds_archive_hour_utc,
        archive_minute_utc=settings.odds_archive_minute_utc,
    )
    try:
        while True:
            now = datetime.now(UTC)
            for job in schedule.due_jobs(now):
                if job == "refresh":
                    await run_refresh_job(redis)
                elif job == "archive":
                    await run_archive_job()
            sleep_seconds = min(MAX_SLEEP_SECONDS, schedule.seconds_until_next(datetime.now(UTC)))
            await asyncio.sleep(max(1.0, sleep_seconds))
    finally:
        if redis is not None:
            await redis.aclose()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
