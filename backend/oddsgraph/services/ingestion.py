import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from redis.asyncio import Redis
from sqlalchemy.exc import SQLAlchemyError

from oddsgraph.adapters.odds_feed import OddsApiClient, OddsFeed
from oddsgraph.core.config import SUPPORTED_ODDS_FORMATS, get_settings
from oddsgraph.core.errors import ValidationFailureError
from oddsgraph.models import (
    Market,
    MarketSelection,
    OddsFormat,
    OddsSnapshot,
    OddsSnapshotArchive,
    Sport,
    SportEvent,
    Sportsbook,
    Team,
)
from oddsgraph.services.identity import (
    SnapshotClock,
    SnapshotIdSequence,
    make_event_id,
    make_market_id,
    make_selection_id,
    make_sport_id,
    make_sportsbook_id,
    make_team_id,
    team_abbreviation,
)
from oddsgraph.services.odds_math import hongkong_to_decimal, implied_probability
from oddsgraph.store.odds_store import OddsStore

logger = logging.getLogger(__name__)

REFRESH_IN_PROGRESS_WARNING = "Another refresh of this sport is in progress"

_local_refresh_locks: dict[str, asyncio.Lock] = {}


@dataclass(frozen=True)
class RefreshResult:
    ingested_snapshots: int
    remaining: int
    warning: str | None = None


@dataclass(frozen=True)
class ArchiveResult:
    archived: int
    archive_inserted: int = 0
    archive_duplicates: int = 0


@dataclass(frozen=True)
class IngestionStatus:
    snapshots: int
    archived: int
    last_fetched_at: datetime | None


def parse_iso_datetime(value: object) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw.replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _numeric(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def _price(outcome: dict) -> float:
    raw = outcome.get("price")
    if raw is None:
        raw = outcome.get("odds")
    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        return float(raw)
    except (TypeError, ValueError):
        return 0.0


def _as_list(value: object) -> list:
    return value if isinstance(value, list) else []


@asynccontextmanager
async def sport_refresh_lock(redis: Redis | None, sport_key: str, ttl_seconds: int):
    """Try once to take the write lock for one sport key; yields whether it was taken.

    Never waits. A per-process lock covers callers in this process; with Redis
    available a ``SET NX EX`` key covers other processes. The Redis key expires
    after ``ttl_seconds``, so a crashed holder cannot block forever.
    """
    local_lock = _local_refresh_locks.setdefault(sport_key, asyncio.Lock())
    if local_lock.locked():
        yield False
        return

    async with local_lock:
        if redis is None:
            yield True
            return

        lock_key = f"odds:refresh-lock:{sport_key}"
        lock_value = str(uuid.uuid4())
        try:
            acquired = await redis.set(lock_key, lock_value, ex=ttl_seconds, nx=True)
        except Exception:
            logger.exception("Failed to acquire redis refresh lock; continuing with process lock only")
            yield True
            return

        if not acquired:
            yield False
            return

        try:
            yield True
        finally:
            try:
                current = await redis.get(lock_key)
                if current == lock_value:
                    await redis.delete(lock_key)
            except Exception:
                logger.exception("Failed to release redis refresh lock")


class OddsIngestionService:
    """Normalizes feed odds into the entity tables and manages the hot/archive split.

    Every write is keyed by a derived id, so a refresh can be retried after a
    partial failure without creating duplicates. Each event is committed as
    it completes; a failure mid-batch leaves earlier events in place.
    """

    def __init__(
        self,
        store: OddsStore,
        client: OddsFeed | None = None,
        *,
        redis: Redis | None = None,
        clock: SnapshotClock | None = None,
    ) -> None:
        self.store = store
        self.client = client if client is not None else OddsApiClient()
        self.redis = redis
        self.clock = clock

    async def refresh_odds(
        self,
        sport_key: str,
        regions: list[str] | None = None,
        markets: list[str] | None = None,
        odds_format: str | None = None,
    ) -> RefreshResult:
        sport_key = (sport_key or "").strip()
        if not sport_key:
            raise ValidationFailureError("sportKey is required")
        odds_format = odds_format or "american"
        if odds_format not in SUPPORTED_ODDS_FORMATS:
            raise ValidationFailureError(f"Unsupported oddsFormat: {odds_format}")

        batch_started = datetime.now(UTC)
        sequence = SnapshotIdSequence(int(batch_started.timestamp() * 1000), clock=self.clock)
        fetched_at = datetime.fromtimestamp(sequence.batch_epoch_ms / 1000, tz=UTC)

        sport_id = make_sport_id(sport_key)
        await self.store.insert_if_absent(Sport, sport_id, {"key": sport_key, "name": sport_key})
        await self.store.commit()

        feed = await self.client.get_odds(
            sport=sport_key,
            regions=regions,
            markets=markets,
            odds_format=odds_format,
        )
        if feed.warning:
            logger.warning("Odds ingestion skipped", extra={"sport_key": sport_key, "warning": feed.warning})
            return RefreshResult(ingested_snapshots=0, remaining=feed.remaining, warning=feed.warning)

        events = _as_list(feed.data)
        settings = get_settings()
        async with sport_refresh_lock(self.redis, sport_key, settings.odds_refresh_lock_seconds) as acquired:
            if not acquired:
                logger.warning("Odds ingestion skipped; refresh already running", extra={"sport_key": sport_key})
                return RefreshResult(
                    ingested_snapshots=0,
                    remaining=feed.remaining,
                    warning=REFRESH_IN_PROGRESS_WARNING,
                )

            for event in events:
                if not isinstance(event, dict):
                    logger.warning("Malformed event payload skipped", extra={"sport_key": sport_key})
                    continue
                await self._ingest_event(
                    event,
                    sport_key=sport_key,
                    sport_id=sport_id,
                    odds_format=odds_format,
                    sequence=sequence,
                    fetched_at=fetched_at,
                    ingested_at=batch_started,
                )
                await self.store.commit()

        logger.info(
            "Odds ingestion completed",
            extra={
                "sport_key": sport_key,
                "events_seen": len(events),
                "snapshots_inserted": sequence.issued,
                "requests_remaining": feed.remaining,
            },
        )
        return RefreshResult(ingested_snapshots=sequence.issued, remaining=feed.remaining)

    async def _ingest_event(
        self,
        event: dict,
        *,
        sport_key: str,
        sport_id: int,
        odds_format: str,
        sequence: SnapshotIdSequence,
        fetched_at: datetime,
        ingested_at: datetime,
    ) -> None:
        external_event_id = str(event.get("id") or "")
        event_id = make_event_id(external_event_id)

        home_name = str(event.get("home_team") or "")
        away_name = str(event.get("away_team") or "")
        home_id = make_team_id(sport_id, home_name)
        away_id = make_team_id(sport_id, away_name)
        for team_id, team_name in ((home_id, home_name), (away_id, away_name)):
            await self.store.insert_if_absent(
                Team,
                team_id,
                {
                    "sport_id": sport_id,
                    "name": team_name,
                    "abbreviation": team_abbreviation(team_name),
                    "external_ref": team_name,
                },
            )

        starts_at = parse_iso_datetime(event.get("commence_time")) or ingested_at
        await self.store.upsert_replace(
            SportEvent,
            event_id,
            {
                "sport_id": sport_id,
                "league_code": sport_key,
                "home_team_id": home_id,
                "away_team_id": away_id,
                "starts_at": starts_at,
                "status": "scheduled",
                "external_ref": external_event_id,
            },
        )

        for bookmaker in _as_list(event.get("bookmakers")):
            if not isinstance(bookmaker, dict):
                continue
            book_key = str(bookmaker.get("key") or bookmaker.get("title") or "unknown")
            book_id = make_sportsbook_id(book_key)
            await self.store.upsert_replace(
                Sportsbook,
                book_id,
                {"name": str(bookmaker.get("title") or book_key), "code": book_key, "base_url": ""},
            )

            for market in _as_list(bookmaker.get("markets")):
                if not isinstance(market, dict):
                    continue
                market_key = str(market.get("key") or "")
                market_id = make_market_id(event_id, book_id, market_key)
                await self.store.upsert_replace(
                    Market,
                    market_id,
                    {
                        "sport_event_id": event_id,
                        "key": market_key,
                        "label": market_key,
                        "metadata_json": {
                            "bookmaker_key": book_key,
                            "last_update": market.get("last_update") or bookmaker.get("last_update"),
                        },
                    },
                )

                for outcome in _as_list(market.get("outcomes")):
                    if not isinstance(outcome, dict):
                        continue
                    selection_id = await self._upsert_selection(market_id, outcome)
                    self._ingest_outcome_snapshot(
                        selection_id,
                        outcome,
                        book_id=book_id,
                        odds_format=odds_format,
                        sequence=sequence,
                        fetched_at=fetched_at,
                    )

    async def _upsert_selection(self, market_id: str, outcome: dict) -> str:
        outcome_name = str(outcome.get("name") or outcome.get("description") or "outcome")
        point = _numeric(outcome.get("point"))
        selection_id = make_selection_id(market_id, outcome_name, point)
        await self.store.upsert_replace(
            MarketSelection,
            selection_id,
            {
                "market_id": market_id,
                "label": outcome_name,
                "player_id": "",
                "line_value": float(point) if point is not None else 0.0,
                "side": outcome_name,
            },
        )
        return selection_id

    def _ingest_outcome_snapshot(
        self,
        selection_id: str,
        outcome: dict,
        *,
        book_id: str,
        odds_format: str,
        sequence: SnapshotIdSequence,
        fetched_at: datetime,
    ) -> None:
        price = _price(outcome)
        if odds_format == "decimal":
            stored_format = OddsFormat.DECIMAL
        elif odds_format == "hongkong":
            stored_format = OddsFormat.DECIMAL
            price = hongkong_to_decimal(price)
        else:
            stored_format = OddsFormat.AMERICAN

        self.store.insert(
            OddsSnapshot,
            sequence.next_id(),
            {
                "sportsbook_id": book_id,
                "selection_id": selection_id,
                "odds_format": stored_format,
                "odds_value": price,
                "implied_prob": implied_probability(price, stored_format.value),
                "fetched_at": fetched_at,
            },
        )

    async def archive_old_snapshots(self, days_old: float) -> ArchiveResult:
        """Copy snapshots older than ``days_old`` to the archive, then always evict them.

        The copy is best effort: duplicate ids are skipped and a failed copy
        is logged, but the hot rows are deleted either way. Rows whose copy
        failed are lost; hot-table size wins over archive completeness.
        """
        if days_old < 0:
            raise ValidationFailureError("daysOld must be zero or positive")

        now = datetime.now(UTC)
        cutoff = now - timedelta(days=days_old)
        old = await self.store.find_before(OddsSnapshot, "fetched_at", cutoff)
        if not old:
            return ArchiveResult(archived=0)

        rows = [
            {
                "id": snap.id,
                "sportsbook_id": snap.sportsbook_id,
                "selection_id": snap.selection_id,
                "odds_format": snap.odds_format,
                "odds_value": snap.odds_value,
                "implied_prob": snap.implied_prob,
                "fetched_at": snap.fetched_at,
                "archived_at": now,
            }
            for snap in old
        ]
        ids = [row["id"] for row in rows]

        inserted = 0
        duplicates = 0
        try:
            outcome = await self.store.insert_ignoring_duplicates(OddsSnapshotArchive, rows)
            inserted = outcome.inserted
            duplicates = outcome.duplicates
        except SQLAlchemyError:
            await self.store.rollback()
            logger.exception(
                "Archive copy failed; evicting hot snapshots anyway",
                extra={"snapshots": len(ids), "cutoff": cutoff.isoformat()},
            )

        await self.store.delete_by_ids(OddsSnapshot, ids)

        logger.info(
            "Odds snapshots archived",
            extra={
                "archived": len(ids),
                "archive_inserted": inserted,
                "archive_duplicates": duplicates,
                "days_old": days_old,
            },
        )
        return ArchiveResult(archived=len(ids), archive_inserted=inserted, archive_duplicates=duplicates)

    async def status(self) -> IngestionStatus:
        snapshots = await self.store.count(OddsSnapshot)
        archived = await self.store.count(OddsSnapshotArchive)
        last_fetched_at = await self.store.latest_value(OddsSnapshot, "fetched_at")
        return IngestionStatus(
            snapshots=snapshots,
            archived=archived,
            last_fetched_at=_as_utc(last_fetched_at),
        )
