from datetime import UTC, datetime, timedelta

from oddsgraph.models import OddsFormat, OddsSnapshot, OddsSnapshotArchive, Sport, Sportsbook
from oddsgraph.store.odds_store import OddsStore


def _archive_row(snapshot_id: int, fetched_at: datetime) -> dict:
    return {
        "id": snapshot_id,
        "sportsbook_id": "book:fanduel",
        "selection_id": "sel:x",
        "odds_format": OddsFormat.AMERICAN,
        "odds_value": -110.0,
        "implied_prob": 110 / 210,
        "fetched_at": fetched_at,
        "archived_at": datetime.now(UTC),
    }


async def test_insert_if_absent_never_overwrites(store: OddsStore) -> None:
    assert await store.insert_if_absent(Sport, 42, {"key": "basketball_nba", "name": "NBA"}) is True
    assert await store.insert_if_absent(Sport, 42, {"key": "basketball_nba", "name": "Renamed"}) is False
    await store.commit()

    sport = await store.session.get(Sport, 42)
    assert sport.name == "NBA"


async def test_upsert_replace_overwrites_every_given_field(store: OddsStore) -> None:
    await store.upsert_replace(Sportsbook, "book:dk", {"name": "DK", "code": "dk", "base_url": ""})
    await store.upsert_replace(Sportsbook, "book:dk", {"name": "DraftKings", "code": "draftkings", "base_url": ""})
    await store.commit()

    book = await store.session.get(Sportsbook, "book:dk")
    assert (book.name, book.code) == ("DraftKings", "draftkings")
    assert await store.count(Sportsbook) == 1


async def test_insert_ignoring_duplicates_counts_existing_and_repeated_ids(store: OddsStore) -> None:
    fetched_at = datetime.now(UTC) - timedelta(days=10)
    first = await store.insert_ignoring_duplicates(OddsSnapshotArchive, [_archive_row(1, fetched_at)])
    assert (first.inserted, first.duplicates) == (1, 0)

    second = await store.insert_ignoring_duplicates(
        OddsSnapshotArchive,
        [_archive_row(1, fetched_at), _archive_row(2, fetched_at), _archive_row(2, fetched_at)],
    )

    assert (second.inserted, second.duplicates) == (1, 2)
    assert await store.count(OddsSnapshotArchive) == 2


async def test_find_before_and_delete_by_ids(store: OddsStore) -> None:
    now = datetime.now(UTC)
    for snapshot_id, age_days in ((10, 9), (11, 8), (12, 1)):
        store.insert(
            OddsSnapshot,
            snapshot_id,
            {
                "sportsbook_id": "book:fanduel",
                "selection_id": "sel:x",
                "odds_format": OddsFormat.AMERICAN,
                "odds_value": 120.0,
                "implied_prob": 100 / 220,
                "fetched_at": now - timedelta(days=age_days),
            },
        )
    await store.commit()

    old = await store.find_before(OddsSnapshot, "fetched_at", now - timedelta(days=7))
    assert [snap.id for snap in old] == [10, 11]

    assert await store.delete_by_ids(OddsSnapshot, [10, 11]) == 2
    assert await store.count(OddsSnapshot) == 1
    latest = await store.latest_value(OddsSnapshot, "fetched_at")
    assert latest is not None
