import pytest

from oddsgraph.services.identity import (
    SnapshotClock,
    SnapshotIdSequence,
    make_event_id,
    make_market_id,
    make_odds_snapshot_id,
    make_selection_id,
    make_sport_id,
    make_sportsbook_id,
    make_team_id,
    slug,
    team_abbreviation,
)


def test_slug_lowercases_dashes_whitespace_and_drops_punctuation() -> None:
    assert slug("  Los Angeles  Lakers ") == "los-angeles-lakers"
    assert slug("St. Louis Blues!") == "st-louis-blues"
    assert slug("over_under:2") == "over_under:2"
    assert slug(None) == ""


def test_sport_id_is_a_stable_non_negative_32_bit_hash() -> None:
    first = make_sport_id("basketball_nba")
    assert first == make_sport_id("basketball_nba")
    assert 0 <= first <= 2**31
    assert make_sport_id("") == 0
    assert make_sport_id("a") == 97
    assert make_sport_id("ab") == 97 * 31 + 98
    assert first != make_sport_id("americanfootball_nfl")


def test_team_id_is_identical_across_calls() -> None:
    assert make_team_id(1, "Los Angeles Lakers") == "team:1:los-angeles-lakers"
    assert make_team_id(1, "Los Angeles Lakers") == make_team_id(1, "Los Angeles Lakers")


def test_team_abbreviation_defaults_for_blank_names() -> None:
    assert team_abbreviation("Boston Celtics") == "BOS"
    assert team_abbreviation("") == "UNK"


def test_composite_ids_nest_their_parents() -> None:
    event_id = make_event_id("ABC123")
    book_id = make_sportsbook_id("DraftKings")
    market_id = make_market_id(event_id, book_id, "h2h")

    assert event_id == "evt:abc123"
    assert book_id == "book:draftkings"
    assert market_id == "mkt:evt:abc123:book:draftkings:h2h"


def test_selection_id_appends_line_only_for_finite_numbers() -> None:
    market_id = "mkt:evt:1:book:fd:totals"
    assert make_selection_id(market_id, "Over", 220.5) == f"sel:{market_id}:over:220.5"
    assert make_selection_id(market_id, "Over", 3.0) == f"sel:{market_id}:over:3"
    assert make_selection_id(market_id, "Over", -3) == f"sel:{market_id}:over:-3"
    assert make_selection_id(market_id, "Over", None) == f"sel:{market_id}:over"
    assert make_selection_id(market_id, "Over", float("nan")) == f"sel:{market_id}:over"


def test_snapshot_id_packs_batch_ms_and_index() -> None:
    assert make_odds_snapshot_id(1_700_000_000_000, 7) == 1_700_000_000_000_007
    with pytest.raises(ValueError):
        make_odds_snapshot_id(1_700_000_000_000, 1000)


def test_snapshot_sequence_stays_unique_past_one_thousand_ids() -> None:
    clock = SnapshotClock()
    sequence = SnapshotIdSequence(1_700_000_000_000, clock=clock)

    ids = [sequence.next_id() for _ in range(2500)]

    assert len(set(ids)) == 2500
    assert ids == sorted(ids)
    assert sequence.issued == 2500


def test_concurrent_batches_never_share_a_millisecond() -> None:
    clock = SnapshotClock()
    first = SnapshotIdSequence(1_700_000_000_000, clock=clock)
    first_ids = {first.next_id() for _ in range(1200)}
    second = SnapshotIdSequence(1_700_000_000_000, clock=clock)
    second_ids = {second.next_id() for _ in range(10)}

    assert second.batch_epoch_ms > first.batch_epoch_ms
    assert first_ids.isdisjoint(second_ids)
