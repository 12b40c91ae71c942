"""Stable identifiers for ingested odds entities.

Every id is a pure function of the feed's natural key, so re-ingesting the
same payload lands on the same rows. Snapshot ids are the exception: they are
unique per ingestion batch and never reused.
"""

import math
import re

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9\-:_]")

SNAPSHOT_INDEX_MULTIPLIER = 1000


def slug(value: str | None) -> str:
    lowered = (value or "").lower().strip()
    return _DISALLOWED_RE.sub("", _WHITESPACE_RE.sub("-", lowered))


def make_sport_id(sport_key: str) -> int:
    """31-multiplier rolling hash folded to a signed 32-bit int, then made positive.

    Not collision-proof; fine for the few dozen sport keys the feed exposes.
    """
    h = 0
    for char in sport_key:
        h = (h * 31 + ord(char)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def team_abbreviation(team_name: str) -> str:
    return team_name[:3].upper() or "UNK"


def make_team_id(sport_id: int, team_name: str) -> str:
    return f"team:{sport_id}:{slug(team_name)}"


def make_sportsbook_id(book_key: str) -> str:
    return f"book:{slug(book_key)}"


def make_event_id(external_event_id: str) -> str:
    return f"evt:{slug(external_event_id)}"


def make_market_id(event_id: str, book_id: str, market_key: str) -> str:
    return f"mkt:{event_id}:{book_id}:{slug(market_key)}"


def _format_line(point: float | int) -> str:
    # Match the feed's JSON number text: 3 not 3.0, 2.5 stays 2.5.
    if isinstance(point, float) and point.is_integer():
        return str(int(point))
    return str(point)


def make_selection_id(market_id: str, outcome_name: str, point: float | int | None = None) -> str:
    suffix = ""
    if isinstance(point, (int, float)) and not isinstance(point, bool) and math.isfinite(point):
        suffix = f":{_format_line(point)}"
    return f"sel:{market_id}:{slug(outcome_name)}{suffix}"


def make_odds_snapshot_id(batch_epoch_ms: int, index: int) -> int:
    if not 0 <= index < SNAPSHOT_INDEX_MULTIPLIER:
        raise ValueError(f"snapshot index {index} outside [0, {SNAPSHOT_INDEX_MULTIPLIER})")
    return batch_epoch_ms * SNAPSHOT_INDEX_MULTIPLIER + index


class SnapshotClock:
    """Process-wide record of which batch milliseconds are taken.

    A millisecond is handed to at most one batch, so concurrent refreshes of
    different sports never share an id prefix.
    """

    def __init__(self) -> None:
        self._last_claimed_ms = 0

    def claim(self, epoch_ms: int) -> int:
        claimed = max(epoch_ms, self._last_claimed_ms + 1)
        self._last_claimed_ms = claimed
        return claimed


snapshot_clock = SnapshotClock()


class SnapshotIdSequence:
    """Hands out snapshot ids for one ingestion batch.

    After 1000 ids the sequence claims the next free millisecond and restarts
    its index, so a batch of any size stays collision-free.
    """

    def __init__(self, epoch_ms: int, clock: SnapshotClock | None = None) -> None:
        self._clock = clock if clock is not None else snapshot_clock
        self.batch_epoch_ms = self._clock.claim(epoch_ms)
        self._current_ms = self.batch_epoch_ms
        self._index = 0
        self.issued = 0

    def next_id(self) -> int:
        if self._index >= SNAPSHOT_INDEX_MULTIPLIER:
            self._current_ms = self._clock.claim(self._current_ms + 1)
            self._index = 0
        snapshot_id = make_odds_snapshot_id(self._current_ms, self._index)
        self._index += 1
        self.issued += 1
        return snapshot_id
