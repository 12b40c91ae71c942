from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Enum, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from oddsgraph.models.base import Base
from oddsgraph.models.odds_snapshot import OddsFormat


class OddsSnapshotArchive(Base):
    """Cold copy of an evicted OddsSnapshot; same id as the hot row."""

    __tablename__ = "odds_snapshots_archive"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    sportsbook_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    selection_id: Mapped[str] = mapped_column(String(768), nullable=False, index=True)
    odds_format: Mapped[OddsFormat] = mapped_column(
        Enum(OddsFormat, name="odds_format", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    odds_value: Mapped[float] = mapped_column(Float, nullable=False)
    implied_prob: Mapped[float] = mapped_column(Float, nullable=False)
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    archived_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
