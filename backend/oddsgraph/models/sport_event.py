from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from oddsgraph.models.base import Base, TimestampMixin


class SportEvent(Base, TimestampMixin):
    __tablename__ = "sport_events"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    sport_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    league_code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    home_team_id: Mapped[str] = mapped_column(String(255), nullable=False)
    away_team_id: Mapped[str] = mapped_column(String(255), nullable=False)
    starts_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="scheduled")
    external_ref: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
