from sqlalchemy import Float, String
from sqlalchemy.orm import Mapped, mapped_column

from oddsgraph.models.base import Base, TimestampMixin


class MarketSelection(Base, TimestampMixin):
    __tablename__ = "market_selections"

    id: Mapped[str] = mapped_column(String(768), primary_key=True)
    market_id: Mapped[str] = mapped_column(String(512), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    # Reserved for player props; blank until players are modelled.
    player_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    line_value: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    side: Mapped[str] = mapped_column(String(255), nullable=False)
