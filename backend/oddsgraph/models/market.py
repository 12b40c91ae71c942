from sqlalchemy import JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from oddsgraph.models.base import Base, TimestampMixin


class Market(Base, TimestampMixin):
    """One bookmaker's market for one event.

    The sportsbook is part of the composite id (``mkt:<event>:<book>:<key>``);
    ``metadata_json`` carries the bookmaker key and the feed's ``last_update``.
    """

    __tablename__ = "markets"

    id: Mapped[str] = mapped_column(String(512), primary_key=True)
    sport_event_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    label: Mapped[str] = mapped_column(String(120), nullable=False)
    metadata_json: Mapped[dict] = mapped_column(
        "metadata", JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=dict
    )
