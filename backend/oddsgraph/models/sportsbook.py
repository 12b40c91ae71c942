from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from oddsgraph.models.base import Base, TimestampMixin


class Sportsbook(Base, TimestampMixin):
    __tablename__ = "sportsbooks"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    code: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    base_url: Mapped[str] = mapped_column(String(255), nullable=False, default="")
