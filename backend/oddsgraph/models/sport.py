from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from oddsgraph.models.base import Base, TimestampMixin


class Sport(Base, TimestampMixin):
    """Created once per feed sport key; never updated after insert."""

    __tablename__ = "sports"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=False)
    key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
