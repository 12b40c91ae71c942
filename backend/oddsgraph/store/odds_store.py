"""Keyed persistence operations over the odds entity tables.

Insert-if-absent and replace are separate operations on purpose: sports and
teams are written once, everything else is overwritten wholesale on each
ingestion pass. Both are select-then-write so they behave the same on
Postgres and SQLite.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from oddsgraph.models.base import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

ID_CHUNK_SIZE = 500


@dataclass(frozen=True)
class BulkInsertOutcome:
    inserted: int
    duplicates: int


def _chunks(values: Sequence[Any], size: int = ID_CHUNK_SIZE) -> Iterable[Sequence[Any]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class OddsStore:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def insert_if_absent(self, model: type[ModelT], key: Any, fields: dict[str, Any]) -> bool:
        """Create the row when ``key`` is unknown; never touch an existing row."""
        existing = await self.session.get(model, key)
        if existing is not None:
            return False
        self.session.add(model(id=key, **fields))
        await self.session.flush()
        return True

    async def upsert_replace(self, model: type[ModelT], key: Any, fields: dict[str, Any]) -> ModelT:
        """Create the row, or overwrite every given field of the existing one."""
        row = await self.session.get(model, key)
        if row is None:
            row = model(id=key, **fields)
            self.session.add(row)
        else:
            for name, value in fields.items():
                setattr(row, name, value)
        await self.session.flush()
        return row

    def insert(self, model: type[ModelT], key: Any, fields: dict[str, Any]) -> ModelT:
        row = model(id=key, **fields)
        self.session.add(row)
        return row

    async def insert_ignoring_duplicates(self, model: type[ModelT], rows: list[dict[str, Any]]) -> BulkInsertOutcome:
        """Insert every row whose id is not taken; duplicates are counted and dropped.

        Ids already stored (or repeated inside ``rows``) are filtered up front.
        If a concurrent writer still wins the race, the batch falls back to
        row-by-row commits so one collision cannot discard the rest.
        """
        if not rows:
            return BulkInsertOutcome(inserted=0, duplicates=0)

        candidate_ids = [row["id"] for row in rows]
        taken: set[Any] = set()
        for chunk in _chunks(candidate_ids):
            result = await self.session.execute(select(model.id).where(model.id.in_(chunk)))
            taken.update(result.scalars().all())

        pending: list[dict[str, Any]] = []
        duplicates = 0
        for row in rows:
            if row["id"] in taken:
                duplicates += 1
                continue
            taken.add(row["id"])
            pending.append(row)

        if not pending:
            return BulkInsertOutcome(inserted=0, duplicates=duplicates)

        self.session.add_all([model(**row) for row in pending])
        try:
            await self.session.commit()
            return BulkInsertOutcome(inserted=len(pending), duplicates=duplicates)
        except IntegrityError:
            await self.session.rollback()
            logger.warning(
                "Bulk insert hit a duplicate key; retrying row by row",
                extra={"table": model.__tablename__, "rows": len(pending)},
            )

        inserted = 0
        for row in pending:
            self.session.add(model(**row))
            try:
                await self.session.commit()
                inserted += 1
            except IntegrityError:
                await self.session.rollback()
                duplicates += 1
        return BulkInsertOutcome(inserted=inserted, duplicates=duplicates)

    async def find_before(self, model: type[ModelT], field: str, cutoff: datetime) -> list[ModelT]:
        column = getattr(model, field)
        stmt = select(model).where(column < cutoff).order_by(column.asc(), model.id.asc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def delete_by_ids(self, model: type[ModelT], ids: Sequence[Any]) -> int:
        deleted = 0
        for chunk in _chunks(list(ids)):
            result = await self.session.execute(delete(model).where(model.id.in_(chunk)))
            deleted += result.rowcount or 0
        await self.session.commit()
        return deleted

    async def count(self, model: type[ModelT]) -> int:
        result = await self.session.execute(select(func.count()).select_from(model))
        return int(result.scalar_one())

    async def latest_value(self, model: type[ModelT], field: str) -> Any | None:
        column = getattr(model, field)
        result = await self.session.execute(select(func.max(column)))
        return result.scalar_one_or_none()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()
