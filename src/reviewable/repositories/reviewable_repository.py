# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from reviewable.options import CACHE_FIELDS
from reviewable.repositories.base import BaseRepository


def _coerce_part(column: Any, raw: str) -> Any:
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return raw
    if isinstance(raw, python_type):
        return raw
    return python_type(raw)


def coerce_id(model: type, raw_id: str) -> Any:
    """Convert a stored string id back to *model*'s primary key type.

    Composite keys are stored joined with ``,`` and come back as a tuple in
    primary key column order. Raises ValueError when the parts do not fit.
    """
    columns = sa_inspect(model).primary_key
    if len(columns) == 1:
        return _coerce_part(columns[0], raw_id)
    parts = raw_id.split(",")
    if len(parts) != len(columns):
        raise ValueError(f"{raw_id!r} does not match the primary key of {model.__name__}")
    return tuple(_coerce_part(column, part) for column, part in zip(columns, parts))


def stored_id(entity: object) -> str:
    return ",".join(str(part) for part in sa_inspect(entity).identity)


class ReviewableRepository(BaseRepository[Any]):
    """Reads reviewable rows and writes their rating cache columns.

    Cache writes are plain ``UPDATE`` statements: they skip any ORM-level
    validation on the reviewable and apply increments inside the database,
    so concurrent writers cannot lose each other's updates.
    """

    def __init__(self, session: AsyncSession, model: type) -> None:
        super().__init__(session, model)

    def _identity_clause(self, entity: object) -> list[Any]:
        mapper = sa_inspect(self.model)
        identity = sa_inspect(entity).identity
        return [col == value for col, value in zip(mapper.primary_key, identity)]

    async def get_by_ref_id(self, raw_id: str) -> Any | None:
        try:
            entity_id = coerce_id(self.model, raw_id)
        except (TypeError, ValueError):
            return None
        return await self.get_by_id(entity_id)

    async def fetch_many(self, raw_ids: Iterable[str]) -> dict[str, Any]:
        """Batch-load rows by stored id; returns ``{raw_id: entity}``."""
        ids = {raw: coerce_id(self.model, raw) for raw in set(raw_ids)}
        if not ids:
            return {}
        pk = sa_inspect(self.model).primary_key
        if len(pk) == 1:
            clause = pk[0].in_(list(ids.values()))
        else:
            clause = or_(
                *(and_(*(col == part for col, part in zip(pk, key))) for key in ids.values())
            )
        result = await self.session.execute(select(self.model).where(clause))
        by_id = {stored_id(row): row for row in result.scalars().all()}
        return {raw: by_id[raw] for raw in ids if raw in by_id}

    async def apply_rating_delta(
        self, entity: object, count_delta: int, total_delta: Decimal
    ) -> None:
        count_col, total_col = (getattr(self.model, name) for name in CACHE_FIELDS)
        await self.session.execute(
            update(self.model)
            .where(*self._identity_clause(entity))
            .values(
                ratings_count=count_col + count_delta,
                ratings_total=total_col + total_delta,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(entity, attribute_names=list(CACHE_FIELDS))

    async def write_rating_cache(self, entity: object, count: int, total: Decimal) -> None:
        await self.session.execute(
            update(self.model)
            .where(*self._identity_clause(entity))
            .values(ratings_count=count, ratings_total=total)
            .execution_options(synchronize_session=False)
        )
        await self.session.refresh(entity, attribute_names=list(CACHE_FIELDS))
