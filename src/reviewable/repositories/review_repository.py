# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from reviewable.identity import EntityReference, IPAddress, ReviewerIdentity
from reviewable.models.review import Review
from reviewable.repositories.base import BaseRepository
from reviewable.scale import to_decimal


class ReviewRepository(BaseRepository[Review]):
    def __init__(self, session: AsyncSession, model: type[Review] = Review) -> None:
        super().__init__(session, model)

    def _on(self, reviewable: EntityReference) -> list[Any]:
        return [
            self.model.reviewable_type == reviewable.type,
            self.model.reviewable_id == reviewable.id,
        ]

    def _by(self, reviewer: ReviewerIdentity) -> list[Any]:
        if isinstance(reviewer, IPAddress):
            return [self.model.ip == reviewer.value]
        return [
            self.model.reviewer_type == reviewer.type,
            self.model.reviewer_id == reviewer.id,
        ]

    async def find_one(
        self,
        reviewable: EntityReference,
        reviewer: ReviewerIdentity,
        *,
        for_update: bool = False,
    ) -> Review | None:
        """Find the reviewer's review of *reviewable*.

        With ``for_update`` the row is locked until the transaction ends and
        re-read from the database, so the caller sees the committed rating.
        """
        stmt = select(self.model).where(*self._on(reviewable), *self._by(reviewer))
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_reviewable(self, reviewable: EntityReference) -> list[Review]:
        result = await self.session.execute(
            select(self.model)
            .where(*self._on(reviewable))
            .order_by(self.model.created_at.asc())
        )
        return list(result.scalars().all())

    async def list_by_reviewer(
        self, reviewer: ReviewerIdentity, *, reviewable_type: str | None = None
    ) -> list[Review]:
        stmt = select(self.model).where(*self._by(reviewer))
        if reviewable_type is not None:
            stmt = stmt.where(self.model.reviewable_type == reviewable_type)
        result = await self.session.execute(stmt.order_by(self.model.created_at.asc()))
        return list(result.scalars().all())

    async def count_for(self, reviewable: EntityReference) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(self.model).where(*self._on(reviewable))
        )
        return result.scalar_one()

    async def average_rating_for(
        self, reviewable: EntityReference, reviewer: ReviewerIdentity | None = None
    ) -> float | None:
        stmt = select(func.avg(self.model.rating)).where(
            *self._on(reviewable), self.model.rating.is_not(None)
        )
        if reviewer is not None:
            stmt = stmt.where(*self._by(reviewer))
        result = await self.session.execute(stmt)
        value = result.scalar_one()
        return float(value) if value is not None else None

    async def rating_totals_for(self, reviewable: EntityReference) -> tuple[int, Decimal]:
        """Return ``(number of rated reviews, sum of their ratings)``."""
        result = await self.session.execute(
            select(func.count(self.model.rating), func.sum(self.model.rating)).where(
                *self._on(reviewable), self.model.rating.is_not(None)
            )
        )
        count, total = result.one()
        return int(count or 0), to_decimal(total or 0)

    async def delete_row(self, review: Review) -> int:
        """Delete *review* by primary key; returns the number of rows removed.

        Zero means another transaction already deleted it.
        """
        result = await self.session.execute(
            delete(self.model)
            .where(self.model.id == review.id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1 and review in self.session:
            self.session.expunge(review)
        return result.rowcount

    async def delete_for_reviewable(self, reviewable: EntityReference) -> int:
        result = await self.session.execute(delete(self.model).where(*self._on(reviewable)))
        await self.session.flush()
        return result.rowcount or 0
