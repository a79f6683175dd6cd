# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Incremental maintenance of a reviewable's cached rating aggregates.

Only reviewables whose model carries ``ratings_count`` and ``ratings_total``
(see :class:`reviewable.models.base.CachedRatingsMixin`) are touched. The
cache is bookkeeping: a failed cache write is logged and rolled back to its
savepoint, and the review write it accompanies stands. ``reconcile()``
repairs a cache that drifted.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reviewable.errors import RecordError
from reviewable.identity import reference_for
from reviewable.options import ReviewableConfig
from reviewable.repositories.review_repository import ReviewRepository
from reviewable.repositories.reviewable_repository import ReviewableRepository
from reviewable.scale import to_decimal

logger = logging.getLogger(__name__)


def _contribution(rating: float | None) -> tuple[int, Decimal]:
    # Unrated reviews do not count towards the rating aggregates.
    if rating is None:
        return 0, Decimal(0)
    return 1, to_decimal(rating)


class RatingsCache:
    def __init__(self, session: AsyncSession, config: ReviewableConfig) -> None:
        self.session = session
        self.config = config
        self.reviewables = ReviewableRepository(session, config.model)
        self.reviews = ReviewRepository(session, config.review_model)

    @property
    def enabled(self) -> bool:
        return self.config.caching

    async def on_create(self, reviewable: object, rating: float | None) -> bool:
        count, total = _contribution(rating)
        return await self._apply(reviewable, count, total)

    async def on_destroy(self, reviewable: object, rating: float | None) -> bool:
        count, total = _contribution(rating)
        return await self._apply(reviewable, -count, -total)

    async def on_update(
        self, reviewable: object, old_rating: float | None, new_rating: float | None
    ) -> bool:
        old_count, old_total = _contribution(old_rating)
        new_count, new_total = _contribution(new_rating)
        return await self._apply(reviewable, new_count - old_count, new_total - old_total)

    async def _apply(self, reviewable: object, count_delta: int, total_delta: Decimal) -> bool:
        """Apply a delta; returns False if the cache write failed."""
        if not self.enabled or (count_delta == 0 and total_delta == 0):
            return True
        try:
            async with self.session.begin_nested():
                await self.reviewables.apply_rating_delta(reviewable, count_delta, total_delta)
        except SQLAlchemyError:
            logger.exception(
                "Failed to update rating cache of %s (count %+d, total %s)",
                reference_for(reviewable),
                count_delta,
                total_delta,
            )
            return False
        return True

    async def reconcile(self, reviewable: object) -> tuple[int, Decimal]:
        """Recompute the aggregates from the stored reviews.

        Returns ``(ratings_count, ratings_total)``; the values are written
        back only when the reviewable is caching-capable.
        """
        ref = reference_for(reviewable)
        if ref is None:
            raise RecordError(f"{reviewable!r} is not a persisted reviewable.")
        count, total = await self.reviews.rating_totals_for(ref)
        if self.enabled:
            await self.reviewables.write_rating_cache(reviewable, count, total)
            logger.info("Reconciled rating cache of %s: count=%d total=%s", ref, count, total)
        return count, total
