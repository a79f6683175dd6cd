# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Rating aggregates: review counts and average ratings.

Reads take the cached counters when the reviewable carries them and
``recalculate`` is not requested, and fall back to live queries otherwise.
Both paths round through :func:`round_rating`, so they agree whenever the
cache is consistent.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from reviewable.errors import RecordError
from reviewable.identity import EntityReference, reference_for, resolve_reviewer
from reviewable.options import ReviewableConfig
from reviewable.repositories.review_repository import ReviewRepository
from reviewable.scale import to_decimal
from reviewable.schemas.review import RatingSummary


def round_rating(value: float | Decimal, precision: int) -> float:
    """Round half away from zero to *precision* decimal places.

    The value is first settled at RATING_DIGITS places, so a live float
    average like 0.24999999999999997 rounds the same as the exact 0.25.
    """
    quantum = Decimal(1).scaleb(-precision)
    return float(to_decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


class RatingCalculator:
    def __init__(self, session: AsyncSession, config: ReviewableConfig) -> None:
        self.session = session
        self.config = config
        self.reviews = ReviewRepository(session, config.review_model)

    def _reference(self, reviewable: object) -> EntityReference:
        ref = reference_for(reviewable)
        if ref is None:
            raise RecordError(f"{reviewable!r} is not a persisted reviewable.")
        return ref

    def _use_cache(self, recalculate: bool) -> bool:
        return self.config.caching and not recalculate

    async def total_reviews(self, reviewable: object, recalculate: bool = False) -> int:
        if self._use_cache(recalculate):
            return int(reviewable.ratings_count)  # type: ignore[attr-defined]
        return await self.reviews.count_for(self._reference(reviewable))

    async def average_rating(self, reviewable: object, recalculate: bool = False) -> float:
        if self._use_cache(recalculate):
            count = reviewable.ratings_count  # type: ignore[attr-defined]
            if not count:
                return 0.0
            total = reviewable.ratings_total  # type: ignore[attr-defined]
            return round_rating(total / count, self.config.precision)
        average = await self.reviews.average_rating_for(self._reference(reviewable))
        if average is None:
            return 0.0
        return round_rating(average, self.config.precision)

    async def average_rating_by(self, reviewable: object, **identifiers: Any) -> float:
        """Average rating given by one reviewer, always from a live query.

        With at most one review per reviewer this is that review's rating,
        or 0.0 if the reviewer has not rated.
        """
        reviewer = resolve_reviewer(identifiers, self.config)
        average = await self.reviews.average_rating_for(self._reference(reviewable), reviewer)
        if average is None:
            return 0.0
        return round_rating(average, self.config.precision)

    async def reviewed(self, reviewable: object) -> bool:
        return await self.total_reviews(reviewable) > 0

    async def summary(self, reviewable: object, recalculate: bool = False) -> RatingSummary:
        ref = self._reference(reviewable)
        return RatingSummary(
            reviewable_type=ref.type,
            reviewable_id=ref.id,
            total_reviews=await self.total_reviews(reviewable, recalculate),
            average_rating=await self.average_rating(reviewable, recalculate),
            precision=self.config.precision,
            cached=self._use_cache(recalculate),
        )
