# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Recording and removing reviews.

:class:`ReviewService` enforces at most one review per reviewer per
reviewable: ``review()`` finds the reviewer's existing review and updates
it in place, or creates one. Two concurrent first reviews by the same
reviewer collide on the review table's unique constraints; the loser's
insert is rolled back to its savepoint and retried as an update.

The service flushes but never commits; the caller owns the transaction.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from reviewable.config import Settings, get_settings
from reviewable.errors import RecordError, ReviewValidationError
from reviewable.identity import (
    IDENTIFIER_KEYS,
    EntityReference,
    IPAddress,
    ReviewerIdentity,
    reference_for,
    resolve_reviewer,
)
from reviewable.models.review import Review
from reviewable.options import RESERVED_FIELDS, ReviewableConfig
from reviewable.repositories.review_repository import ReviewRepository
from reviewable.repositories.reviewable_repository import ReviewableRepository
from reviewable.scale import coerce_rating
from reviewable.services.cache import RatingsCache

logger = logging.getLogger(__name__)


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class ReviewService:
    def __init__(
        self,
        session: AsyncSession,
        config: ReviewableConfig,
        *,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.config = config
        self.reviews = ReviewRepository(session, config.review_model)
        self.reviewables = ReviewableRepository(session, config.model)
        self.cache = RatingsCache(session, config)
        self._retries = (settings or get_settings()).upsert_retries

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _reference(self, reviewable: object) -> EntityReference:
        if not isinstance(reviewable, self.config.model):
            raise TypeError(
                f"Expected a {self.config.type_name}, got {type(reviewable).__name__}"
            )
        ref = reference_for(reviewable)
        if ref is None:
            raise RecordError(f"{reviewable!r} is not a persisted reviewable.")
        return ref

    def _content_values(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        values: dict[str, Any] = {}
        for key, value in fields.items():
            if key in IDENTIFIER_KEYS or key in RESERVED_FIELDS:
                continue
            if key not in self.config.content_fields:
                logger.debug("Ignoring unknown review field %r for %s", key, self.config.type_name)
                continue
            values[key] = value
        if values.get("rating") is not None:
            values["rating"] = coerce_rating(self.config.scale, values["rating"])
        return values

    def _validate(self, current: Mapping[str, Any]) -> None:
        required = self.config.required_content
        if required and not any(_present(current.get(name)) for name in required):
            names = " or ".join(sorted(required))
            raise ReviewValidationError(
                f"Review needs a {names}.",
                {name: ["can't be blank"] for name in sorted(required)},
            )

    def _new_review(
        self, ref: EntityReference, reviewer: ReviewerIdentity, values: Mapping[str, Any]
    ) -> Review:
        review = self.config.review_model(**values)
        review.reviewable_type = ref.type
        review.reviewable_id = ref.id
        if isinstance(reviewer, IPAddress):
            review.ip = reviewer.value
        else:
            review.reviewer_type = reviewer.type
            review.reviewer_id = reviewer.id
        return review

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def build_review(self, reviewable: object, **identifiers_and_fields: Any) -> Review:
        """Return the reviewer's review with the given fields applied, unsaved.

        An existing review is modified in place; otherwise a new, transient
        review is returned. The rating is checked against the scale
        (``ScaleValidationError``), but required content is not validated and
        nothing is flushed.
        """
        reviewer = resolve_reviewer(identifiers_and_fields, self.config)
        ref = self._reference(reviewable)
        values = self._content_values(identifiers_and_fields)
        review = await self.reviews.find_one(ref, reviewer)
        if review is None:
            return self._new_review(ref, reviewer, values)
        for key, value in values.items():
            setattr(review, key, value)
        return review

    async def review(self, reviewable: object, **identifiers_and_fields: Any) -> Review:
        """Record the reviewer's review of *reviewable*, creating or updating it.

        Identifier keys (``by``, ``reviewer``, ``user``, ``account``, ``ip``)
        name the reviewer; ``rating``, ``body`` and any other content column
        of the review model are applied. Association columns are ignored.

        Raises:
            InvalidReviewerError: the reviewer is missing or not allowed.
            ScaleValidationError: the rating is not on the scale.
            ReviewValidationError: none of the required content is present.
            RecordError: the upsert kept losing races with other writers.
        """
        reviewer = resolve_reviewer(identifiers_and_fields, self.config)
        ref = self._reference(reviewable)
        values = self._content_values(identifiers_and_fields)

        for _attempt in range(self._retries + 1):
            existing = await self.reviews.find_one(ref, reviewer, for_update=True)
            if existing is not None:
                return await self._update(reviewable, existing, values)
            try:
                return await self._create(reviewable, ref, reviewer, values)
            except IntegrityError:
                logger.info(
                    "Concurrent review of %s by %s; retrying as update", ref, reviewer
                )
        raise RecordError(f"Could not record review of {ref} by {reviewer}.")

    async def _create(
        self,
        reviewable: object,
        ref: EntityReference,
        reviewer: ReviewerIdentity,
        values: Mapping[str, Any],
    ) -> Review:
        self._validate(values)
        review = self._new_review(ref, reviewer, values)
        async with self.session.begin_nested():
            await self.reviews.create(review)
        logger.info("Created review %s of %s by %s", review.id, ref, reviewer)
        await self.cache.on_create(reviewable, review.rating)
        return review

    async def _update(
        self, reviewable: object, review: Review, values: Mapping[str, Any]
    ) -> Review:
        current = {name: getattr(review, name) for name in self.config.required_content}
        self._validate({**current, **values})
        old_rating = review.rating
        for key, value in values.items():
            setattr(review, key, value)
        await self.session.flush()
        logger.info("Updated review %s of %s", review.id, review.reviewable_ref)
        if review.rating != old_rating:
            await self.cache.on_update(reviewable, old_rating, review.rating)
        return review

    async def unreview(self, reviewable: object, **identifiers: Any) -> None:
        """Remove the reviewer's review of *reviewable*.

        Raises:
            InvalidReviewerError: the reviewer is missing or not allowed.
            RecordError: the reviewer has no review, or it could not be deleted.
        """
        reviewer = resolve_reviewer(identifiers, self.config)
        ref = self._reference(reviewable)
        review = await self.reviews.find_one(ref, reviewer)
        if review is None:
            raise RecordError(f"Could not un-review {ref} by {reviewer}: no review found.")
        await self.destroy_review(review, reviewable)

    async def destroy_review(self, review: Review, reviewable: object | None = None) -> None:
        """Delete *review* and take its rating out of the cached aggregates."""
        if reviewable is None and review.reviewable_type == self.config.type_name:
            reviewable = await self.reviewables.get_by_ref_id(review.reviewable_id)
        rating = review.rating
        try:
            async with self.session.begin_nested():
                removed = await self.reviews.delete_row(review)
        except SQLAlchemyError as exc:
            raise RecordError(f"Could not destroy review {review.id}: {exc}") from exc
        if removed != 1:
            raise RecordError(f"Could not destroy review {review.id}: it no longer exists.")
        logger.info("Destroyed review %s of %s", review.id, review.reviewable_ref)
        if reviewable is not None:
            await self.cache.on_destroy(reviewable, rating)

    async def destroy_reviewable(self, reviewable: object) -> int:
        """Delete *reviewable* together with all of its reviews.

        Returns the number of reviews removed.
        """
        ref = self._reference(reviewable)
        removed = await self.reviews.delete_for_reviewable(ref)
        await self.reviewables.delete(reviewable)
        logger.info("Destroyed %s and %d review(s)", ref, removed)
        return removed

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def review_by(self, reviewable: object, **identifiers: Any) -> Review | None:
        reviewer = resolve_reviewer(identifiers, self.config)
        return await self.reviews.find_one(self._reference(reviewable), reviewer)

    async def reviewed_by(self, reviewable: object, **identifiers: Any) -> bool:
        return await self.review_by(reviewable, **identifiers) is not None

    async def reviews_for(self, reviewable: object) -> list[Review]:
        return await self.reviews.list_by_reviewable(self._reference(reviewable))

    async def reviewers(self, reviewable: object) -> list[Any]:
        """Everyone who reviewed *reviewable*, in review order.

        Entity reviewers are loaded with one query per reviewer type; IP
        reviewers come back as :class:`IPAddress` values.
        """
        reviews = await self.reviews.list_by_reviewable(self._reference(reviewable))
        ids_by_type: dict[str, set[str]] = {}
        for review in reviews:
            if review.ip is None and review.reviewer_type is not None:
                ids_by_type.setdefault(review.reviewer_type, set()).add(review.reviewer_id)

        loaded: dict[tuple[str, str], Any] = {}
        for type_name, ids in ids_by_type.items():
            model = self.config.reviewer_model(type_name)
            if model is None:
                logger.warning("No model found for reviewer type %s", type_name)
                continue
            rows = await ReviewableRepository(self.session, model).fetch_many(ids)
            loaded.update({(type_name, raw): row for raw, row in rows.items()})

        result: list[Any] = []
        for review in reviews:
            identity = review.reviewer_identity
            if isinstance(identity, IPAddress):
                result.append(identity)
            elif (identity.type, identity.id) in loaded:
                result.append(loaded[(identity.type, identity.id)])
        return result

    async def reviews_by(self, reviewer: object) -> list[Review]:
        """All reviews *reviewer* left on reviewables of this type."""
        identity = resolve_reviewer({"by": reviewer}, self.config)
        return await self.reviews.list_by_reviewer(
            identity, reviewable_type=self.config.type_name
        )

    async def reviewables_by(self, reviewer: object) -> list[Any]:
        """Reviewables of this type that *reviewer* reviewed, in review order."""
        reviews = await self.reviews_by(reviewer)
        rows = await self.reviewables.fetch_many(r.reviewable_id for r in reviews)
        return [rows[r.reviewable_id] for r in reviews if r.reviewable_id in rows]
