# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""HTTP routes for anonymous, IP-identified reviews of one reviewable type.

Mount the router returned by :func:`create_reviews_router` under a prefix
of the application's choosing, e.g. ``/posts``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from reviewable.db.session import get_db
from reviewable.errors import InvalidReviewerError, RecordError, ReviewValidationError
from reviewable.identity import IDENTIFIER_KEYS
from reviewable.options import ReviewableConfig
from reviewable.repositories.reviewable_repository import ReviewableRepository
from reviewable.schemas.review import ErrorResponse, RatingSummary, ReviewResponse, ReviewSubmit
from reviewable.services.ratings import RatingCalculator
from reviewable.services.review_service import ReviewService

type ReviewableLoader = Callable[[AsyncSession, str], Awaitable[Any | None]]


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client is not None else None


def create_reviews_router(
    config: ReviewableConfig, loader: ReviewableLoader | None = None
) -> APIRouter:
    """Create the review routes for reviewables configured by *config*.

    *loader* fetches a reviewable by its path id; by default the id is
    converted to the model's primary key type and looked up directly.
    """
    router = APIRouter(tags=["reviews"])

    async def _load(db: AsyncSession, reviewable_id: str) -> Any:
        if loader is not None:
            entity = await loader(db, reviewable_id)
        else:
            entity = await ReviewableRepository(db, config.model).get_by_ref_id(reviewable_id)
        if entity is None:
            raise HTTPException(status_code=404, detail=f"{config.type_name} not found")
        return entity

    @router.get("/{reviewable_id}/reviews", response_model=list[ReviewResponse])
    async def list_reviews(
        reviewable_id: str,
        db: AsyncSession = Depends(get_db),
    ) -> list[ReviewResponse]:
        reviewable = await _load(db, reviewable_id)
        reviews = await ReviewService(db, config).reviews_for(reviewable)
        return [ReviewResponse.model_validate(r) for r in reviews]

    @router.put(
        "/{reviewable_id}/reviews",
        response_model=ReviewResponse,
        responses={
            403: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
        },
    )
    async def put_review(
        reviewable_id: str,
        body: ReviewSubmit,
        request: Request,
        db: AsyncSession = Depends(get_db),
    ) -> ReviewResponse:
        reviewable = await _load(db, reviewable_id)
        fields = {
            k: v
            for k, v in body.model_dump(exclude_unset=True).items()
            if k not in IDENTIFIER_KEYS
        }
        try:
            review = await ReviewService(db, config).review(
                reviewable, ip=_client_ip(request), **fields
            )
        except InvalidReviewerError as exc:
            await db.rollback()
            raise HTTPException(status_code=403, detail=str(exc))
        except ReviewValidationError as exc:
            await db.rollback()
            raise HTTPException(status_code=422, detail=str(exc))
        except RecordError as exc:
            await db.rollback()
            raise HTTPException(status_code=409, detail=str(exc))
        await db.commit()
        return ReviewResponse.model_validate(review)

    @router.delete(
        "/{reviewable_id}/reviews",
        status_code=204,
        responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    )
    async def delete_review(
        reviewable_id: str,
        request: Request,
        db: AsyncSession = Depends(get_db),
    ) -> None:
        reviewable = await _load(db, reviewable_id)
        try:
            await ReviewService(db, config).unreview(reviewable, ip=_client_ip(request))
        except InvalidReviewerError as exc:
            await db.rollback()
            raise HTTPException(status_code=403, detail=str(exc))
        except RecordError as exc:
            await db.rollback()
            raise HTTPException(status_code=404, detail=str(exc))
        await db.commit()

    @router.get("/{reviewable_id}/ratings", response_model=RatingSummary)
    async def get_ratings(
        reviewable_id: str,
        recalculate: bool = Query(False),
        db: AsyncSession = Depends(get_db),
    ) -> RatingSummary:
        reviewable = await _load(db, reviewable_id)
        return await RatingCalculator(db, config).summary(reviewable, recalculate)

    return router
