# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ReviewSubmit(BaseModel):
    # Extra keys are passed through; the engine keeps only the content
    # fields the review model declares.
    model_config = ConfigDict(extra="allow")

    rating: float | str | None = None
    body: str | None = Field(None, max_length=10_000)
    title: str | None = Field(None, max_length=255)


class ReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reviewable_type: str
    reviewable_id: str
    reviewer_type: str | None
    reviewer_id: str | None
    ip: str | None
    rating: float | None
    body: str | None
    created_at: datetime
    updated_at: datetime


class RatingSummary(BaseModel):
    reviewable_type: str
    reviewable_id: str
    total_reviews: int
    average_rating: float
    precision: int
    cached: bool


class ErrorResponse(BaseModel):
    detail: str
