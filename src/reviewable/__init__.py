# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Reviews and rating aggregates for arbitrary SQLAlchemy models."""

from reviewable.errors import (
    InvalidConfigValueError,
    InvalidReviewerError,
    RecordError,
    ReviewableError,
    ReviewValidationError,
    ScaleValidationError,
)
from reviewable.identity import EntityReference, IPAddress, ReviewerIdentity, resolve_reviewer
from reviewable.models import Base, CachedRatingsMixin, Review, ReviewMixin
from reviewable.options import ReviewableConfig, is_reviewable
from reviewable.scale import ReviewScale, build_scale, contains
from reviewable.services import RatingCalculator, RatingsCache, ReviewService, round_rating

__all__ = [
    "Base",
    "CachedRatingsMixin",
    "EntityReference",
    "IPAddress",
    "InvalidConfigValueError",
    "InvalidReviewerError",
    "RatingCalculator",
    "RatingsCache",
    "RecordError",
    "Review",
    "ReviewMixin",
    "ReviewScale",
    "ReviewService",
    "ReviewValidationError",
    "ReviewableConfig",
    "ReviewableError",
    "ReviewerIdentity",
    "ScaleValidationError",
    "build_scale",
    "contains",
    "is_reviewable",
    "resolve_reviewer",
    "round_rating",
]
