# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from reviewable.services.cache import RatingsCache
from reviewable.services.ratings import RatingCalculator, round_rating
from reviewable.services.review_service import ReviewService

__all__ = [
    "RatingCalculator",
    "RatingsCache",
    "ReviewService",
    "round_rating",
]
