# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from reviewable.models.base import Base, CachedRatingsMixin, TimestampMixin, UUIDMixin
from reviewable.models.review import Review, ReviewMixin

__all__ = [
    "Base",
    "CachedRatingsMixin",
    "Review",
    "ReviewMixin",
    "TimestampMixin",
    "UUIDMixin",
]
