# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from reviewable.repositories.base import BaseRepository
from reviewable.repositories.review_repository import ReviewRepository
from reviewable.repositories.reviewable_repository import ReviewableRepository

__all__ = [
    "BaseRepository",
    "ReviewRepository",
    "ReviewableRepository",
]
