# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Exceptions raised by the review engine."""

from __future__ import annotations


class ReviewableError(Exception):
    """Base exception for all review engine failures."""


class InvalidConfigValueError(ReviewableError):
    """Raised at setup time when a scale or precision option is malformed."""


class InvalidReviewerError(ReviewableError):
    """Raised when a reviewer cannot be resolved or is not allowed."""


class ReviewValidationError(ReviewableError):
    """Raised when a review fails validation before it is written."""

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
        super().__init__(message)
        self.errors: dict[str, list[str]] = errors or {}


class ScaleValidationError(ReviewValidationError):
    """Raised when a rating is not a value of the reviewable's scale."""


class RecordError(ReviewableError):
    """Raised when a review cannot be found or removed."""
