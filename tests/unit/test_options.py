# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

import dataclasses
import logging

import pytest

from reviewable.config import Settings, configure_logging, get_settings
from reviewable.errors import InvalidConfigValueError
from reviewable.models.review import Review
from reviewable.options import is_reviewable
from tests.models import (
    ARTICLE_REVIEWS,
    CACHED_POST_REVIEWS,
    MOOD_POST_REVIEWS,
    POST_REVIEWS,
    Account,
    Guest,
    ReviewablePost,
    User,
)


class TestIsReviewable:
    def test_scale_and_precision(self) -> None:
        assert POST_REVIEWS.scale.minimum == 1.0
        assert POST_REVIEWS.scale.maximum == 5.0
        assert len(POST_REVIEWS.scale) == 9
        assert POST_REVIEWS.precision == 2

    def test_total_precision_overrides_average_precision(self) -> None:
        config = is_reviewable(ReviewablePost, total_precision=3, average_precision=1)
        assert config.precision == 3

    def test_reviewer_types_from_classes_and_names(self) -> None:
        assert ARTICLE_REVIEWS.reviewer_types == frozenset({"Account", "User"})
        assert ARTICLE_REVIEWS.reviewer_models == (Account, User)
        config = is_reviewable(ReviewablePost, by="Guest")
        assert config.reviewer_types == frozenset({"Guest"})

    def test_no_reviewer_restriction_by_default(self) -> None:
        assert is_reviewable(ReviewablePost).reviewer_types == frozenset()

    def test_type_name(self) -> None:
        assert POST_REVIEWS.type_name == "ReviewablePost"

    def test_config_is_immutable(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            POST_REVIEWS.accept_ip = False  # type: ignore[misc]

    def test_invalid_scale_fails(self) -> None:
        with pytest.raises(InvalidConfigValueError):
            is_reviewable(ReviewablePost, scale=["a", "b"])

    def test_unmapped_model_fails(self) -> None:
        with pytest.raises(InvalidConfigValueError, match="not a mapped model"):
            is_reviewable(object)


class TestResolvedSchemaFields:
    def test_content_fields_exclude_association_columns(self) -> None:
        assert POST_REVIEWS.content_fields == frozenset({"rating", "body", "title"})

    def test_custom_review_model_adds_its_columns(self) -> None:
        assert MOOD_POST_REVIEWS.content_fields == frozenset({"rating", "body", "mood"})
        assert MOOD_POST_REVIEWS.required_content == frozenset({"rating"})

    def test_required_content_must_be_content_fields(self) -> None:
        with pytest.raises(InvalidConfigValueError, match=":required_content"):
            is_reviewable(ReviewablePost, required_content=["reviewer_id"])

    def test_review_model_without_review_columns_fails(self) -> None:
        with pytest.raises(InvalidConfigValueError, match=":review_model"):
            is_reviewable(ReviewablePost, review_model=User)

    def test_caching_detected_from_columns(self) -> None:
        assert CACHED_POST_REVIEWS.caching is True
        assert POST_REVIEWS.caching is False

    def test_default_review_model(self) -> None:
        assert POST_REVIEWS.review_model is Review


class TestReviewerModelLookup:
    def test_configured_reviewer_model(self) -> None:
        assert ARTICLE_REVIEWS.reviewer_model("Account") is Account

    def test_falls_back_to_mapped_classes(self) -> None:
        assert POST_REVIEWS.reviewer_model("Guest") is Guest

    def test_unknown_type(self) -> None:
        assert POST_REVIEWS.reviewer_model("Nope") is None


class TestSettingsDefaults:
    def test_accept_ip_default_comes_from_settings(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REVIEWABLE_DEFAULT_ACCEPT_IP", "true")
        get_settings.cache_clear()
        try:
            assert is_reviewable(ReviewablePost).accept_ip is True
        finally:
            get_settings.cache_clear()

    def test_explicit_accept_ip_wins(self) -> None:
        assert is_reviewable(ReviewablePost, accept_ip=False).accept_ip is False

    def test_negative_upsert_retries_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings(upsert_retries=-1)


class TestConfigureLogging:
    def test_sets_package_logger_level(self) -> None:
        logger = logging.getLogger("reviewable")
        previous = logger.level
        try:
            configure_logging(Settings(log_level="debug"))
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(previous)
