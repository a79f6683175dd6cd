# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Per-type reviewable configuration.

``is_reviewable()`` turns keyword options into an immutable
:class:`ReviewableConfig`. Everything that depends on the schema (the
accepted review fields, whether the reviewable carries rating caches) is
resolved here once, so the engine never inspects models per call.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import NoInspectionAvailable

from reviewable.config import get_settings
from reviewable.errors import InvalidConfigValueError
from reviewable.models.review import Review
from reviewable.scale import ReviewScale, build_scale

logger = logging.getLogger(__name__)

# Association columns a caller can never set through review().
RESERVED_FIELDS = frozenset(
    {
        "id",
        "reviewable_type",
        "reviewable_id",
        "reviewer_type",
        "reviewer_id",
        "ip",
        "created_at",
        "updated_at",
    }
)
CACHE_FIELDS: tuple[str, str] = ("ratings_count", "ratings_total")
DEFAULT_REQUIRED_CONTENT = frozenset({"rating", "body"})


def column_names(model: type) -> frozenset[str]:
    try:
        mapper = sa_inspect(model)
    except NoInspectionAvailable as exc:
        raise InvalidConfigValueError(f"{model!r} is not a mapped model.") from exc
    return frozenset(attr.key for attr in mapper.column_attrs)


@dataclass(frozen=True)
class ReviewableConfig:
    model: type
    scale: ReviewScale
    accept_ip: bool = False
    reviewer_types: frozenset[str] = frozenset()
    reviewer_models: tuple[type, ...] = ()
    review_model: type = Review
    content_fields: frozenset[str] = field(default_factory=frozenset)
    required_content: frozenset[str] = DEFAULT_REQUIRED_CONTENT
    caching: bool = False

    @property
    def type_name(self) -> str:
        return self.model.__name__

    @property
    def precision(self) -> int:
        return self.scale.precision

    def reviewer_model(self, type_name: str) -> type | None:
        """Map a stored reviewer type back to its model class."""
        for model in self.reviewer_models:
            if model.__name__ == type_name:
                return model
        registry = getattr(self.review_model, "registry", None)
        for mapper in getattr(registry, "mappers", ()):
            if mapper.class_.__name__ == type_name:
                return mapper.class_
        return None


def is_reviewable(
    model: type,
    *,
    by: type | str | Iterable[type | str] | None = None,
    scale: Iterable[float] | None = None,
    bounds: tuple[float, float] | None = None,
    step: float | None = None,
    steps: float | None = None,
    total_precision: int | None = None,
    average_precision: int | None = None,
    accept_ip: bool | None = None,
    review_model: type = Review,
    required_content: Iterable[str] = DEFAULT_REQUIRED_CONTENT,
) -> ReviewableConfig:
    """Configure *model* as reviewable.

    Examples::

        is_reviewable(Post, by="User", bounds=(1.0, 5.0), step=0.5,
                      average_precision=2, accept_ip=True)
        is_reviewable(Article, by=[Account, User], scale=[1, 2, 3])

    ``by`` lists the reviewer models (classes or class names); empty means
    any persisted entity may review. ``scale`` takes explicit values,
    ``bounds`` an inclusive range walked by ``step``/``steps``.
    """
    precision = total_precision if total_precision is not None else average_precision
    review_scale = build_scale(
        scale, bounds=bounds, step=step, steps=steps, precision=precision
    )

    if by is None:
        reviewers: list[type | str] = []
    elif isinstance(by, (str, type)):
        reviewers = [by]
    else:
        reviewers = list(by)
    reviewer_models = tuple(r for r in reviewers if isinstance(r, type))
    reviewer_types = frozenset(r if isinstance(r, str) else r.__name__ for r in reviewers)

    review_columns = column_names(review_model)
    missing = (RESERVED_FIELDS | {"rating"}) - review_columns
    if missing:
        raise InvalidConfigValueError(
            f":review_model {review_model.__name__} lacks columns: {', '.join(sorted(missing))}."
        )
    content_fields = review_columns - RESERVED_FIELDS

    required = frozenset(required_content)
    if not required <= content_fields:
        raise InvalidConfigValueError(
            ":required_content must name review content fields, got "
            f"{', '.join(sorted(required - content_fields))}."
        )

    caching = all(name in column_names(model) for name in CACHE_FIELDS)
    if accept_ip is None:
        accept_ip = get_settings().default_accept_ip

    config = ReviewableConfig(
        model=model,
        scale=review_scale,
        accept_ip=bool(accept_ip),
        reviewer_types=reviewer_types,
        reviewer_models=reviewer_models,
        review_model=review_model,
        content_fields=content_fields,
        required_content=required,
        caching=caching,
    )
    logger.debug(
        "Configured %s as reviewable (scale=%s, precision=%d, caching=%s)",
        config.type_name,
        review_scale.values,
        review_scale.precision,
        caching,
    )
    return config
