# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Integer, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from reviewable.scale import RATING_DIGITS


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class UUIDMixin:
    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TimestampMixin:
    # Python-side defaults so the values are populated after flush without
    # a lazy reload, which async sessions cannot do implicitly.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )


class CachedRatingsMixin:
    """Running rating aggregates for a reviewable model.

    Only written by :class:`reviewable.services.cache.RatingsCache`.
    ``ratings_count`` is the number of reviews carrying a rating and
    ``ratings_total`` the exact sum of those ratings. The total is a
    fixed-point column so that adding and removing fractional ratings
    returns it to the same value.
    """

    ratings_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    ratings_total: Mapped[Decimal] = mapped_column(
        Numeric(20, RATING_DIGITS), nullable=False, default=Decimal(0), server_default="0"
    )
