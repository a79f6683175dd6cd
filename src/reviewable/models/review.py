# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Float,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from reviewable.identity import EntityReference, IPAddress, ReviewerIdentity
from reviewable.models.base import Base, TimestampMixin, UUIDMixin


class ReviewMixin:
    """Columns shared by every review table.

    Applications that need extra review attributes declare their own model
    with this mixin and point ``is_reviewable(review_model=...)`` at it;
    any additional column becomes an accepted content field.
    """

    reviewable_type: Mapped[str] = mapped_column(String(255), nullable=False)
    reviewable_id: Mapped[str] = mapped_column(String(255), nullable=False)
    reviewer_type: Mapped[str | None] = mapped_column(String(255), default=None)
    reviewer_id: Mapped[str | None] = mapped_column(String(255), default=None)
    ip: Mapped[str | None] = mapped_column(String(45), default=None)
    rating: Mapped[float | None] = mapped_column(Float, default=None)
    body: Mapped[str | None] = mapped_column(Text, default=None)

    @declared_attr.directive
    def __table_args__(cls) -> tuple[object, ...]:
        name = cls.__tablename__
        return (
            CheckConstraint(
                "(reviewer_id IS NULL) <> (ip IS NULL)",
                name=f"ck_{name}_reviewer_or_ip",
            ),
            # At most one review per reviewer per reviewable.  NULLs are
            # distinct, so entity and IP reviewers each hit only their own
            # constraint.
            UniqueConstraint(
                "reviewable_type",
                "reviewable_id",
                "reviewer_type",
                "reviewer_id",
                name=f"uq_{name}_reviewer",
            ),
            UniqueConstraint(
                "reviewable_type", "reviewable_id", "ip", name=f"uq_{name}_ip"
            ),
            Index(f"idx_{name}_reviewable", "reviewable_type", "reviewable_id"),
            Index(f"idx_{name}_reviewer", "reviewer_type", "reviewer_id"),
        )

    @property
    def reviewable_ref(self) -> EntityReference:
        return EntityReference(type=self.reviewable_type, id=self.reviewable_id)

    @property
    def reviewer_identity(self) -> ReviewerIdentity:
        if self.ip is not None:
            return IPAddress(self.ip)
        return EntityReference(type=self.reviewer_type or "", id=self.reviewer_id or "")


class Review(ReviewMixin, UUIDMixin, TimestampMixin, Base):
    __tablename__ = "reviews"

    title: Mapped[str | None] = mapped_column(String(255), default=None)
