# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Reviewer identity: who a review belongs to.

A reviewer is either a persisted entity, kept as an ``EntityReference``
``{type, id}`` pair, or a bare IP address.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import InstanceState

from reviewable.errors import InvalidReviewerError

if TYPE_CHECKING:
    from reviewable.options import ReviewableConfig

# Checked in this order; the first one that is not None wins.
IDENTIFIER_KEYS: tuple[str, ...] = ("by", "reviewer", "user", "account", "ip")


@dataclass(frozen=True)
class EntityReference:
    type: str
    id: str

    def __str__(self) -> str:
        return f"{self.type}#{self.id}"


@dataclass(frozen=True)
class IPAddress:
    value: str

    def __str__(self) -> str:
        return self.value


type ReviewerIdentity = EntityReference | IPAddress


def parse_ip(value: object) -> str | None:
    """Return the canonical text form of *value* if it is an IP address string."""
    if not isinstance(value, str):
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def reference_for(entity: object) -> EntityReference | None:
    """Build the ``{type, id}`` pair for a persisted mapped instance."""
    if isinstance(entity, EntityReference):
        return entity
    state = sa_inspect(entity, raiseerr=False)
    if not isinstance(state, InstanceState) or state.identity is None:
        return None
    key = ",".join(str(part) for part in state.identity)
    return EntityReference(type=type(entity).__name__, id=key)


def resolve_reviewer(
    identifiers: Mapping[str, Any] | None, config: ReviewableConfig
) -> ReviewerIdentity:
    """Normalize *identifiers* into exactly one reviewer identity.

    Pure function of its inputs; raises :class:`InvalidReviewerError` when no
    reviewer is given, when it is neither an IP string nor a persisted
    entity, when IP reviewing is disabled, or when the entity type is not
    one of the configured reviewer types.
    """
    candidate = None
    if identifiers:
        candidate = next(
            (identifiers[k] for k in IDENTIFIER_KEYS if identifiers.get(k) is not None),
            None,
        )
    if candidate is None:
        raise InvalidReviewerError("Argument can't be nil: no reviewer object or IP provided.")

    ip = parse_ip(candidate)
    if ip is not None:
        if not config.accept_ip:
            raise InvalidReviewerError("Reviewing based on IP is disabled.")
        return IPAddress(ip)

    reference = reference_for(candidate)
    if reference is None:
        raise InvalidReviewerError(f"Reviewer is of wrong type: {candidate!r}.")
    if config.reviewer_types and reference.type not in config.reviewer_types:
        raise InvalidReviewerError(f"Reviewer is of wrong type: {reference.type}.")
    return reference
