# SPDX-License-Identifier: GPL-3.0-or-later
# Copyright (C) 2026 Reviewable Contributors

"""Rating scales: construction from values or ranges, and membership tests."""

from __future__ import annotations

import math
import numbers
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal

from reviewable.errors import InvalidConfigValueError, ScaleValidationError

DEFAULT_BOUNDS: tuple[int, int] = (1, 5)

# Decimal places kept for scale values, rating sums and averages. A stepped
# scale like 0.0..1.0 by 0.1 yields 0.3, not 0.30000000000000004.
RATING_DIGITS = 10

SCALE_ERROR_MESSAGE = "must be a valid value in the specified scale"


@dataclass(frozen=True)
class ReviewScale:
    values: tuple[float, ...]
    precision: int

    @property
    def minimum(self) -> float:
        return self.values[0]

    @property
    def maximum(self) -> float:
        return self.values[-1]

    def __contains__(self, value: object) -> bool:
        return contains(self, value)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


def _is_number(value: object) -> bool:
    if isinstance(value, bool):
        return False
    if not isinstance(value, (numbers.Real, Decimal)):
        return False
    return math.isfinite(float(value))


def _decimal_digits(value: float) -> int:
    """Number of digits after the decimal point in the float form of *value*."""
    exponent = Decimal(str(float(value))).as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def _expand_bounds(
    first: float, last: float, step: float | None, steps: float | None
) -> list[float]:
    integral = isinstance(first, int) and isinstance(last, int)
    if integral and step is None and steps is None:
        return [float(v) for v in range(first, last + 1)]

    if step is None:
        if steps is None:
            steps = last - first + 1
        if not _is_number(steps) or steps < 2:
            raise InvalidConfigValueError(":steps must be a number greater than or equal to 2.")
        step = (last - first) / (steps - 1)
    if not _is_number(step) or step <= 0:
        raise InvalidConfigValueError(":step must be a positive number.")

    count = math.floor((last - first) / step + 1e-9)
    return [round(first + i * step, RATING_DIGITS) for i in range(count + 1)]


def build_scale(
    values: Iterable[object] | None = None,
    *,
    bounds: tuple[float, float] | None = None,
    step: float | None = None,
    steps: float | None = None,
    precision: int | None = None,
) -> ReviewScale:
    """Build a :class:`ReviewScale` from explicit values or inclusive bounds.

    ``values`` takes any iterable of numbers (a ``range`` included). ``bounds``
    is an inclusive ``(first, last)`` pair; integral bounds without a step
    expand to every integer, anything else is walked by ``step`` (or by the
    step derived from ``steps``). With neither, the scale is ``1..5``.

    ``precision`` is the number of decimal places averages are rounded to;
    it defaults to the decimal digits of the scale's lower bound.
    """
    if values is not None and bounds is not None:
        raise InvalidConfigValueError(":scale/:values and :range are mutually exclusive.")
    if values is None and bounds is None:
        bounds = DEFAULT_BOUNDS

    if bounds is not None:
        try:
            first, last = bounds
        except (TypeError, ValueError):
            raise InvalidConfigValueError(":range must be a (first, last) pair.") from None
        if not (_is_number(first) and _is_number(last)):
            raise InvalidConfigValueError(
                ":scale/:range/:values must consist of numeric values only."
            )
        if last < first:
            raise InvalidConfigValueError(":range must not end before it starts.")
        expanded = _expand_bounds(first, last, step, steps)
    else:
        raw = list(values)  # type: ignore[arg-type]
        if not all(_is_number(v) for v in raw):
            raise InvalidConfigValueError(
                ":scale/:range/:values must consist of numeric values only."
            )
        expanded = sorted({float(v) for v in raw})

    if not expanded:
        raise InvalidConfigValueError(":scale/:range/:values must contain at least one value.")

    if precision is None:
        precision = _decimal_digits(expanded[0])
    if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
        raise InvalidConfigValueError(":total_precision must be a non-negative integer.")

    return ReviewScale(values=tuple(expanded), precision=precision)


def to_decimal(value: float | Decimal) -> Decimal:
    """Exact decimal form of a rating or rating sum, at RATING_DIGITS places.

    Goes through ``str()`` so that 0.1 becomes Decimal("0.1") rather than its
    binary expansion; float noise beyond RATING_DIGITS places is dropped.
    """
    return Decimal(str(value)).quantize(Decimal(1).scaleb(-RATING_DIGITS))


def _as_float(value: object) -> float | None:
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not _is_number(value):
        return None
    return float(value)  # type: ignore[arg-type]


def contains(scale: ReviewScale, value: object) -> bool:
    """Exact membership test; numeric strings are coerced first."""
    number = _as_float(value)
    return number is not None and number in scale.values


def coerce_rating(scale: ReviewScale, value: object) -> float:
    """Return *value* as a float on *scale*, or raise ScaleValidationError."""
    number = _as_float(value)
    if number is None or number not in scale.values:
        raise ScaleValidationError(
            f"Rating {value!r} {SCALE_ERROR_MESSAGE}",
            {"rating": [SCALE_ERROR_MESSAGE]},
        )
    return number
