"""Composite strategy scoring from bounded sub-scores."""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from .errors import InvalidData, NotImplementedMethod
from .fixed import WAD, iroot

__all__ = ["AverageMethod", "MAX_SCORE", "composite_score"]

MAX_SCORE = 100


class AverageMethod(str, Enum):
    """Averaging methods selectable for composite scoring."""

    ARITHMETIC = "arithmetic"
    GEOMETRIC = "geometric"
    HARMONIC = "harmonic"
    QUADRATIC = "quadratic"
    EXPONENTIAL = "exponential"

    @classmethod
    def parse(cls, value: "str | AverageMethod") -> "AverageMethod":
        if isinstance(value, cls):
            return value
        token = str(value).strip().lower()
        for member in cls:
            if member.value == token or member.name.lower() == token:
                return member
        raise InvalidData(f"unknown averaging method: {value!r}")


def _validate(scores: Sequence[int], boundary: int | None) -> Sequence[int]:
    if len(scores) == 0:
        raise InvalidData("score vector is empty")
    for score in scores:
        if isinstance(score, bool) or not isinstance(score, int):
            raise InvalidData(f"score must be an integer: {score!r}")
        if score < 0 or score > MAX_SCORE:
            raise InvalidData(f"score out of range [0, {MAX_SCORE}]: {score}")
    if boundary is None:
        return scores
    if boundary < 1 or boundary > len(scores):
        raise InvalidData(f"boundary must be in [1, {len(scores)}]: {boundary}")
    return scores[:boundary]


def _arithmetic(scores: Sequence[int]) -> int:
    return sum(scores) // len(scores)


def _geometric(scores: Sequence[int]) -> int:
    product = 1
    for score in scores:
        product *= score
    return iroot(product, len(scores))


def _harmonic(scores: Sequence[int]) -> int:
    if 0 in scores:
        return 0
    reciprocal_sum = sum(WAD // score for score in scores)
    return len(scores) * WAD // reciprocal_sum


def composite_score(
    scores: Sequence[int],
    method: AverageMethod | str = AverageMethod.GEOMETRIC,
    boundary: int | None = None,
) -> int:
    """Collapse sub-scores in ``[0, 100]`` into one score in the same range.

    Only the leading ``boundary`` entries participate when it is given. The
    result is floored, so the geometric and harmonic means of
    ``(80, 30, 90, 40)`` are 54 and 48 while the arithmetic mean is 60.
    """

    resolved = AverageMethod.parse(method)
    participating = _validate(scores, boundary)
    if resolved is AverageMethod.ARITHMETIC:
        return _arithmetic(participating)
    if resolved is AverageMethod.GEOMETRIC:
        return _geometric(participating)
    if resolved is AverageMethod.HARMONIC:
        return _harmonic(participating)
    raise NotImplementedMethod(f"averaging method {resolved.value!r} is not implemented")
