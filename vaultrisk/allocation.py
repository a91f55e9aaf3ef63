"""Capped proportional capital distribution and harvest economics."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .errors import InvalidData
from .fixed import WAD, exp_wad, mul_wad, pow_wad
from .scoring import MAX_SCORE

__all__ = [
    "MAX_REDISTRIBUTION_ROUNDS",
    "AllocationResult",
    "target_allocation",
    "max_allocation_ratio",
    "should_harvest",
]

logger = logging.getLogger(__name__)

# Upper bound on capped redistribution rounds. Past it the result is an
# approximation of the capped-proportional fixed point and any remainder is
# reported through AllocationResult.unallocated.
MAX_REDISTRIBUTION_ROUNDS = 8


@dataclass(slots=True)
class AllocationResult:
    """Outcome of :func:`target_allocation`."""

    amounts: List[int]
    unallocated: int = 0
    rounds: int = 0
    capped: Tuple[int, ...] = field(default_factory=tuple)

    @property
    def allocated(self) -> int:
        return sum(self.amounts)

    @property
    def underfilled(self) -> bool:
        return self.unallocated > 0


def _weights(scores: Sequence[int], score_exponent: int, min_ratio: int) -> List[int]:
    weights = [pow_wad(score * WAD, score_exponent) if score > 0 else 0 for score in scores]
    total = sum(weights)
    if total == 0 or min_ratio == 0:
        return weights
    # below-floor strategies are dropped before any capital is handed out
    return [w if w * WAD >= min_ratio * total else 0 for w in weights]


def target_allocation(
    scores: Sequence[int],
    amount: int,
    max_ratio: int,
    score_exponent: int,
    *,
    min_ratio: int = 0,
    max_rounds: int = MAX_REDISTRIBUTION_ROUNDS,
) -> AllocationResult:
    """Split ``amount`` across strategies in proportion to ``score**score_exponent``.

    No strategy receives more than ``max_ratio * amount``. Capital removed by
    the cap is redistributed among uncapped strategies in proportion to their
    original weights for at most ``max_rounds`` rounds. Whatever cannot be
    placed is returned as ``unallocated`` rather than dropped.
    """

    if amount < 0:
        raise InvalidData(f"amount must be non-negative: {amount}")
    if max_ratio < 0 or max_ratio > WAD:
        raise InvalidData(f"max_ratio must be in [0, WAD]: {max_ratio}")
    if score_exponent < 0:
        raise InvalidData("score_exponent must be non-negative")
    if max_rounds < 1:
        raise InvalidData(f"max_rounds must be positive: {max_rounds}")
    for score in scores:
        if isinstance(score, bool) or not isinstance(score, int) or not 0 <= score <= MAX_SCORE:
            raise InvalidData(f"score must be an integer in [0, {MAX_SCORE}]: {score!r}")

    weights = _weights(scores, score_exponent, min_ratio)
    amounts = [0] * len(weights)
    cap = mul_wad(amount, max_ratio)
    active = [i for i, w in enumerate(weights) if w > 0]
    remaining = amount
    rounds = 0

    while remaining > 0 and active and rounds < max_rounds:
        rounds += 1
        total_weight = sum(weights[i] for i in active)
        shares = {i: remaining * weights[i] // total_weight for i in active}
        leftover = remaining - sum(shares.values())
        # largest remainders absorb the flooring leftover, one unit each
        by_remainder = sorted(
            active, key=lambda i: (-(remaining * weights[i] % total_weight), i)
        )
        for i in by_remainder[:leftover]:
            shares[i] += 1
        distributed = 0
        still_open = []
        for i in active:
            share = shares[i]
            room = cap - amounts[i]
            if share >= room:
                share = room
            else:
                still_open.append(i)
            amounts[i] += share
            distributed += share
        remaining -= distributed
        active = still_open

    capped = tuple(i for i, value in enumerate(amounts) if weights[i] > 0 and value >= cap)
    if remaining > 0:
        logger.warning(
            "allocation_underfilled amount=%s unallocated=%s rounds=%s capped=%s",
            amount,
            remaining,
            rounds,
            len(capped),
        )
    return AllocationResult(amounts, remaining, rounds, capped)


def max_allocation_ratio(strategy_count: int, min_max_ratio: int, exponent: int) -> int:
    """Per-strategy cap ``min_max_ratio + exp(-strategy_count * exponent)``.

    The cap shrinks towards ``min_max_ratio`` as the candidate set grows and
    never exceeds ``WAD``.
    """

    if strategy_count < 0 or exponent < 0:
        raise InvalidData("strategy_count and exponent must be non-negative")
    if min_max_ratio < 0 or min_max_ratio > WAD:
        raise InvalidData(f"min_max_ratio must be in [0, WAD]: {min_max_ratio}")
    return min(WAD, min_max_ratio + exp_wad(-strategy_count * exponent))


def should_harvest(reward: int, cost: int, tvl: int, factor: int, exponent: int) -> bool:
    """True when ``reward >= cost * factor * tvl**exponent``."""

    if reward < 0 or cost < 0 or tvl < 0 or factor < 0 or exponent < 0:
        raise InvalidData("harvest inputs must be non-negative")
    min_ratio = mul_wad(factor, pow_wad(tvl, exponent))
    return reward * WAD >= cost * min_ratio
