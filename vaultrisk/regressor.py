"""TVL-dependent liquidity band regressors."""

from __future__ import annotations

from typing import NamedTuple

from .errors import InvalidData
from .fixed import WAD, mul_wad, pow_wad

__all__ = ["LiquidityLimits", "liquidity_ratio", "band_ratio"]


class LiquidityLimits(NamedTuple):
    """Operational liquidity bands as WAD ratios of TVL, upper band first."""

    allocate: int
    target: int
    liquidate: int
    panic: int


def liquidity_ratio(tvl: int, min_ratio: int, factor: int, exponent: int) -> int:
    """Return ``min_ratio + (1 - min_ratio) * (1 + tvl * factor) ** -exponent``.

    ``tvl`` is expressed in WAD whole asset units and ``factor`` is a WAD rate
    per whole unit. The curve starts at exactly ``WAD`` for an empty strategy
    and decays towards ``min_ratio`` as TVL grows, never leaving
    ``[min_ratio, WAD]``.
    """

    if tvl < 0 or factor < 0 or exponent < 0:
        raise InvalidData("tvl, factor and exponent must be non-negative")
    if min_ratio < 0 or min_ratio > WAD:
        raise InvalidData(f"min_ratio must be in [0, WAD]: {min_ratio}")
    growth = WAD + mul_wad(tvl, factor)
    decay = min(pow_wad(growth, -exponent), WAD)
    return min_ratio + mul_wad(WAD - min_ratio, decay)


def band_ratio(tvl: int, band) -> int:
    """Apply a ``BandParams`` triple to ``tvl``."""

    return liquidity_ratio(tvl, band.min_ratio, band.factor, band.exponent)
