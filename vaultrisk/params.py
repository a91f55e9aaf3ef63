"""Risk parameter records, their defaults and the ranges they are validated against."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Tuple

from .allocation import MAX_REDISTRIBUTION_ROUNDS
from .errors import InvalidData
from .fixed import WAD
from .scoring import AverageMethod

__all__ = [
    "BPS",
    "BandParams",
    "LiquidityParams",
    "AllocationParams",
    "StrategyParams",
    "CollateralizationParams",
    "StableMintParams",
    "band_order_violations",
]

logger = logging.getLogger(__name__)

BPS = 10_000

MAX_BAND_EXPONENT = 10 * WAD
MAX_SCORE_EXPONENT = 5 * WAD
MAX_MIN_ALLOCATION_RATIO = WAD // 2
MAX_DIVERSIFICATION_EXPONENT = 5 * WAD
MAX_ROUNDS_LIMIT = 64

MAX_DEPOSIT_CAP = 10**12
MIN_SLIPPAGE_BPS = 1
MAX_SLIPPAGE_BPS = 1_000
MIN_LEVERAGE_BPS = BPS
MAX_LEVERAGE_BPS = 10 * BPS
MIN_UPKEEP_INTERVAL = 60
MAX_UPKEEP_INTERVAL = 7 * 24 * 3600
MAX_LTV_BPS = 9_500
MAX_MINT_FEE_BPS = 500


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise InvalidData(message)


def _require_int(name: str, value: object) -> None:
    _require(
        isinstance(value, int) and not isinstance(value, bool),
        f"{name} must be an integer: {value!r}",
    )


def _require_range(name: str, value: int, low: int, high: int) -> None:
    _require_int(name, value)
    _require(low <= value <= high, f"{name} out of range [{low}, {high}]: {value}")


@dataclass(frozen=True, slots=True)
class BandParams:
    """One liquidity band: asymptotic floor, decay factor and decay exponent."""

    min_ratio: int
    factor: int
    exponent: int

    def validate(self, name: str = "band") -> None:
        _require_range(f"{name}.min_ratio", self.min_ratio, 0, WAD)
        _require_int(f"{name}.factor", self.factor)
        _require(self.factor >= 0, f"{name}.factor must be non-negative: {self.factor}")
        _require_range(f"{name}.exponent", self.exponent, 0, MAX_BAND_EXPONENT)


# 1e-5 per whole unit: the decay curve halves its excess over the floor
# at roughly 300k units of TVL.
_DEFAULT_FACTOR = 10**13
_DEFAULT_EXPONENT = WAD // 2


@dataclass(frozen=True, slots=True)
class LiquidityParams:
    """The five liquidity bands consulted by the risk model."""

    harvest: BandParams = BandParams(WAD // 100, WAD // 2, WAD // 10)
    target: BandParams = BandParams(WAD // 10, _DEFAULT_FACTOR, _DEFAULT_EXPONENT)
    allocate: BandParams = BandParams(15 * WAD // 100, _DEFAULT_FACTOR, _DEFAULT_EXPONENT)
    liquidate: BandParams = BandParams(5 * WAD // 100, _DEFAULT_FACTOR, _DEFAULT_EXPONENT)
    panic: BandParams = BandParams(25 * WAD // 1000, _DEFAULT_FACTOR, _DEFAULT_EXPONENT)

    def validate(self) -> None:
        for name in ("harvest", "target", "allocate", "liquidate", "panic"):
            band = getattr(self, name)
            _require(isinstance(band, BandParams), f"{name} must be BandParams")
            band.validate(name)
        violations = band_order_violations(self)
        if violations:
            # ordering is a configuration convention, not a hard constraint
            logger.warning("liquidity_band_order violations=%s", ",".join(violations))


def band_order_violations(params: LiquidityParams) -> Tuple[str, ...]:
    """Return the adjacent band pairs whose floors break allocate > target > liquidate > panic."""

    ordered = [
        ("allocate", params.allocate),
        ("target", params.target),
        ("liquidate", params.liquidate),
        ("panic", params.panic),
    ]
    violations = []
    for (upper_name, upper), (lower_name, lower) in zip(ordered, ordered[1:]):
        if upper.min_ratio <= lower.min_ratio:
            violations.append(f"{upper_name}<={lower_name}")
    return tuple(violations)


@dataclass(frozen=True, slots=True)
class AllocationParams:
    """Scoring method, diversification bias and redistribution bound."""

    scoring_method: AverageMethod = AverageMethod.GEOMETRIC
    score_exponent: int = 186 * WAD // 100
    min_allocation_ratio: int = 0
    min_max_ratio: int = WAD // 4
    diversification_exponent: int = 3 * WAD // 10
    max_rounds: int = MAX_REDISTRIBUTION_ROUNDS

    def validate(self) -> None:
        _require(
            isinstance(self.scoring_method, AverageMethod),
            f"scoring_method must be an AverageMethod: {self.scoring_method!r}",
        )
        _require(
            self.scoring_method
            in (AverageMethod.ARITHMETIC, AverageMethod.GEOMETRIC, AverageMethod.HARMONIC),
            f"scoring_method {self.scoring_method.value!r} is not supported",
        )
        _require_range("score_exponent", self.score_exponent, 1, MAX_SCORE_EXPONENT)
        _require_range(
            "min_allocation_ratio", self.min_allocation_ratio, 0, MAX_MIN_ALLOCATION_RATIO
        )
        _require_range("min_max_ratio", self.min_max_ratio, 1, WAD)
        _require_range(
            "diversification_exponent",
            self.diversification_exponent,
            0,
            MAX_DIVERSIFICATION_EXPONENT,
        )
        _require_range("max_rounds", self.max_rounds, 1, MAX_ROUNDS_LIMIT)


@dataclass(frozen=True, slots=True)
class StrategyParams:
    """Defaults applied to newly deployed strategies."""

    seed_liquidity: int = 10
    deposit_cap: int = 1_000_000
    max_slippage_bps: int = 100
    max_leverage_bps: int = 3 * BPS
    min_upkeep_interval: int = 3_600

    def validate(self) -> None:
        _require_range("seed_liquidity", self.seed_liquidity, 1, MAX_DEPOSIT_CAP)
        _require_range("deposit_cap", self.deposit_cap, 1, MAX_DEPOSIT_CAP)
        _require(
            self.seed_liquidity <= self.deposit_cap,
            f"seed_liquidity {self.seed_liquidity} exceeds deposit_cap {self.deposit_cap}",
        )
        _require_range(
            "max_slippage_bps", self.max_slippage_bps, MIN_SLIPPAGE_BPS, MAX_SLIPPAGE_BPS
        )
        _require_range(
            "max_leverage_bps", self.max_leverage_bps, MIN_LEVERAGE_BPS, MAX_LEVERAGE_BPS
        )
        _require_range(
            "min_upkeep_interval",
            self.min_upkeep_interval,
            MIN_UPKEEP_INTERVAL,
            MAX_UPKEEP_INTERVAL,
        )


@dataclass(frozen=True, slots=True)
class CollateralizationParams:
    """Loan-to-value floor, target and ceiling in basis points."""

    min_ltv_bps: int = 5_000
    target_ltv_bps: int = 6_500
    max_ltv_bps: int = 8_000

    def validate(self) -> None:
        _require_range("max_ltv_bps", self.max_ltv_bps, 0, MAX_LTV_BPS)
        _require_range("target_ltv_bps", self.target_ltv_bps, 0, self.max_ltv_bps)
        _require_range("min_ltv_bps", self.min_ltv_bps, 0, self.target_ltv_bps)


@dataclass(frozen=True, slots=True)
class StableMintParams:
    collateralization: CollateralizationParams = field(
        default_factory=CollateralizationParams
    )
    cross_collateralization: bool = False
    mint_fee_bps: int = 10

    def validate(self) -> None:
        _require(
            isinstance(self.collateralization, CollateralizationParams),
            "collateralization must be CollateralizationParams",
        )
        self.collateralization.validate()
        _require(
            isinstance(self.cross_collateralization, bool),
            "cross_collateralization must be a boolean",
        )
        _require_range("mint_fee_bps", self.mint_fee_bps, 0, MAX_MINT_FEE_BPS)
