"""Stateful risk model composing scoring, liquidity bands and allocation.

The model owns the protocol-wide risk parameters and one score record per
strategy. Every decision reads the strategy it concerns exactly once per
quantity (TVL, idle liquidity) and then runs pure fixed-point math on that
snapshot. Parameter and score updates are validated in full before the stored
record is replaced, so a failed update leaves the previous state in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .access import ADMIN, MANAGER, AccessController
from .allocation import AllocationResult, max_allocation_ratio, should_harvest, target_allocation
from .errors import InvalidData, Unauthorized
from .fixed import div_wad, mul_wad, units_to_wad
from .params import AllocationParams, LiquidityParams, StableMintParams, StrategyParams
from .regressor import LiquidityLimits, band_ratio
from .scoring import MAX_SCORE, AverageMethod, composite_score
from .strategy import StrategyView

__all__ = ["SUB_SCORE_FIELDS", "StrategyScore", "ExcessAllocation", "RiskModel"]

logger = logging.getLogger(__name__)

SUB_SCORE_FIELDS = ("performance", "safety", "scalability", "liquidity")

SubScores = Union[Sequence[int], Mapping[str, int]]
StrategyRef = Union[str, StrategyView]


@dataclass(frozen=True, slots=True)
class StrategyScore:
    """Sub-scores of one strategy and their composite under the active method."""

    performance: int
    safety: int
    scalability: int
    liquidity: int
    composite: int

    @property
    def sub_scores(self) -> Tuple[int, int, int, int]:
        return (self.performance, self.safety, self.scalability, self.liquidity)

    @classmethod
    def build(cls, sub_scores: SubScores, method: AverageMethod) -> "StrategyScore":
        values = _normalize_sub_scores(sub_scores)
        return cls(*values, composite=composite_score(values, method))


@dataclass(slots=True)
class ExcessAllocation:
    """Signed rebalancing deltas plus the capital the target could not place."""

    excess: List[int]
    unallocated: int = 0

    @property
    def underfilled(self) -> bool:
        return self.unallocated > 0


def _normalize_sub_scores(sub_scores: SubScores) -> Tuple[int, int, int, int]:
    if isinstance(sub_scores, Mapping):
        missing = [name for name in SUB_SCORE_FIELDS if name not in sub_scores]
        unknown = sorted(set(sub_scores) - set(SUB_SCORE_FIELDS))
        if missing or unknown:
            raise InvalidData(f"sub-scores missing={missing} unknown={unknown}")
        values = tuple(sub_scores[name] for name in SUB_SCORE_FIELDS)
    else:
        values = tuple(sub_scores)
    if len(values) != len(SUB_SCORE_FIELDS):
        raise InvalidData(f"expected {len(SUB_SCORE_FIELDS)} sub-scores, got {len(values)}")
    for value in values:
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidData(f"sub-score must be an integer: {value!r}")
        if not 0 <= value <= MAX_SCORE:
            raise InvalidData(f"sub-score out of range [0, {MAX_SCORE}]: {value}")
    return values  # type: ignore[return-value]


def _key(strategy: StrategyRef) -> str:
    address = strategy if isinstance(strategy, str) else strategy.address
    return address.lower()


class RiskModel:
    """Capital allocation and liquidity risk decisions for a set of strategies."""

    def __init__(
        self,
        access: AccessController,
        *,
        strategy_params: StrategyParams | None = None,
        allocation_params: AllocationParams | None = None,
        liquidity_params: LiquidityParams | None = None,
        stable_mint_params: StableMintParams | None = None,
    ) -> None:
        self._access = access
        self._strategy_params = strategy_params or StrategyParams()
        self._allocation_params = allocation_params or AllocationParams()
        self._liquidity_params = liquidity_params or LiquidityParams()
        self._stable_mint_params = stable_mint_params or StableMintParams()
        for record in (
            self._strategy_params,
            self._allocation_params,
            self._liquidity_params,
            self._stable_mint_params,
        ):
            record.validate()
        self._scores: Dict[str, StrategyScore] = {}

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------
    @property
    def strategy_params(self) -> StrategyParams:
        return self._strategy_params

    @property
    def allocation_params(self) -> AllocationParams:
        return self._allocation_params

    @property
    def liquidity_params(self) -> LiquidityParams:
        return self._liquidity_params

    @property
    def stable_mint_params(self) -> StableMintParams:
        return self._stable_mint_params

    def score_of(self, strategy: StrategyRef) -> Optional[StrategyScore]:
        return self._scores.get(_key(strategy))

    def composite_of(self, strategy: StrategyRef) -> int:
        """Composite score, 0 for strategies that were never scored."""

        record = self._scores.get(_key(strategy))
        return record.composite if record is not None else 0

    # ------------------------------------------------------------------
    # Authorization
    # ------------------------------------------------------------------
    def _require_role(self, caller: str, role: str) -> None:
        granted = (
            self._access.is_admin(caller) if role == ADMIN else self._access.is_manager(caller)
        )
        if not granted:
            logger.warning("access_denied role=%s caller=%s", role, caller)
            raise Unauthorized(caller, role)

    # ------------------------------------------------------------------
    # Score updates (manager)
    # ------------------------------------------------------------------
    def update_score(
        self, caller: str, strategy: StrategyRef, sub_scores: SubScores
    ) -> StrategyScore:
        """Replace the score record of ``strategy`` and return it."""

        self._require_role(caller, MANAGER)
        record = StrategyScore.build(sub_scores, self._allocation_params.scoring_method)
        self._scores[_key(strategy)] = record
        logger.info(
            "score_updated strategy=%s scores=%s composite=%s",
            _key(strategy),
            record.sub_scores,
            record.composite,
        )
        return record

    def update_scores(
        self, caller: str, updates: Mapping[str, SubScores]
    ) -> Dict[str, StrategyScore]:
        """Replace several score records; nothing is written unless all are valid."""

        self._require_role(caller, MANAGER)
        method = self._allocation_params.scoring_method
        built = {
            _key(address): StrategyScore.build(scores, method)
            for address, scores in updates.items()
        }
        self._scores.update(built)
        logger.info("scores_updated count=%s", len(built))
        return built

    # ------------------------------------------------------------------
    # Parameter updates (admin)
    # ------------------------------------------------------------------
    def update_strategy_params(self, caller: str, params: StrategyParams) -> None:
        self._require_role(caller, ADMIN)
        params.validate()
        self._strategy_params = params
        logger.info("params_updated kind=strategy %s", params)

    def update_allocation_params(self, caller: str, params: AllocationParams) -> None:
        """Replace allocation parameters, re-deriving composites if the method changed."""

        self._require_role(caller, ADMIN)
        params.validate()
        method_changed = params.scoring_method is not self._allocation_params.scoring_method
        rescored = self._scores
        if method_changed:
            rescored = {
                key: replace(record, composite=composite_score(record.sub_scores, params.scoring_method))
                for key, record in self._scores.items()
            }
        self._allocation_params = params
        self._scores = rescored
        logger.info(
            "params_updated kind=allocation rescored=%s %s",
            len(rescored) if method_changed else 0,
            params,
        )

    def update_liquidity_params(self, caller: str, params: LiquidityParams) -> None:
        self._require_role(caller, ADMIN)
        params.validate()
        self._liquidity_params = params
        logger.info("params_updated kind=liquidity %s", params)

    def update_stable_mint_params(self, caller: str, params: StableMintParams) -> None:
        self._require_role(caller, ADMIN)
        params.validate()
        self._stable_mint_params = params
        logger.info("params_updated kind=stable_mint %s", params)

    # ------------------------------------------------------------------
    # Liquidity bands
    # ------------------------------------------------------------------
    def liquidity_limits(self, tvl: int) -> LiquidityLimits:
        """Allocate, target, liquidate and panic ratios for ``tvl`` whole units (WAD)."""

        bands = self._liquidity_params
        return LiquidityLimits(
            allocate=band_ratio(tvl, bands.allocate),
            target=band_ratio(tvl, bands.target),
            liquidate=band_ratio(tvl, bands.liquidate),
            panic=band_ratio(tvl, bands.panic),
        )

    def harvest_trigger_ratio(self, tvl: int) -> int:
        return band_ratio(tvl, self._liquidity_params.harvest)

    @staticmethod
    def _snapshot(strategy: StrategyView) -> Tuple[int, int, int]:
        tvl = strategy.total_assets()
        available = strategy.available_liquidity()
        if tvl < 0 or available < 0:
            raise InvalidData(f"negative balances reported by {strategy.address}")
        return tvl, available, units_to_wad(tvl, strategy.decimals)

    def _idle_ratio_vs_band(self, strategy: StrategyView, band_name: str) -> Optional[Tuple[int, int]]:
        tvl, available, tvl_wad = self._snapshot(strategy)
        if tvl == 0:
            return None
        threshold = band_ratio(tvl_wad, getattr(self._liquidity_params, band_name))
        return div_wad(available, tvl), threshold

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------
    def should_harvest(self, strategy: StrategyView, reward: int, cost: int) -> bool:
        band = self._liquidity_params.harvest
        tvl_wad = units_to_wad(strategy.total_assets(), strategy.decimals)
        decision = should_harvest(reward, cost, tvl_wad, band.factor, band.exponent)
        logger.debug(
            "should_harvest strategy=%s reward=%s cost=%s decision=%s",
            strategy.address,
            reward,
            cost,
            decision,
        )
        return decision

    def should_allocate(self, strategy: StrategyView) -> bool:
        """Idle liquidity sits above the allocation-trigger band."""

        observed = self._idle_ratio_vs_band(strategy, "allocate")
        return observed is not None and observed[0] > observed[1]

    def should_liquidate(self, strategy: StrategyView) -> bool:
        """Idle liquidity fell below the liquidation-trigger band."""

        observed = self._idle_ratio_vs_band(strategy, "liquidate")
        return observed is not None and observed[0] < observed[1]

    def should_panic(self, strategy: StrategyView) -> bool:
        observed = self._idle_ratio_vs_band(strategy, "panic")
        decision = observed is not None and observed[0] < observed[1]
        if decision:
            logger.warning(
                "panic_band_breached strategy=%s idle_ratio=%s threshold=%s",
                strategy.address,
                observed[0],
                observed[1],
            )
        return decision

    def target_liquidity(self, strategy: StrategyView) -> int:
        """Idle cash, in native units, the strategy gravitates to."""

        tvl, _, tvl_wad = self._snapshot(strategy)
        return mul_wad(tvl, band_ratio(tvl_wad, self._liquidity_params.target))

    def excess_liquidity(self, strategy: StrategyView) -> int:
        """Signed idle cash above (positive) or below (negative) the target band."""

        tvl, available, tvl_wad = self._snapshot(strategy)
        return available - mul_wad(tvl, band_ratio(tvl_wad, self._liquidity_params.target))

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------
    def target_composite_allocation(
        self, strategies: Sequence[StrategyRef], count: int, amount: int
    ) -> AllocationResult:
        """Distribute ``amount`` over the first ``count`` strategies by composite score."""

        if count < 1 or count > len(strategies):
            raise InvalidData(f"count must be in [1, {len(strategies)}]: {count}")
        params = self._allocation_params
        scores = [self.composite_of(strategy) for strategy in strategies[:count]]
        cap = max_allocation_ratio(count, params.min_max_ratio, params.diversification_exponent)
        result = target_allocation(
            scores,
            amount,
            cap,
            params.score_exponent,
            min_ratio=params.min_allocation_ratio,
            max_rounds=params.max_rounds,
        )
        logger.info(
            "target_allocation count=%s amount=%s cap=%s unallocated=%s",
            count,
            amount,
            cap,
            result.unallocated,
        )
        return result

    def excess_allocation(
        self,
        strategies: Sequence[StrategyView],
        amount: Optional[int],
        owner: str,
    ) -> ExcessAllocation:
        """``current - target`` per strategy for ``owner``'s capital.

        Positive entries are over-allocated strategies to withdraw from,
        negative entries are under-allocated strategies to deposit into.
        ``amount`` defaults to the owner's current total. Capital the capped
        allocation could not place is returned as ``unallocated``, so
        ``sum(excess) == sum(current) - amount + unallocated``.
        """

        current = [strategy.assets_of(owner) for strategy in strategies]
        total = sum(current) if amount is None else amount
        if total < 0:
            raise InvalidData(f"amount must be non-negative: {total}")
        if not strategies:
            return ExcessAllocation([], total)
        target = self.target_composite_allocation(strategies, len(strategies), total)
        return ExcessAllocation(
            [held - wanted for held, wanted in zip(current, target.amounts)],
            target.unallocated,
        )
