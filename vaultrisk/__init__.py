"""Capital allocation and liquidity risk engine for yield-vault strategies."""

from .allocation import (
    MAX_REDISTRIBUTION_ROUNDS,
    AllocationResult,
    max_allocation_ratio,
    should_harvest,
    target_allocation,
)
from .errors import InvalidData, NotImplementedMethod, RiskEngineError, Unauthorized
from .fixed import WAD
from .regressor import LiquidityLimits, liquidity_ratio
from .risk_model import ExcessAllocation, RiskModel, StrategyScore
from .scoring import AverageMethod, composite_score

__all__ = [
    "WAD",
    "AverageMethod",
    "composite_score",
    "LiquidityLimits",
    "liquidity_ratio",
    "MAX_REDISTRIBUTION_ROUNDS",
    "AllocationResult",
    "target_allocation",
    "max_allocation_ratio",
    "should_harvest",
    "RiskModel",
    "StrategyScore",
    "ExcessAllocation",
    "RiskEngineError",
    "InvalidData",
    "Unauthorized",
    "NotImplementedMethod",
]
