"""Tabular views of risk model outputs for operators and keepers."""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np
import pandas as pd

from .allocation import AllocationResult
from .errors import InvalidData
from .fixed import WAD, to_float
from .risk_model import RiskModel
from .strategy import StrategyView

__all__ = [
    "tvl_grid",
    "band_curve",
    "allocation_frame",
    "decision_frame",
    "excess_frame",
]

BAND_COLUMNS = ["allocate", "target", "liquidate", "panic", "harvest"]


def tvl_grid(low: float, high: float, points: int = 7) -> list[int]:
    """Log-spaced whole-unit TVL levels, including both endpoints."""

    if low <= 0.0 or high < low:
        raise InvalidData(f"tvl grid requires 0 < low <= high: low={low} high={high}")
    if points < 2:
        raise InvalidData(f"tvl grid needs at least two points: {points}")
    grid = np.geomspace(low, high, num=points)
    return sorted({int(round(value)) for value in grid})


def band_curve(model: RiskModel, tvls: Iterable[int]) -> pd.DataFrame:
    """Liquidity bands as fractions of TVL for each whole-unit TVL level."""

    rows = []
    index = []
    for tvl in tvls:
        tvl_wad = int(tvl) * WAD
        limits = model.liquidity_limits(tvl_wad)
        rows.append(
            [
                to_float(limits.allocate),
                to_float(limits.target),
                to_float(limits.liquidate),
                to_float(limits.panic),
                to_float(model.harvest_trigger_ratio(tvl_wad)),
            ]
        )
        index.append(int(tvl))
    frame = pd.DataFrame(rows, index=pd.Index(index, name="tvl"), columns=BAND_COLUMNS)
    return frame.astype(float)


def allocation_frame(
    names: Sequence[str],
    scores: Sequence[int],
    result: AllocationResult,
) -> pd.DataFrame:
    """One row per strategy with score, target amount and share of the total."""

    if not (len(names) == len(scores) == len(result.amounts)):
        raise ValueError("names, scores and allocations must have equal length")
    total = result.allocated + result.unallocated
    amounts = np.array([float(a) for a in result.amounts], dtype=float)
    share = amounts / float(total) if total > 0 else np.zeros_like(amounts)
    frame = pd.DataFrame(
        {
            "score": list(scores),
            "target": list(result.amounts),
            "share": share,
            "capped": [i in result.capped for i in range(len(names))],
        },
        index=pd.Index(list(names), name="strategy"),
    )
    return frame


def decision_frame(model: RiskModel, strategies: Sequence[StrategyView]) -> pd.DataFrame:
    """Liquidity decisions per strategy."""

    records = []
    for strategy in strategies:
        tvl = strategy.total_assets()
        idle = strategy.available_liquidity()
        records.append(
            {
                "strategy": strategy.address,
                "composite": model.composite_of(strategy),
                "tvl": tvl,
                "idle_ratio": idle / tvl if tvl > 0 else 0.0,
                "excess_liquidity": model.excess_liquidity(strategy),
                "allocate": model.should_allocate(strategy),
                "liquidate": model.should_liquidate(strategy),
                "panic": model.should_panic(strategy),
            }
        )
    return pd.DataFrame.from_records(records).set_index("strategy")


def excess_frame(
    strategies: Sequence[StrategyView], excess: Sequence[int], owner: str
) -> pd.DataFrame:
    """Current, target and signed excess allocation of ``owner`` per strategy."""

    if len(strategies) != len(excess):
        raise ValueError("strategies and excess must have equal length")
    current = [strategy.assets_of(owner) for strategy in strategies]
    frame = pd.DataFrame(
        {
            "current": current,
            "target": [held - delta for held, delta in zip(current, excess)],
            "excess": list(excess),
        },
        index=pd.Index([s.address for s in strategies], name="strategy"),
    )
    frame["action"] = np.select(
        [frame["excess"] > 0, frame["excess"] < 0], ["withdraw", "deposit"], default="hold"
    )
    return frame
