"""Read-only view of a strategy vault as seen by the risk model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Mapping, Protocol, runtime_checkable

from .errors import InvalidData

__all__ = ["StrategyView", "StrategySnapshot"]


@runtime_checkable
class StrategyView(Protocol):
    """Point-in-time queries a strategy vault answers.

    Amounts are in the asset's native units; ``decimals`` is the asset's
    ERC-20 precision and converts them to whole units.
    """

    @property
    def address(self) -> str: ...

    @property
    def decimals(self) -> int: ...

    def total_assets(self) -> int: ...

    def available_liquidity(self) -> int: ...

    def assets_of(self, owner: str) -> int: ...


@dataclass(frozen=True)
class StrategySnapshot:
    """Immutable strategy state captured at one instant."""

    address: str
    tvl: int
    liquidity: int
    decimals: int = 18
    holdings: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.address:
            raise InvalidData("strategy address is required")
        if self.tvl < 0 or self.liquidity < 0:
            raise InvalidData(f"negative balances for strategy {self.address}")
        if self.liquidity > self.tvl:
            raise InvalidData(
                f"available liquidity {self.liquidity} exceeds tvl {self.tvl} for {self.address}"
            )
        if self.decimals < 0:
            raise InvalidData(f"invalid decimals {self.decimals} for {self.address}")
        if any(value < 0 for value in self.holdings.values()):
            raise InvalidData(f"negative holding for strategy {self.address}")
        # owners are addresses, matched case-insensitively
        normalized: Dict[str, int] = {}
        for owner, value in self.holdings.items():
            key = str(owner).lower()
            normalized[key] = normalized.get(key, 0) + int(value)
        object.__setattr__(self, "holdings", normalized)

    def total_assets(self) -> int:
        return self.tvl

    def available_liquidity(self) -> int:
        return self.liquidity

    def assets_of(self, owner: str) -> int:
        return int(self.holdings.get(owner.lower(), 0))
