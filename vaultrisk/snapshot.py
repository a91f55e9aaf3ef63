"""Load strategy snapshots from YAML for offline evaluation.

Expected layout::

    owner: "0xfeed"
    strategies:
      - address: "0xa1"
        decimals: 6
        total_assets: 1000000000
        available_liquidity: 120000000
        holdings: {"0xfeed": 400000000}
        scores: {performance: 80, safety: 30, scalability: 90, liquidity: 40}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import InvalidData
from .strategy import StrategySnapshot

__all__ = ["SnapshotError", "Snapshot", "safe_load", "load_snapshot", "parse_snapshot"]


class SnapshotError(ValueError):
    """Raised when a snapshot file cannot be read or does not match the layout."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


@dataclass
class Snapshot:
    strategies: List[StrategySnapshot]
    scores: Dict[str, Dict[str, int]] = field(default_factory=dict)
    owner: Optional[str] = None
    amount: Optional[int] = None


def safe_load(data: Any) -> Any:
    """Wrapper around :func:`yaml.safe_load` with friendlier errors."""

    try:
        return yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise SnapshotError(f"Unsafe or invalid YAML payload: {exc}") from exc


def _as_int(entry: Mapping[str, Any], key: str, default: Any = None) -> int:
    value = entry.get(key, default)
    if value is None:
        raise SnapshotError(f"missing field {key!r} in strategy entry")
    if isinstance(value, bool):
        raise SnapshotError(f"field {key!r} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise SnapshotError(f"field {key!r} must be an integer: {value!r}") from exc


def parse_snapshot(payload: Any) -> Snapshot:
    if not isinstance(payload, Mapping):
        raise SnapshotError("snapshot root must be a mapping")
    entries = payload.get("strategies")
    if not isinstance(entries, list) or not entries:
        raise SnapshotError("snapshot requires a non-empty 'strategies' list")

    strategies: List[StrategySnapshot] = []
    scores: Dict[str, Dict[str, int]] = {}
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise SnapshotError("strategy entries must be mappings")
        address = str(entry.get("address") or "").strip()
        holdings = entry.get("holdings") or {}
        if not isinstance(holdings, Mapping):
            raise SnapshotError(f"holdings of {address} must be a mapping")
        try:
            strategy = StrategySnapshot(
                address=address,
                tvl=_as_int(entry, "total_assets"),
                liquidity=_as_int(entry, "available_liquidity"),
                decimals=_as_int(entry, "decimals", 18),
                holdings={str(k): _as_int(holdings, k) for k in holdings},
            )
        except InvalidData as exc:
            raise SnapshotError(str(exc)) from exc
        strategies.append(strategy)
        raw_scores = entry.get("scores")
        if raw_scores is not None:
            if not isinstance(raw_scores, Mapping):
                raise SnapshotError(f"scores of {address} must be a mapping")
            scores[address] = {str(k): _as_int(raw_scores, k) for k in raw_scores}

    owner = payload.get("owner")
    amount = payload.get("amount")
    return Snapshot(
        strategies=strategies,
        scores=scores,
        owner=str(owner) if owner is not None else None,
        amount=_as_int(payload, "amount") if amount is not None else None,
    )


def load_snapshot(path: Path) -> Snapshot:
    """Read and validate a snapshot file."""

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SnapshotError(f"snapshot file not found: {path}", path=path) from exc
    except OSError as exc:
        raise SnapshotError(f"unable to read snapshot file: {path}", path=path) from exc
    try:
        return parse_snapshot(safe_load(text))
    except SnapshotError as exc:
        raise SnapshotError(f"{exc} ({path})", path=path) from exc
