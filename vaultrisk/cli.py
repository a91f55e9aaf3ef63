# vaultrisk/cli.py
# =============================================================================
# Purpose:
#   Command-line interface for the capital allocation & liquidity risk engine.
#   Lets operators and keepers evaluate scores, liquidity bands, allocations
#   and rebalancing deltas without writing code.
#
# Summary:
#   - score:      composite score of four sub-scores
#   - bands:      liquidity bands for one TVL or a log-spaced TVL range
#   - allocate:   capped proportional allocation of an amount over scores
#   - rebalance:  decisions and excess allocation for a YAML snapshot
#
# Design Philosophy:
#   - Keep CLI thin; business logic lives in modules.
#   - Ratios are typed as decimals on the command line and handled as WAD.
# =============================================================================

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .access import StaticAccessController
from .allocation import max_allocation_ratio, target_allocation
from .config import (
    Settings,
    allocation_params_from_settings,
    liquidity_params_from_settings,
    load_settings,
)
from .errors import InvalidData, RiskEngineError
from .fixed import to_float, to_wad
from .logging_setup import setup_app_logging
from .report import allocation_frame, band_curve, decision_frame, excess_frame, tvl_grid
from .risk_model import RiskModel
from .scoring import AverageMethod, composite_score
from .snapshot import SnapshotError, load_snapshot

logger = logging.getLogger(__name__)

CLI_OPERATOR = "vaultrisk-cli"


def _usage_error(message: str) -> None:
    print(f"error: {message}", file=sys.stderr)
    raise SystemExit(2)


def _wad_arg(text: str) -> int:
    try:
        value = to_wad(text)
    except InvalidData as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc
    if value < 0:
        raise argparse.ArgumentTypeError(f"must be non-negative: {text}")
    return value


def _build_model(settings: Settings) -> RiskModel:
    return RiskModel(
        StaticAccessController.of(admins=[CLI_OPERATOR]),
        allocation_params=allocation_params_from_settings(settings),
        liquidity_params=liquidity_params_from_settings(settings),
    )


def cmd_score(args: argparse.Namespace, settings: Settings) -> None:
    method = args.method or settings.scoring_method
    value = composite_score(args.scores, method, args.boundary)
    print(f"composite={value} method={AverageMethod.parse(method).value}")


def cmd_bands(args: argparse.Namespace, settings: Settings) -> None:
    model = _build_model(settings)
    if args.tvl is not None:
        tvls = [args.tvl]
    else:
        tvls = tvl_grid(args.low, args.high, args.points)
    frame = band_curve(model, tvls)
    print(frame.to_string(float_format=lambda v: f"{v:.4f}"))


def cmd_allocate(args: argparse.Namespace, settings: Settings) -> None:
    params = allocation_params_from_settings(settings)
    exponent = args.exponent if args.exponent is not None else params.score_exponent
    if args.max_ratio is not None:
        cap = args.max_ratio
    else:
        cap = max_allocation_ratio(
            len(args.scores), params.min_max_ratio, params.diversification_exponent
        )
    result = target_allocation(
        args.scores,
        args.amount,
        cap,
        exponent,
        min_ratio=params.min_allocation_ratio,
        max_rounds=params.max_rounds,
    )
    names = [f"s{i}" for i in range(len(args.scores))]
    print(allocation_frame(names, args.scores, result).to_string())
    print(f"max_ratio={to_float(cap):.4f} unallocated={result.unallocated} rounds={result.rounds}")


def cmd_rebalance(args: argparse.Namespace, settings: Settings) -> None:
    snapshot = load_snapshot(Path(args.snapshot))
    owner = args.owner or snapshot.owner
    if not owner:
        _usage_error("rebalance requires --owner or an 'owner' field in the snapshot")
    model = _build_model(settings)
    if snapshot.scores:
        model.update_scores(CLI_OPERATOR, snapshot.scores)

    print(decision_frame(model, snapshot.strategies).to_string())

    amount = args.amount if args.amount is not None else snapshot.amount
    plan = model.excess_allocation(snapshot.strategies, amount, owner)
    print()
    print(excess_frame(snapshot.strategies, plan.excess, owner).to_string())
    print(f"owner={owner} unallocated={plan.unallocated}")


# -----------------------------------------------------------------------------
# CLI entrypoint
# -----------------------------------------------------------------------------
def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Construct the CLI parser so shim modules can reuse it."""
    parser = argparse.ArgumentParser(
        prog="vaultrisk", description="Capital allocation & liquidity risk engine"
    )
    sub = parser.add_subparsers(dest="command")
    methods = [member.value for member in AverageMethod]

    p = sub.add_parser("score", help="Composite score of sub-scores")
    p.add_argument("scores", nargs="+", type=int, help="Sub-scores in [0, 100]")
    p.add_argument(
        "--method",
        choices=methods,
        default=None,
        help=f"Averaging method (default: {settings.scoring_method})",
    )
    p.add_argument(
        "--boundary", type=int, default=None, help="Only the leading N scores participate"
    )

    p = sub.add_parser("bands", help="Liquidity bands as fractions of TVL")
    p.add_argument("--tvl", type=int, default=None, help="TVL in whole asset units")
    p.add_argument("--low", type=float, default=1_000.0, help="Lowest TVL of the range")
    p.add_argument("--high", type=float, default=1_000_000_000.0, help="Highest TVL")
    p.add_argument("--points", type=int, default=7, help="Number of log-spaced levels")

    p = sub.add_parser("allocate", help="Capped allocation of an amount over scores")
    p.add_argument("scores", nargs="+", type=int, help="Composite scores in [0, 100]")
    p.add_argument("--amount", type=int, required=True, help="Amount in native units")
    p.add_argument(
        "--max-ratio",
        type=_wad_arg,
        default=None,
        help="Per-strategy cap as a decimal (default: diversification curve)",
    )
    p.add_argument(
        "--exponent",
        type=_wad_arg,
        default=None,
        help=f"Score exponent (default: {to_float(settings.score_exponent)})",
    )

    p = sub.add_parser("rebalance", help="Decisions and excess allocation for a snapshot")
    p.add_argument("--snapshot", required=True, help="YAML snapshot of strategies")
    p.add_argument("--owner", default=None, help="Owner whose capital is rebalanced")
    p.add_argument(
        "--amount", type=int, default=None, help="Capital to allocate (default: owner total)"
    )
    return parser


_COMMANDS = {
    "score": cmd_score,
    "bands": cmd_bands,
    "allocate": cmd_allocate,
    "rebalance": cmd_rebalance,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments and dispatch to subcommands."""
    settings = load_settings()
    setup_app_logging(settings.log_level)
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    handler = _COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return
    try:
        handler(args, settings)
    except (RiskEngineError, SnapshotError) as exc:
        logger.error("command_failed command=%s error=%s", args.command, exc)
        _usage_error(str(exc))


if __name__ == "__main__":
    main()

