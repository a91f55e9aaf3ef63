# vaultrisk/config.py
# =============================================================================
# Purpose:
#   Centralize runtime configuration of the risk engine. Values typically come
#   from a .env file or the process environment, with defaults matching the
#   parameter records in vaultrisk.params so the engine runs without setup.
#
# Summary:
#   - Defines a Settings dataclass holding WAD-scaled risk knobs
#   - Loads environment variables via python-dotenv
#   - Exposes load_settings() plus builders for validated parameter records
#
# Design Notes:
#   - Ratios are written as human decimals ("0.25") and stored as WAD ints.
#   - Precedence: CLI overrides > environment > defaults.
# =============================================================================
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Literal, Mapping, Tuple, overload

from dotenv import load_dotenv

from .errors import InvalidData
from .fixed import to_wad
from .params import AllocationParams, BandParams, LiquidityParams
from .scoring import AverageMethod

_LOGGER = logging.getLogger("vaultrisk.config")

_DEFAULT_ALLOCATION = AllocationParams()
_DEFAULT_LIQUIDITY = LiquidityParams()


@dataclass
class Settings:
    """Strongly-typed container for config values."""

    log_level: str = "INFO"
    scoring_method: str = _DEFAULT_ALLOCATION.scoring_method.value
    score_exponent: int = _DEFAULT_ALLOCATION.score_exponent
    min_allocation_ratio: int = _DEFAULT_ALLOCATION.min_allocation_ratio
    min_max_ratio: int = _DEFAULT_ALLOCATION.min_max_ratio
    diversification_exponent: int = _DEFAULT_ALLOCATION.diversification_exponent
    max_rounds: int = _DEFAULT_ALLOCATION.max_rounds
    liquidity_factor: int = _DEFAULT_LIQUIDITY.target.factor
    liquidity_exponent: int = _DEFAULT_LIQUIDITY.target.exponent
    target_liquidity_ratio: int = _DEFAULT_LIQUIDITY.target.min_ratio
    allocate_liquidity_ratio: int = _DEFAULT_LIQUIDITY.allocate.min_ratio
    liquidate_liquidity_ratio: int = _DEFAULT_LIQUIDITY.liquidate.min_ratio
    panic_liquidity_ratio: int = _DEFAULT_LIQUIDITY.panic.min_ratio
    harvest_factor: int = _DEFAULT_LIQUIDITY.harvest.factor
    harvest_exponent: int = _DEFAULT_LIQUIDITY.harvest.exponent


@dataclass(frozen=True)
class _FieldSpec:
    env: str
    default: Any
    coerce: Callable[[Any, Any], Tuple[Any, bool]]


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and value.strip() == "":
        return True
    return False


def _pick_precedence(
    cli_value: Any, env_value: Any, default_value: Any
) -> Tuple[Any, str]:
    if not _is_missing(cli_value):
        return cli_value, "cli"
    if not _is_missing(env_value):
        return env_value, "env"
    return default_value, "default"


def _level_coercer(value: Any, default: Any) -> Tuple[str, bool]:
    if value is None:
        return default, False
    text = str(value).strip().upper()
    if not text:
        return default, False
    return text, True


def _method_coercer(value: Any, default: Any) -> Tuple[str, bool]:
    if value is None:
        return default, False
    try:
        return AverageMethod.parse(value).value, True
    except InvalidData:
        return default, False


def _wad_coercer(value: Any, default: Any) -> Tuple[int, bool]:
    """Decimal strings become WAD; ints are taken as already scaled."""
    if value is None:
        return int(default), False
    if isinstance(value, int) and not isinstance(value, bool):
        return value, value >= 0
    try:
        parsed = to_wad(value)
    except InvalidData:
        return int(default), False
    if parsed < 0:
        return int(default), False
    return parsed, True


def _int_coercer(value: Any, default: Any) -> Tuple[int, bool]:
    if value is None:
        return int(default), False
    token = value
    if isinstance(token, str):
        token = token.strip()
        if token == "":
            return int(default), False
    try:
        return int(token), True
    except (TypeError, ValueError):
        return int(default), False


_FIELD_SPECS: Dict[str, _FieldSpec] = {
    "log_level": _FieldSpec("LOG_LEVEL", "INFO", _level_coercer),
    "scoring_method": _FieldSpec(
        "RISK_SCORING_METHOD", Settings.scoring_method, _method_coercer
    ),
    "score_exponent": _FieldSpec(
        "RISK_SCORE_EXPONENT", Settings.score_exponent, _wad_coercer
    ),
    "min_allocation_ratio": _FieldSpec(
        "RISK_MIN_ALLOCATION_RATIO", Settings.min_allocation_ratio, _wad_coercer
    ),
    "min_max_ratio": _FieldSpec("RISK_MIN_MAX_RATIO", Settings.min_max_ratio, _wad_coercer),
    "diversification_exponent": _FieldSpec(
        "RISK_DIVERSIFICATION_EXPONENT", Settings.diversification_exponent, _wad_coercer
    ),
    "max_rounds": _FieldSpec("RISK_MAX_ROUNDS", Settings.max_rounds, _int_coercer),
    "liquidity_factor": _FieldSpec(
        "RISK_LIQUIDITY_FACTOR", Settings.liquidity_factor, _wad_coercer
    ),
    "liquidity_exponent": _FieldSpec(
        "RISK_LIQUIDITY_EXPONENT", Settings.liquidity_exponent, _wad_coercer
    ),
    "target_liquidity_ratio": _FieldSpec(
        "RISK_TARGET_LIQUIDITY_RATIO", Settings.target_liquidity_ratio, _wad_coercer
    ),
    "allocate_liquidity_ratio": _FieldSpec(
        "RISK_ALLOCATE_LIQUIDITY_RATIO", Settings.allocate_liquidity_ratio, _wad_coercer
    ),
    "liquidate_liquidity_ratio": _FieldSpec(
        "RISK_LIQUIDATE_LIQUIDITY_RATIO", Settings.liquidate_liquidity_ratio, _wad_coercer
    ),
    "panic_liquidity_ratio": _FieldSpec(
        "RISK_PANIC_LIQUIDITY_RATIO", Settings.panic_liquidity_ratio, _wad_coercer
    ),
    "harvest_factor": _FieldSpec(
        "RISK_HARVEST_FACTOR", Settings.harvest_factor, _wad_coercer
    ),
    "harvest_exponent": _FieldSpec(
        "RISK_HARVEST_EXPONENT", Settings.harvest_exponent, _wad_coercer
    ),
}


@overload
def load_settings(
    *,
    cli_overrides: Mapping[str, Any] | None = None,
    include_sources: Literal[True],
    logger: logging.Logger | None = None,
    base_settings: Settings | None = None,
    dotenv: bool = True,
) -> Tuple[Settings, Dict[str, str]]: ...


@overload
def load_settings(
    *,
    cli_overrides: Mapping[str, Any] | None = None,
    include_sources: Literal[False] = False,
    logger: logging.Logger | None = None,
    base_settings: Settings | None = None,
    dotenv: bool = True,
) -> Settings: ...


def load_settings(
    *,
    cli_overrides: Mapping[str, Any] | None = None,
    include_sources: bool = False,
    logger: logging.Logger | None = None,
    base_settings: Settings | None = None,
    dotenv: bool = True,
) -> Settings | Tuple[Settings, Dict[str, str]]:
    """Resolve settings with deterministic precedence and logging.

    The precedence order is CLI overrides > environment > defaults. Values
    that fail to coerce fall back to the default and emit a
    ``config_invalid_value`` warning. When ``include_sources`` is true the
    function returns ``(Settings, sources)`` where *sources* maps field names
    to ``{"cli" | "env" | "default"}``.
    """

    if dotenv:
        load_dotenv()

    overrides = {
        key: value for key, value in (cli_overrides or {}).items() if value is not None
    }
    base_defaults: Dict[str, Any] = (
        asdict(base_settings) if base_settings is not None else {}
    )

    log = logger or _LOGGER
    resolved: Dict[str, Any] = {}
    sources: Dict[str, str] = {}

    for field_name, spec in _FIELD_SPECS.items():
        default_value = base_defaults.get(field_name, spec.default)
        cli_value = overrides.get(field_name)
        env_value = os.getenv(spec.env)

        raw_value, source = _pick_precedence(cli_value, env_value, default_value)
        coerced, ok = spec.coerce(raw_value, default_value)
        if not ok:
            if source != "default":
                log.warning(
                    "config_invalid_value key=%s source=%s fallback=%s",
                    field_name,
                    source,
                    default_value,
                )
            coerced = default_value
            source = "default"

        log.debug("config_resolved key=%s value=%s source=%s", field_name, coerced, source)
        resolved[field_name] = coerced
        sources[field_name] = source

    settings = Settings(**resolved)
    if include_sources:
        return settings, sources
    return settings


def allocation_params_from_settings(settings: Settings) -> AllocationParams:
    params = AllocationParams(
        scoring_method=AverageMethod.parse(settings.scoring_method),
        score_exponent=settings.score_exponent,
        min_allocation_ratio=settings.min_allocation_ratio,
        min_max_ratio=settings.min_max_ratio,
        diversification_exponent=settings.diversification_exponent,
        max_rounds=settings.max_rounds,
    )
    params.validate()
    return params


def liquidity_params_from_settings(settings: Settings) -> LiquidityParams:
    def _band(min_ratio: int) -> BandParams:
        return BandParams(min_ratio, settings.liquidity_factor, settings.liquidity_exponent)

    params = LiquidityParams(
        harvest=BandParams(
            _DEFAULT_LIQUIDITY.harvest.min_ratio,
            settings.harvest_factor,
            settings.harvest_exponent,
        ),
        target=_band(settings.target_liquidity_ratio),
        allocate=_band(settings.allocate_liquidity_ratio),
        liquidate=_band(settings.liquidate_liquidity_ratio),
        panic=_band(settings.panic_liquidity_ratio),
    )
    params.validate()
    return params
