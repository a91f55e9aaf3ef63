from __future__ import annotations

import logging

import pytest

from vaultrisk import config
from vaultrisk.config import (
    Settings,
    allocation_params_from_settings,
    liquidity_params_from_settings,
    load_settings,
)
from vaultrisk.errors import InvalidData
from vaultrisk.fixed import WAD
from vaultrisk.params import AllocationParams, LiquidityParams
from vaultrisk.scoring import AverageMethod


@pytest.fixture(autouse=True)
def _reset_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for spec in config._FIELD_SPECS.values():
        monkeypatch.delenv(spec.env, raising=False)


def test_defaults_match_parameter_records() -> None:
    settings, sources = load_settings(include_sources=True, dotenv=False)
    assert settings == Settings()
    assert set(sources.values()) == {"default"}
    assert allocation_params_from_settings(settings) == AllocationParams()
    assert liquidity_params_from_settings(settings) == LiquidityParams()


def test_env_values_are_parsed_as_decimals(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.DEBUG, logger="vaultrisk.config")
    monkeypatch.setenv("RISK_MIN_MAX_RATIO", "0.3")
    monkeypatch.setenv("RISK_SCORING_METHOD", "Harmonic")
    monkeypatch.setenv("RISK_MAX_ROUNDS", "12")

    settings, sources = load_settings(include_sources=True, dotenv=False)

    assert settings.min_max_ratio == 3 * WAD // 10
    assert settings.scoring_method == "harmonic"
    assert settings.max_rounds == 12
    assert sources["min_max_ratio"] == "env"
    assert any(
        "config_resolved key=min_max_ratio" in record.message and "source=env" in record.message
        for record in caplog.records
    )
    params = allocation_params_from_settings(settings)
    assert params.scoring_method is AverageMethod.HARMONIC


def test_cli_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_LEVEL", "debug")
    settings, sources = load_settings(
        cli_overrides={"log_level": "warning", "score_exponent": "2"},
        include_sources=True,
        dotenv=False,
    )
    assert settings.log_level == "WARNING"
    assert settings.score_exponent == 2 * WAD
    assert sources["log_level"] == "cli"


def test_invalid_env_falls_back_with_warning(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.WARNING, logger="vaultrisk.config")
    monkeypatch.setenv("RISK_SCORE_EXPONENT", "steep")
    monkeypatch.setenv("RISK_SCORING_METHOD", "median")
    monkeypatch.setenv("RISK_PANIC_LIQUIDITY_RATIO", "-0.1")

    settings, sources = load_settings(include_sources=True, dotenv=False)

    assert settings.score_exponent == Settings.score_exponent
    assert settings.scoring_method == "geometric"
    assert settings.panic_liquidity_ratio == Settings.panic_liquidity_ratio
    assert sources["score_exponent"] == "default"
    messages = [record.message for record in caplog.records]
    assert any("config_invalid_value key=score_exponent" in m for m in messages)
    assert any("config_invalid_value key=scoring_method" in m for m in messages)


def test_base_settings_supply_defaults() -> None:
    base = Settings(max_rounds=3)
    settings = load_settings(base_settings=base, dotenv=False)
    assert settings.max_rounds == 3


def test_liquidity_bands_from_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RISK_LIQUIDITY_EXPONENT", "1")
    monkeypatch.setenv("RISK_TARGET_LIQUIDITY_RATIO", "0.2")
    monkeypatch.setenv("RISK_ALLOCATE_LIQUIDITY_RATIO", "0.3")
    params = liquidity_params_from_settings(load_settings(dotenv=False))
    assert params.target.min_ratio == WAD // 5
    assert params.allocate.exponent == WAD
    assert params.panic.exponent == WAD
    assert params.harvest == LiquidityParams().harvest


def test_out_of_range_settings_fail_when_built() -> None:
    with pytest.raises(InvalidData):
        allocation_params_from_settings(Settings(min_max_ratio=2 * WAD))
