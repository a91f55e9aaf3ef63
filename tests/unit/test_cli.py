from __future__ import annotations

import pytest

from vaultrisk import cli
from vaultrisk.config import Settings

SNAPSHOT_YAML = """
owner: "0xfeed"
strategies:
  - address: "0xa1"
    decimals: 6
    total_assets: 1000000000000
    available_liquidity: 500000000000
    holdings: {"0xfeed": 500}
    scores: {performance: 30, safety: 30, scalability: 30, liquidity: 30}
  - address: "0xa2"
    decimals: 6
    total_assets: 1000000000000
    available_liquidity: 500000000000
    holdings: {"0xfeed": 300}
    scores: {performance: 60, safety: 60, scalability: 60, liquidity: 60}
  - address: "0xa3"
    decimals: 6
    total_assets: 1000000000000
    available_liquidity: 500000000000
    holdings: {"0xfeed": 200}
    scores: {performance: 90, safety: 90, scalability: 90, liquidity: 90}
"""


@pytest.fixture(autouse=True)
def _quiet_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli, "load_settings", lambda: Settings())
    monkeypatch.setattr(cli, "setup_app_logging", lambda *args, **kwargs: None)


def test_score_defaults_to_geometric(capsys):
    cli.main(["score", "80", "30", "90", "40"])
    assert capsys.readouterr().out.strip() == "composite=54 method=geometric"


def test_score_with_method_and_boundary(capsys):
    cli.main(["score", "80", "30", "90", "40", "--method", "arithmetic", "--boundary", "2"])
    assert capsys.readouterr().out.strip() == "composite=55 method=arithmetic"


def test_invalid_score_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["score", "80", "30", "90", "140"])
    assert excinfo.value.code == 2
    assert "out of range" in capsys.readouterr().err


def test_unimplemented_method_is_reported(capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["score", "80", "30", "--method", "quadratic"])
    assert excinfo.value.code == 2
    assert "not implemented" in capsys.readouterr().err


def test_bands_single_tvl(capsys):
    cli.main(["bands", "--tvl", "1000000"])
    out = capsys.readouterr().out
    assert "allocate" in out
    assert "0.4063" in out


def test_bands_range(capsys):
    cli.main(["bands", "--low", "1000", "--high", "1000000", "--points", "4"])
    out = capsys.readouterr().out
    for level in ("1000", "10000", "100000", "1000000"):
        assert level in out


def test_allocate_reports_unallocated(capsys):
    cli.main(["allocate", "50", "50", "--amount", "1000", "--max-ratio", "0.3"])
    out = capsys.readouterr().out
    assert "max_ratio=0.3000 unallocated=400 rounds=1" in out


def test_allocate_rejects_bad_ratio():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["allocate", "50", "--amount", "10", "--max-ratio", "most"])
    assert excinfo.value.code == 2


def _excess_rows(out: str) -> dict[str, list[str]]:
    rows = {}
    for line in out.splitlines():
        tokens = line.split()
        if tokens and tokens[-1] in ("withdraw", "deposit", "hold"):
            rows[tokens[0]] = tokens[1:]
    return rows


def test_rebalance_prints_excess_per_strategy(tmp_path, capsys):
    path = tmp_path / "snapshot.yaml"
    path.write_text(SNAPSHOT_YAML, encoding="utf-8")
    cli.main(["rebalance", "--snapshot", str(path)])
    rows = _excess_rows(capsys.readouterr().out)
    assert rows["0xa1"] == ["500", "81", "419", "withdraw"]
    assert rows["0xa2"] == ["300", "294", "6", "withdraw"]
    assert rows["0xa3"] == ["200", "625", "-425", "deposit"]


def test_rebalance_reports_unallocated_and_matches_owner_case(tmp_path, capsys):
    path = tmp_path / "snapshot.yaml"
    path.write_text(
        SNAPSHOT_YAML.replace('"0xfeed": 500', '"0xFEED": 500'), encoding="utf-8"
    )
    cli.main(["rebalance", "--snapshot", str(path), "--owner", "0xFeed"])
    out = capsys.readouterr().out
    rows = _excess_rows(out)
    assert rows["0xa1"] == ["500", "81", "419", "withdraw"]
    assert "owner=0xFeed unallocated=0" in out


@pytest.mark.parametrize(
    "argv",
    [
        ["bands", "--low", "0", "--high", "10"],
        ["bands", "--low", "1", "--high", "10", "--points", "1"],
    ],
)
def test_bad_tvl_range_is_a_usage_error(argv, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    assert excinfo.value.code == 2
    assert "tvl grid" in capsys.readouterr().err


def test_rebalance_missing_snapshot(tmp_path, capsys):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["rebalance", "--snapshot", str(tmp_path / "absent.yaml")])
    assert excinfo.value.code == 2
    assert "snapshot file not found" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    cli.main([])
    assert "usage" in capsys.readouterr().out.lower()
