from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from lotcost.cli import app
from lotcost.snapshot import SnapshotError

FIXTURE = str(Path(__file__).with_name("fixtures_snapshot.yaml"))
runner = CliRunner()


def test_allocate_command() -> None:
    result = runner.invoke(app, ["allocate", "V1", "7", "--snapshot", FIXTURE])
    assert result.exit_code == 0, result.output
    assert "total cost 74.00" in result.output
    assert "from lot A" in result.output


def test_allocate_shortfall_exits_nonzero() -> None:
    result = runner.invoke(app, ["allocate", "V1", "11", "--snapshot", FIXTURE])
    assert result.exit_code == 1
    assert "InsufficientStock" in result.output


def test_bundle_command() -> None:
    result = runner.invoke(app, ["bundle", "KIT", "2", "--snapshot", FIXTURE])
    assert result.exit_code == 0, result.output
    assert "= 53.00" in result.output


def test_quote_command_wholesale() -> None:
    result = runner.invoke(app, ["quote", "V1", "--snapshot", FIXTURE, "--billing", "wholesale"])
    assert result.exit_code == 0, result.output
    assert "wholesale 13 from lot A" in result.output


def test_quote_out_of_stock() -> None:
    result = runner.invoke(app, ["quote", "NOPE", "--snapshot", FIXTURE])
    assert result.exit_code == 1
    assert "out of stock" in result.output


def test_stock_command() -> None:
    result = runner.invoke(app, ["stock", "--snapshot", FIXTURE])
    assert result.exit_code == 0, result.output
    assert "3 lot(s) across 2 variant(s)" in result.output
    assert "V1" in result.output


def test_missing_snapshot_is_bad_parameter(monkeypatch) -> None:
    monkeypatch.delenv("LOTCOST_SNAPSHOT_PATH", raising=False)
    result = runner.invoke(app, ["stock"])
    assert result.exit_code != 0


def test_broken_snapshot_is_bad_parameter(tmp_path) -> None:
    path = tmp_path / "snap.yaml"
    path.write_text("lots: [unclosed\n", encoding="utf-8")
    result = runner.invoke(app, ["stock", "--snapshot", str(path)])
    assert result.exit_code == 2
    assert not isinstance(result.exception, SnapshotError)


def test_version_option() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0, result.output
    assert result.output.startswith("lotcost ")
