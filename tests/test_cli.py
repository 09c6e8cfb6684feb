"""Tests for the root bbservices CLI."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from bbservices import __version__
from bbservices.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "bbservices" in result.output
    assert "run" in result.output
    assert "chain" in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


def test_invalid_config(cli_runner: CliRunner, tmp_path: Path) -> None:
    bad = tmp_path / "bad.toml"
    bad.write_text("verbose = [unclosed\n")
    result = cli_runner.invoke(cli, ["-c", str(bad), "run", "x:y"])
    assert result.exit_code == 1
    assert "Invalid TOML" in result.output
