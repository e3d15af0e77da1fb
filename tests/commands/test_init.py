"""Tests for the init command."""

from __future__ import annotations

import json
import tomllib
from pathlib import Path

import pytest
from click.testing import CliRunner

from notepress.cli import cli


@pytest.fixture
def empty_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    target = tmp_path / "fresh"
    target.mkdir()
    monkeypatch.chdir(target)
    return target


class TestInitCommand:
    def test_init_current_directory(self, cli_runner: CliRunner, empty_dir: Path) -> None:
        result = cli_runner.invoke(cli, ["init", "--title", "My Blog"])
        assert result.exit_code == 0, result.output
        assert "init_workspace" in result.output
        data = tomllib.loads((empty_dir / "notepress.toml").read_text(encoding="utf-8"))
        assert data["site"]["title"] == "My Blog"
        assert (empty_dir / "notes" / "welcome.md").is_file()

    def test_init_subdirectory(self, cli_runner: CliRunner, empty_dir: Path) -> None:
        args = ["--json", "init", "blog", "--git-url", "https://g.test/r.git", "--branch", "main"]
        result = cli_runner.invoke(cli, args)
        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["data"]["name"] == "blog"
        data = tomllib.loads((empty_dir / "blog" / "notepress.toml").read_text(encoding="utf-8"))
        assert data["git"] == {"url": "https://g.test/r.git", "branch": "main"}

    def test_init_twice_fails(self, cli_runner: CliRunner, empty_dir: Path) -> None:
        assert cli_runner.invoke(cli, ["init"]).exit_code == 0
        result = cli_runner.invoke(cli, ["-q", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_initialized_workspace_is_usable(self, cli_runner: CliRunner, empty_dir: Path) -> None:
        assert cli_runner.invoke(cli, ["init"]).exit_code == 0
        result = cli_runner.invoke(cli, ["article", "add", "welcome"])
        assert result.exit_code == 0, result.output
        assert "hello-notepress" in result.output
