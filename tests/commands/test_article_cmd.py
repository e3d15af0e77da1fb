"""Tests for the article command group."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from notepress.cli import cli
from tests.conftest import write_note


@pytest.fixture
def notes(workspace_root: Path) -> Path:
    write_note(workspace_root, "hello", "Hello body\n", title="Hello World")
    write_note(workspace_root, "other", "Other body\n", title="Other")
    return workspace_root


def _invoke(runner: CliRunner, *args: str):
    return runner.invoke(cli, list(args))


@pytest.mark.usefixtures("_isolated_workspace", "notes")
class TestArticleCommands:
    def test_add_and_list(self, cli_runner: CliRunner) -> None:
        result = _invoke(cli_runner, "article", "add", "hello")
        assert result.exit_code == 0, result.output
        assert "hello-world" in result.output

        result = _invoke(cli_runner, "--json", "article", "list")
        payload = json.loads(result.stdout)
        assert payload["data"]["count"] == 1
        assert payload["data"]["items"][0]["published"] is False

    def test_add_missing_note(self, cli_runner: CliRunner) -> None:
        result = _invoke(cli_runner, "article", "add", "ghost")
        assert result.exit_code == 1
        assert "ERROR" in result.output

    def test_publish_filters(self, cli_runner: CliRunner) -> None:
        _invoke(cli_runner, "article", "add", "hello")
        _invoke(cli_runner, "article", "add", "other")
        result = _invoke(cli_runner, "article", "publish", "hello")
        assert result.exit_code == 0, result.output

        assert _invoke(cli_runner, "-q", "article", "list", "--published").output.strip() == "hello"
        unpublished = _invoke(cli_runner, "-q", "article", "list", "--unpublished")
        assert unpublished.output.strip() == "other"

    def test_publish_requires_ids(self, cli_runner: CliRunner) -> None:
        result = _invoke(cli_runner, "article", "publish")
        assert result.exit_code == 2

    def test_unpublish_and_remove(self, cli_runner: CliRunner) -> None:
        _invoke(cli_runner, "article", "add", "hello")
        _invoke(cli_runner, "article", "publish", "hello")
        assert _invoke(cli_runner, "article", "unpublish", "hello").exit_code == 0
        result = _invoke(cli_runner, "article", "remove", "hello")
        assert result.exit_code == 0
        assert "count: 1" in result.output

    def test_url(self, cli_runner: CliRunner) -> None:
        _invoke(cli_runner, "article", "add", "hello")
        _invoke(cli_runner, "article", "add", "other")
        assert _invoke(cli_runner, "article", "url", "hello", "greeting").exit_code == 0
        result = _invoke(cli_runner, "article", "url", "other", "greeting")
        assert result.exit_code == 1
        assert "already taken" in result.output

    def test_edit(self, cli_runner: CliRunner) -> None:
        _invoke(cli_runner, "article", "add", "hello")
        result = _invoke(
            cli_runner, "--json", "article", "edit", "hello", "--title", "Hi", "--tags", "a, b,"
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)["data"]
        assert data["title"] == "Hi"
        assert data["tags"] == ["a", "b"]

    def test_edit_without_changes(self, cli_runner: CliRunner) -> None:
        _invoke(cli_runner, "article", "add", "hello")
        result = _invoke(cli_runner, "article", "edit", "hello")
        assert result.exit_code == 2
        assert "Nothing to change" in result.output

    def test_show_and_refresh(self, cli_runner: CliRunner, notes: Path) -> None:
        _invoke(cli_runner, "article", "add", "hello")
        write_note(notes, "hello", "New body\n", title="Hello World")

        shown = json.loads(_invoke(cli_runner, "--json", "article", "show", "hello").stdout)
        assert shown["data"]["content_changed"] is True

        assert _invoke(cli_runner, "article", "refresh", "hello").exit_code == 0
        shown = json.loads(_invoke(cli_runner, "--json", "article", "show", "hello").stdout)
        assert shown["data"]["content"] == "New body\n"
