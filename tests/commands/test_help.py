"""Parametrized help and --examples tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from notepress.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["init", "--help"], ["PATH", "--title", "--base-url", "--git-url", "--branch"]),
    (["theme", "--help"], ["list", "use"]),
    (["theme", "use", "--help"], ["NAME"]),
    (["site", "--help"], ["show", "set", "page"]),
    (["site", "set", "--help"], ["--rss-mode", "--rss-length", "--field"]),
    (["site", "page", "--help"], ["NAME", "--field"]),
    (
        ["article", "--help"],
        ["list", "show", "add", "publish", "unpublish", "remove", "refresh", "url", "edit"],
    ),
    (["article", "list", "--help"], ["--published", "--unpublished"]),
    (["article", "edit", "--help"], ["NOTE_ID", "--title", "--tags"]),
    (["article", "url", "--help"], ["NOTE_ID", "URL"]),
    (["generate", "--help"], ["--examples"]),
    (["publish", "--help"], ["--no-generate"]),
    (["git", "--help"], ["init"]),
]

EXAMPLE_COMMANDS: list[list[str]] = [
    ["init"],
    ["theme"],
    ["site"],
    ["article"],
    ["generate"],
    ["publish"],
    ["git"],
    ["git", "init"],
    ["article", "add"],
]


@pytest.mark.parametrize(
    ("args", "keywords"),
    HELP_COMMANDS,
    ids=[" ".join(args[:-1]) for args, _ in HELP_COMMANDS],
)
def test_help(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0, result.output
    for keyword in keywords:
        assert keyword in result.output


@pytest.mark.parametrize("args", EXAMPLE_COMMANDS, ids=[" ".join(a) for a in EXAMPLE_COMMANDS])
def test_examples(cli_runner: CliRunner, args: list[str]) -> None:
    result = cli_runner.invoke(cli, [*args, "--examples"])
    assert result.exit_code == 0, result.output
    assert "Examples for" in result.output
    assert "notepress" in result.output


def test_group_examples_include_subcommands(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["article", "--examples"])
    assert result.exit_code == 0, result.output
    assert "Examples for 'notepress article':" in result.output
    assert "notepress article add welcome" in result.output
    assert "notepress article url welcome hello-world" in result.output


def test_command_without_examples(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["article", "show", "--examples"])
    assert result.exit_code == 0, result.output
    assert "No examples for 'notepress article show'." in result.output


def test_root_examples_cover_the_command_tree(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--examples"])
    assert result.exit_code == 0, result.output
    assert "Examples for 'notepress':" in result.output
    for line in ("notepress -C ~/blog generate", "notepress git init", "notepress init"):
        assert line in result.output


def test_short_help_flag(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["article", "-h"])
    assert result.exit_code == 0, result.output
    assert "Usage" in result.output
