"""Shared pytest fixtures and test helpers for notepress tests."""

from __future__ import annotations

import os
import shutil
import subprocess
from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from notepress.config.settings import NotepressSettings
from notepress.infrastructure.workspace import Workspace

WORKSPACE_TOML = """\
[workspace]
name = "test-site"

[site]
title = "Test Site"
base_url = "https://example.test"

[git]
publish_delay = 0
"""


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's NOTEPRESS_* environment out of the tests."""
    for key in list(os.environ):
        if key.startswith("NOTEPRESS_"):
            monkeypatch.delenv(key)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary workspace with a config file and an empty notes directory.

    This is the single source of truth for the workspace layout. All
    workspace fixtures build on it.
    """
    root = tmp_path / "site"
    (root / "notes").mkdir(parents=True)
    (root / "notepress.toml").write_text(WORKSPACE_TOML, encoding="utf-8")
    return root


@pytest.fixture
def settings(workspace_root: Path) -> NotepressSettings:
    return NotepressSettings.from_cli(root=workspace_root)


@pytest.fixture
def workspace(settings: NotepressSettings) -> Workspace:
    """Workspace with site, theme and articles loaded from an empty store."""
    return load_workspace(settings)


@pytest.fixture
def _isolated_workspace(workspace_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the workspace so the CLI discovers its notepress.toml.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(workspace_root)


# ---------------------------------------------------------------------------
# Git fixtures
# ---------------------------------------------------------------------------

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git binary not available")


@pytest.fixture
def bare_remote(tmp_path: Path) -> Path:
    """Empty bare repository standing in for the publish remote."""
    remote = tmp_path / "remote.git"
    subprocess.run(
        ["git", "init", "--bare", "--quiet", str(remote)],
        capture_output=True,
        check=True,
    )
    return remote


@pytest.fixture
def git_settings(workspace_root: Path, bare_remote: Path) -> NotepressSettings:
    """Settings pointing [git] at the local bare remote."""
    toml = workspace_root / "notepress.toml"
    toml.write_text(
        WORKSPACE_TOML.replace(
            "[git]\n",
            f'[git]\nurl = "{bare_remote.as_posix()}"\nbranch = "pages"\n',
        ),
        encoding="utf-8",
    )
    return NotepressSettings.from_cli(root=workspace_root)


@pytest.fixture
def git_workspace(git_settings: NotepressSettings) -> Generator[Workspace]:
    yield load_workspace(git_settings)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def load_workspace(settings: NotepressSettings) -> Workspace:
    """Build a workspace and load its session the way the CLI does."""
    from notepress.services.article import ArticleService
    from notepress.services.site import SiteService

    workspace = Workspace(settings)
    assert SiteService(workspace).init().ok
    assert ArticleService(workspace).init().ok
    return workspace


def write_note(root: Path, note_id: str, body: str, *, title: str | None = None) -> Path:
    """Write ``notes/<note_id>.md``, with frontmatter when *title* is given."""
    path = root / "notes" / f"{note_id}.md"
    path.parent.mkdir(parents=True, exist_ok=True)
    text = f"---\ntitle: {title}\n---\n{body}" if title is not None else body
    path.write_text(text, encoding="utf-8")
    return path


def write_resource(root: Path, note_id: str, filename: str, data: bytes) -> Path:
    path = root / "notes" / "_resources" / note_id / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


def write_theme(
    root: Path,
    name: str,
    descriptor: str,
    templates: dict[str, str],
    *,
    assets: dict[str, str] | None = None,
) -> Path:
    """Create a user theme under ``.notepress/themes/<name>``."""
    theme_dir = root / ".notepress" / "themes" / name
    (theme_dir / "templates").mkdir(parents=True)
    (theme_dir / "theme.yaml").write_text(descriptor, encoding="utf-8")
    for filename, source in templates.items():
        (theme_dir / "templates" / filename).write_text(source, encoding="utf-8")
    for filename, content in (assets or {}).items():
        asset = theme_dir / "assets" / filename
        asset.parent.mkdir(parents=True, exist_ok=True)
        asset.write_text(content, encoding="utf-8")
    return theme_dir


def git_output(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def remote_files(remote: Path, branch: str) -> list[str]:
    """Files tracked on *branch* of a bare repository."""
    return sorted(git_output(remote, "ls-tree", "-r", "--name-only", branch).splitlines())
