"""InitService — scaffold a new notepress workspace.

Writes a sparse ``notepress.toml`` (only values that differ from the
code defaults) and creates the notes and data directories.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import tomli_w

from notepress.config.models import NotepressConfig
from notepress.config.settings import CONFIG_FILENAME
from notepress.services.result import ServiceResult

logger = logging.getLogger(__name__)

_WELCOME_NOTE = """\
---
title: Hello, notepress
---

This note was created by `notepress init`. Add it as an article with

    notepress article add welcome

then publish it and run `notepress generate`.
"""


def _sparse(data: dict[str, Any], defaults: dict[str, Any]) -> dict[str, Any]:
    """Keep only keys whose value differs from *defaults*, section by section."""
    result: dict[str, Any] = {}
    for section, values in data.items():
        changed = {
            key: value
            for key, value in values.items()
            if value != defaults.get(section, {}).get(key)
        }
        if changed:
            result[section] = changed
    return result


class InitService:
    """Workspace creation. Runs before any workspace exists, so it is static."""

    @staticmethod
    def init_workspace(
        path: Path,
        *,
        name: str | None = None,
        title: str = "",
        base_url: str = "",
        git_url: str = "",
        branch: str | None = None,
    ) -> ServiceResult:
        config_path = path / CONFIG_FILENAME
        if config_path.exists():
            return ServiceResult.failure(
                "init_workspace",
                "ALREADY_EXISTS",
                f"{config_path} already exists",
                detail={"path": str(config_path)},
            )

        git: dict[str, Any] = {"url": git_url}
        if branch:
            git["branch"] = branch
        config = NotepressConfig.model_validate(
            {
                "workspace": {"name": name or path.name},
                "site": {"title": title or name or path.name, "base_url": base_url},
                "git": git,
            }
        )
        data = _sparse(
            config.model_dump(mode="json"),
            NotepressConfig().model_dump(mode="json"),
        )

        path.mkdir(parents=True, exist_ok=True)
        config_path.write_text(tomli_w.dumps(data), encoding="utf-8")

        notes_dir = path / config.workspace.notes_dir
        notes_dir.mkdir(parents=True, exist_ok=True)
        created = [str(config_path)]
        if not any(notes_dir.iterdir()):
            welcome = notes_dir / "welcome.md"
            welcome.write_text(_WELCOME_NOTE, encoding="utf-8")
            created.append(str(welcome))
        (path / config.workspace.data_dir).mkdir(parents=True, exist_ok=True)
        (path / config.workspace.themes_dir).mkdir(parents=True, exist_ok=True)

        logger.info("Initialized workspace %s at %s", config.workspace.name, path)
        return ServiceResult(
            ok=True,
            op="init_workspace",
            data={
                "path": str(path),
                "name": config.workspace.name,
                "config": str(config_path),
                "created": created,
            },
        )
