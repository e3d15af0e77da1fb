"""Settings for one CLI invocation, merged from flags, env vars and TOML.

Sources from highest to lowest priority:

1. CLI flags passed by Click.
2. ``NOTEPRESS_*`` env vars, nested with ``__`` (``NOTEPRESS_GIT__TOKEN``).
3. The ``notepress.toml`` chosen by :func:`locate_config`.
4. Defaults baked into the section models.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from notepress.config.models import GeneratorConfig, GitConfig, SiteConfig, WorkspaceConfig

CONFIG_FILENAME = "notepress.toml"
CONFIG_ENV_VAR = "NOTEPRESS_CONFIG"


def locate_config(explicit: str | None = None, start: Path | None = None) -> Path | None:
    """Return the config file to load, or None when there is none.

    An explicit path (``--config``) wins over ``NOTEPRESS_CONFIG``; either one
    must exist. Otherwise walk up from *start* (default: cwd) the way git
    looks for ``.git/``.
    """
    overrides = (("--config", explicit), (CONFIG_ENV_VAR, os.environ.get(CONFIG_ENV_VAR)))
    for source, value in overrides:
        if value:
            path = Path(value)
            if not path.is_file():
                raise click.ClickException(f"Config file from {source} not found: {path}")
            return path

    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``notepress.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        """Return ``(value, field_name, value_is_complex)``."""
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        """Return the full TOML data dict for Pydantic to merge."""
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class NotepressSettings(BaseSettings):
    """Unified settings for the notepress CLI.

    Attributes:
        root: Workspace directory (parent of ``notepress.toml``, or CWD).
        config_path: The TOML file that was loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "NOTEPRESS_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    # --- TOML sections ---
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    git: GitConfig = Field(default_factory=GitConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **cli_flags: Any,
    ) -> NotepressSettings:
        """Construct settings from CLI invocation.

        The config file comes from :func:`locate_config`; *root* defaults to
        its parent directory. CLI flags are the highest-priority overrides.
        """
        toml_path = locate_config(config_path, root)

        resolved_root = root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                root=resolved_root,
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None

    def resolve(self, path: Path) -> Path:
        """Resolve a configured path against the workspace root."""
        return path if path.is_absolute() else self.root / path
