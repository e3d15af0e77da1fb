"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, notepress.toml only contains
overrides. A fresh workspace needs only [git] url to publish.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class WorkspaceConfig(BaseModel):
    """[workspace] section."""

    model_config = {"frozen": True}

    name: str = "my-site"
    notes_dir: Path = Path("notes")
    data_dir: Path = Path(".notepress/data")
    themes_dir: Path = Path(".notepress/themes")


class SiteConfig(BaseModel):
    """[site] section — values used by the RSS channel and templates."""

    model_config = {"frozen": True}

    title: str = ""
    description: str = ""
    base_url: str = ""


class GeneratorConfig(BaseModel):
    """[generator] section."""

    model_config = {"frozen": True}

    output_dir: Path = Path(".notepress/output")
    rss_digest_length: int = Field(default=280, ge=1)


class GitConfig(BaseModel):
    """[git] section."""

    model_config = {"frozen": True}

    url: str = ""
    branch: str = "master"
    remote: str = "origin"
    user_name: str = ""
    email: str = ""
    token: str = ""
    shadow_dir: Path = Path(".notepress/repository")
    commit_message: str = "Publish site {timestamp}"
    publish_delay: float = Field(default=3.0, ge=0)


class NotepressConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    site: SiteConfig = Field(default_factory=SiteConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
    git: GitConfig = Field(default_factory=GitConfig)
