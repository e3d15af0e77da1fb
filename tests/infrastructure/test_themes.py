"""Tests for theme discovery and loading."""

import logging
from pathlib import Path

import pytest

from notepress.domain.errors import ThemeLoadError
from notepress.domain.fields import InputType
from notepress.infrastructure.themes import ThemeLoader, packaged_themes_dir
from tests.conftest import write_theme

DESCRIPTOR = """\
name: minimal
version: "1.0"
siteFields:
  - name: tagline
    inputType: input
pages:
  index:
    - name: intro
      inputType: markdown
"""


@pytest.fixture
def user_dir(tmp_path: Path) -> Path:
    return tmp_path / ".notepress" / "themes"


class TestPackagedThemes:
    def test_default_theme_loads(self) -> None:
        theme = ThemeLoader([packaged_themes_dir()]).load_theme("default")
        assert theme.name == "default"
        assert {"index", "article", "about"} <= set(theme.templates)
        assert not any(name.startswith("_") for name in theme.templates)
        assert [f.name for f in theme.site_fields][:2] == ["title", "description"]
        assert (theme.asset_dir / "style.css").is_file()


class TestThemeLoader:
    def test_loads_user_theme(self, tmp_path: Path, user_dir: Path) -> None:
        write_theme(
            tmp_path,
            "minimal",
            DESCRIPTOR,
            {"index.html": "{{ site.title }}", "_base.html": "", "tags.html": ""},
        )
        theme = ThemeLoader([user_dir]).load_theme("minimal")
        assert theme.version == "1.0"
        assert theme.templates == {"index": "index.html", "tags": "tags.html"}
        assert theme.pages["index"][0].input_type == InputType.MARKDOWN
        assert theme.root == user_dir / "minimal"

    def test_user_theme_shadows_packaged(self, tmp_path: Path, user_dir: Path) -> None:
        write_theme(tmp_path, "default", "name: default\n", {"index.html": "mine"})
        theme = ThemeLoader([user_dir, packaged_themes_dir()]).load_theme("default")
        assert theme.root == user_dir / "default"

    def test_mismatched_declared_name(
        self, tmp_path: Path, user_dir: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        write_theme(tmp_path, "dirname", "name: other\n", {"index.html": ""})
        with caplog.at_level(logging.WARNING, logger="notepress.infrastructure.themes"):
            theme = ThemeLoader([user_dir]).load_theme("dirname")
        assert theme.name == "dirname"
        assert "declares name 'other'" in caplog.text

    def test_missing_theme(self, user_dir: Path) -> None:
        with pytest.raises(ThemeLoadError, match="not installed"):
            ThemeLoader([user_dir]).load_theme("ghost")

    def test_invalid_name(self, user_dir: Path) -> None:
        with pytest.raises(ThemeLoadError):
            ThemeLoader([user_dir]).load_theme("../escape")

    def test_bad_yaml(self, tmp_path: Path, user_dir: Path) -> None:
        write_theme(tmp_path, "broken", "pages: [unclosed\n", {})
        with pytest.raises(ThemeLoadError, match="unreadable"):
            ThemeLoader([user_dir]).load_theme("broken")

    def test_non_mapping_descriptor(self, tmp_path: Path, user_dir: Path) -> None:
        write_theme(tmp_path, "listy", "- a\n- b\n", {})
        with pytest.raises(ThemeLoadError, match="must be a mapping"):
            ThemeLoader([user_dir]).load_theme("listy")

    def test_invalid_field_schema(self, tmp_path: Path, user_dir: Path) -> None:
        descriptor = "pages:\n  index:\n    - label: no name\n"
        write_theme(tmp_path, "noname", descriptor, {"index.html": ""})
        with pytest.raises(ThemeLoadError):
            ThemeLoader([user_dir]).load_theme("noname")

    def test_declared_template_missing(self, tmp_path: Path, user_dir: Path) -> None:
        descriptor = "templates:\n  about: about.html\n"
        write_theme(tmp_path, "holes", descriptor, {"index.html": ""})
        with pytest.raises(ThemeLoadError, match="missing templates for pages: about"):
            ThemeLoader([user_dir]).load_theme("holes")

    def test_load_themes_skips_broken(self, tmp_path: Path, user_dir: Path) -> None:
        write_theme(tmp_path, "good", "name: good\n", {"index.html": ""})
        write_theme(tmp_path, "bad", "- nope\n", {})
        names = [t.name for t in ThemeLoader([user_dir, packaged_themes_dir()]).load_themes()]
        assert "good" in names
        assert "default" in names
        assert "bad" not in names

    def test_load_themes_missing_dir(self, tmp_path: Path) -> None:
        assert ThemeLoader([tmp_path / "nowhere"]).load_themes() == []
