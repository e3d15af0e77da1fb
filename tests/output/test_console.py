"""Tests for Rich Console factory and theme."""

from io import StringIO

from notepress.output.console import NP_THEME, create_console, create_progress_console, get_output


class TestCreateConsole:
    def test_returns_console_with_stringio(self) -> None:
        console = create_console()
        assert isinstance(console.file, StringIO)

    def test_no_color_disables_ansi(self) -> None:
        console = create_console(no_color=True)
        console.print("[np.error]hello[/np.error]")
        output = get_output(console)
        assert "\x1b" not in output
        assert "hello" in output

    def test_custom_width(self) -> None:
        assert create_console(width=80).width == 80

    def test_default_width(self) -> None:
        assert create_console().width == 120

    def test_progress_console_uses_stderr(self) -> None:
        assert create_progress_console().stderr is True


class TestTheme:
    def test_styles_registered(self) -> None:
        for name in ("np.ok", "np.error", "np.warning", "np.published", "np.draft"):
            assert name in NP_THEME.styles
