"""Tests for the markdown renderer."""

from notepress.infrastructure.renderer import MarkdownRenderer, RenderContext


class TestMarkdownRenderer:
    def test_basic_markdown(self) -> None:
        result = MarkdownRenderer().render("# Title\n\nSome *text*.")
        assert result.html == "<h1>Title</h1>\n<p>Some <em>text</em>.</p>"
        assert result.assets == []

    def test_tables_and_strikethrough(self) -> None:
        html = MarkdownRenderer().render("| a |\n|---|\n| 1 |\n\n~~gone~~").html
        assert "<table>" in html
        assert "<s>gone</s>" in html

    def test_empty_input(self) -> None:
        assert MarkdownRenderer().render("").html == ""

    def test_resource_links_rewritten(self) -> None:
        context = RenderContext(
            resources={"photo.png": "hello/photo.png", "paper.pdf": "hello/paper.pdf"}
        )
        html = MarkdownRenderer().render("![pic](:/photo.png) [doc](:/paper.pdf)", context).html
        assert 'src="/_resources/hello/photo.png"' in html
        assert 'href="/_resources/hello/paper.pdf"' in html

    def test_unknown_resource_left_alone(self) -> None:
        context = RenderContext(resources={"photo.png": "hello/photo.png"})
        html = MarkdownRenderer().render("[x](:/zzz) [y](https://e.test)", context).html
        assert 'href=":/zzz"' in html
        assert 'href="https://e.test"' in html
