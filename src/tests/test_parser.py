"""Unit tests for markdown rendering."""

from markdown import Markdown

from mdwiki.core.parser import create_parser, render_markdown


# ============================================================
# Strikethrough extension
# ============================================================


class TestStrikethrough:
    def test_basic_strikethrough(self):
        html = render_markdown("~~deleted~~")
        assert "<del>deleted</del>" in html

    def test_strikethrough_in_paragraph(self):
        html = render_markdown("This is ~~removed~~ text.")
        assert "<del>removed</del>" in html
        assert "This is" in html

    def test_strikethrough_multiple(self):
        html = render_markdown("~~one~~ and ~~two~~")
        assert html.count("<del>") == 2


# ============================================================
# Full parser
# ============================================================


class TestRenderMarkdown:
    def test_markdown_headings(self):
        html = render_markdown("# Title\n\n## Subtitle")
        assert "Title</h1>" in html
        assert "Subtitle</h2>" in html

    def test_markdown_bold_italic(self):
        html = render_markdown("**bold** and *italic*")
        assert "<strong>bold</strong>" in html
        assert "<em>italic</em>" in html

    def test_code_block(self):
        html = render_markdown("```python\nprint('hi')\n```")
        assert "<code" in html
        assert "print" in html

    def test_task_list(self):
        html = render_markdown("- [ ] todo\n- [x] done")
        assert 'type="checkbox"' in html

    def test_table(self):
        html = render_markdown("| A | B |\n|---|---|\n| 1 | 2 |")
        assert "<table>" in html
        assert "<td>1</td>" in html

    def test_empty_body(self):
        assert render_markdown("") == ""


class TestCreateParser:
    def test_returns_markdown_instance(self):
        assert isinstance(create_parser(), Markdown)

    def test_fresh_parser_per_call(self):
        assert create_parser() is not create_parser()
