"""Tests for prose rendering and hover highlighting."""

from __future__ import annotations

from litdoc.render.highlight import QuickInfoHighlighter, lexer_for
from litdoc.render.prose import ProseRenderer


def test_prose_is_wrapped_and_rendered_as_markdown() -> None:
    html = ProseRenderer().render("# Title\n\nSome *emphasis* here.\n")

    assert html.startswith('<div class="prose">')
    assert html.endswith("</div>")
    assert "<h1>Title</h1>" in html
    assert "<em>emphasis</em>" in html


def test_tables_are_enabled() -> None:
    html = ProseRenderer().render("| a | b |\n|---|---|\n| 1 | 2 |\n")

    assert "<table>" in html


def test_fenced_code_defaults_to_typescript_highlighting() -> None:
    html = ProseRenderer().render("```\nconst x: number = 1;\n```\n")

    assert "<pre><code>" in html
    assert "style=" in html


def test_unknown_fence_language_falls_back_to_plain_text() -> None:
    html = ProseRenderer().render("```nosuchlanguage\n<b>bold</b>\n```\n")

    assert 'class="language-nosuchlanguage"' in html
    assert "&lt;b&gt;bold&lt;/b&gt;" in html


def test_lexer_for_unknown_language_is_text() -> None:
    assert lexer_for("nosuchlanguage").name == "Text only"
    assert lexer_for(None).name == "TypeScript"


def test_initialize_is_idempotent() -> None:
    renderer = ProseRenderer()
    renderer.initialize()
    first = renderer._markdown
    renderer.initialize()

    assert renderer._markdown is first


def test_quick_info_highlighter_escapes_until_initialized() -> None:
    highlighter = QuickInfoHighlighter()

    assert highlighter.highlight("let x: Array<string>") == "let x: Array&lt;string&gt;"
    assert not highlighter.initialized

    highlighter.initialize()
    highlighter.initialize()
    highlighted = highlighter.highlight("let x: Array<string>")

    assert highlighter.initialized
    assert "style=" in highlighted
    assert "&lt;" in highlighted
    assert "<pre" not in highlighted
