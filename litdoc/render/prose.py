"""Markdown rendering for prose layers.

Prose is CommonMark (plus tables) rendered by markdown-it-py. Fenced code is
highlighted with Pygments; a fence without a language is treated as
TypeScript and a fence naming a language Pygments doesn't know is shown as
plain text.
"""

from __future__ import annotations

from typing import Optional

from markdown_it import MarkdownIt
from pygments import highlight
from pygments.formatters import HtmlFormatter

from .highlight import DEFAULT_STYLE, lexer_for


class ProseRenderer:
    """Render prose layers to ``<div class="prose">`` blocks."""

    def __init__(self, *, style: str = DEFAULT_STYLE, default_language: str = "typescript") -> None:
        self.style = style
        self.default_language = default_language
        self._markdown: Optional[MarkdownIt] = None
        self._formatter: Optional[HtmlFormatter] = None

    def initialize(self) -> None:
        # Building the parser is the expensive part; do it once per renderer.
        if self._markdown is not None:
            return
        self._formatter = HtmlFormatter(style=self.style, noclasses=True, nowrap=True)
        self._markdown = MarkdownIt(
            "commonmark", {"html": True, "highlight": self._highlight}
        ).enable("table")

    def render(self, content: str) -> str:
        self.initialize()
        assert self._markdown is not None
        return f'<div class="prose">{self._markdown.render(content)}</div>'

    def _highlight(self, code: str, language: str, _attrs: str) -> str:
        assert self._formatter is not None
        return highlight(code, lexer_for(language or None, self.default_language), self._formatter)


__all__ = ["ProseRenderer"]
