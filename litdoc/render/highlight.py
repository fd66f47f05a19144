"""Pygments highlighting shared by hover text and prose code fences."""

from __future__ import annotations

from typing import Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from .tokens import escape_html

DEFAULT_STYLE = "default"


def lexer_for(language: str | None, default: str = "typescript") -> Lexer:
    """Return a lexer for ``language``; unknown names fall back to plain text."""
    try:
        return get_lexer_by_name(language or default)
    except ClassNotFound:
        return TextLexer()


class QuickInfoHighlighter:
    """Highlights hover text with inline styles.

    ``initialize`` is idempotent; until it runs, ``highlight`` returns the
    escaped text unchanged.
    """

    def __init__(self, *, style: str = DEFAULT_STYLE, language: str = "typescript") -> None:
        self.style = style
        self.language = language
        self._lexer: Optional[Lexer] = None
        self._formatter: Optional[HtmlFormatter] = None

    @property
    def initialized(self) -> bool:
        return self._formatter is not None

    def initialize(self) -> None:
        if self._formatter is not None:
            return
        self._lexer = lexer_for(self.language)
        self._formatter = HtmlFormatter(style=self.style, noclasses=True, nowrap=True)

    def highlight(self, text: str) -> str:
        if self._formatter is None or self._lexer is None:
            return escape_html(text)
        return highlight(text, self._lexer, self._formatter).strip()


__all__ = ["DEFAULT_STYLE", "QuickInfoHighlighter", "lexer_for"]
