"""Renderers for code layers, prose layers and hover text."""

from __future__ import annotations

from .code import RenderContext, collect_tokens, decode_semantic_classification, render_code_block
from .highlight import QuickInfoHighlighter
from .prose import ProseRenderer
from .tokens import (
    QuickInfoTable,
    RenderTokenOptions,
    TokenInfo,
    definition_anchor,
    definition_key,
    escape_html,
    is_linkable,
    render_token,
    sanitize_id,
)

__all__ = [
    "ProseRenderer",
    "QuickInfoHighlighter",
    "QuickInfoTable",
    "RenderContext",
    "RenderTokenOptions",
    "TokenInfo",
    "collect_tokens",
    "decode_semantic_classification",
    "definition_anchor",
    "definition_key",
    "escape_html",
    "is_linkable",
    "render_code_block",
    "render_token",
    "sanitize_id",
]
