"""Code layer rendering: classify, link and serialize one layer's tokens."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Collection, Dict, List, Optional, Set

from ..analysis.base import SEMANTIC_TOKEN_TYPES, AnalysisService, TextSpan
from ..extract import Layer
from ..logging import get_logger
from ..registry import DefinitionLocation, DefinitionRegistry
from .tokens import (
    ComputeLink,
    QuickInfoTable,
    RenderTokenOptions,
    TokenInfo,
    definition_key,
    escape_html,
    is_linkable,
    render_token,
)

_LOGGER = get_logger("render.code")

_TRAILING_BLANK_LINES = re.compile(r"(?:\n[ \t\r]*)+$")


@dataclass
class RenderContext:
    """Everything a code layer needs from the surrounding build."""

    service: AnalysisService
    filename: str
    definitions: DefinitionRegistry
    source: Optional[str] = None
    external_files: Optional[Set[str]] = None
    known_files: Optional[Collection[str]] = None
    compute_link: Optional[ComputeLink] = None
    include_externals: bool = False
    quick_info: Optional[QuickInfoTable] = field(default=None)


def decode_semantic_classification(encoded: int) -> Optional[str]:
    """Return the semantic category of a 2020-format classification value."""
    index = (encoded >> 8) - 1
    if 0 <= index < len(SEMANTIC_TOKEN_TYPES):
        return SEMANTIC_TOKEN_TYPES[index]
    return None


def _classification_class(classification: str) -> str:
    return classification.lower().replace(" ", "-")


def collect_tokens(ctx: RenderContext, layer: Layer, analyzed_text: str) -> List[TokenInfo]:
    """Return the layer's tokens, sorted by start and enriched with link data."""
    service = ctx.service
    filename = ctx.filename
    span = TextSpan(layer.offset, layer.original_length)
    display_text = ctx.source if ctx.source is not None else analyzed_text

    semantic: Dict[int, str] = {}
    encoded = service.encoded_semantic_classifications(filename, span)
    for index in range(0, len(encoded) - 2, 3):
        category = decode_semantic_classification(encoded[index + 2])
        if category:
            semantic[encoded[index]] = category

    tokens: List[TokenInfo] = []
    for classified in service.syntactic_classifications(filename, span):
        start = classified.span.start
        length = classified.span.length
        classes = [_classification_class(classified.classification)]
        category = semantic.get(start)
        if category:
            classes.append(category)
        token = TokenInfo(
            start=start,
            length=length,
            text=display_text[start : start + length],
            classes=classes,
        )
        if is_linkable(classified.classification):
            _attach_definition(ctx, token)
            if ctx.quick_info is not None:
                token.quick_info = service.quick_info_at(filename, start) or None
        tokens.append(token)

    tokens.sort(key=lambda item: item.start)
    return tokens


def _attach_definition(ctx: RenderContext, token: TokenInfo) -> None:
    definitions = ctx.service.definition_at(ctx.filename, token.start)
    if not definitions:
        return
    target = definitions[0]
    key = definition_key(target.file, target.span.start)
    token.definition_id = key
    token.definition_file = target.file

    if (
        ctx.external_files is not None
        and ctx.known_files is not None
        and target.file not in ctx.known_files
        and ctx.include_externals
    ):
        ctx.external_files.add(target.file)

    if target.file == ctx.filename and target.span.start == token.start:
        token.is_definition = True
        line, column = ctx.service.line_and_column(target.file, target.span.start)
        ctx.definitions.register(key, DefinitionLocation(file=target.file, line=line, column=column))


def render_code_block(ctx: RenderContext, layer: Layer) -> str:
    """Render one code layer as ``<pre class="code">`` markup."""
    analyzed = ctx.service.source_text(ctx.filename)
    if analyzed is None:
        _LOGGER.debug("No analysis text for %s; rendering layer unclassified", ctx.filename)
        return f'<pre class="code">{escape_html(layer.content)}</pre>'

    display = ctx.source if ctx.source is not None else analyzed
    options = RenderTokenOptions(
        known_files=ctx.known_files,
        compute_link=ctx.compute_link,
        include_externals=ctx.include_externals,
        quick_info=ctx.quick_info,
    )

    parts: List[str] = ['<pre class="code">']
    position = layer.offset
    layer_end = layer.end

    for token in collect_tokens(ctx, layer, analyzed):
        if token.start < position or token.start >= layer_end:
            continue
        if token.end > layer_end:
            token.length = layer_end - token.start
            token.text = display[token.start : layer_end]
        if token.start > position:
            parts.append(escape_html(display[position : token.start]))
        parts.append(render_token(token, ctx.filename, options))
        position = token.end

    if position < layer_end:
        parts.append(escape_html(display[position:layer_end]))

    body = _TRAILING_BLANK_LINES.sub("", "".join(parts))
    return f"{body}</pre>"


__all__ = [
    "RenderContext",
    "collect_tokens",
    "decode_semantic_classification",
    "render_code_block",
]
