"""Symbol index across every document of a multi-file build."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .analysis.base import AnalysisService, NavigationNode
from .links import LinkResolver, strip_parent_segments
from .logging import get_logger
from .page import PageRenderer
from .render.tokens import definition_anchor

_LOGGER = get_logger("index")

STRUCTURAL_KINDS = frozenset(
    {"function", "method", "class", "interface", "property", "type alias", "enum", "constructor"}
)
# Only listed at the top of a file; nested bindings are locals.
TOP_LEVEL_KINDS = frozenset({"const", "let", "var"})
# Bodies of these are implementation detail.
COLLAPSED_KINDS = frozenset({"function", "method"})


def node_offset(node: NavigationNode) -> int:
    """Offset that identifies the declaration ``node`` outlines."""
    if node.name_span is not None:
        return node.name_span.start
    if node.spans:
        return node.spans[0].start
    return 0


class IndexBuilder:
    """Collects outline entries per file and renders the index document."""

    def __init__(self, page_renderer: PageRenderer | None = None) -> None:
        self.page_renderer = page_renderer or PageRenderer()

    def build(self, files: Iterable[str], resolver: LinkResolver, service: AnalysisService) -> str:
        return self.page_renderer.render_index(self.entries(files, resolver, service))

    def entries(
        self, files: Iterable[str], resolver: LinkResolver, service: AnalysisService
    ) -> List[Dict[str, Any]]:
        """Return one template entry per file, sorted by root-relative path."""
        ordered = sorted(files, key=resolver.relative_path)
        result: List[Dict[str, Any]] = []
        for file in ordered:
            href = resolver.output_path(file)
            tree = service.navigation_tree(file)
            symbols = self._symbols(tree.children, file, href, depth=0) if tree.kind == "module" else []
            result.append(
                {
                    "path": strip_parent_segments(resolver.relative_path(file)),
                    "href": href,
                    "symbols": symbols,
                }
            )
        _LOGGER.debug("Indexed %d files", len(result))
        return result

    def _symbols(
        self, nodes: List[NavigationNode], file: str, href: str, depth: int
    ) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        for node in nodes:
            if not _included(node.kind, depth):
                continue
            children: Optional[List[Dict[str, Any]]] = None
            if node.children and node.kind not in COLLAPSED_KINDS:
                children = self._symbols(node.children, file, href, depth + 1)
            entries.append(
                {
                    "kind": node.kind,
                    "text": node.text,
                    "href": f"{href}#{definition_anchor(file, node_offset(node))}",
                    "children": children or [],
                }
            )
        return entries


def _included(kind: str, depth: int) -> bool:
    if kind in STRUCTURAL_KINDS:
        return True
    return depth == 0 and kind in TOP_LEVEL_KINDS


__all__ = ["COLLAPSED_KINDS", "IndexBuilder", "STRUCTURAL_KINDS", "TOP_LEVEL_KINDS", "node_offset"]
