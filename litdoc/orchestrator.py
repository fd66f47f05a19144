"""Pipeline orchestration for single-file and multi-file builds."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, List, Mapping, Optional, Set

from .analysis import AnalysisService, TreeSitterAnalysisService
from .extract import extract_layers, illiterate
from .index import IndexBuilder
from .links import LinkResolver
from .logging import get_logger
from .page import PageRenderer
from .registry import DefinitionRegistry
from .render.code import RenderContext, render_code_block
from .render.prose import ProseRenderer
from .render.tokens import QuickInfoTable

ServiceFactory = Callable[[Mapping[str, str]], AnalysisService]

INDEX_NAME = "index.html"


@dataclass
class HtmlOptions:
    """Presentation and linking options for a build."""

    css_file: Optional[str] = None
    include_highlight_script: bool = True
    title: Optional[str] = None
    project_root: Optional[str] = None
    include_externals: bool = False
    skip_index: bool = False


@dataclass
class HtmlResult:
    html: str
    definitions: DefinitionRegistry


@dataclass
class MultiFileResult:
    """Documents keyed by source file, plus the index under ``<root>/index.html``."""

    files: Dict[str, str]
    definitions: DefinitionRegistry
    external_files: Set[str] = field(default_factory=set)


def _default_service(files: Mapping[str, str]) -> AnalysisService:
    return TreeSitterAnalysisService(files)


class Orchestrator:
    """Drives extraction, rendering and page assembly for one build at a time."""

    def __init__(
        self,
        prose_renderer: ProseRenderer | None = None,
        page_renderer: PageRenderer | None = None,
        index_builder: IndexBuilder | None = None,
        service_factory: ServiceFactory | None = None,
    ) -> None:
        self.prose_renderer = prose_renderer or ProseRenderer()
        self.page_renderer = page_renderer or PageRenderer()
        self.index_builder = index_builder or IndexBuilder(self.page_renderer)
        self.service_factory = service_factory or _default_service
        self.logger = get_logger("orchestrator")

    def generate_html(
        self, filename: str, source: str, options: HtmlOptions | None = None
    ) -> HtmlResult:
        """Render one literate file as a standalone page."""
        opts = options or HtmlOptions()
        self.prose_renderer.initialize()
        definitions = DefinitionRegistry()
        quick_info = QuickInfoTable()
        # Cross-file references are linked relative to the file's own directory.
        resolver = LinkResolver(posixpath.dirname(filename) or ".")

        with self.service_factory({filename: illiterate(source)}) as service:
            ctx = RenderContext(
                service=service,
                filename=filename,
                definitions=definitions,
                source=source,
                compute_link=resolver,
                include_externals=opts.include_externals,
                quick_info=quick_info,
            )
            body = self._render_body(ctx, source)

        html = self.page_renderer.render(body, opts, filename, quick_info)
        return HtmlResult(html=html, definitions=definitions)

    def generate_html_multi(
        self, files: Mapping[str, str], options: HtmlOptions | None = None
    ) -> MultiFileResult:
        """Render every file of ``files`` against one shared analysis session."""
        opts = options or HtmlOptions()
        self.prose_renderer.initialize()
        project_root = opts.project_root or os.getcwd()
        resolver = LinkResolver(project_root)
        definitions = DefinitionRegistry()
        external_files: Set[str] = set()
        known_files: Collection[str] = frozenset(files)
        results: Dict[str, str] = {}

        analysis_input = {name: illiterate(source) for name, source in files.items()}
        with self.service_factory(analysis_input) as service:
            for filename, source in files.items():
                quick_info = QuickInfoTable()
                ctx = RenderContext(
                    service=service,
                    filename=filename,
                    definitions=definitions,
                    source=source,
                    external_files=external_files,
                    known_files=known_files,
                    compute_link=resolver,
                    include_externals=opts.include_externals,
                    quick_info=quick_info,
                )
                body = self._render_body(ctx, source)
                results[filename] = self.page_renderer.render(
                    body, opts, filename, quick_info, index_href=_index_href(resolver, filename)
                )
                self.logger.debug("Rendered %s", filename)

            if not opts.skip_index:
                index_path = posixpath.join(project_root, INDEX_NAME)
                results[index_path] = self.index_builder.build(files.keys(), resolver, service)

        self.logger.debug(
            "Build finished: %d documents, %d definitions, %d external files",
            len(results),
            len(definitions),
            len(external_files),
        )
        return MultiFileResult(files=results, definitions=definitions, external_files=external_files)

    def _render_body(self, ctx: RenderContext, source: str) -> str:
        layers = extract_layers(source)
        self.logger.debug("%s: %d layers", ctx.filename, len(layers))
        parts: List[str] = []
        for layer in layers:
            if layer.role == "prose":
                parts.append(self.prose_renderer.render(layer.content))
            elif layer.content.strip():
                parts.append(render_code_block(ctx, layer))
        return "".join(parts)


def _index_href(resolver: LinkResolver, filename: str) -> str:
    directory = posixpath.dirname(resolver.output_path(filename)) or "."
    return posixpath.relpath(INDEX_NAME, directory)


def generate_html(filename: str, source: str, options: HtmlOptions | None = None) -> HtmlResult:
    """Render one file with a default :class:`Orchestrator`."""
    return Orchestrator().generate_html(filename, source, options)


def generate_html_multi(files: Mapping[str, str], options: HtmlOptions | None = None) -> MultiFileResult:
    """Render a file set with a default :class:`Orchestrator`."""
    return Orchestrator().generate_html_multi(files, options)


__all__ = [
    "HtmlOptions",
    "HtmlResult",
    "INDEX_NAME",
    "MultiFileResult",
    "Orchestrator",
    "ServiceFactory",
    "generate_html",
    "generate_html_multi",
]
