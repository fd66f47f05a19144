"""Document assembly: wrap rendered layers into a standalone HTML page."""

from __future__ import annotations

import posixpath
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .render.highlight import QuickInfoHighlighter
from .render.tokens import QuickInfoTable

if TYPE_CHECKING:  # pragma: no cover
    from .orchestrator import HtmlOptions

TEMPLATES_DIR = Path(__file__).with_name("templates")
ASSETS_DIR = TEMPLATES_DIR / "assets"


@lru_cache(maxsize=None)
def load_asset(name: str) -> str:
    """Return the text of a bundled static asset."""
    return (ASSETS_DIR / name).read_text(encoding="utf-8")


def display_title(title: str) -> str:
    """Return the last path segment of ``title``."""
    return posixpath.basename(title) or title


class PageRenderer:
    """Renders page and index documents from Jinja2 templates.

    A custom ``templates_dir`` is searched before the bundled templates, so a
    project can override ``page.html.j2`` or ``index.html.j2`` individually.
    """

    def __init__(
        self,
        templates_dir: Path | None = None,
        highlighter: QuickInfoHighlighter | None = None,
    ) -> None:
        self.highlighter = highlighter or QuickInfoHighlighter()
        self.env = self._create_env(templates_dir)

    def render(
        self,
        body: str,
        options: "HtmlOptions",
        filename: str,
        quick_info: Optional[QuickInfoTable] = None,
        index_href: str = "/",
    ) -> str:
        templates: List[tuple[str, str]] = []
        if quick_info:
            self.highlighter.initialize()
            templates = [(key, self.highlighter.highlight(text)) for key, text in quick_info.items()]

        template = self.env.get_template("page.html.j2")
        return template.render(
            title=display_title(options.title or filename),
            css_file=options.css_file,
            css=load_asset("styles.css"),
            highlight_script=load_asset("highlight.js") if options.include_highlight_script else "",
            tooltip_script=load_asset("tooltip.js"),
            quick_info=templates,
            index_href=index_href,
            body=body,
        )

    def render_index(self, files: Sequence[Dict[str, Any]], title: str = "Index") -> str:
        template = self.env.get_template("index.html.j2")
        return template.render(title=title, css=load_asset("index.css"), files=files)

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(TEMPLATES_DIR))
        loader = FileSystemLoader(directories)
        # Bodies arrive as finished markup; user text is escaped with ``| e``.
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def inject_reload_script(html: str) -> str:
    """Insert the live-reload client before ``</body>`` (or append it)."""
    snippet = f"<script>\n{load_asset('reload.js')}</script>\n"
    marker = html.rfind("</body>")
    if marker == -1:
        return html + snippet
    return html[:marker] + snippet + html[marker:]


__all__ = ["PageRenderer", "display_title", "inject_reload_script", "load_asset"]
