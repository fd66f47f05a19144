"""Relative link computation between generated documents."""

from __future__ import annotations

import posixpath
import re

# Every suffix the analysis session parses: .ts .mts .cts .tsx .js .mjs .cjs .jsx
_DECLARATION_SUFFIX = re.compile(r"\.d\.[mc]?ts$")
_SOURCE_SUFFIX = re.compile(r"\.(?:[mc]?[jt]s|[jt]sx)$")


def to_output_name(path: str) -> str:
    """Map a source path to its document path.

    Declaration files keep their ``.d`` marker (``.d.ts`` -> ``.d.html``); every
    other TypeScript or JavaScript suffix becomes ``.html``.
    """
    return _SOURCE_SUFFIX.sub(".html", _DECLARATION_SUFFIX.sub(".d.html", path))


def strip_parent_segments(path: str) -> str:
    """Drop leading ``../`` segments so outputs stay inside the output tree."""
    while path.startswith("../"):
        path = path[3:]
    if path == "..":
        return ""
    return path


class LinkResolver:
    """Computes output paths and hrefs relative to a project root."""

    def __init__(self, project_root: str) -> None:
        self.project_root = posixpath.normpath(project_root.replace("\\", "/")) if project_root else "."

    def relative_path(self, file: str) -> str:
        """Return ``file`` relative to the project root (may start with ``../``)."""
        return posixpath.relpath(file.replace("\\", "/"), self.project_root)

    def output_path(self, file: str) -> str:
        """Return the root-relative document path for ``file``."""
        return to_output_name(strip_parent_segments(self.relative_path(file)))

    def compute_link(self, from_file: str, to_file: str, anchor: str) -> str:
        """Return the href from ``from_file``'s document to ``anchor`` in ``to_file``'s."""
        source = self.output_path(from_file)
        target = self.output_path(to_file)
        start = posixpath.dirname(source) or "."
        return f"{posixpath.relpath(target, start)}#{anchor}"

    __call__ = compute_link


__all__ = ["LinkResolver", "strip_parent_segments", "to_output_name"]
