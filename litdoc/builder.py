"""Project builds: discover sources, render them and write the output tree."""

from __future__ import annotations

import os
import posixpath
import threading
import time
from dataclasses import dataclass, field, replace
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Sequence, Set

from .links import strip_parent_segments, to_output_name
from .logging import get_logger
from .orchestrator import INDEX_NAME, HtmlOptions, MultiFileResult, Orchestrator

_LOGGER = get_logger("builder")

_EXCLUDED_DIRS = {"node_modules"}


def is_source_file(name: str) -> bool:
    """Return True for TypeScript sources; declaration files are skipped."""
    return name.endswith(".ts") and not name.endswith(".d.ts")


def _excluded(rel_path: str, patterns: Sequence[str]) -> bool:
    for pattern in patterns:
        pattern = pattern.strip().rstrip("/")
        if not pattern:
            continue
        if "/" in pattern:
            if fnmatchcase(rel_path, pattern.lstrip("/")) or rel_path.startswith(pattern.lstrip("/") + "/"):
                return True
            continue
        if any(fnmatchcase(part, pattern) for part in rel_path.split("/")):
            return True
    return False


def _iter_sources(root: Path, exclude_paths: Sequence[str]) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in dirnames:
            if name.startswith(".") or name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if _excluded(rel_path, exclude_paths):
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in filenames:
            if not is_source_file(filename):
                continue
            rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
            if _excluded(rel_path, exclude_paths):
                continue
            yield current_dir / filename


def find_source_files(directory: Path, exclude_paths: Sequence[str] = ()) -> List[Path]:
    """Return every ``.ts`` file under ``directory`` in sorted order.

    Hidden directories and ``node_modules`` are never entered; ``.d.ts``
    declaration files are left out.
    """
    return sorted(_iter_sources(Path(directory), exclude_paths))


def to_output_path(file: str, project_root: str, output_dir: Path) -> Path:
    """Return where the document for ``file`` is written inside ``output_dir``."""
    rel = os.path.relpath(file, project_root).replace(os.sep, "/")
    return Path(output_dir) / to_output_name(strip_parent_segments(rel))


@dataclass
class BuildReport:
    written: List[Path] = field(default_factory=list)
    external_files: Set[str] = field(default_factory=set)


class ProjectBuilder:
    """Builds a source directory into an output directory.

    The builder keeps the last content it saw for every source file, so a
    rebuild after an edit can analyze the whole project while writing only
    the documents that changed plus the index.
    """

    def __init__(
        self,
        source_dir: Path,
        output_dir: Path,
        *,
        options: HtmlOptions | None = None,
        exclude_paths: Sequence[str] = (),
        orchestrator: Orchestrator | None = None,
    ) -> None:
        self.source_dir = Path(source_dir).expanduser().resolve()
        self.output_dir = Path(output_dir).expanduser().resolve()
        self.project_root = str(self.source_dir)
        self.options = replace(options or HtmlOptions(), project_root=self.project_root, skip_index=False)
        self.exclude_paths = list(exclude_paths)
        self.orchestrator = orchestrator or Orchestrator()
        self._cache: Dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def index_key(self) -> str:
        return posixpath.join(self.project_root, INDEX_NAME)

    @property
    def files(self) -> Dict[str, str]:
        """Snapshot of the cached source texts."""
        with self._lock:
            return dict(self._cache)

    def load(self) -> Dict[str, str]:
        """Read every source file from disk into the content cache."""
        cache: Dict[str, str] = {}
        for path in find_source_files(self.source_dir, self.exclude_paths):
            cache[str(path)] = path.read_text(encoding="utf-8")
        with self._lock:
            self._cache = cache
        _LOGGER.debug("Loaded %d source files from %s", len(cache), self.source_dir)
        return dict(cache)

    def build(self) -> BuildReport:
        """Render and write the whole project, then any external files."""
        files = self.load()
        result = self.orchestrator.generate_html_multi(files, self.options)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        report = BuildReport(external_files=set(result.external_files))
        for filename, html in result.files.items():
            report.written.append(self._write(filename, html))

        if self.options.include_externals and result.external_files:
            _LOGGER.info("Processing %d external files", len(result.external_files))
            report.written.extend(self.process_externals(result.external_files))

        _LOGGER.info("%d files written to %s", len(report.written), self.output_dir)
        return report

    def process_externals(self, external_files: Iterable[str]) -> List[Path]:
        """Render files referenced from outside the project; missing ones are skipped."""
        sources: Dict[str, str] = {}
        seen: Set[str] = set()
        for file in sorted(external_files):
            if file in seen:
                continue
            seen.add(file)
            path = Path(file)
            if not path.is_file():
                _LOGGER.info("Skipping %s (not found)", file)
                continue
            sources[file] = path.read_text(encoding="utf-8")

        if not sources:
            return []

        options = replace(self.options, include_externals=True, skip_index=True)
        result = self.orchestrator.generate_html_multi(sources, options)
        return [self._write(filename, html) for filename, html in result.files.items()]

    def update_source(self, file: str) -> bool:
        """Refresh ``file`` in the cache; return False when its content is unchanged."""
        path = Path(file)
        if not path.is_file() or not is_source_file(path.name):
            return False
        rel_path = os.path.relpath(path, self.source_dir).replace(os.sep, "/")
        if _excluded(rel_path, self.exclude_paths):
            return False
        content = path.read_text(encoding="utf-8")
        with self._lock:
            if self._cache.get(str(path)) == content:
                return False
            self._cache[str(path)] = content
        return True

    def regenerate(self, changed: Iterable[str]) -> List[Path]:
        """Rebuild with every cached file but write only ``changed`` and the index."""
        started = time.perf_counter()
        changed_set = set(changed)
        result: MultiFileResult = self.orchestrator.generate_html_multi(self.files, self.options)

        written: List[Path] = []
        for filename, html in result.files.items():
            if filename == self.index_key or filename in changed_set:
                written.append(self._write(filename, html))

        elapsed_ms = (time.perf_counter() - started) * 1000
        _LOGGER.info("Regenerated %d file(s) in %.0fms", len(written), elapsed_ms)
        return written

    def _write(self, filename: str, html: str) -> Path:
        out_path = to_output_path(filename, self.project_root, self.output_dir)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(html, encoding="utf-8")
        _LOGGER.debug("Wrote %s", out_path)
        return out_path


__all__ = [
    "BuildReport",
    "ProjectBuilder",
    "find_source_files",
    "is_source_file",
    "to_output_path",
]
