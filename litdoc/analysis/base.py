"""Query contract for code-intelligence sessions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# Order matches the TypeScript 2020 semantic classification format.
SEMANTIC_TOKEN_TYPES: Tuple[str, ...] = (
    "class",
    "enum",
    "interface",
    "namespace",
    "type-parameter",
    "type",
    "parameter",
    "variable",
    "enum-member",
    "property",
    "function",
    "method",
)

MODIFIER_DECLARATION = 1 << 0
MODIFIER_STATIC = 1 << 1
MODIFIER_ASYNC = 1 << 2
MODIFIER_READONLY = 1 << 3


class AnalysisError(RuntimeError):
    """Raised when the analysis session cannot serve a request."""


@dataclass(frozen=True)
class TextSpan:
    """Half-open character range ``[start, start + length)``."""

    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True)
class ClassifiedSpan:
    span: TextSpan
    classification: str


@dataclass(frozen=True)
class DefinitionInfo:
    """Where a symbol is declared."""

    file: str
    span: TextSpan
    name: str
    kind: str


@dataclass
class NavigationNode:
    """Outline entry for a declaration; the root covers the whole file."""

    text: str
    kind: str
    spans: List[TextSpan]
    name_span: Optional[TextSpan] = None
    children: List["NavigationNode"] = field(default_factory=list)


def encode_semantic(category: str, modifiers: int = 0) -> int:
    """Encode a semantic category the way the 2020 classifier format does."""
    return ((SEMANTIC_TOKEN_TYPES.index(category) + 1) << 8) | modifiers


class AnalysisService(ABC):
    """An explicitly opened session over a fixed set of files.

    Sessions are context managers: a build opens one, passes it to every
    rendering call, and closes it when the build is done.
    """

    def __init__(self) -> None:
        self._line_starts: Dict[str, List[int]] = {}

    @abstractmethod
    def source_text(self, file: str) -> Optional[str]:
        """Return the analyzed text of ``file`` or None when it is unknown."""

    @abstractmethod
    def syntactic_classifications(self, file: str, span: TextSpan) -> List[ClassifiedSpan]:
        """Classify every token starting inside ``span``."""

    @abstractmethod
    def encoded_semantic_classifications(self, file: str, span: TextSpan) -> List[int]:
        """Return flat ``[start, length, encoded]`` triples for tokens in ``span``."""

    @abstractmethod
    def definition_at(self, file: str, offset: int) -> List[DefinitionInfo]:
        """Return definition sites for the token at ``offset`` (possibly empty)."""

    @abstractmethod
    def quick_info_at(self, file: str, offset: int) -> Optional[str]:
        """Return hover text for the token at ``offset``."""

    @abstractmethod
    def navigation_tree(self, file: str) -> NavigationNode:
        """Return the outline tree of ``file``."""

    def line_and_column(self, file: str, offset: int) -> Tuple[int, int]:
        """Return the 1-based line and column of ``offset`` in ``file``."""
        starts = self._line_starts.get(file)
        if starts is None:
            text = self.source_text(file) or ""
            starts = [0]
            starts.extend(index + 1 for index, char in enumerate(text) if char == "\n")
            self._line_starts[file] = starts
        line = bisect_right(starts, offset) - 1
        return line + 1, offset - starts[line] + 1

    def close(self) -> None:
        self._line_starts.clear()

    def __enter__(self) -> "AnalysisService":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "AnalysisError",
    "AnalysisService",
    "ClassifiedSpan",
    "DefinitionInfo",
    "MODIFIER_ASYNC",
    "MODIFIER_DECLARATION",
    "MODIFIER_READONLY",
    "MODIFIER_STATIC",
    "NavigationNode",
    "SEMANTIC_TOKEN_TYPES",
    "TextSpan",
    "encode_semantic",
]
