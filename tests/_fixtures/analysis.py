"""Deterministic analysis session for renderer and pipeline tests.

Tokens are words, double-quoted strings, numbers and single punctuation
characters. ``function``/``const``/``let``/``var``/``class``/``interface``
followed by a name declares that name; the first declaration of a name across
the session wins, and every other occurrence of the word refers to it.
"""

from __future__ import annotations

import re
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from litdoc.analysis.base import (
    AnalysisService,
    ClassifiedSpan,
    DefinitionInfo,
    NavigationNode,
    TextSpan,
    encode_semantic,
)

_TOKEN = re.compile(r'"[^"\n]*"|[A-Za-z_$][\w$]*|\d+|\S')
_DECLARATION = re.compile(r"\b(function|const|let|var|class|interface)\s+([A-Za-z_$][\w$]*)")

KEYWORDS = frozenset(
    {"function", "const", "let", "var", "class", "interface", "return", "export", "import", "from", "new"}
)
SEMANTIC = {
    "function": "function",
    "const": "variable",
    "let": "variable",
    "var": "variable",
    "class": "class",
    "interface": "interface",
}

Target = Tuple[str, int, str]


class FakeAnalysisService(AnalysisService):
    def __init__(
        self,
        files: Mapping[str, str],
        *,
        external: Optional[Mapping[str, Target]] = None,
    ) -> None:
        super().__init__()
        self.files: Dict[str, str] = dict(files)
        self.external: Dict[str, Target] = dict(external or {})
        self.declarations: Dict[str, Target] = {}
        self.closed = False
        for file, text in self.files.items():
            for match in _DECLARATION.finditer(text):
                self.declarations.setdefault(match.group(2), (file, match.start(2), match.group(1)))

    def source_text(self, file: str) -> Optional[str]:
        return self.files.get(file)

    def _tokens(self, file: str, span: TextSpan) -> Iterator["re.Match[str]"]:
        text = self.files.get(file)
        if text is None:
            return iter(())
        return _TOKEN.finditer(text, span.start, span.end)

    def _resolve(self, file: str, offset: int) -> Optional[Tuple[str, Target]]:
        text = self.files.get(file)
        if text is None:
            return None
        match = _TOKEN.match(text, offset)
        if match is None:
            return None
        word = match.group(0)
        if word in KEYWORDS or not re.match(r"[A-Za-z_$]", word):
            return None
        target = self.declarations.get(word) or self.external.get(word)
        if target is None:
            return None
        return word, target

    def syntactic_classifications(self, file: str, span: TextSpan) -> List[ClassifiedSpan]:
        result: List[ClassifiedSpan] = []
        for match in self._tokens(file, span):
            word = match.group(0)
            if word.startswith('"'):
                classification = "string"
            elif word in KEYWORDS:
                classification = "keyword"
            elif word[0].isdigit():
                classification = "numeric literal"
            elif re.match(r"[A-Za-z_$]", word):
                classification = "identifier"
            else:
                classification = "punctuation"
            result.append(ClassifiedSpan(TextSpan(match.start(), len(word)), classification))
        return result

    def encoded_semantic_classifications(self, file: str, span: TextSpan) -> List[int]:
        encoded: List[int] = []
        for match in self._tokens(file, span):
            resolved = self._resolve(file, match.start())
            if resolved is not None:
                _, (_, _, kind) = resolved
                encoded.extend((match.start(), len(match.group(0)), encode_semantic(SEMANTIC[kind])))
        return encoded

    def definition_at(self, file: str, offset: int) -> List[DefinitionInfo]:
        resolved = self._resolve(file, offset)
        if resolved is None:
            return []
        name, (target_file, target_offset, kind) = resolved
        return [DefinitionInfo(file=target_file, span=TextSpan(target_offset, len(name)), name=name, kind=kind)]

    def quick_info_at(self, file: str, offset: int) -> Optional[str]:
        resolved = self._resolve(file, offset)
        if resolved is None:
            return None
        name, (_, _, kind) = resolved
        return f"{kind} {name}"

    def navigation_tree(self, file: str) -> NavigationNode:
        children = [
            NavigationNode(
                text=name,
                kind=kind,
                spans=[TextSpan(offset, len(name))],
                name_span=TextSpan(offset, len(name)),
            )
            for name, (owner, offset, kind) in self.declarations.items()
            if owner == file
        ]
        text = self.files.get(file, "")
        return NavigationNode(text=f'"{file}"', kind="module", spans=[TextSpan(0, len(text))], children=children)

    def close(self) -> None:
        super().close()
        self.closed = True


class RecordingFactory:
    """Service factory that remembers every session it opened."""

    def __init__(self, external: Optional[Mapping[str, Target]] = None) -> None:
        self.external = dict(external or {})
        self.sessions: List[FakeAnalysisService] = []

    def __call__(self, files: Mapping[str, str]) -> FakeAnalysisService:
        service = FakeAnalysisService(files, external=self.external)
        self.sessions.append(service)
        return service
