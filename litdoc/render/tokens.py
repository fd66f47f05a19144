"""Token model and per-token HTML serialization."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Collection, Dict, Iterator, List, Optional, Tuple

from ..links import to_output_name

ComputeLink = Callable[[str, str, str], str]

# Classifications where definitions and references can occur. Strings are
# included because module specifiers like "./foo.js" point at other files.
LINKABLE_CLASSIFICATIONS = frozenset(
    {
        "identifier",
        "interface name",
        "class name",
        "enum name",
        "type parameter name",
        "type alias name",
        "parameter name",
        "module name",
        "string",
    }
)

_UNSAFE_ID_CHARS = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class TokenInfo:
    """A classified span of one code layer."""

    start: int
    length: int
    text: str
    classes: List[str]
    definition_id: Optional[str] = None
    definition_file: Optional[str] = None
    is_definition: bool = False
    quick_info: Optional[str] = None

    @property
    def end(self) -> int:
        return self.start + self.length


class QuickInfoTable:
    """Hover texts of one document, keyed by the element id that shows them.

    Definition sites key their text by their anchor. Every reference mints a
    fresh ``t<n>`` id, so each reference element gets its own template.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, str] = {}
        self._counter = 0

    def add_reference(self, text: str) -> str:
        token_id = f"t{self._counter}"
        self._counter += 1
        self._entries[token_id] = text
        return token_id

    def add_definition(self, anchor: str, text: str) -> None:
        self._entries[anchor] = text

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


@dataclass
class RenderTokenOptions:
    known_files: Optional[Collection[str]] = None
    compute_link: Optional[ComputeLink] = None
    include_externals: bool = False
    quick_info: Optional[QuickInfoTable] = field(default=None)


def is_linkable(classification: str) -> bool:
    return classification in LINKABLE_CLASSIFICATIONS


def sanitize_id(value: str) -> str:
    return _UNSAFE_ID_CHARS.sub("-", value)


def escape_html(value: str) -> str:
    return (
        value.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def definition_key(file: str, offset: int) -> str:
    """Registry key of the definition at ``offset`` in ``file``."""
    return f"{file}:{offset}"


def definition_anchor(file: str, offset: int) -> str:
    """Element id shared by a definition token and every link to it."""
    return anchor_for_key(definition_key(file, offset))


def anchor_for_key(key: str) -> str:
    return f"def-{sanitize_id(key)}"


def css_classes(classes: List[str]) -> str:
    return " ".join(f"ts-{name}" for name in classes)


def render_token(
    token: TokenInfo,
    current_file: str,
    options: RenderTokenOptions | None = None,
) -> str:
    """Serialize one token as a linked ``<a>`` or a styled ``<span>``."""
    opts = options or RenderTokenOptions()
    class_attr = css_classes(token.classes)
    text = escape_html(token.text)

    if token.is_definition and token.definition_id:
        anchor = anchor_for_key(token.definition_id)
        if token.quick_info and opts.quick_info is not None:
            opts.quick_info.add_definition(anchor, token.quick_info)
        return f'<a id="{anchor}" href="#{anchor}" class="{class_attr}">{text}</a>'

    id_attr = ""
    if token.quick_info and opts.quick_info is not None:
        id_attr = f' id="{opts.quick_info.add_reference(token.quick_info)}"'

    if token.definition_id and token.definition_file:
        is_external = opts.known_files is not None and token.definition_file not in opts.known_files
        if is_external and not opts.include_externals:
            return f'<span{id_attr} class="{class_attr}">{text}</span>'
        anchor = anchor_for_key(token.definition_id)
        if token.definition_file == current_file:
            href = f"#{anchor}"
        elif opts.compute_link is not None:
            href = opts.compute_link(current_file, token.definition_file, anchor)
        else:
            href = f"{to_output_name(token.definition_file)}#{anchor}"
        return f'<a{id_attr} href="{escape_html(href)}" class="{class_attr}">{text}</a>'

    return f'<span{id_attr} class="{class_attr}">{text}</span>'


__all__ = [
    "ComputeLink",
    "LINKABLE_CLASSIFICATIONS",
    "QuickInfoTable",
    "RenderTokenOptions",
    "TokenInfo",
    "anchor_for_key",
    "css_classes",
    "definition_anchor",
    "definition_key",
    "escape_html",
    "is_linkable",
    "render_token",
    "sanitize_id",
]
