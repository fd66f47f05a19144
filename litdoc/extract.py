"""Layer extraction: split literate TypeScript into prose and code runs.

A line whose first non-blank characters are ``///`` is prose; every other line
is code. Consecutive lines of the same role form a :class:`Layer`. Each layer
remembers where it started in the original text (``offset``) and how many
characters it occupied there (``original_length``), so the analysis service can
be queried with positions taken from the untouched file.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Literal, Optional

PROSE_MARKER = "///"

LayerRole = Literal["code", "prose"]


@dataclass(frozen=True)
class Layer:
    """A maximal run of same-role lines with its original position."""

    role: LayerRole
    content: str
    offset: int
    original_length: int

    @property
    def end(self) -> int:
        return self.offset + self.original_length


def is_prose_line(line: str) -> bool:
    """Return True when the line carries the prose marker after its indentation."""
    return line.lstrip().startswith(PROSE_MARKER)


def _strip_marker(line: str) -> str:
    text = line.lstrip()[len(PROSE_MARKER) :]
    if text.startswith(" "):
        text = text[1:]
    return text


def extract_layers(source: str) -> List[Layer]:
    """Return the ordered layers of ``source``.

    The sum of ``original_length`` over the result always equals
    ``len(source)`` and every layer starts where the previous one ended.
    """
    layers: List[Layer] = []
    lines = source.split("\n")

    offset = 0
    role: Optional[LayerRole] = None
    parts: List[str] = []
    start = 0
    length = 0

    def flush() -> None:
        nonlocal parts, length
        if role is not None and length > 0:
            layers.append(
                Layer(role=role, content="".join(parts), offset=start, original_length=length)
            )
        parts = []
        length = 0

    last_index = len(lines) - 1
    for index, line in enumerate(lines):
        is_last = index == last_index
        line_length = len(line) + (0 if is_last else 1)
        line_role: LayerRole = "prose" if is_prose_line(line) else "code"

        if line_role != role:
            flush()
            role = line_role
            start = offset

        parts.append(_strip_marker(line) if line_role == "prose" else line)
        if not is_last:
            parts.append("\n")
        length += line_length
        offset += line_length

    flush()
    return _merge_prose(layers)


def _merge_prose(layers: List[Layer]) -> List[Layer]:
    # Blank lines between two prose blocks would otherwise split one section in two.
    merged: List[Layer] = []
    for index, layer in enumerate(layers):
        previous = merged[-1] if merged else None
        following = layers[index + 1] if index + 1 < len(layers) else None

        if (
            layer.role == "code"
            and not layer.content.strip()
            and previous is not None
            and previous.role == "prose"
            and following is not None
            and following.role == "prose"
        ):
            blank_lines = max(1, layer.content.count("\n"))
            merged[-1] = replace(
                previous,
                content=previous.content + "\n" * blank_lines,
                original_length=previous.original_length + layer.original_length,
            )
            continue

        if layer.role == "prose" and previous is not None and previous.role == "prose":
            merged[-1] = replace(
                previous,
                content=previous.content + layer.content,
                original_length=previous.original_length + layer.original_length,
            )
            continue

        merged.append(layer)
    return merged


def illiterate(source: str) -> str:
    """Blank every prose line to spaces of equal width, keeping all positions."""
    return "\n".join(
        " " * len(line) if is_prose_line(line) else line for line in source.split("\n")
    )


__all__ = [
    "Layer",
    "LayerRole",
    "PROSE_MARKER",
    "extract_layers",
    "illiterate",
    "is_prose_line",
]
