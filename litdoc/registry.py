"""Shared definition registry for a build."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class DefinitionLocation:
    """1-based source location of a definition site."""

    file: str
    line: int
    column: int


class DefinitionRegistry:
    """Append-only map from definition key to location; each key is written once."""

    def __init__(self) -> None:
        self._entries: Dict[str, DefinitionLocation] = {}

    def register(self, key: str, location: DefinitionLocation) -> bool:
        """Store ``location`` under ``key`` unless the key is taken. Return True if stored."""
        if key in self._entries:
            return False
        self._entries[key] = location
        return True

    def get(self, key: str) -> Optional[DefinitionLocation]:
        return self._entries.get(key)

    def items(self) -> Iterator[Tuple[str, DefinitionLocation]]:
        return iter(self._entries.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


__all__ = ["DefinitionLocation", "DefinitionRegistry"]
