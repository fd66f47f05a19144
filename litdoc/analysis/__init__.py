"""Code-intelligence sessions consumed by the renderers."""

from __future__ import annotations

from .base import (
    SEMANTIC_TOKEN_TYPES,
    AnalysisError,
    AnalysisService,
    ClassifiedSpan,
    DefinitionInfo,
    NavigationNode,
    TextSpan,
    encode_semantic,
)
from .typescript import TreeSitterAnalysisService, language_for_file

__all__ = [
    "AnalysisError",
    "AnalysisService",
    "ClassifiedSpan",
    "DefinitionInfo",
    "NavigationNode",
    "SEMANTIC_TOKEN_TYPES",
    "TextSpan",
    "TreeSitterAnalysisService",
    "encode_semantic",
    "language_for_file",
]
