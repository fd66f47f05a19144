"""Literate TypeScript to hyperlinked HTML."""

from .extract import Layer, extract_layers, illiterate
from .orchestrator import HtmlOptions, HtmlResult, MultiFileResult, Orchestrator, generate_html, generate_html_multi

__all__ = [
    "HtmlOptions",
    "HtmlResult",
    "Layer",
    "MultiFileResult",
    "Orchestrator",
    "extract_layers",
    "generate_html",
    "generate_html_multi",
    "illiterate",
]

__version__ = "0.1.0"
