"""Configuration loading for litdoc (.litdoc.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_NAME = ".litdoc.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class OutputConfig:
    """Where and how documents are written."""

    dir: Optional[str] = None
    css_file: Optional[str] = None
    include_highlight_script: bool = True
    title: Optional[str] = None
    templates_dir: Optional[Path] = None


@dataclass
class HighlightConfig:
    """Pygments settings for prose fences and hover text."""

    style: str = "default"
    default_language: str = "typescript"


@dataclass
class ServeConfig:
    """Preview server settings."""

    host: str = "127.0.0.1"
    port: int = 3000
    debounce_ms: int = 100


@dataclass
class LitDocConfig:
    """Represents the settings defined in .litdoc.yml."""

    root: Path
    output: OutputConfig = field(default_factory=OutputConfig)
    externals: bool = False
    exclude_paths: List[str] = field(default_factory=list)
    highlight: HighlightConfig = field(default_factory=HighlightConfig)
    serve: ServeConfig = field(default_factory=ServeConfig)
    log_file: Optional[Path] = None


def load_config(config_path: Path) -> LitDocConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return LitDocConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_NAME} must contain a mapping at the root")

    output_data = _as_dict(data.get("output"))
    output = OutputConfig()
    if output_data:
        output.dir = _as_str(output_data.get("dir"))
        output.css_file = _as_str(output_data.get("css_file"))
        include_script = _as_bool(output_data.get("include_highlight_script"))
        if include_script is not None:
            output.include_highlight_script = include_script
        output.title = _as_str(output_data.get("title"))
        templates_dir = _as_str(output_data.get("templates_dir"))
        output.templates_dir = root / templates_dir if templates_dir else None

    highlight_data = _as_dict(data.get("highlight"))
    highlight = HighlightConfig()
    if highlight_data:
        highlight.style = _as_str(highlight_data.get("style")) or highlight.style
        highlight.default_language = (
            _as_str(highlight_data.get("default_language")) or highlight.default_language
        )

    serve_data = _as_dict(data.get("serve"))
    serve = ServeConfig()
    if serve_data:
        serve.host = _as_str(serve_data.get("host")) or serve.host
        port = _as_int(serve_data.get("port"))
        if port is not None:
            serve.port = port
        debounce = _as_int(serve_data.get("debounce_ms"))
        if debounce is not None:
            serve.debounce_ms = debounce

    log_file = _as_str(data.get("log_file"))

    return LitDocConfig(
        root=root,
        output=output,
        externals=_as_bool(data.get("externals")) or False,
        exclude_paths=_as_str_list(data.get("exclude_paths")),
        highlight=highlight,
        serve=serve,
        log_file=root / log_file if log_file else None,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_NAME",
    "ConfigError",
    "HighlightConfig",
    "LitDocConfig",
    "OutputConfig",
    "ServeConfig",
    "load_config",
]
