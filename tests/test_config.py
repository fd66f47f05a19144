"""Tests for litdoc.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from litdoc.config import ConfigError, LitDocConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, LitDocConfig)
    assert config.root == tmp_path.resolve()
    assert config.output.dir is None
    assert config.output.css_file is None
    assert config.output.include_highlight_script is True
    assert config.output.templates_dir is None
    assert config.externals is False
    assert config.exclude_paths == []
    assert config.highlight.style == "default"
    assert config.highlight.default_language == "typescript"
    assert config.serve.port == 3000
    assert config.serve.debounce_ms == 100


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".litdoc.yml"
    config_file.write_text(
        """
output:
  dir: "site"
  css_file: "theme.css"
  include_highlight_script: false
  title: "Handbook"
  templates_dir: "templates"
externals: true
exclude_paths:
  - "generated"
  - "legacy/*.ts"
highlight:
  style: "monokai"
  default_language: "javascript"
serve:
  host: "0.0.0.0"
  port: 8080
  debounce_ms: "250"
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.output.dir == "site"
    assert config.output.css_file == "theme.css"
    assert config.output.include_highlight_script is False
    assert config.output.title == "Handbook"
    assert config.output.templates_dir == tmp_path.resolve() / "templates"
    assert config.externals is True
    assert config.exclude_paths == ["generated", "legacy/*.ts"]
    assert config.highlight.style == "monokai"
    assert config.highlight.default_language == "javascript"
    assert config.serve.host == "0.0.0.0"
    assert config.serve.port == 8080
    assert config.serve.debounce_ms == 250


def test_load_config_accepts_explicit_file_path(tmp_path: Path) -> None:
    config_file = tmp_path / "custom.yml"
    config_file.write_text("exclude_paths: vendor\n", encoding="utf-8")

    config = load_config(config_file)

    assert config.root == tmp_path.resolve()
    assert config.exclude_paths == ["vendor"]


def test_load_config_ignores_malformed_values(tmp_path: Path) -> None:
    (tmp_path / ".litdoc.yml").write_text(
        "output: nope\nserve:\n  port: true\nexternals: maybe\n", encoding="utf-8"
    )

    config = load_config(tmp_path)

    assert config.output.dir is None
    assert config.serve.port == 3000
    assert config.externals is False


def test_load_config_handles_empty_file(tmp_path: Path) -> None:
    (tmp_path / ".litdoc.yml").write_text("\n", encoding="utf-8")

    assert load_config(tmp_path).exclude_paths == []


def test_load_config_rejects_non_mapping_root(tmp_path: Path) -> None:
    (tmp_path / ".litdoc.yml").write_text("- one\n- two\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)


def test_load_config_wraps_yaml_errors(tmp_path: Path) -> None:
    (tmp_path / ".litdoc.yml").write_text("output: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(tmp_path)


def test_log_file_is_relative_to_config_root(tmp_path: Path) -> None:
    (tmp_path / ".litdoc.yml").write_text("log_file: logs/litdoc.log\n", encoding="utf-8")

    assert load_config(tmp_path).log_file == tmp_path.resolve() / "logs" / "litdoc.log"
    assert load_config(tmp_path / "missing").log_file is None
