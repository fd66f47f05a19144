"""Tests for litdoc.links."""

from __future__ import annotations

from litdoc.links import LinkResolver, strip_parent_segments, to_output_name


def test_to_output_name_handles_declaration_files() -> None:
    assert to_output_name("src/index.ts") == "src/index.html"
    assert to_output_name("src/view.tsx") == "src/view.html"
    assert to_output_name("types/lib.d.ts") == "types/lib.d.html"
    assert to_output_name("README.md") == "README.md"


def test_to_output_name_covers_javascript_and_module_suffixes() -> None:
    assert to_output_name("vendor/util.js") == "vendor/util.html"
    assert to_output_name("vendor/esm.mjs") == "vendor/esm.html"
    assert to_output_name("vendor/common.cjs") == "vendor/common.html"
    assert to_output_name("ui/view.jsx") == "ui/view.html"
    assert to_output_name("src/mod.mts") == "src/mod.html"
    assert to_output_name("types/mod.d.mts") == "types/mod.d.html"
    assert to_output_name("notes.json") == "notes.json"


def test_links_to_javascript_externals_point_at_html() -> None:
    resolver = LinkResolver("/proj")

    assert resolver.compute_link("/proj/a.ts", "/lib/dep.js", "def-x") == "lib/dep.html#def-x"


def test_strip_parent_segments() -> None:
    assert strip_parent_segments("../../lib/a.ts") == "lib/a.ts"
    assert strip_parent_segments("src/a.ts") == "src/a.ts"


def test_output_path_is_root_relative() -> None:
    resolver = LinkResolver("/proj")

    assert resolver.output_path("/proj/src/a.ts") == "src/a.html"
    assert resolver.output_path("/outside/lib/x.d.ts") == "outside/lib/x.d.html"


def test_links_from_different_depths_reach_the_same_anchor() -> None:
    resolver = LinkResolver("/proj")
    target = "/proj/src/lib/b.ts"

    shallow = resolver.compute_link("/proj/src/a.ts", target, "def-b")
    deep = resolver.compute_link("/proj/src/deep/nested/c.ts", target, "def-b")

    assert shallow == "lib/b.html#def-b"
    assert deep == "../../lib/b.html#def-b"


def test_links_between_files_at_the_root() -> None:
    resolver = LinkResolver("/proj")

    assert resolver("/proj/a.ts", "/proj/b.ts", "x") == "b.html#x"


def test_links_to_files_outside_the_root_stay_in_the_output_tree() -> None:
    resolver = LinkResolver("/proj")

    assert resolver.compute_link("/proj/a.ts", "/elsewhere/lib.ts", "k") == "elsewhere/lib.html#k"
