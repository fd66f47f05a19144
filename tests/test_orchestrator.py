"""Tests for litdoc.orchestrator."""

from __future__ import annotations

from litdoc.orchestrator import HtmlOptions, Orchestrator, _index_href
from litdoc.links import LinkResolver
from litdoc.render.tokens import definition_anchor
from tests._fixtures.analysis import RecordingFactory

LIBRARY = "export function helper() {}\n"
CONSUMER = "/// Uses the helper.\nhelper();\n"


def test_generate_html_renders_prose_and_code(
    orchestrator: Orchestrator, service_factory: RecordingFactory
) -> None:
    source = "/// # Title\n/// Some *prose*.\nfunction greet() {}\n"

    result = orchestrator.generate_html("main.ts", source)

    assert "<h1>Title</h1>" in result.html
    assert "<em>prose</em>" in result.html
    assert '<pre class="code">' in result.html
    assert "<title>main.ts</title>" in result.html
    assert len(result.definitions) == 1

    [session] = service_factory.sessions
    assert session.closed is True
    assert "///" not in session.files["main.ts"]
    assert len(session.files["main.ts"]) == len(source)


def test_generate_html_skips_blank_code_layers(orchestrator: Orchestrator) -> None:
    result = orchestrator.generate_html("main.ts", "/// Only prose.\n\n")

    assert "<p>Only prose.</p>" in result.html
    assert '<pre class="code">' not in result.html


def test_generate_html_gives_each_reference_its_own_hover_template(orchestrator: Orchestrator) -> None:
    source = "function f() {}\nf();\nf();\n"

    html = orchestrator.generate_html("main.ts", source).html

    assert '<template id="qi-t0">' in html
    assert '<template id="qi-t1">' in html
    assert f'<template id="qi-{definition_anchor("main.ts", 9)}">' in html
    assert '<a id="t0" href="#def-main-ts-9"' in html
    assert '<a id="t1" href="#def-main-ts-9"' in html


def test_generate_html_multi_links_across_files(
    orchestrator: Orchestrator, service_factory: RecordingFactory
) -> None:
    files = {"/proj/x.ts": LIBRARY, "/proj/sub/y.ts": CONSUMER}

    result = orchestrator.generate_html_multi(files, HtmlOptions(project_root="/proj"))

    anchor = definition_anchor("/proj/x.ts", 16)
    assert anchor == "def--proj-x-ts-16"
    assert f'<a id="{anchor}" href="#{anchor}"' in result.files["/proj/x.ts"]
    assert f'href="../x.html#{anchor}"' in result.files["/proj/sub/y.ts"]
    assert list(result.definitions) == ["/proj/x.ts:16"]

    assert set(result.files) == {"/proj/x.ts", "/proj/sub/y.ts", "/proj/index.html"}
    assert "Symbol Index" in result.files["/proj/index.html"]
    assert 'href="../index.html"' in result.files["/proj/sub/y.ts"]
    assert 'href="index.html"' in result.files["/proj/x.ts"]

    [session] = service_factory.sessions
    assert session.closed is True
    assert all("///" not in text for text in session.files.values())


def test_generate_html_multi_can_skip_index(orchestrator: Orchestrator) -> None:
    result = orchestrator.generate_html_multi(
        {"/proj/x.ts": LIBRARY}, HtmlOptions(project_root="/proj", skip_index=True)
    )

    assert list(result.files) == ["/proj/x.ts"]


def test_external_references_stay_plain_without_externals() -> None:
    factory = RecordingFactory(external={"ext": ("/lib/ext.ts", 0, "function")})
    orchestrator = Orchestrator(service_factory=factory)

    result = orchestrator.generate_html_multi(
        {"/proj/a.ts": "ext();\n"}, HtmlOptions(project_root="/proj")
    )

    html = result.files["/proj/a.ts"]
    assert result.external_files == set()
    assert 'class="ts-identifier ts-function">ext</span>' in html
    assert "ext.html" not in html


def test_external_references_are_linked_and_collected_with_externals() -> None:
    factory = RecordingFactory(external={"ext": ("/lib/ext.ts", 0, "function")})
    orchestrator = Orchestrator(service_factory=factory)

    result = orchestrator.generate_html_multi(
        {"/proj/a.ts": "ext();\n"}, HtmlOptions(project_root="/proj", include_externals=True)
    )

    assert result.external_files == {"/lib/ext.ts"}
    assert 'href="lib/ext.html#def--lib-ext-ts-0"' in result.files["/proj/a.ts"]


def test_index_href_is_relative_to_the_document() -> None:
    resolver = LinkResolver("/proj")

    assert _index_href(resolver, "/proj/a.ts") == "index.html"
    assert _index_href(resolver, "/proj/deep/er/b.ts") == "../../index.html"


def test_tree_sitter_build_agrees_on_anchors_across_files() -> None:
    files = {
        "/p/x.ts": LIBRARY,
        "/p/sub/y.ts": 'import { helper } from "../x";\nhelper();\n',
    }

    result = Orchestrator().generate_html_multi(files, HtmlOptions(project_root="/p"))

    offset = LIBRARY.index("helper")
    anchor = definition_anchor("/p/x.ts", offset)
    helper_keys = [key for key, location in result.definitions.items() if location.file == "/p/x.ts"]
    assert helper_keys == [f"/p/x.ts:{offset}"]
    assert f'<a id="{anchor}" href="#{anchor}"' in result.files["/p/x.ts"]
    assert f'href="../x.html#{anchor}"' in result.files["/p/sub/y.ts"]
    assert f'href="x.html#{anchor}">helper</a>' in result.files["/p/index.html"]
