"""Tree-sitter powered analysis session for TypeScript sources.

The session parses every file once, records the declarations it finds in a
lexical scope table and answers position queries from that table. It knows
nothing about types beyond annotated names, so anything that needs real type
inference (``value.method()`` on an inferred type, overloads, declaration
merging) simply resolves to nothing and renders unlinked.
"""

from __future__ import annotations

import posixpath
from bisect import bisect_right
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from tree_sitter import Node, Parser
from tree_sitter_language_pack import get_parser

from ..logging import get_logger
from .base import (
    MODIFIER_DECLARATION,
    MODIFIER_READONLY,
    AnalysisError,
    AnalysisService,
    ClassifiedSpan,
    DefinitionInfo,
    NavigationNode,
    TextSpan,
    encode_semantic,
)

_LOGGER = get_logger("analysis.typescript")

_PARSERS: Dict[str, Parser] = {}

_LANGUAGE_BY_SUFFIX = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
}

_NodeKey = Tuple[int, int, str]

_SCOPE_TYPES = frozenset(
    {
        "program",
        "statement_block",
        "function_declaration",
        "generator_function_declaration",
        "function_signature",
        "function_expression",
        "function",
        "generator_function",
        "arrow_function",
        "method_definition",
        "method_signature",
        "abstract_method_signature",
        "class_declaration",
        "abstract_class_declaration",
        "class",
        "interface_declaration",
        "type_alias_declaration",
        "for_statement",
        "for_in_statement",
        "catch_clause",
        "internal_module",
        "module",
        "function_type",
        "call_signature",
        "construct_signature",
    }
)

_IDENTIFIER_TYPES = frozenset(
    {
        "identifier",
        "type_identifier",
        "property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
        "private_property_identifier",
        "statement_identifier",
    }
)

# Subtrees classified as a single token.
_ATOMIC_TYPES = frozenset({"string", "comment", "regex", "number", "predefined_type", "hash_bang_line"})

_KEYWORD_NODES = frozenset({"this", "super", "true", "false", "null", "undefined", "this_type", "predefined_type"})

_OPERATORS = frozenset(
    {
        "=", "+=", "-=", "*=", "/=", "%=", "**=", "&=", "|=", "^=", "<<=", ">>=", ">>>=",
        "&&=", "||=", "??=", "+", "-", "*", "/", "%", "**", "==", "===", "!=", "!==",
        "<", ">", "<=", ">=", "&&", "||", "??", "!", "~", "&", "|", "^", "<<", ">>",
        ">>>", "++", "--", "...",
    }
)

_NAME_CLASSIFICATIONS = {
    "class_declaration": "class name",
    "abstract_class_declaration": "class name",
    "class": "class name",
    "interface_declaration": "interface name",
    "enum_declaration": "enum name",
    "type_alias_declaration": "type alias name",
    "type_parameter": "type parameter name",
    "internal_module": "module name",
    "module": "module name",
}

_SEMANTIC_BY_KIND = {
    "class": "class",
    "interface": "interface",
    "enum": "enum",
    "type alias": "type",
    "type parameter": "type-parameter",
    "parameter": "parameter",
    "const": "variable",
    "let": "variable",
    "var": "variable",
    "function": "function",
    "method": "method",
    "property": "property",
    "enum member": "enum-member",
    "module": "namespace",
}

# Kinds that show up in outlines; parameters and type parameters never do.
_OUTLINE_KINDS = frozenset(
    {
        "function", "method", "class", "interface", "property", "type alias", "enum",
        "constructor", "const", "let", "var", "alias", "enum member", "module",
    }
)

_MEMBER_CONTAINERS = frozenset({"class", "interface", "enum", "module"})


def _parser_for(language: str) -> Parser:
    parser = _PARSERS.get(language)
    if parser is None:
        parser = get_parser(language)  # type: ignore[arg-type]
        _PARSERS[language] = parser
    return parser


def language_for_file(path: str) -> Optional[str]:
    """Return the tree-sitter grammar name for ``path`` or None."""
    lower = path.lower()
    for suffix, language in _LANGUAGE_BY_SUFFIX.items():
        if lower.endswith(suffix):
            return language
    return None


def _key(node: Node) -> _NodeKey:
    return (node.start_byte, node.end_byte, node.type)


def _same(a: Optional[Node], b: Optional[Node]) -> bool:
    return a is not None and b is not None and _key(a) == _key(b)


class _OffsetMap:
    """Translate between character offsets and UTF-8 byte offsets."""

    def __init__(self, text: str) -> None:
        self.data = text.encode("utf-8", "surrogatepass")
        self._starts: Optional[List[int]] = None
        if len(self.data) != len(text):
            starts: List[int] = []
            position = 0
            for char in text:
                starts.append(position)
                position += len(char.encode("utf-8", "surrogatepass"))
            starts.append(position)
            self._starts = starts

    def to_char(self, byte: int) -> int:
        if self._starts is None:
            return byte
        return bisect_right(self._starts, byte) - 1

    def to_byte(self, char: int) -> int:
        if self._starts is None:
            return char
        return self._starts[max(0, min(char, len(self._starts) - 1))]


@dataclass
class _Declaration:
    name: str
    kind: str
    file: str
    name_start: int
    name_end: int
    node_start: int
    node_end: int
    header: str
    owner: Optional["_Declaration"] = None
    children: List["_Declaration"] = field(default_factory=list)
    members: Dict[str, "_Declaration"] = field(default_factory=dict)
    exported: bool = False
    default_export: bool = False
    module_source: Optional[str] = None
    imported_name: Optional[str] = None
    type_name: Optional[str] = None


@dataclass
class _ParsedFile:
    name: str
    text: str
    offsets: _OffsetMap
    root: Node
    declarations: List[_Declaration] = field(default_factory=list)
    by_name_start: Dict[int, _Declaration] = field(default_factory=dict)
    by_node: Dict[_NodeKey, _Declaration] = field(default_factory=dict)
    scopes: Dict[_NodeKey, Dict[str, _Declaration]] = field(default_factory=dict)
    export_names: Dict[str, str] = field(default_factory=dict)
    default_export_name: Optional[str] = None

    def node_text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self.offsets.data[node.start_byte : node.end_byte].decode("utf-8", "replace")

    def char_span(self, node: Node) -> Tuple[int, int]:
        return self.offsets.to_char(node.start_byte), self.offsets.to_char(node.end_byte)

    def top_level(self) -> List[_Declaration]:
        return [decl for decl in self.declarations if decl.owner is None and decl.kind in _OUTLINE_KINDS]


class TreeSitterAnalysisService(AnalysisService):
    """Analysis session over an in-memory set of TypeScript files.

    ``files`` maps file identifiers to the text the session should analyze
    (the illiterated form for literate sources). Files that imports resolve
    to outside that mapping are read with ``reader`` (disk by default).
    """

    def __init__(
        self,
        files: Mapping[str, str],
        *,
        reader: Callable[[str], Optional[str]] | None = None,
    ) -> None:
        super().__init__()
        for name in files:
            if language_for_file(name) is None:
                raise AnalysisError(f"Unsupported source file for analysis: {name}")
        self._texts: Dict[str, str] = dict(files)
        self._reader = reader or _read_from_disk
        self._parsed: Dict[str, _ParsedFile] = {}
        self._missing: set[str] = set()

    # ------------------------------------------------------------------
    # Query interface

    def source_text(self, file: str) -> Optional[str]:
        return self._texts.get(file)

    def syntactic_classifications(self, file: str, span: TextSpan) -> List[ClassifiedSpan]:
        parsed = self._parse(file)
        if parsed is None:
            return []
        result: List[ClassifiedSpan] = []
        for node in self._leaves(parsed, span):
            start, end = parsed.char_span(node)
            result.append(ClassifiedSpan(TextSpan(start, end - start), self._classify(node)))
        return result

    def encoded_semantic_classifications(self, file: str, span: TextSpan) -> List[int]:
        parsed = self._parse(file)
        if parsed is None:
            return []
        encoded: List[int] = []
        for node in self._leaves(parsed, span):
            if node.type not in _IDENTIFIER_TYPES:
                continue
            resolved = self._resolve_node(parsed, node)
            if resolved is None:
                continue
            target_file, decl = resolved
            category = _SEMANTIC_BY_KIND.get(decl.kind)
            if category is None:
                continue
            start, end = parsed.char_span(node)
            modifiers = 0
            if target_file.name == file and decl.name_start == start:
                modifiers |= MODIFIER_DECLARATION
            if decl.kind == "const":
                modifiers |= MODIFIER_READONLY
            encoded.extend((start, end - start, encode_semantic(category, modifiers)))
        return encoded

    def definition_at(self, file: str, offset: int) -> List[DefinitionInfo]:
        parsed = self._parse(file)
        if parsed is None:
            return []
        node = self._token_at(parsed, offset)
        if node is None:
            return []
        if node.type == "string":
            target = self._module_target(parsed, node)
            if target is None:
                return []
            specifier = _unquote(parsed.node_text(node))
            return [DefinitionInfo(file=target, span=TextSpan(0, 0), name=specifier, kind="module")]
        if node.type not in _IDENTIFIER_TYPES:
            return []
        resolved = self._resolve_node(parsed, node)
        if resolved is None:
            return []
        target_file, decl = resolved
        return [
            DefinitionInfo(
                file=target_file.name,
                span=TextSpan(decl.name_start, decl.name_end - decl.name_start),
                name=decl.name,
                kind=decl.kind,
            )
        ]

    def quick_info_at(self, file: str, offset: int) -> Optional[str]:
        parsed = self._parse(file)
        if parsed is None:
            return None
        node = self._token_at(parsed, offset)
        if node is None:
            return None
        if node.type == "string":
            target = self._module_target(parsed, node)
            return f'module "{target}"' if target else None
        if node.type not in _IDENTIFIER_TYPES:
            return None
        raw = self._resolve_node(parsed, node, follow_aliases=False)
        if raw is None:
            return None
        raw_file, decl = raw
        if decl.kind != "alias":
            return decl.header
        _, target = self._follow_alias(raw_file, decl)
        if target is decl:
            return decl.header
        return f"(alias) {target.header}\nimport {decl.name}"

    def navigation_tree(self, file: str) -> NavigationNode:
        parsed = self._parse(file)
        if parsed is None:
            return NavigationNode(text=f'"{file}"', kind="module", spans=[TextSpan(0, 0)])
        return NavigationNode(
            text=f'"{file}"',
            kind="module",
            spans=[TextSpan(0, len(parsed.text))],
            children=[_outline(decl) for decl in parsed.top_level()],
        )

    def close(self) -> None:
        super().close()
        self._parsed.clear()

    # ------------------------------------------------------------------
    # Parsing and declaration collection

    def _parse(self, file: str) -> Optional[_ParsedFile]:
        parsed = self._parsed.get(file)
        if parsed is not None:
            return parsed
        text = self._texts.get(file)
        if text is None:
            return None
        language = language_for_file(file)
        if language is None:
            return None
        offsets = _OffsetMap(text)
        tree = _parser_for(language).parse(offsets.data)
        parsed = _ParsedFile(name=file, text=text, offsets=offsets, root=tree.root_node)
        self._parsed[file] = parsed
        _DeclarationCollector(parsed).collect()
        _LOGGER.debug("Parsed %s with %d declarations", file, len(parsed.declarations))
        return parsed

    def _load(self, file: str) -> bool:
        if file in self._texts:
            return True
        if file in self._missing or language_for_file(file) is None:
            return False
        text = self._reader(file)
        if text is None:
            self._missing.add(file)
            return False
        self._texts[file] = text
        return True

    # ------------------------------------------------------------------
    # Token helpers

    def _leaves(self, parsed: _ParsedFile, span: TextSpan) -> Iterator[Node]:
        start = parsed.offsets.to_byte(span.start)
        end = parsed.offsets.to_byte(span.end)
        stack = [parsed.root]
        while stack:
            node = stack.pop()
            if node.end_byte <= start or node.start_byte >= end:
                continue
            if node.child_count == 0 or (node.type in _ATOMIC_TYPES and node.is_named):
                if node.end_byte > node.start_byte and node.start_byte >= start:
                    yield node
                continue
            stack.extend(reversed(node.children))

    def _token_at(self, parsed: _ParsedFile, offset: int) -> Optional[Node]:
        start = parsed.offsets.to_byte(offset)
        if start >= len(parsed.offsets.data):
            return None
        node = parsed.root.descendant_for_byte_range(start, start + 1)
        while node is not None and node.parent is not None:
            parent = node.parent
            if parent.type in _ATOMIC_TYPES and parent.is_named:
                node = parent
                continue
            break
        return node

    def _classify(self, node: Node) -> str:
        kind = node.type
        if not node.is_named:
            if kind == "`":
                return "string"
            if kind.isidentifier():
                return "keyword"
            if kind in _OPERATORS:
                return "operator"
            return "punctuation"
        if kind in {"comment", "hash_bang_line", "html_comment"}:
            return "comment"
        if kind in {"string", "string_fragment", "escape_sequence"}:
            return "string"
        if kind == "number":
            return "numeric literal"
        if kind == "regex":
            return "regular expression"
        if kind in _KEYWORD_NODES:
            return "keyword"
        if kind in _IDENTIFIER_TYPES:
            return _name_classification(node)
        return "text"

    # ------------------------------------------------------------------
    # Resolution

    def _resolve_node(
        self, parsed: _ParsedFile, node: Node, *, follow_aliases: bool = True
    ) -> Optional[Tuple[_ParsedFile, _Declaration]]:
        decl = self._declaration_for(parsed, node)
        if decl is None:
            return None
        if follow_aliases and decl.kind == "alias":
            return self._follow_alias(parsed, decl)
        return parsed, decl

    def _declaration_for(self, parsed: _ParsedFile, node: Node) -> Optional[_Declaration]:
        start, end = parsed.char_span(node)
        own = parsed.by_name_start.get(start)
        if own is not None and own.name_end == end:
            return own

        parent = node.parent
        if parent is None:
            return None
        if parent.type == "import_specifier":
            local = parent.child_by_field_name("alias") or parent.child_by_field_name("name")
            if local is not None:
                return parsed.by_name_start.get(parsed.offsets.to_char(local.start_byte))
            return None
        if parent.type == "member_expression" and _same(parent.child_by_field_name("property"), node):
            return self._resolve_member(parsed, parent, parsed.node_text(node))
        if parent.type == "nested_type_identifier" and _same(parent.child_by_field_name("name"), node):
            return self._resolve_member(parsed, parent, parsed.node_text(node), object_field="module")
        if node.type in {"property_identifier", "private_property_identifier", "statement_identifier"}:
            return None
        return _lookup_scope(parsed, node, parsed.node_text(node))

    def _resolve_member(
        self, parsed: _ParsedFile, expression: Node, name: str, *, object_field: str = "object"
    ) -> Optional[_Declaration]:
        target = expression.child_by_field_name(object_field)
        if target is None:
            return None
        container: Optional[_Declaration] = None
        if target.type == "this":
            container = _enclosing_class(parsed, expression)
        elif target.type in _IDENTIFIER_TYPES:
            resolved = self._resolve_node(parsed, target)
            if resolved is not None:
                owner_file, decl = resolved
                if decl.kind in _MEMBER_CONTAINERS:
                    container = decl
                elif decl.type_name:
                    typed = _lookup_top_level(owner_file, decl.type_name)
                    if typed is not None and typed.kind == "alias":
                        typed = self._follow_alias(owner_file, typed)[1]
                    container = typed
        if container is None:
            return None
        return container.members.get(name)

    def _follow_alias(
        self, parsed: _ParsedFile, decl: _Declaration
    ) -> Tuple[_ParsedFile, _Declaration]:
        current_file, current = parsed, decl
        for _ in range(16):
            if current.kind != "alias" or not current.module_source or current.imported_name == "*":
                break
            target_name = self._resolve_module(current_file.name, current.module_source)
            target_file = self._parse(target_name) if target_name else None
            if target_file is None:
                break
            exported = _lookup_export(target_file, current.imported_name or current.name)
            if exported is None:
                break
            current_file, current = target_file, exported
        return current_file, current

    def _module_target(self, parsed: _ParsedFile, node: Node) -> Optional[str]:
        parent = node.parent
        if parent is None:
            return None
        is_specifier = parent.type in {"import_statement", "export_statement"} and _same(
            parent.child_by_field_name("source"), node
        )
        if not is_specifier and parent.type == "arguments":
            call = parent.parent
            callee = call.child_by_field_name("function") if call is not None else None
            is_specifier = callee is not None and parsed.node_text(callee) in {"import", "require"}
        if not is_specifier and parent.type == "external_module_reference":
            is_specifier = True
        if not is_specifier:
            return None
        return self._resolve_module(parsed.name, _unquote(parsed.node_text(node)))

    def _resolve_module(self, from_file: str, specifier: str) -> Optional[str]:
        if not specifier.startswith((".", "/")):
            _LOGGER.debug("Skipping bare module specifier %r in %s", specifier, from_file)
            return None
        base = posixpath.normpath(posixpath.join(posixpath.dirname(from_file), specifier))
        for candidate in _module_candidates(base):
            if self._load(candidate):
                return candidate
        _LOGGER.debug("Could not resolve module %r from %s", specifier, from_file)
        return None


class _DeclarationCollector:
    """Walk one syntax tree and record every declaration with its scope."""

    def __init__(self, parsed: _ParsedFile) -> None:
        self.parsed = parsed

    def collect(self) -> None:
        stack: List[Tuple[Node, Optional[_Declaration]]] = [(self.parsed.root, None)]
        while stack:
            node, owner = stack.pop()
            inner = self._visit(node, owner)
            stack.extend((child, inner) for child in reversed(node.children))

    def _visit(self, node: Node, owner: Optional[_Declaration]) -> Optional[_Declaration]:
        kind = node.type
        text = self.parsed.node_text
        if kind in {"function_declaration", "generator_function_declaration", "function_signature"}:
            decl = self._declare(
                node.child_by_field_name("name"),
                node,
                "function",
                owner,
                header=f"function {text(node.child_by_field_name('name'))}{_signature(self.parsed, node)}",
            )
            return decl or owner
        if kind in {"class_declaration", "abstract_class_declaration", "class"}:
            name = node.child_by_field_name("name")
            if name is None:
                return owner
            decl = self._declare(
                name, node, "class", owner,
                header=f"class {text(name)}{text(node.child_by_field_name('type_parameters'))}",
            )
            return decl or owner
        if kind == "interface_declaration":
            name = node.child_by_field_name("name")
            decl = self._declare(
                name, node, "interface", owner,
                header=f"interface {text(name)}{text(node.child_by_field_name('type_parameters'))}",
            )
            return decl or owner
        if kind == "type_alias_declaration":
            name = node.child_by_field_name("name")
            value = _squash(text(node.child_by_field_name("value")))
            self._declare(
                name, node, "type alias", owner,
                header=f"type {text(name)}{text(node.child_by_field_name('type_parameters'))} = {value}",
            )
            return owner
        if kind == "enum_declaration":
            name = node.child_by_field_name("name")
            decl = self._declare(name, node, "enum", owner, header=f"enum {text(name)}")
            if decl is not None:
                self._declare_enum_members(node.child_by_field_name("body"), decl)
            return owner
        if kind in {"internal_module", "module"}:
            name = node.child_by_field_name("name")
            if name is None or name.type != "identifier":
                return owner
            decl = self._declare(name, node, "module", owner, header=f"namespace {text(name)}")
            return decl or owner
        if kind == "variable_declarator":
            return self._declare_variable(node, owner)
        if kind == "method_definition":
            return self._declare_method(node, owner)
        if kind in {"method_signature", "abstract_method_signature"}:
            name = node.child_by_field_name("name")
            self._declare_member(
                name, node, "method", owner,
                header=f"(method) {_owner_prefix(owner)}{text(name)}{_signature(self.parsed, node)}",
            )
            return owner
        if kind in {"public_field_definition", "field_definition", "property_signature"}:
            name = node.child_by_field_name("name") or node.child_by_field_name("property")
            annotation = text(node.child_by_field_name("type"))
            decl = self._declare_member(
                name, node, "property", owner,
                header=f"(property) {_owner_prefix(owner)}{text(name)}{annotation}",
            )
            if decl is not None:
                decl.type_name = _annotation_name(self.parsed, node.child_by_field_name("type"))
            return owner
        if kind in {"required_parameter", "optional_parameter"}:
            self._declare_parameter(node)
            return owner
        if kind == "arrow_function":
            single = node.child_by_field_name("parameter")
            if single is not None:
                self._declare(single, node, "parameter", None, header=f"(parameter) {text(single)}", scope=node)
            return owner
        if kind == "type_parameter":
            self._declare_type_parameter(node)
            return owner
        if kind == "import_statement":
            self._declare_imports(node)
            return owner
        if kind == "export_statement":
            self._record_exports(node)
            return owner
        if kind == "catch_clause":
            parameter = node.child_by_field_name("parameter")
            for ident in _pattern_identifiers(parameter):
                self._declare(ident, node, "let", None, header=f"let {text(ident)}", scope=node)
            return owner
        if kind == "for_in_statement":
            binding = node.child_by_field_name("kind")
            left = node.child_by_field_name("left")
            if binding is not None:
                for ident in _pattern_identifiers(left):
                    self._declare(
                        ident, node, binding.type, None,
                        header=f"{binding.type} {text(ident)}", scope=node,
                    )
            return owner
        return owner

    # ------------------------------------------------------------------

    def _declare(
        self,
        name_node: Optional[Node],
        node: Node,
        kind: str,
        owner: Optional[_Declaration],
        *,
        header: str,
        scope: Optional[Node] = None,
        bind: bool = True,
    ) -> Optional[_Declaration]:
        if name_node is None:
            return None
        parsed = self.parsed
        name_start, name_end = parsed.char_span(name_node)
        if name_start in parsed.by_name_start:
            return parsed.by_name_start[name_start]
        node_start, node_end = parsed.char_span(node)
        exported, default_export = _export_flags(node)
        decl = _Declaration(
            name=parsed.node_text(name_node),
            kind=kind,
            file=parsed.name,
            name_start=name_start,
            name_end=name_end,
            node_start=node_start,
            node_end=node_end,
            header=_squash(header),
            owner=owner,
            exported=exported,
            default_export=default_export,
        )
        parsed.declarations.append(decl)
        parsed.by_name_start[name_start] = decl
        parsed.by_node[_key(node)] = decl
        if owner is not None and kind in _OUTLINE_KINDS:
            owner.children.append(decl)
        if bind:
            scope_node = scope if scope is not None else _enclosing_scope(node)
            bindings = parsed.scopes.setdefault(_key(scope_node), {})
            bindings.setdefault(decl.name, decl)
        return decl

    def _declare_member(
        self,
        name_node: Optional[Node],
        node: Node,
        kind: str,
        owner: Optional[_Declaration],
        *,
        header: str,
    ) -> Optional[_Declaration]:
        decl = self._declare(name_node, node, kind, owner, header=header, bind=False)
        if decl is not None and owner is not None and owner.kind in _MEMBER_CONTAINERS:
            owner.members.setdefault(decl.name, decl)
        return decl

    def _declare_method(self, node: Node, owner: Optional[_Declaration]) -> Optional[_Declaration]:
        name = node.child_by_field_name("name")
        if name is None:
            return owner
        text = self.parsed.node_text(name)
        signature = _signature(self.parsed, node)
        if text == "constructor":
            kind = "constructor"
            header = f"constructor {owner.name if owner else ''}{signature}"
        else:
            kind = "method"
            header = f"(method) {_owner_prefix(owner)}{text}{signature}"
        decl = self._declare_member(name, node, kind, owner, header=header)
        return decl or owner

    def _declare_variable(self, node: Node, owner: Optional[_Declaration]) -> Optional[_Declaration]:
        binding = _binding_kind(node)
        annotation_node = node.child_by_field_name("type")
        annotation = self.parsed.node_text(annotation_node)
        value = node.child_by_field_name("value")
        name = node.child_by_field_name("name")
        if name is None:
            return owner
        if name.type != "identifier":
            for ident in _pattern_identifiers(name):
                self._declare(ident, node, binding, owner, header=f"{binding} {self.parsed.node_text(ident)}")
            return owner
        decl = self._declare(
            name, node, binding, owner,
            header=f"{binding} {self.parsed.node_text(name)}{annotation}",
        )
        if decl is None:
            return owner
        decl.type_name = _annotation_name(self.parsed, annotation_node)
        if value is not None and value.type in {"arrow_function", "function_expression", "function"}:
            return decl
        return owner

    def _declare_parameter(self, node: Node) -> None:
        function = node.parent.parent if node.parent is not None else None
        if function is None:
            return
        annotation_node = node.child_by_field_name("type")
        annotation = self.parsed.node_text(annotation_node)
        optional = "?" if node.type == "optional_parameter" else ""
        for ident in _pattern_identifiers(node.child_by_field_name("pattern")):
            decl = self._declare(
                ident, node, "parameter", None,
                header=f"(parameter) {self.parsed.node_text(ident)}{optional}{annotation}",
                scope=function,
            )
            if decl is not None:
                decl.type_name = _annotation_name(self.parsed, annotation_node)

    def _declare_type_parameter(self, node: Node) -> None:
        holder = node.parent.parent if node.parent is not None else None
        if holder is None:
            return
        name = node.child_by_field_name("name")
        constraint = self.parsed.node_text(node.child_by_field_name("constraint"))
        header = f"(type parameter) {self.parsed.node_text(name)}"
        if constraint:
            header += f" {constraint}"
        self._declare(name, node, "type parameter", None, header=header, scope=holder)

    def _declare_enum_members(self, body: Optional[Node], enum: _Declaration) -> None:
        if body is None:
            return
        for child in body.named_children:
            if child.type == "enum_assignment":
                name = child.child_by_field_name("name")
                value = self.parsed.node_text(child.child_by_field_name("value"))
                header = f"(enum member) {enum.name}.{self.parsed.node_text(name)}"
                if value:
                    header += f" = {value}"
                self._declare_member(name, child, "enum member", enum, header=header)
            elif child.type in {"property_identifier", "string", "number"}:
                self._declare_member(
                    child, child, "enum member", enum,
                    header=f"(enum member) {enum.name}.{self.parsed.node_text(child)}",
                )

    def _declare_imports(self, node: Node) -> None:
        source = node.child_by_field_name("source")
        if source is None:
            return
        module = _unquote(self.parsed.node_text(source))
        program = self.parsed.root
        for clause in node.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    self._declare_alias(part, part, module, "default", program)
                elif part.type == "namespace_import":
                    for ident in part.named_children:
                        if ident.type == "identifier":
                            self._declare_alias(ident, part, module, "*", program)
                elif part.type == "named_imports":
                    for specifier in part.named_children:
                        if specifier.type != "import_specifier":
                            continue
                        imported = specifier.child_by_field_name("name")
                        local = specifier.child_by_field_name("alias") or imported
                        self._declare_alias(
                            local, specifier, module, _unquote(self.parsed.node_text(imported)), program
                        )

    def _declare_alias(
        self, name: Optional[Node], node: Node, module: str, imported: str, program: Node
    ) -> None:
        decl = self._declare(
            name, node, "alias", None,
            header=f"import {self.parsed.node_text(name)}", scope=program,
        )
        if decl is not None:
            decl.module_source = module
            decl.imported_name = imported

    def _record_exports(self, node: Node) -> None:
        if node.child_by_field_name("source") is not None:
            return
        value = node.child_by_field_name("value")
        if value is not None and value.type == "identifier":
            self.parsed.default_export_name = self.parsed.node_text(value)
        for clause in node.named_children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.named_children:
                if specifier.type != "export_specifier":
                    continue
                local = self.parsed.node_text(specifier.child_by_field_name("name"))
                alias = specifier.child_by_field_name("alias")
                exported = self.parsed.node_text(alias) if alias is not None else local
                self.parsed.export_names[exported] = local


# ----------------------------------------------------------------------
# Module level helpers


def _read_from_disk(file: str) -> Optional[str]:
    path = Path(file)
    if not path.is_file():
        return None
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def _module_candidates(base: str) -> Iterable[str]:
    stem, suffix = posixpath.splitext(base)
    if suffix in {".js", ".jsx"}:
        return (f"{stem}.ts", f"{stem}.tsx", f"{stem}.d.ts", base)
    if suffix == ".mjs":
        return (f"{stem}.mts", f"{stem}.d.mts", base)
    if suffix == ".cjs":
        return (f"{stem}.cts", f"{stem}.d.cts", base)
    if suffix in {".ts", ".tsx", ".mts", ".cts"}:
        return (base,)
    return (
        f"{base}.ts",
        f"{base}.tsx",
        f"{base}.d.ts",
        f"{base}/index.ts",
        f"{base}/index.tsx",
        f"{base}/index.d.ts",
    )


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in {'"', "'", "`"}:
        return text[1:-1]
    return text


def _squash(text: str) -> str:
    return " ".join(text.split())


def _signature(parsed: _ParsedFile, node: Node) -> str:
    return "".join(
        parsed.node_text(node.child_by_field_name(name))
        for name in ("type_parameters", "parameters", "return_type")
    )


def _owner_prefix(owner: Optional[_Declaration]) -> str:
    return f"{owner.name}." if owner is not None else ""


def _annotation_name(parsed: _ParsedFile, annotation: Optional[Node]) -> Optional[str]:
    if annotation is None:
        return None
    for child in annotation.named_children:
        if child.type == "type_identifier":
            return parsed.node_text(child)
        if child.type == "generic_type":
            name = child.child_by_field_name("name")
            if name is not None and name.type == "type_identifier":
                return parsed.node_text(name)
    return None


def _binding_kind(declarator: Node) -> str:
    declaration = declarator.parent
    if declaration is None:
        return "var"
    if declaration.type == "variable_declaration":
        return "var"
    binding = declaration.child_by_field_name("kind")
    if binding is not None:
        return binding.type
    first = declaration.children[0] if declaration.children else None
    return first.type if first is not None and first.type in {"const", "let"} else "let"


def _export_flags(node: Node) -> Tuple[bool, bool]:
    current: Optional[Node] = node
    for _ in range(3):
        if current is None:
            break
        if current.type == "export_statement":
            default = any(child.type == "default" for child in current.children)
            return True, default
        if current.type not in {"variable_declarator", "lexical_declaration", "variable_declaration"} and current is not node:
            break
        current = current.parent
    return False, False


def _pattern_identifiers(pattern: Optional[Node]) -> List[Node]:
    if pattern is None:
        return []
    if pattern.type in {"identifier", "shorthand_property_identifier_pattern"}:
        return [pattern]
    if pattern.type == "pair_pattern":
        return _pattern_identifiers(pattern.child_by_field_name("value"))
    if pattern.type in {"assignment_pattern", "object_assignment_pattern"}:
        return _pattern_identifiers(pattern.child_by_field_name("left"))
    if pattern.type in {"object_pattern", "array_pattern", "rest_pattern"}:
        found: List[Node] = []
        for child in pattern.named_children:
            found.extend(_pattern_identifiers(child))
        return found
    return []


def _name_classification(node: Node) -> str:
    parent = node.parent
    if parent is None:
        return "identifier"
    label = _NAME_CLASSIFICATIONS.get(parent.type)
    if label is not None and _same(parent.child_by_field_name("name"), node):
        return label
    if parent.type in {"required_parameter", "optional_parameter"} and _same(
        parent.child_by_field_name("pattern"), node
    ):
        return "parameter name"
    if parent.type == "arrow_function" and _same(parent.child_by_field_name("parameter"), node):
        return "parameter name"
    return "identifier"


def _enclosing_scope(node: Node) -> Node:
    current = node.parent
    last = node
    while current is not None:
        if current.type in _SCOPE_TYPES:
            return current
        last = current
        current = current.parent
    return last


def _lookup_scope(parsed: _ParsedFile, node: Node, name: str) -> Optional[_Declaration]:
    current = node.parent
    while current is not None:
        bindings = parsed.scopes.get(_key(current))
        if bindings is not None and name in bindings:
            return bindings[name]
        current = current.parent
    return None


def _lookup_top_level(parsed: _ParsedFile, name: str) -> Optional[_Declaration]:
    return parsed.scopes.get(_key(parsed.root), {}).get(name)


def _lookup_export(parsed: _ParsedFile, name: str) -> Optional[_Declaration]:
    if name == "default":
        for decl in parsed.declarations:
            if decl.default_export:
                return decl
        if parsed.default_export_name:
            return _lookup_top_level(parsed, parsed.default_export_name)
        return None
    local = parsed.export_names.get(name, name)
    return _lookup_top_level(parsed, local)


def _enclosing_class(parsed: _ParsedFile, node: Node) -> Optional[_Declaration]:
    current = node.parent
    while current is not None:
        if current.type in {"class_declaration", "abstract_class_declaration", "class"}:
            return parsed.by_node.get(_key(current))
        current = current.parent
    return None


def _outline(decl: _Declaration) -> NavigationNode:
    return NavigationNode(
        text=decl.name,
        kind=decl.kind,
        spans=[TextSpan(decl.node_start, decl.node_end - decl.node_start)],
        name_span=TextSpan(decl.name_start, decl.name_end - decl.name_start),
        children=[_outline(child) for child in decl.children if child.kind in _OUTLINE_KINDS],
    )


__all__ = ["TreeSitterAnalysisService", "language_for_file"]
