"""
tslint_conventions/ts_parser.py
═══════════════════════════════

TypeScript front end: parses source text with tree-sitter and lowers the
concrete tree into the ``syntax`` model the rules walk.

Lowering
────────
  • Named tree-sitter nodes become ``SyntaxNode``s, anonymous tokens are
    folded into their parent (``modifiers``) and comments become trivia.
  • ``full_start`` is the end of the previous non-comment token, i.e. the
    TypeScript compiler's notion of "full start".
  • Offsets are converted from UTF-8 bytes to characters.
  • A few nodes are synthesized so the tree has the TypeScript compiler
    shape the rules expect:

        catch (e: T) { }   → CatchClause ─ VariableDeclaration(e: T)
        for (const x of y) → for_in_statement ─ VariableDeclaration(x)
        x => x + 1         → ArrowFunction ─ Parameter(x)

Usage
─────
    from tslint_conventions.ts_parser import parse_source

    root = parse_source("import A = B.C;", "demo.ts")
    for node in iter_preorder(root):
        ...
"""

from __future__ import annotations

import bisect
import logging
from pathlib import Path
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple, Union

import tree_sitter_typescript
from tree_sitter import Language, Node as TSNode, Parser

from tslint_conventions.errors import ErrorCodes, SourceParseError
from tslint_conventions.syntax import SourceUnit, SyntaxKind, SyntaxNode

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — LANGUAGE REGISTRY
# ═══════════════════════════════════════════════════════════════════════════

_LANGUAGE_LOADERS: Dict[str, Callable[[], object]] = {
    "typescript": tree_sitter_typescript.language_typescript,
    "tsx": tree_sitter_typescript.language_tsx,
}

_EXTENSION_MAP: Dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}


class ParserRegistry:
    """
    Lazily creates and caches one tree-sitter parser per language.

    Supports:
    - typescript (.ts, .mts, .cts)
    - tsx (.tsx)
    """

    def __init__(self) -> None:
        self._parsers: Dict[str, Parser] = {}

    def get_parser(self, language: str) -> Optional[Parser]:
        language = language.lower()
        if language in self._parsers:
            return self._parsers[language]

        loader = _LANGUAGE_LOADERS.get(language)
        if loader is None:
            return None

        parser = Parser(Language(loader()))
        self._parsers[language] = parser
        logger.debug("Loaded %s parser", language)
        return parser

    @staticmethod
    def detect_language(file_path: Union[str, Path]) -> Optional[str]:
        """Language from the file extension; ``foo.ts.lint`` counts as ``.ts``."""
        path = Path(file_path)
        if path.suffix == ".lint":
            path = path.with_suffix("")
        return _EXTENSION_MAP.get(path.suffix.lower())

    def supports_language(self, language: str) -> bool:
        return language.lower() in _LANGUAGE_LOADERS

    @property
    def supported_languages(self) -> List[str]:
        return sorted(_LANGUAGE_LOADERS)


_registry: Optional[ParserRegistry] = None


def get_registry() -> ParserRegistry:
    """Shared registry; parsers are reusable across files."""
    global _registry
    if _registry is None:
        _registry = ParserRegistry()
    return _registry


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — NODE TYPE TABLES
# ═══════════════════════════════════════════════════════════════════════════

_KIND_BY_TYPE: Dict[str, SyntaxKind] = {
    "program": SyntaxKind.SOURCE_FILE,
    "class_declaration": SyntaxKind.CLASS_DECLARATION,
    "abstract_class_declaration": SyntaxKind.CLASS_DECLARATION,
    "class": SyntaxKind.CLASS_EXPRESSION,
    "function_declaration": SyntaxKind.FUNCTION_DECLARATION,
    "generator_function_declaration": SyntaxKind.FUNCTION_DECLARATION,
    "function_signature": SyntaxKind.FUNCTION_DECLARATION,
    "function_expression": SyntaxKind.FUNCTION_EXPRESSION,
    "function": SyntaxKind.FUNCTION_EXPRESSION,
    "generator_function": SyntaxKind.FUNCTION_EXPRESSION,
    "arrow_function": SyntaxKind.ARROW_FUNCTION,
    "with_statement": SyntaxKind.WITH_STATEMENT,
    "try_statement": SyntaxKind.TRY_STATEMENT,
    "catch_clause": SyntaxKind.CATCH_CLAUSE,
    "variable_declarator": SyntaxKind.VARIABLE_DECLARATION,
    "required_parameter": SyntaxKind.PARAMETER,
    "optional_parameter": SyntaxKind.PARAMETER,
    "public_field_definition": SyntaxKind.PROPERTY_DECLARATION,
    "import_alias": SyntaxKind.IMPORT_EQUALS_DECLARATION,
    "call_expression": SyntaxKind.CALL_EXPRESSION,
    "identifier": SyntaxKind.IDENTIFIER,
    "property_identifier": SyntaxKind.IDENTIFIER,
    "private_property_identifier": SyntaxKind.PRIVATE_IDENTIFIER,
    "object_pattern": SyntaxKind.BINDING_PATTERN,
    "array_pattern": SyntaxKind.BINDING_PATTERN,
}

_COMMENT_TYPES: FrozenSet[str] = frozenset({"comment", "html_comment"})

# Anonymous keyword tokens recorded as modifiers.
_MODIFIER_TOKENS: FrozenSet[str] = frozenset({
    "static", "readonly", "abstract", "declare", "override", "async",
    "accessor", "get", "set", "*",
})


def _field(node: TSNode, name: str) -> Optional[TSNode]:
    return node.child_by_field_name(name)


def _first_named(node: Optional[TSNode], type_name: Optional[str] = None) -> Optional[TSNode]:
    if node is None:
        return None
    for child in node.named_children:
        if type_name is None or child.type == type_name:
            return child
    return None


def _ts_text(node: Optional[TSNode]) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def _modifiers_of(node: TSNode) -> FrozenSet[str]:
    found = set()
    for child in node.children:
        if child.type == "accessibility_modifier":
            found.add(_ts_text(child))
        elif child.type == "override_modifier":
            found.add("override")
        elif not child.is_named and child.type in _MODIFIER_TOKENS:
            found.add(child.type)
    return frozenset(found)


# Keywords that make a for-in/for-of head a declaration.
_DECLARATION_KEYWORDS: FrozenSet[str] = frozenset({"var", "let", "const", "using"})


def _declares_binding(node: TSNode) -> bool:
    for child in node.children:
        if child.is_named:
            return False
        if child.type in _DECLARATION_KEYWORDS:
            return True
    return False


def _kind_of(node: TSNode) -> SyntaxKind:
    if node.type == "method_definition":
        modifiers = _modifiers_of(node)
        if "get" in modifiers:
            return SyntaxKind.GET_ACCESSOR
        if "set" in modifiers:
            return SyntaxKind.SET_ACCESSOR
        if _ts_text(_field(node, "name")) == "constructor":
            return SyntaxKind.CONSTRUCTOR
        return SyntaxKind.METHOD_DECLARATION
    if node.type == "import_statement" and _first_named(node, "import_require_clause") is not None:
        return SyntaxKind.IMPORT_EQUALS_DECLARATION
    return _KIND_BY_TYPE.get(node.type, SyntaxKind.UNKNOWN)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — TREE BUILDER
# ═══════════════════════════════════════════════════════════════════════════

class _TreeBuilder:
    """Lowers one tree-sitter tree into ``SyntaxNode``s."""

    def __init__(self, unit: SourceUnit, source: bytes) -> None:
        self.unit = unit
        self._char_of_byte: Optional[List[int]] = None
        if len(source) != len(unit.text):
            self._char_of_byte = _byte_to_char_table(unit.text)
        self._token_ends: List[int] = []
        self._nodes: Dict[int, SyntaxNode] = {}
        self._routes: Dict[int, SyntaxNode] = {}
        self._pending: List[Tuple[TSNode, SyntaxNode]] = []
        self._synthesized: List[Tuple[SyntaxNode, Optional[TSNode], Optional[TSNode]]] = []

    # ── offsets ───────────────────────────────────────────────────────

    def _offset(self, byte: int) -> int:
        if self._char_of_byte is None:
            return byte
        return self._char_of_byte[min(byte, len(self._char_of_byte) - 1)]

    def _full_start(self, start_byte: int) -> int:
        index = bisect.bisect_right(self._token_ends, start_byte) - 1
        if index < 0:
            return 0
        return self._offset(self._token_ends[index])

    def _collect_tokens(self, root: TSNode) -> None:
        stack = [root]
        ends: List[int] = []
        while stack:
            node = stack.pop()
            if node.type in _COMMENT_TYPES:
                continue
            if node.child_count == 0:
                ends.append(node.end_byte)
                continue
            stack.extend(reversed(node.children))
        self._token_ends = sorted(ends)

    # ── construction ──────────────────────────────────────────────────

    def _new_node(self, kind: SyntaxKind, start_byte: int, end_byte: int, raw_kind: str) -> SyntaxNode:
        return SyntaxNode(
            kind,
            self.unit,
            start=self._offset(start_byte),
            end=self._offset(end_byte),
            full_start=self._full_start(start_byte),
            raw_kind=raw_kind,
        )

    def build(self, ts_root: TSNode) -> SyntaxNode:
        self._collect_tokens(ts_root)
        root = SyntaxNode(
            SyntaxKind.SOURCE_FILE, self.unit, start=0, end=len(self.unit.text),
            full_start=0, raw_kind=ts_root.type,
        )
        self.unit.root = root
        self._nodes[ts_root.id] = root

        stack: List[Tuple[TSNode, SyntaxNode]] = [
            (child, root) for child in reversed(ts_root.children)
        ]
        while stack:
            ts_node, parent = stack.pop()
            if not ts_node.is_named or ts_node.type in _COMMENT_TYPES:
                continue
            parent = self._routes.get(ts_node.id, parent)
            node = parent.attach(self._new_node(
                _kind_of(ts_node), ts_node.start_byte, ts_node.end_byte, ts_node.type,
            ))
            self._nodes[ts_node.id] = node
            self._pending.append((ts_node, node))
            self._synthesize(ts_node, node)
            stack.extend((child, node) for child in reversed(ts_node.children))

        for ts_node, node in self._pending:
            self._decorate(ts_node, node)
        for node, name, annotation in self._synthesized:
            node.name = self._lookup(name)
            node.type_node = self._type_of(annotation)
        return root

    def _synthesize(self, ts_node: TSNode, node: SyntaxNode) -> None:
        if ts_node.type == "catch_clause":
            binding = _field(ts_node, "parameter")
            if binding is None:
                return
            annotation = _field(ts_node, "type")
            last = annotation if annotation is not None else binding
            declaration = node.attach(self._new_node(
                SyntaxKind.VARIABLE_DECLARATION, binding.start_byte, last.end_byte,
                "catch_variable",
            ))
            self._routes[binding.id] = declaration
            if annotation is not None:
                self._routes[annotation.id] = declaration
            self._synthesized.append((declaration, binding, annotation))
        elif ts_node.type == "for_in_statement":
            # `for (x of xs)` assigns to an existing binding; only a
            # var/let/const head declares one.
            binding = _field(ts_node, "left")
            if binding is None or not _declares_binding(ts_node):
                return
            declaration = node.attach(self._new_node(
                SyntaxKind.VARIABLE_DECLARATION, binding.start_byte, binding.end_byte,
                "for_variable",
            ))
            self._routes[binding.id] = declaration
            self._synthesized.append((declaration, binding, None))
        elif ts_node.type == "arrow_function":
            binding = _field(ts_node, "parameter")
            if binding is None:
                return
            parameter = node.attach(self._new_node(
                SyntaxKind.PARAMETER, binding.start_byte, binding.end_byte,
                "arrow_parameter",
            ))
            self._routes[binding.id] = parameter
            self._synthesized.append((parameter, binding, None))

    # ── attributes ────────────────────────────────────────────────────

    def _lookup(self, ts_node: Optional[TSNode]) -> Optional[SyntaxNode]:
        if ts_node is None:
            return None
        return self._nodes.get(ts_node.id)

    def _type_of(self, annotation: Optional[TSNode]) -> Optional[SyntaxNode]:
        node = self._lookup(_first_named(annotation))
        if node is not None and node.kind is SyntaxKind.UNKNOWN:
            node.kind = SyntaxKind.TYPE_NODE
        return node

    def _decorate(self, ts_node: TSNode, node: SyntaxNode) -> None:
        kind = node.kind
        if kind is SyntaxKind.VARIABLE_DECLARATION:
            node.name = self._lookup(_field(ts_node, "name"))
            node.type_node = self._type_of(_field(ts_node, "type"))
        elif kind is SyntaxKind.PARAMETER:
            pattern = _field(ts_node, "pattern")
            if pattern is not None and pattern.type == "rest_pattern":
                pattern = _first_named(pattern)
            node.name = self._lookup(pattern)
            node.type_node = self._type_of(_field(ts_node, "type"))
            node.modifiers = _modifiers_of(ts_node)
        elif kind is SyntaxKind.PROPERTY_DECLARATION:
            node.name = self._lookup(_field(ts_node, "name"))
            node.type_node = self._type_of(_field(ts_node, "type"))
            node.modifiers = _modifiers_of(ts_node)
        elif kind is SyntaxKind.IMPORT_EQUALS_DECLARATION:
            clause = _first_named(ts_node, "import_require_clause")
            node.name = self._lookup(_first_named(clause or ts_node, "identifier"))
        elif kind is SyntaxKind.CALL_EXPRESSION:
            node.callee = self._lookup(_field(ts_node, "function"))
        elif ts_node.type in ("method_definition", "method_signature",
                              "abstract_method_signature"):
            node.name = self._lookup(_field(ts_node, "name"))
            node.modifiers = _modifiers_of(ts_node)
        elif kind in (SyntaxKind.CLASS_DECLARATION, SyntaxKind.CLASS_EXPRESSION,
                      SyntaxKind.FUNCTION_DECLARATION, SyntaxKind.FUNCTION_EXPRESSION):
            node.name = self._lookup(_field(ts_node, "name"))
            node.modifiers = _modifiers_of(ts_node)
        elif kind is SyntaxKind.ARROW_FUNCTION:
            node.modifiers = _modifiers_of(ts_node)


def _byte_to_char_table(text: str) -> List[int]:
    """``table[byte_offset] == char_offset`` for UTF-8 encoded ``text``."""
    table: List[int] = []
    for index, char in enumerate(text):
        table.extend([index] * len(char.encode("utf-8")))
    table.append(len(text))
    return table


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — PUBLIC ENTRY POINTS
# ═══════════════════════════════════════════════════════════════════════════

def parse_source(
    text: str,
    file_name: str = "<source>.ts",
    language: Optional[str] = None,
    registry: Optional[ParserRegistry] = None,
) -> SyntaxNode:
    """
    Parse TypeScript ``text`` and return the SourceFile node.

    Args:
        text: Source text
        file_name: Identifying path (also used to pick the grammar)
        language: ``"typescript"`` or ``"tsx"``; detected when omitted
        registry: Parser registry (defaults to the shared one)

    Raises:
        SourceParseError: If the language is not supported
    """
    registry = registry or get_registry()
    language = language or registry.detect_language(file_name) or "typescript"
    parser = registry.get_parser(language)
    if parser is None:
        raise SourceParseError(
            f"Language not supported: {language}",
            code=ErrorCodes.UNSUPPORTED_LANGUAGE,
            file=file_name,
        )

    source = text.encode("utf-8")
    tree = parser.parse(source)
    if tree.root_node.has_error:
        logger.debug("%s: tree-sitter reported syntax errors, continuing", file_name)

    unit = SourceUnit(file_name, text)
    return _TreeBuilder(unit, source).build(tree.root_node)


def parse_file(path: Union[str, Path], registry: Optional[ParserRegistry] = None) -> SyntaxNode:
    """
    Read and parse a source file.

    Raises:
        SourceParseError: If the file cannot be read or its extension is
            not a supported TypeScript flavour
    """
    path = Path(path)
    registry = registry or get_registry()
    language = registry.detect_language(path)
    if language is None:
        raise SourceParseError(
            f"Unsupported file extension: {path.suffix or '<none>'}",
            code=ErrorCodes.UNSUPPORTED_LANGUAGE,
            file=str(path),
        )
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceParseError(
            f"Cannot read source file: {exc}", file=str(path), cause=exc,
        ) from exc
    return parse_source(text, str(path), language=language, registry=registry)


__all__ = [
    "ParserRegistry",
    "get_registry",
    "parse_source",
    "parse_file",
]
