# tests/conftest.py
"""
Shared fixtures and hand-built tree factories.

Parser-backed tests use the ``parse`` / ``lint`` fixtures.  Tests that
exercise tree walking without the tree-sitter front end build small trees
with ``make_unit`` / ``make_node`` / ``make_chain``.
"""

from typing import Iterator, List, Optional, Sequence

import pytest

from tslint_conventions.ast_helper import iter_preorder
from tslint_conventions.checkers import Violation
from tslint_conventions.naming_scope import VariableNamePrefixRule
from tslint_conventions.import_order import OrderedImportAliasesRule
from tslint_conventions.syntax import SourceUnit, SyntaxKind, SyntaxNode
from tslint_conventions.ts_parser import parse_source


# ─────────────────────────────────────────────────────────────────────────
#  Hand-built trees
# ─────────────────────────────────────────────────────────────────────────

def make_unit(text: str = "", file_name: str = "mock.ts") -> SourceUnit:
    return SourceUnit(file_name, text)


def make_node(
    kind: SyntaxKind,
    unit: SourceUnit,
    start: int = 0,
    end: Optional[int] = None,
    full_start: Optional[int] = None,
    parent: Optional[SyntaxNode] = None,
    raw_kind: str = "",
) -> SyntaxNode:
    """A node over ``unit.text[start:end]``, attached to ``parent`` if given.

    The first node built without a parent becomes ``unit.root`` so the tree
    stays alive as long as the unit does.
    """
    node = SyntaxNode(
        kind, unit, start,
        len(unit.text) if end is None else end,
        full_start, raw_kind,
    )
    if parent is not None:
        parent.attach(node)
    elif unit.root is None:
        unit.root = node
    return node


def make_chain(kinds: Sequence[SyntaxKind], unit: Optional[SourceUnit] = None) -> List[SyntaxNode]:
    """Nested nodes ``kinds[0] > kinds[1] > ...``; returns them outermost first."""
    unit = unit or make_unit()
    nodes: List[SyntaxNode] = []
    parent = None
    for kind in kinds:
        parent = make_node(kind, unit, parent=parent)
        nodes.append(parent)
    return nodes


def iter_kind(root: Optional[SyntaxNode], *kinds: SyntaxKind) -> Iterator[SyntaxNode]:
    """Nodes of the given kinds in document order."""
    wanted = frozenset(kinds)
    return (node for node in iter_preorder(root) if node.kind in wanted)


def make_declaration(
    name: str,
    type_text: str = "",
    kind: SyntaxKind = SyntaxKind.VARIABLE_DECLARATION,
    file_name: str = "mock.ts",
) -> SyntaxNode:
    """``name: type_text`` as a top-level declaration with name and type children."""
    text = f"{name}: {type_text}" if type_text else name
    unit = make_unit(text, file_name)
    root = make_node(SyntaxKind.SOURCE_FILE, unit)
    decl = make_node(kind, unit, 0, len(text), parent=root)
    decl.name = make_node(SyntaxKind.IDENTIFIER, unit, 0, len(name), parent=decl)
    if type_text:
        start = len(name) + 2
        decl.type_node = make_node(SyntaxKind.TYPE_NODE, unit, start, len(text), parent=decl)
    return decl


# ─────────────────────────────────────────────────────────────────────────
#  Parser-backed fixtures
# ─────────────────────────────────────────────────────────────────────────

@pytest.fixture
def parse():
    """``parse(text, file_name="test.ts") -> SourceFile node``."""
    def _parse(text: str, file_name: str = "test.ts") -> SyntaxNode:
        return parse_source(text, file_name)
    return _parse


@pytest.fixture
def naming(parse):
    """``naming(text, *options, file_name="test.ts") -> [Violation]``."""
    def _lint(text: str, *options: str, file_name: str = "test.ts") -> List[Violation]:
        return VariableNamePrefixRule(options).apply(parse(text, file_name))
    return _lint


@pytest.fixture
def ordering(parse):
    """``ordering(text, *options) -> [Violation]``."""
    def _lint(text: str, *options: str) -> List[Violation]:
        return OrderedImportAliasesRule(options).apply(parse(text))
    return _lint


def texts(violations: Sequence[Violation], unit_text: str) -> List[str]:
    """The flagged source text of each violation."""
    return [unit_text[v.start:v.start + v.width] for v in violations]


def messages(violations: Sequence[Violation]) -> List[str]:
    return [v.message for v in violations]


CLASS_FAILURE = VariableNamePrefixRule.CLASS_PREFIX_FAILURE
FUNCTION_FAILURE = VariableNamePrefixRule.FUNCTION_PREFIX_FAILURE
GLOBAL_FAILURE = VariableNamePrefixRule.GLOBAL_PREFIX_FAILURE
PARAMETER_FAILURE = VariableNamePrefixRule.PARAMETER_PREFIX_FAILURE
JQUERY_FAILURE = VariableNamePrefixRule.JQUERY_PREFIX_FAILURE
