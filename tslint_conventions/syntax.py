"""
tslint_conventions/syntax.py
════════════════════════════

The syntax tree model the rules walk.

Nodes are produced by a front end (see ``ts_parser``) and are read-only
from the rules' point of view.  Only the node kinds the rules need to
tell apart get their own ``SyntaxKind``; everything else is ``UNKNOWN``
and keeps the front end's original type name in ``raw_kind``.

    SourceUnit ──root──▶ SyntaxNode(SOURCE_FILE)
        ▲                    │ children
        │ unit               ▼
        └─────────────── SyntaxNode ... (parent links are weak)

Positions are character offsets into ``SourceUnit.text``:

    full_start        start                end
        │  leading trivia │  node text        │
        ▼                 ▼                   ▼
    ····// comment\\n\\n  import A = B.C;

``full_start`` is the end of the previous token, so the leading trivia
holds whitespace, blank lines and comments.
"""

from __future__ import annotations

import bisect
import weakref
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple


class SyntaxKind(Enum):
    """Node kinds the rules distinguish (TypeScript compiler naming)."""
    SOURCE_FILE = "SourceFile"
    CLASS_DECLARATION = "ClassDeclaration"
    CLASS_EXPRESSION = "ClassExpression"
    CONSTRUCTOR = "Constructor"
    METHOD_DECLARATION = "MethodDeclaration"
    GET_ACCESSOR = "GetAccessor"
    SET_ACCESSOR = "SetAccessor"
    FUNCTION_DECLARATION = "FunctionDeclaration"
    FUNCTION_EXPRESSION = "FunctionExpression"
    ARROW_FUNCTION = "ArrowFunction"
    WITH_STATEMENT = "WithStatement"
    TRY_STATEMENT = "TryStatement"
    CATCH_CLAUSE = "CatchClause"
    VARIABLE_DECLARATION = "VariableDeclaration"
    PARAMETER = "Parameter"
    PROPERTY_DECLARATION = "PropertyDeclaration"
    IMPORT_EQUALS_DECLARATION = "ImportEqualsDeclaration"
    CALL_EXPRESSION = "CallExpression"
    IDENTIFIER = "Identifier"
    PRIVATE_IDENTIFIER = "PrivateIdentifier"
    BINDING_PATTERN = "BindingPattern"
    TYPE_NODE = "TypeNode"
    UNKNOWN = "Unknown"


class SourceUnit:
    """
    One source file: name, text, and the root of its syntax tree.

    The unit holds the only strong reference to the root node; every
    node holds a strong reference to its unit.  Keeping any node alive
    therefore keeps the whole tree alive, while parent links stay weak.
    """

    def __init__(self, file_name: str, text: str) -> None:
        self.file_name = file_name
        self.text = text
        self.root: Optional[SyntaxNode] = None
        self._line_starts: List[int] = [0]
        for index, char in enumerate(text):
            if char == "\n":
                self._line_starts.append(index + 1)

    def slice(self, start: int, end: int) -> str:
        return self.text[start:end]

    def line_col(self, offset: int) -> Tuple[int, int]:
        """Zero-based ``(line, column)`` of a character offset."""
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return line, offset - self._line_starts[line]

    def line_span(self, line: int) -> Tuple[int, int]:
        """Offsets ``[start, end)`` of a zero-based line, line break included."""
        if line < 0 or line >= len(self._line_starts):
            return len(self.text), len(self.text)
        start = self._line_starts[line]
        if line + 1 < len(self._line_starts):
            return start, self._line_starts[line + 1]
        return start, len(self.text)

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def __repr__(self) -> str:
        return f"<SourceUnit {self.file_name!r} ({len(self.text)} chars)>"


class SyntaxNode:
    """
    A node of the syntax tree.

    Kind-specific children are exposed as attributes and are ``None`` /
    empty when the construct does not have them:

    name       : declared name (Identifier, PrivateIdentifier, BindingPattern)
    type_node  : declared type (the type itself, without the ``:``)
    modifiers  : keywords such as ``static``, ``readonly``, ``private``
    callee     : callee expression of a CallExpression
    """

    __slots__ = (
        "kind", "start", "end", "full_start", "unit", "raw_kind",
        "children", "name", "type_node", "modifiers", "callee",
        "_parent_ref", "__weakref__",
    )

    def __init__(
        self,
        kind: SyntaxKind,
        unit: SourceUnit,
        start: int,
        end: int,
        full_start: Optional[int] = None,
        raw_kind: str = "",
    ) -> None:
        self.kind = kind
        self.unit = unit
        self.start = start
        self.end = end
        self.full_start = start if full_start is None else full_start
        self.raw_kind = raw_kind or kind.value
        self.children: List[SyntaxNode] = []
        self.name: Optional[SyntaxNode] = None
        self.type_node: Optional[SyntaxNode] = None
        self.modifiers: FrozenSet[str] = frozenset()
        self.callee: Optional[SyntaxNode] = None
        self._parent_ref: Optional[weakref.ReferenceType] = None

    # ── structure ─────────────────────────────────────────────────────

    @property
    def parent(self) -> Optional[SyntaxNode]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def attach(self, child: SyntaxNode) -> SyntaxNode:
        """Append ``child`` and point its parent link at this node."""
        child._parent_ref = weakref.ref(self)
        self.children.append(child)
        return child

    # ── text ──────────────────────────────────────────────────────────

    @property
    def width(self) -> int:
        return self.end - self.start

    def get_text(self) -> str:
        return self.unit.slice(self.start, self.end)

    def get_full_text(self) -> str:
        return self.unit.slice(self.full_start, self.end)

    def leading_trivia(self) -> str:
        return self.unit.slice(self.full_start, self.start)

    # ── convenience ───────────────────────────────────────────────────

    def has_modifier(self, modifier: str) -> bool:
        return modifier in self.modifiers

    def __repr__(self) -> str:
        text = self.get_text()
        if len(text) > 30:
            text = text[:27] + "..."
        return f"<{self.kind.value} [{self.start}, {self.end}) {text!r}>"


__all__ = [
    "SyntaxKind",
    "SourceUnit",
    "SyntaxNode",
]
