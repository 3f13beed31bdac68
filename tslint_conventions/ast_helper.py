#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
tslint_conventions/ast_helper.py
════════════════════════════════

Traversal and query utilities over the ``syntax`` tree model.

    ┌─────────────────────────────────────────────────────────────────┐
    │  Safe Accessors                                                 │
    │    • node_text, name_text, type_text                            │
    ├─────────────────────────────────────────────────────────────────┤
    │  Traversal                                                      │
    │    • Pre-order (document order) iteration                       │
    │    • Parent chain walking                                       │
    ├─────────────────────────────────────────────────────────────────┤
    │  Queries                                                        │
    │    • Nearest enclosing node of a kind set                       │
    │    • Identifier / modifier predicates                           │
    │    • Blank-line detection in leading trivia                     │
    └─────────────────────────────────────────────────────────────────┘

Design Principles
─────────────────
1. **Non-invasive**: never modifies nodes.

2. **Defensive**: every function accepts ``None`` and returns a neutral
   default (empty iterator, ``False``, ``""``, ``None``) instead of
   raising, so a rule can treat missing structure as "does not apply".

3. **Iterative**: traversals use explicit stacks, deep expression trees
   do not hit the recursion limit.
"""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from tslint_conventions.syntax import SyntaxKind, SyntaxNode


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — SAFE ACCESSORS
# ═══════════════════════════════════════════════════════════════════════════

def node_text(node: Optional[SyntaxNode]) -> str:
    """
    Source text of a node without leading trivia.

    Args:
        node: A syntax node (may be None)

    Returns:
        The node's text, or empty string if node is None
    """
    if node is None:
        return ""
    return node.get_text()


def name_text(node: Optional[SyntaxNode]) -> str:
    """Text of a declaration's name, or ``""`` when it has none."""
    if node is None:
        return ""
    return node_text(node.name)


def type_text(node: Optional[SyntaxNode]) -> str:
    """Text of a declaration's type annotation (``"JQuery[]"``), or ``""``."""
    if node is None:
        return ""
    return node_text(node.type_node).strip()


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — TRAVERSAL
# ═══════════════════════════════════════════════════════════════════════════

def iter_preorder(root: Optional[SyntaxNode]) -> Iterator[SyntaxNode]:
    """
    Iterate over a subtree in pre-order, which is document order.

    Args:
        root: The root of the subtree

    Yields:
        Nodes, each before its children, siblings left to right
    """
    if root is None:
        return
    stack: List[SyntaxNode] = [root]
    while stack:
        node = stack.pop()
        yield node
        # Push in reverse so the leftmost child is processed first (LIFO)
        stack.extend(reversed(node.children))


def iter_parents(node: Optional[SyntaxNode]) -> Iterator[SyntaxNode]:
    """
    Iterate up the parent chain to the root.

    Does NOT include the starting node.
    """
    if node is None:
        return
    current = node.parent
    while current is not None:
        yield current
        current = current.parent


def iter_parents_inclusive(node: Optional[SyntaxNode]) -> Iterator[SyntaxNode]:
    """The node itself, then all parents up to the root."""
    if node is None:
        return
    yield node
    yield from iter_parents(node)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — QUERIES
# ═══════════════════════════════════════════════════════════════════════════

def find_enclosing(
    node: Optional[SyntaxNode],
    kinds: Iterable[SyntaxKind],
    inclusive: bool = False,
) -> Optional[SyntaxNode]:
    """
    Nearest ancestor whose kind is in ``kinds``.

    Args:
        node: Starting node
        kinds: Kinds that stop the search
        inclusive: Whether ``node`` itself may be the match

    Returns:
        The matching ancestor, or None when the root is reached first
    """
    wanted = frozenset(kinds)
    walk = iter_parents_inclusive if inclusive else iter_parents
    for current in walk(node):
        if current.kind in wanted:
            return current
    return None


def is_identifier(node: Optional[SyntaxNode]) -> bool:
    """True for plain identifiers (not private names, patterns or ``this``)."""
    return node is not None and node.kind is SyntaxKind.IDENTIFIER


def has_static_modifier(node: Optional[SyntaxNode]) -> bool:
    if node is None:
        return False
    return node.has_modifier("static")


def has_blank_line(text: str) -> bool:
    """True when ``text`` contains an empty line (LF or CRLF endings)."""
    return "\n\n" in text or "\r\n\r\n" in text


def starts_new_group(node: Optional[SyntaxNode]) -> bool:
    """True when the trivia in front of ``node`` contains a blank line."""
    if node is None:
        return False
    return has_blank_line(node.leading_trivia())


__all__ = [
    "node_text",
    "name_text",
    "type_text",
    "iter_preorder",
    "iter_parents",
    "iter_parents_inclusive",
    "find_enclosing",
    "is_identifier",
    "has_static_modifier",
    "has_blank_line",
    "starts_new_group",
]
