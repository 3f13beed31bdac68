"""
tslint_conventions/import_order.py
══════════════════════════════════

``ordered-import-aliases``: import alias declarations must be
alphabetized within their group.

    import bar = de.bar.B;
    import Foo = de.foo.F;      // ok under case-insensitive

    import zeta = x.Z;          // blank line above starts a new group

A group ends at any blank line, wherever it occurs in the file.  The
ordering key is controlled by the single rule option:

    case-insensitive   "Foo" -> "foo"       (default)
    lowercase-first    "Foo" -> "fOO"       lowercase sorts before uppercase
    lowercase-last     "Foo" -> "Foo"       plain code point order
"""

from __future__ import annotations

import logging
from typing import ClassVar, List, Optional, Tuple

from tslint_conventions.ast_helper import name_text, starts_new_group
from tslint_conventions.checkers import Rule, RuleSeverity, RuleWalker, Violation
from tslint_conventions.config import ImportCase, ImportOrderPolicy
from tslint_conventions.syntax import SyntaxNode

logger = logging.getLogger(__name__)


class OrderedImportAliasesRule(Rule):
    """Requires that import alias statements be alphabetized."""

    name: ClassVar[str] = "ordered-import-aliases"
    description: ClassVar[str] = "Requires that import alias statements be alphabetized."
    options_description: ClassVar[str] = (
        "One argument may be optionally provided, the ordering key:\n\n"
        '* "case-insensitive": compare lowercased aliases (default)\n'
        '* "lowercase-first": lowercase letters sort before uppercase\n'
        '* "lowercase-last": plain character order, uppercase first'
    )
    option_values: ClassVar[Tuple[str, ...]] = tuple(c.value for c in ImportCase)
    option_examples: ClassVar[Tuple[str, ...]] = (
        "true",
        '[true, "case-insensitive"]',
        '[true, "lowercase-first"]',
    )
    max_options: ClassVar[int] = 1

    IMPORT_ALIASES_UNORDERED: ClassVar[str] = (
        "Import aliases within a group must be alphabetized"
    )

    def configure(self) -> None:
        self.policy = ImportOrderPolicy.from_options(self.options)

    @classmethod
    def failure_text(cls, policy: ImportOrderPolicy) -> str:
        return f"{cls.IMPORT_ALIASES_UNORDERED} ({policy.name})."

    def apply(self, root: SyntaxNode) -> List[Violation]:
        return OrderedImportAliasesWalker(root, self.name, self.policy, self.severity).walk()


class OrderedImportAliasesWalker(RuleWalker):

    def __init__(
        self,
        root: SyntaxNode,
        rule_name: str,
        policy: ImportOrderPolicy,
        severity: RuleSeverity = RuleSeverity.ERROR,
    ) -> None:
        super().__init__(root, rule_name, severity)
        self.policy = policy
        self.last_seen_alias: Optional[str] = None
        self._failure = OrderedImportAliasesRule.failure_text(policy)

    def visit_node(self, node: SyntaxNode) -> None:
        if self.last_seen_alias is not None and starts_new_group(node):
            logger.debug("%s: blank line before offset %d, new import group",
                         self.file_name, node.start)
            self.last_seen_alias = None
        super().visit_node(node)

    def visit_import_equals_declaration(self, node: SyntaxNode) -> None:
        alias = self.policy.transform(name_text(node))
        if self.last_seen_alias is not None and alias < self.last_seen_alias:
            self.add_failure_at_node(node, self._failure)
        self.last_seen_alias = alias


__all__ = [
    "OrderedImportAliasesRule",
    "OrderedImportAliasesWalker",
]
