"""
tslint_conventions/naming_scope.py
══════════════════════════════════

``variable-name-prefix``: scope-aware variable naming conventions.

Every declared name must carry a one-letter prefix chosen by where it is
declared, followed by an uppercase letter::

    class Foo {
        iCount: number;              // class member       -> "i"
        static MAX = 3;              // static members are exempt
        bar(aValue: string) {        // parameter          -> "a"
            const tResult = aValue;  // function / method  -> "t"
        }
    }
    const gConfig = {};              // global             -> "g"
    let $tRow: JQuery;               // JQuery-typed       -> "$" first

Scope resolution
────────────────
The scope of a declaration is the nearest ancestor whose kind is one of

    ClassDeclaration  Constructor  FunctionDeclaration  FunctionExpression
    MethodDeclaration  ArrowFunction  WithStatement  TryStatement

or GLOBAL when the root is reached first.  Declarations scoped to a
``with`` or ``try`` are not checked here; catch bindings are handled as
parameters.

In test-spec files (``*.spec.ts``) arrow functions are test callbacks,
so they are classified by the call they are passed to: a callback of
``it(...)`` is function scope, anything else (``describe(...)``,
``beforeEach(...)``) is global scope.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import ClassVar, Dict, FrozenSet, List, Optional, Tuple

from tslint_conventions.ast_helper import (
    find_enclosing,
    has_static_modifier,
    is_identifier,
    name_text,
    node_text,
    type_text,
)
from tslint_conventions.checkers import Rule, RuleSeverity, RuleWalker, Violation
from tslint_conventions.config import NamingPolicy, PrefixCheck
from tslint_conventions.syntax import SyntaxKind, SyntaxNode

logger = logging.getLogger(__name__)


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — SCOPE RESOLUTION
# ═════════════════════════════════════════════════════════════════════════

class ScopeKind(Enum):
    CLASS = "class"
    CONSTRUCTOR = "constructor"
    FUNCTION = "function"
    METHOD = "method"
    ARROW_FUNCTION = "arrow-function"
    EXCEPTION_HANDLER = "exception-handler"
    GLOBAL = "global"


_SCOPE_BY_KIND: Dict[SyntaxKind, ScopeKind] = {
    SyntaxKind.CLASS_DECLARATION: ScopeKind.CLASS,
    SyntaxKind.CONSTRUCTOR: ScopeKind.CONSTRUCTOR,
    SyntaxKind.FUNCTION_DECLARATION: ScopeKind.FUNCTION,
    SyntaxKind.FUNCTION_EXPRESSION: ScopeKind.FUNCTION,
    SyntaxKind.METHOD_DECLARATION: ScopeKind.METHOD,
    SyntaxKind.ARROW_FUNCTION: ScopeKind.ARROW_FUNCTION,
    SyntaxKind.WITH_STATEMENT: ScopeKind.EXCEPTION_HANDLER,
    SyntaxKind.TRY_STATEMENT: ScopeKind.EXCEPTION_HANDLER,
}

SCOPE_KINDS: FrozenSet[SyntaxKind] = frozenset(_SCOPE_BY_KIND)

_FUNCTION_SCOPES = frozenset({
    ScopeKind.FUNCTION,
    ScopeKind.METHOD,
    ScopeKind.CONSTRUCTOR,
})

# Test callbacks whose locals count as function scope.
TEST_CASE_CALLEES: FrozenSet[str] = frozenset({"it"})


def scope_of(node: Optional[SyntaxNode]) -> ScopeKind:
    """
    Nearest relevant scope of ``node`` (the node itself is not considered).

    >>> scope_of(declaration_inside_method)
    <ScopeKind.METHOD: 'method'>
    """
    scope = find_enclosing(node, SCOPE_KINDS)
    if scope is None:
        return ScopeKind.GLOBAL
    return _SCOPE_BY_KIND[scope.kind]


def enclosing_callee(node: Optional[SyntaxNode]) -> Optional[str]:
    """Callee text of the nearest enclosing call, or None outside any call."""
    call = find_enclosing(node, (SyntaxKind.CALL_EXPRESSION,))
    if call is None:
        return None
    return node_text(call.callee)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — PREFIX VALIDATION
# ═════════════════════════════════════════════════════════════════════════

JQUERY_TYPES: FrozenSet[str] = frozenset({"JQuery", "JQuery[]"})


def has_valid_prefix(prefix: str, name: str) -> bool:
    """``name`` is longer than one character, starts with ``prefix`` then an uppercase letter."""
    return len(name) > 1 and name[0] == prefix and name[1].isupper()


def is_jquery_type(declaration: Optional[SyntaxNode]) -> bool:
    return type_text(declaration) in JQUERY_TYPES


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — RULE
# ═════════════════════════════════════════════════════════════════════════

class VariableNamePrefixRule(Rule):
    """Checks prefix of variable names for various errors."""

    name: ClassVar[str] = "variable-name-prefix"
    description: ClassVar[str] = "Checks prefix of variable names for various errors."
    options_description: ClassVar[str] = (
        "Five arguments may be optionally provided:\n\n"
        '* "class-prefix": class variable names must start with "i"\n'
        '* "jquery-prefix": variable names of type JQuery must start with "$"\n'
        '* "global-prefix": variable names in global scope must start with "g"\n'
        '* "function-prefix": variable names in function scope must start with "t"\n'
        '* "parameter-prefix": parameter names must start with "a"'
    )
    option_values: ClassVar[Tuple[str, ...]] = tuple(c.option for c in PrefixCheck)
    option_examples: ClassVar[Tuple[str, ...]] = (
        '[true, "class-prefix", "parameter-prefix", "jquery-prefix"]',
    )
    max_options: ClassVar[int] = 5

    CLASS_PREFIX_FAILURE: ClassVar[str] = (
        'variable name in class scope must start with "i" as prefix '
        "followed by uppercase letter"
    )
    FUNCTION_PREFIX_FAILURE: ClassVar[str] = (
        'variable name in function/method scope must start with "t" as prefix '
        "followed by an uppercase letter"
    )
    GLOBAL_PREFIX_FAILURE: ClassVar[str] = (
        'global variable name must start with "g" as prefix '
        "followed by an uppercase letter"
    )
    PARAMETER_PREFIX_FAILURE: ClassVar[str] = (
        'parameter name must start with "a" as prefix '
        "followed by an uppercase letter"
    )
    JQUERY_PREFIX_FAILURE: ClassVar[str] = (
        'variable name of type JQuery must start with "$" as prefix'
    )

    failure_messages: ClassVar[FrozenSet[str]] = frozenset({
        CLASS_PREFIX_FAILURE,
        FUNCTION_PREFIX_FAILURE,
        GLOBAL_PREFIX_FAILURE,
        PARAMETER_PREFIX_FAILURE,
        JQUERY_PREFIX_FAILURE,
    })

    def configure(self) -> None:
        self.policy = NamingPolicy.from_options(self.options)

    def apply(self, root: SyntaxNode) -> List[Violation]:
        if not self.policy.any_enabled:
            return []
        return VariableNamePrefixWalker(root, self.name, self.policy, self.severity).walk()


_FAILURES: Dict[PrefixCheck, str] = {
    PrefixCheck.CLASS: VariableNamePrefixRule.CLASS_PREFIX_FAILURE,
    PrefixCheck.FUNCTION: VariableNamePrefixRule.FUNCTION_PREFIX_FAILURE,
    PrefixCheck.GLOBAL: VariableNamePrefixRule.GLOBAL_PREFIX_FAILURE,
    PrefixCheck.PARAMETER: VariableNamePrefixRule.PARAMETER_PREFIX_FAILURE,
}


class VariableNamePrefixWalker(RuleWalker):
    """Per-file state: the policy and whether the file is a test spec."""

    def __init__(
        self,
        root: SyntaxNode,
        rule_name: str,
        policy: NamingPolicy,
        severity: RuleSeverity = RuleSeverity.ERROR,
    ) -> None:
        super().__init__(root, rule_name, severity)
        self.policy = policy
        self.is_test_spec = policy.is_test_spec(self.file_name)

    # ── classification ────────────────────────────────────────────────

    def classify_declaration(self, node: SyntaxNode) -> Optional[PrefixCheck]:
        """
        Which check applies to a variable declaration, or None to skip it.
        """
        scope = scope_of(node)
        if scope is ScopeKind.EXCEPTION_HANDLER:
            return None
        if scope in _FUNCTION_SCOPES:
            return PrefixCheck.FUNCTION
        if scope is ScopeKind.ARROW_FUNCTION:
            if not self.is_test_spec:
                return PrefixCheck.FUNCTION
            callee = enclosing_callee(node)
            if callee is None:
                logger.debug("%s: %r is in a test callback outside any call, skipped",
                             self.file_name, name_text(node))
                return None
            if callee in TEST_CASE_CALLEES:
                return PrefixCheck.FUNCTION
        return PrefixCheck.GLOBAL

    # ── visitors ──────────────────────────────────────────────────────

    def visit_variable_declaration(self, node: SyntaxNode) -> None:
        if not is_identifier(node.name):
            return
        check = self.classify_declaration(node)
        if check is None:
            return
        logger.debug("%s: %r classified as %s", self.file_name, name_text(node), check.option)
        self.validate(check, node)

    def visit_parameter(self, node: SyntaxNode) -> None:
        if is_identifier(node.name):
            self.validate(PrefixCheck.PARAMETER, node)

    def visit_catch_clause(self, node: SyntaxNode) -> None:
        if not self.policy.check_parameter:
            return
        for child in node.children:
            if child.kind is SyntaxKind.VARIABLE_DECLARATION and is_identifier(child.name):
                self.validate(PrefixCheck.PARAMETER, child)

    def visit_class_declaration(self, node: SyntaxNode) -> None:
        for body in node.children:
            if body.raw_kind != "class_body":
                continue
            for member in body.children:
                if member.kind is not SyntaxKind.PROPERTY_DECLARATION:
                    continue
                if has_static_modifier(member) or not is_identifier(member.name):
                    continue
                self.validate(PrefixCheck.CLASS, member)

    # ── validation ────────────────────────────────────────────────────

    def validate(self, check: PrefixCheck, declaration: SyntaxNode) -> None:
        """Check the declared name of ``declaration`` against ``check``."""
        identifier = declaration.name
        name = node_text(identifier)

        if self.policy.check_jquery and is_jquery_type(declaration):
            if name.startswith(PrefixCheck.JQUERY.prefix):
                name = name[1:]
            else:
                self.add_failure_at_node(identifier, VariableNamePrefixRule.JQUERY_PREFIX_FAILURE)

        if self.policy.is_enabled(check) and not has_valid_prefix(check.prefix, name):
            self.add_failure_at_node(identifier, _FAILURES[check])


__all__ = [
    "ScopeKind",
    "SCOPE_KINDS",
    "TEST_CASE_CALLEES",
    "scope_of",
    "enclosing_callee",
    "JQUERY_TYPES",
    "has_valid_prefix",
    "is_jquery_type",
    "VariableNamePrefixRule",
    "VariableNamePrefixWalker",
]
