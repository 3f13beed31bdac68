"""
tslint_conventions — Scope-aware naming and import ordering rules for TypeScript
=================================================================================

Two lint rules over a TypeScript syntax tree, plus the host that runs them.

Rules
-----
variable-name-prefix
    Variable, parameter and class member names carry a prefix chosen by
    the scope they are declared in (``i``, ``t``, ``g``, ``a``, ``$``).
ordered-import-aliases
    ``import A = B.C;`` declarations are alphabetized within blank-line
    separated groups.

Quick start
-----------
>>> from tslint_conventions import LintRunner, LintConfig
>>> config = LintConfig.from_dict(
...     {"rules": {"ordered-import-aliases": [True, "lowercase-first"]}})
>>> results = LintRunner(config).lint_source("import b = x.B;\\nimport a = x.A;\\n")
>>> print(results.to_prose())
ERROR: <source>.ts[2, 1]: Import aliases within a group must be alphabetized (lowercase-first).

Package layout
--------------
::

    tslint_conventions/
    ├── __init__.py            ← this file
    ├── syntax.py              tree model (SyntaxKind, SyntaxNode, SourceUnit)
    ├── ts_parser.py           tree-sitter front end
    ├── ast_helper.py          traversal and query helpers
    ├── checkers.py            violations, rule base classes, suppressions
    ├── naming_scope.py        variable-name-prefix
    ├── import_order.py        ordered-import-aliases
    ├── config.py              rule options, tslint.json
    ├── runner.py              LintRunner, LintResults, formatters
    ├── fixtures.py            .ts.lint fixture harness
    ├── errors.py              exception hierarchy
    └── main.py                command line
"""

from __future__ import annotations

import logging

__version__ = "0.4.0"

_log = logging.getLogger(__name__)
_log.addHandler(logging.NullHandler())

from tslint_conventions.checkers import (  # noqa: E402
    Rule,
    RuleRegistry,
    RuleSeverity,
    RuleWalker,
    SourceLocation,
    SuppressionManager,
    Violation,
)
from tslint_conventions.config import (  # noqa: E402
    ImportOrderPolicy,
    LintConfig,
    NamingPolicy,
    RuleConfig,
)
from tslint_conventions.errors import (  # noqa: E402
    ConfigurationError,
    ConventionsError,
    FixtureError,
    SourceParseError,
)
from tslint_conventions.import_order import OrderedImportAliasesRule  # noqa: E402
from tslint_conventions.naming_scope import (  # noqa: E402
    ScopeKind,
    VariableNamePrefixRule,
    scope_of,
)
from tslint_conventions.runner import LintResults, LintRunner, lint_paths  # noqa: E402
from tslint_conventions.syntax import SourceUnit, SyntaxKind, SyntaxNode  # noqa: E402
from tslint_conventions.ts_parser import parse_file, parse_source  # noqa: E402

__all__ = [
    "__version__",
    # tree
    "SyntaxKind",
    "SyntaxNode",
    "SourceUnit",
    "parse_source",
    "parse_file",
    # rules
    "Rule",
    "RuleWalker",
    "RuleRegistry",
    "RuleSeverity",
    "Violation",
    "SourceLocation",
    "SuppressionManager",
    "ScopeKind",
    "scope_of",
    "VariableNamePrefixRule",
    "OrderedImportAliasesRule",
    # configuration
    "NamingPolicy",
    "ImportOrderPolicy",
    "RuleConfig",
    "LintConfig",
    # running
    "LintRunner",
    "LintResults",
    "lint_paths",
    # errors
    "ConventionsError",
    "ConfigurationError",
    "SourceParseError",
    "FixtureError",
]
