"""
tslint_conventions/checkers.py
══════════════════════════════

Rule framework: the violation model, the rule and walker base classes,
inline-comment suppressions and the rule registry.

Architecture
────────────

  ┌─────────────────────────────────────────────────────────┐
  │                   LintRunner (runner.py)                │
  │  ┌────────────────────┐     ┌────────────────────────┐  │
  │  │VariableNamePrefix  │     │OrderedImportAliases    │  │
  │  │   Rule             │     │   Rule                 │  │
  │  └─────────┬──────────┘     └───────────┬────────────┘  │
  │            │   one fresh RuleWalker per │ source unit   │
  │  ┌─────────▼────────────────────────────▼────────────┐  │
  │  │        pre-order walk over the syntax tree         │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │           SuppressionManager                      │  │
  │  │  // tslint:disable-next-line  │  global           │  │
  │  └──────────────────────────┬────────────────────────┘  │
  │                             │                           │
  │  ┌──────────────────────────▼────────────────────────┐  │
  │  │      Violation formatters (prose / json / gcc)     │  │
  │  └──────────────────────────────────────────────────┘  │
  └─────────────────────────────────────────────────────────┘

Rules are stateless between runs: every ``Rule.apply`` call builds a new
walker, so one rule instance can lint any number of files.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    ClassVar,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Set,
    Tuple,
    Type,
)

from tslint_conventions.ast_helper import iter_preorder
from tslint_conventions.syntax import SourceUnit, SyntaxKind, SyntaxNode


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — VIOLATION MODEL
# ═════════════════════════════════════════════════════════════════════════

class RuleSeverity(Enum):
    """tslint-compatible severity levels."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class SourceLocation:
    """A point in a source unit; ``line`` and ``column`` are zero-based."""
    file: str = ""
    line: int = 0
    column: int = 0
    position: int = 0

    def to_json(self) -> Dict[str, int]:
        return {"character": self.column, "line": self.line, "position": self.position}

    def __str__(self) -> str:
        return f"{self.file}:{self.line + 1}:{self.column + 1}"


@dataclass(frozen=True)
class Violation:
    """
    A single rule failure.

    Attributes
    ----------
    rule_name : Name of the rule that produced this
    message   : Human-readable description
    start     : Character offset of the flagged text
    width     : Length of the flagged text
    location  : Start of the flagged text as file / line / column
    end       : End of the flagged text as file / line / column
    severity  : RuleSeverity
    """
    rule_name: str
    message: str
    start: int
    width: int
    location: SourceLocation
    end: SourceLocation
    severity: RuleSeverity = RuleSeverity.ERROR

    @classmethod
    def at(
        cls,
        unit: SourceUnit,
        start: int,
        width: int,
        message: str,
        rule_name: str,
        severity: RuleSeverity = RuleSeverity.ERROR,
    ) -> "Violation":
        line, column = unit.line_col(start)
        end_line, end_column = unit.line_col(start + width)
        return cls(
            rule_name=rule_name,
            message=message,
            start=start,
            width=width,
            location=SourceLocation(unit.file_name, line, column, start),
            end=SourceLocation(unit.file_name, end_line, end_column, start + width),
            severity=severity,
        )

    @property
    def span(self) -> Tuple[int, int]:
        return (self.start, self.width)

    @property
    def file(self) -> str:
        return self.location.file

    def to_json(self) -> Dict[str, Any]:
        """tslint ``--format json`` entry."""
        return {
            "endPosition": self.end.to_json(),
            "failure": self.message,
            "name": self.file,
            "ruleName": self.rule_name,
            "ruleSeverity": self.severity.name,
            "startPosition": self.location.to_json(),
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json())

    def to_prose(self) -> str:
        """``ERROR: file[line, col]: message`` with one-based positions."""
        loc = self.location
        return (
            f"{self.severity.name}: {loc.file}[{loc.line + 1}, {loc.column + 1}]: "
            f"{self.message}"
        )

    def to_verbose(self) -> str:
        loc = self.location
        return (
            f"{self.severity.name}: ({self.rule_name}) {loc.file}"
            f"[{loc.line + 1}, {loc.column + 1}]: {self.message}"
        )

    def to_gcc_format(self) -> str:
        return f"{self.location}: {self.severity.value}: {self.message} [{self.rule_name}]"


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — SUPPRESSION MANAGER
# ═════════════════════════════════════════════════════════════════════════

_DIRECTIVE_RE = re.compile(
    r"(?://|/\*)\s*tslint:(?P<action>enable|disable)(?P<scope>-line|-next-line)?"
    r"(?::(?P<rules>[ \t\w-]*))?"
)

_ALL_RULES = "*"


class SuppressionManager:
    """
    Violation suppression from tslint comment directives and globally.

    Sources:
      1. ``// tslint:disable-next-line[:rule ...]`` suppresses the next line
      2. ``// tslint:disable-line[:rule ...]`` suppresses its own line
      3. ``/* tslint:disable[:rule ...] */`` up to ``/* tslint:enable */``
      4. Global suppressions (command line)

    Usage
    -----
    >>> sm = SuppressionManager()
    >>> sm.load_inline_suppressions(unit)
    >>> sm.add_global_suppression("ordered-import-aliases")
    >>> kept = sm.filter_violations(violations)
    """

    def __init__(self) -> None:
        # (rule name or "*", start offset, end offset)
        self._ranges: List[Tuple[str, int, int]] = []
        self._global: Set[str] = set()
        self._file = ""

    def load_inline_suppressions(self, unit: SourceUnit) -> None:
        """Scan the unit's text for ``tslint:`` directives."""
        self._ranges = []
        self._file = unit.file_name
        text = unit.text
        open_since: Dict[str, int] = {}

        for match in _DIRECTIVE_RE.finditer(text):
            rules = (match.group("rules") or "").split()
            names = rules or [_ALL_RULES]
            action = match.group("action")
            scope = match.group("scope")
            line, _ = unit.line_col(match.start())

            if scope is not None:
                target = line if scope == "-line" else line + 1
                start, end = unit.line_span(target)
                if action == "disable":
                    self._ranges.extend((name, start, end) for name in names)
                continue

            if action == "disable":
                for name in names:
                    open_since.setdefault(name, match.start())
            else:
                closing = list(open_since) if not rules else names
                for name in closing:
                    since = open_since.pop(name, None)
                    if since is not None:
                        self._ranges.append((name, since, match.start()))

        for name, since in open_since.items():
            self._ranges.append((name, since, len(text)))

    def add_global_suppression(self, rule_name: str) -> None:
        self._global.add(rule_name)

    def is_suppressed(self, violation: Violation) -> bool:
        if violation.rule_name in self._global or _ALL_RULES in self._global:
            return True
        if violation.file != self._file:
            return False
        for name, start, end in self._ranges:
            if name not in (_ALL_RULES, violation.rule_name):
                continue
            if start <= violation.start < end:
                return True
        return False

    def filter_violations(self, violations: Iterable[Violation]) -> List[Violation]:
        """Return only non-suppressed violations."""
        return [v for v in violations if not self.is_suppressed(v)]


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — WALKER AND RULE BASE CLASSES
# ═════════════════════════════════════════════════════════════════════════

_VISITOR_NAMES: Dict[SyntaxKind, str] = {
    kind: f"visit_{kind.name.lower()}" for kind in SyntaxKind
}


class RuleWalker:
    """
    One pre-order pass over a syntax tree, collecting violations.

    ``visit_node`` runs for every node in document order and dispatches to
    ``visit_<kind>`` (``visit_variable_declaration``, ``visit_catch_clause``
    ...) when the subclass defines it.  Subclasses that need to see every
    node override ``visit_node`` and call ``super().visit_node(node)``.
    """

    def __init__(
        self,
        root: SyntaxNode,
        rule_name: str,
        severity: RuleSeverity = RuleSeverity.ERROR,
    ) -> None:
        self.root = root
        self.unit = root.unit
        self.rule_name = rule_name
        self.severity = severity
        self._violations: List[Violation] = []

    @property
    def file_name(self) -> str:
        return self.unit.file_name

    def walk(self) -> List[Violation]:
        for node in iter_preorder(self.root):
            self.visit_node(node)
        return list(self._violations)

    def visit_node(self, node: SyntaxNode) -> None:
        visitor = getattr(self, _VISITOR_NAMES[node.kind], None)
        if visitor is not None:
            visitor(node)

    def add_failure(self, start: int, width: int, message: str) -> None:
        self._violations.append(Violation.at(
            self.unit, start, width, message, self.rule_name, self.severity,
        ))

    def add_failure_at_node(self, node: SyntaxNode, message: str) -> None:
        self.add_failure(node.start, node.width, message)

    @property
    def violations(self) -> List[Violation]:
        return list(self._violations)


class Rule(ABC):
    """
    Abstract base class for all rules.

    Subclass Contract
    ─────────────────
      - Override ``name``, ``description``, ``option_values``
      - Implement ``apply(root)`` (usually: build a walker and walk)
      - Optionally override ``configure()`` to parse ``self.options``
    """

    # ── Metadata (override in subclasses) ────────────────────────────

    name: ClassVar[str] = "base-rule"
    description: ClassVar[str] = ""
    options_description: ClassVar[str] = ""
    option_values: ClassVar[Tuple[str, ...]] = ()
    option_examples: ClassVar[Tuple[str, ...]] = ()
    max_options: ClassVar[int] = 0
    rule_type: ClassVar[str] = "style"
    typescript_only: ClassVar[bool] = True
    failure_messages: ClassVar[FrozenSet[str]] = frozenset()

    def __init__(
        self,
        options: Sequence[str] = (),
        severity: RuleSeverity = RuleSeverity.ERROR,
    ) -> None:
        self.options: Tuple[str, ...] = tuple(options)
        self.severity = severity
        self.configure()

    def configure(self) -> None:
        """
        Called once from ``__init__``.

        Override to turn ``self.options`` into a policy object; raise
        ``ConfigurationError`` for options the rule does not understand.
        """

    def has_option(self, option: str) -> bool:
        return option in self.options

    @abstractmethod
    def apply(self, root: SyntaxNode) -> List[Violation]:
        """Lint one source unit and return its violations in document order."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} '{self.name}' {list(self.options)}>"


# ═════════════════════════════════════════════════════════════════════════
#  PART 4 — RULE REGISTRY
# ═════════════════════════════════════════════════════════════════════════

class RuleRegistry:
    """
    Registry of available rules.

    Usage
    -----
    >>> registry = RuleRegistry()
    >>> registry.register(VariableNamePrefixRule)
    >>> registry.get_by_name("variable-name-prefix")
    """

    def __init__(self) -> None:
        self._rules: Dict[str, Type[Rule]] = {}

    def register(self, rule_cls: Type[Rule]) -> Type[Rule]:
        """Register a rule class; returns it so this works as a decorator."""
        self._rules[rule_cls.name] = rule_cls
        return rule_cls

    def unregister(self, name: str) -> None:
        self._rules.pop(name, None)

    def get_by_name(self, name: str) -> Optional[Type[Rule]]:
        return self._rules.get(name)

    def get_all(self) -> List[Type[Rule]]:
        return [self._rules[name] for name in self.names]

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    @property
    def names(self) -> List[str]:
        return sorted(self._rules)


__all__ = [
    # Violation model
    "RuleSeverity",
    "SourceLocation",
    "Violation",
    # Suppression
    "SuppressionManager",
    # Rule framework
    "RuleWalker",
    "Rule",
    "RuleRegistry",
]
