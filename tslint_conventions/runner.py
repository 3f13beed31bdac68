"""
tslint_conventions/runner.py
════════════════════════════

Runs the configured rules over source files and collects the results.

Usage
─────
    >>> runner = LintRunner(LintConfig.load("tslint.json"))
    >>> results = runner.lint_paths(["src/"])
    >>> print(results.format("prose"))

A rule that raises is not allowed to take the whole run down: the
exception is logged and replaced by a single ``ruleInternalError``
violation for that rule and file.
"""

from __future__ import annotations

import glob
import json
import logging
import os
import time
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from tslint_conventions.checkers import (
    Rule,
    RuleRegistry,
    RuleSeverity,
    SuppressionManager,
    Violation,
)
from tslint_conventions.config import LintConfig, RuleConfig
from tslint_conventions.errors import ConfigurationError, ConventionsError
from tslint_conventions.import_order import OrderedImportAliasesRule
from tslint_conventions.naming_scope import VariableNamePrefixRule
from tslint_conventions.syntax import SyntaxNode
from tslint_conventions.ts_parser import ParserRegistry, get_registry, parse_file, parse_source

logger = logging.getLogger(__name__)

INTERNAL_ERROR_RULE = "ruleInternalError"

SOURCE_EXTENSIONS = (".ts", ".tsx", ".mts", ".cts")

_SKIPPED_DIRECTORIES = frozenset({"node_modules", ".git"})


# Default registry with all built-in rules
_DEFAULT_REGISTRY = RuleRegistry()
_DEFAULT_REGISTRY.register(VariableNamePrefixRule)
_DEFAULT_REGISTRY.register(OrderedImportAliasesRule)


def default_registry() -> RuleRegistry:
    return _DEFAULT_REGISTRY


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — RESULTS
# ═════════════════════════════════════════════════════════════════════════

@dataclass
class LintResults:
    """
    Aggregate results of a lint run.

    Attributes
    ----------
    violations          : All violations, file by file, rule by rule
    violations_by_rule  : Violations grouped by rule name
    files               : Files that were linted
    errors              : Host failures (unreadable files and the like)
    stats               : Timing statistics
    rule_names          : Names of rules that were run
    """
    violations: List[Violation] = field(default_factory=list)
    violations_by_rule: Dict[str, List[Violation]] = field(
        default_factory=lambda: defaultdict(list)
    )
    files: List[str] = field(default_factory=list)
    errors: List[ConventionsError] = field(default_factory=list)
    stats: Dict[str, float] = field(default_factory=dict)
    rule_names: List[str] = field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is RuleSeverity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for v in self.violations if v.severity is RuleSeverity.WARNING)

    @property
    def total_count(self) -> int:
        return len(self.violations)

    def by_file(self, file: str) -> List[Violation]:
        return [v for v in self.violations if v.file == file]

    def by_rule(self, rule_name: str) -> List[Violation]:
        return list(self.violations_by_rule.get(rule_name, []))

    def merge(self, other: "LintResults") -> None:
        self.violations.extend(other.violations)
        for name, found in other.violations_by_rule.items():
            self.violations_by_rule[name].extend(found)
        self.files.extend(other.files)
        self.errors.extend(other.errors)
        for key, value in other.stats.items():
            self.stats[key] = self.stats.get(key, 0.0) + value
        for name in other.rule_names:
            if name not in self.rule_names:
                self.rule_names.append(name)

    # ── formatting ────────────────────────────────────────────────────

    def to_prose(self) -> str:
        return "\n".join(v.to_prose() for v in self.violations)

    def to_verbose(self) -> str:
        return "\n".join(v.to_verbose() for v in self.violations)

    def to_json(self) -> str:
        """tslint ``--format json``: one JSON array."""
        return json.dumps([v.to_json() for v in self.violations])

    def to_json_lines(self) -> str:
        return "\n".join(v.to_json_str() for v in self.violations)

    def to_gcc_format(self) -> str:
        return "\n".join(v.to_gcc_format() for v in self.violations)

    def summary(self) -> str:
        """Human-readable summary."""
        lines = [
            f"Lint run complete: {len(self.files)} files, {self.total_count} violations "
            f"({self.error_count} errors, {self.warning_count} warnings)",
        ]
        for name in self.rule_names:
            count = len(self.violations_by_rule.get(name, []))
            elapsed = self.stats.get(f"{name}_elapsed_ms", 0.0)
            lines.append(f"  {name}: {count} findings ({elapsed:.1f}ms)")
        for error in self.errors:
            lines.append(f"  {error}")
        return "\n".join(lines)

    def format(self, name: str) -> str:
        try:
            formatter = FORMATTERS[name]
        except KeyError:
            raise ConfigurationError(
                f"unknown formatter {name!r}; expected one of {', '.join(sorted(FORMATTERS))}",
            ) from None
        return formatter(self)


FORMATTERS: Dict[str, Callable[[LintResults], str]] = {
    "prose": LintResults.to_prose,
    "verbose": LintResults.to_verbose,
    "json": LintResults.to_json,
    "jsonl": LintResults.to_json_lines,
    "gcc": LintResults.to_gcc_format,
    "summary": LintResults.summary,
}


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — RUNNER
# ═════════════════════════════════════════════════════════════════════════

def _severity_of(rule_config: RuleConfig) -> RuleSeverity:
    if rule_config.severity == "warning":
        return RuleSeverity.WARNING
    return RuleSeverity.ERROR


class LintRunner:
    """
    Runs the rules enabled by a ``LintConfig``.

    Parameters for constructor
    ─────────────────────────
    config       : LintConfig; None enables every registered rule with
                   default options
    registry     : RuleRegistry, source of rule classes
    suppressions : SuppressionManager with pre-loaded global suppressions
    parsers      : ParserRegistry used for parsing
    """

    def __init__(
        self,
        config: Optional[LintConfig] = None,
        registry: Optional[RuleRegistry] = None,
        suppressions: Optional[SuppressionManager] = None,
        parsers: Optional[ParserRegistry] = None,
    ) -> None:
        self.registry = registry or _DEFAULT_REGISTRY
        self.config = config or LintConfig(
            rules={name: RuleConfig(name) for name in self.registry.names}
        )
        self.suppressions = suppressions or SuppressionManager()
        self.parsers = parsers or get_registry()
        self.rules = self._build_rules()

    def _build_rules(self) -> List[Rule]:
        """Instantiate the enabled rules; bad options raise ConfigurationError."""
        rules: List[Rule] = []
        for rule_config in self.config.enabled_rules():
            cls = self.registry.get_by_name(rule_config.name)
            if cls is None:
                logger.warning("Rule %r is not registered, skipping", rule_config.name)
                continue
            try:
                rules.append(cls(rule_config.options, _severity_of(rule_config)))
            except ConfigurationError as exc:
                if not exc.file and self.config.path is not None:
                    exc.file = str(self.config.path)
                raise
        logger.info("Enabled rules: %s", ", ".join(r.name for r in rules) or "<none>")
        return rules

    # ── single unit ───────────────────────────────────────────────────

    def lint_tree(self, root: SyntaxNode) -> LintResults:
        """Run every rule against one parsed source unit."""
        results = LintResults()
        unit = root.unit
        results.files.append(unit.file_name)
        self.suppressions.load_inline_suppressions(unit)

        for rule in self.rules:
            results.rule_names.append(rule.name)
            t0 = time.monotonic()
            try:
                found = rule.apply(root)
            except Exception as exc:
                logger.exception("Rule %r failed on %s", rule.name, unit.file_name)
                found = [Violation.at(
                    unit, 0, 0, f"Rule '{rule.name}' failed: {exc}",
                    INTERNAL_ERROR_RULE, RuleSeverity.ERROR,
                )]
            elapsed_ms = (time.monotonic() - t0) * 1000.0

            kept = self.suppressions.filter_violations(found)
            if len(kept) != len(found):
                logger.debug("%s: %d %s violations suppressed",
                             unit.file_name, len(found) - len(kept), rule.name)
            results.violations.extend(kept)
            results.violations_by_rule[rule.name].extend(kept)
            results.stats[f"{rule.name}_elapsed_ms"] = elapsed_ms

        return results

    def lint_source(self, text: str, file_name: str = "<source>.ts") -> LintResults:
        return self.lint_tree(parse_source(text, file_name, registry=self.parsers))

    def lint_file(self, path: os.PathLike) -> LintResults:
        """Lint one file; SourceParseError propagates."""
        logger.info("Linting %s", path)
        return self.lint_tree(parse_file(path, registry=self.parsers))

    # ── many files ────────────────────────────────────────────────────

    def lint_paths(self, paths: Iterable[str]) -> LintResults:
        """
        Lint files, directories and glob patterns.

        Unreadable files are recorded in ``results.errors`` and the run
        continues with the next file.
        """
        combined = LintResults()
        combined.rule_names = [rule.name for rule in self.rules]
        for file_path in expand_paths(paths):
            if self.config.is_excluded(file_path):
                logger.info("Excluded %s", file_path)
                continue
            try:
                combined.merge(self.lint_file(file_path))
            except ConventionsError as exc:
                logger.error("%s", exc)
                combined.errors.append(exc)
        return combined


def expand_paths(paths: Iterable[str]) -> List[str]:
    """Files named by ``paths``: directories are searched, globs expanded."""
    found: List[str] = []
    seen = set()

    def add(candidate: str) -> None:
        if candidate not in seen:
            seen.add(candidate)
            found.append(candidate)

    for entry in paths:
        if os.path.isdir(entry):
            for directory, subdirs, files in os.walk(entry):
                subdirs[:] = sorted(d for d in subdirs if d not in _SKIPPED_DIRECTORIES)
                for name in sorted(files):
                    if name.endswith(SOURCE_EXTENSIONS):
                        add(os.path.join(directory, name))
        elif any(char in entry for char in "*?["):
            for match in sorted(glob.glob(entry, recursive=True)):
                if os.path.isfile(match):
                    add(match)
        else:
            add(entry)
    return found


def lint_paths(
    paths: Sequence[str],
    config_path: Optional[str] = None,
    suppress: Optional[Sequence[str]] = None,
) -> LintResults:
    """
    Convenience entry point: load the configuration, lint, return results.

    Parameters
    ----------
    paths       : Files, directories or glob patterns
    config_path : ``tslint.json``; None runs every rule with default options
    suppress    : Rule names to suppress globally
    """
    config = None
    if config_path is not None:
        config = LintConfig.load(Path(config_path), known_rules=_DEFAULT_REGISTRY.names)

    sm = SuppressionManager()
    for rule_name in suppress or ():
        sm.add_global_suppression(rule_name)

    return LintRunner(config, suppressions=sm).lint_paths(paths)


__all__ = [
    "INTERNAL_ERROR_RULE",
    "SOURCE_EXTENSIONS",
    "default_registry",
    "LintResults",
    "FORMATTERS",
    "LintRunner",
    "expand_paths",
    "lint_paths",
]
