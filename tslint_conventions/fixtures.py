"""
tslint_conventions/fixtures.py
══════════════════════════════

Rule test fixtures in the tslint ``.ts.lint`` format.

A fixture is TypeScript source with the expected failures drawn under
the offending code::

    import Foo = de.foo.F;
    import bar = de.bar.B;
    ~~~~~~~~~~~~~~~~~~~~~~   [unordered]

    function f() {
        var x = 5;
            ~      [variable name in function/method scope must start with "t" as prefix followed by an uppercase letter]
    }

    [unordered]: Import aliases within a group must be alphabetized (case-insensitive).

Markup lines
────────────
  • ``~~~~  [message]``   failure under the columns of the ``~``s on the
                          previous source line
  • ``~~~~``              start (or middle) of a failure spanning lines;
                          the line carrying ``[message]`` ends it
  • ``~nil  [message]``   zero-width failure at that column
  • ``[alias]: text``     message definition; ``[alias]`` in a marker
                          stands for ``text``

A fixture directory holds a ``tslint.json`` and any number of ``*.lint``
files.  ``run_fixture_dir`` lints each file's code with that
configuration and compares expected against actual failures.

Depends on:
    - parsimonious (PEG parser for markup lines)
"""

from __future__ import annotations

import difflib
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from tslint_conventions.checkers import RuleRegistry, Violation
from tslint_conventions.config import CONFIG_FILE_NAME, LintConfig
from tslint_conventions.errors import ErrorCodes, FixtureError
from tslint_conventions.runner import LintRunner, default_registry

logger = logging.getLogger(__name__)

FIXTURE_SUFFIX = ".lint"


# ═══════════════════════════════════════════════════════════════════
#  PART 1 — MARKUP GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

MARKUP_GRAMMAR = Grammar(r'''
    line          = message_def / error_line

    # [alias]: message text
    message_def   = ws "[" alias "]:" ws message_text
    alias         = ~r"[^\]\s]+"
    message_text  = ~r".*"

    #     ~~~~~    [message]
    error_line    = indent marker trailer ws
    indent        = ~r"[ \t]*"
    marker        = nil_marker / tildes
    nil_marker    = "~nil"
    tildes        = ~r"~+"
    trailer       = annotation?
    annotation    = ~r"[ \t]+" message_ref
    message_ref   = ~r"\[(.*)\]"

    ws            = ~r"[ \t]*"
''')


@dataclass(frozen=True)
class ErrorMarker:
    """One ``~`` markup line; ``width`` is None for ``~nil``."""
    column: int
    width: Optional[int]
    message: Optional[str]

    @property
    def is_nil(self) -> bool:
        return self.width is None


@dataclass(frozen=True)
class MessageDefinition:
    alias: str
    text: str


MarkupLine = Union[ErrorMarker, MessageDefinition]


class MarkupBuilder(NodeVisitor):
    """Turns a markup line parse tree into an ErrorMarker or MessageDefinition."""

    def generic_visit(self, node, visited_children):
        """Default: return children or node text."""
        if visited_children:
            if len(visited_children) == 1:
                return visited_children[0]
            return visited_children
        return node.text.strip()

    def visit_line(self, node, visited_children):
        return visited_children[0]

    def visit_message_def(self, node, visited_children):
        _, _, alias, _, _, text = visited_children
        return MessageDefinition(alias=alias, text=text)

    def visit_error_line(self, node, visited_children):
        column, (kind, width), message, _ = visited_children
        return ErrorMarker(
            column=column,
            width=None if kind == "nil" else width,
            message=message,
        )

    def visit_indent(self, node, visited_children):
        return len(node.text)

    def visit_marker(self, node, visited_children):
        return visited_children[0]

    def visit_nil_marker(self, node, visited_children):
        return ("nil", 0)

    def visit_tildes(self, node, visited_children):
        return ("tildes", len(node.text))

    def visit_trailer(self, node, visited_children):
        return visited_children[0] if visited_children else None

    def visit_annotation(self, node, visited_children):
        _, message = visited_children
        return message

    def visit_message_ref(self, node, visited_children):
        return node.match.group(1)


def parse_markup_line(line: str) -> Optional[MarkupLine]:
    """The markup on ``line``, or None when it is a source line."""
    try:
        tree = MARKUP_GRAMMAR.parse(line.rstrip("\r"))
    except ParseError:
        return None
    return MarkupBuilder().visit(tree)


# ═══════════════════════════════════════════════════════════════════
#  PART 2 — FIXTURE MODEL
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True, order=True)
class ExpectedFailure:
    """A failure span in zero-based (line, column) coordinates, plus its message."""
    start_line: int
    start_column: int
    end_line: int
    end_column: int
    message: str

    @classmethod
    def from_violation(cls, violation: Violation) -> "ExpectedFailure":
        return cls(
            violation.location.line,
            violation.location.column,
            violation.end.line,
            violation.end.column,
            violation.message,
        )


@dataclass
class Fixture:
    """A parsed ``.lint`` file: the code to lint and the failures it expects."""
    file_name: str
    code: str
    expected: List[ExpectedFailure] = field(default_factory=list)
    messages: Dict[str, str] = field(default_factory=dict)

    @property
    def code_lines(self) -> List[str]:
        return self.code.split("\n")


# Alias references are single tokens; real messages contain spaces.
_ALIAS_RE = re.compile(r"^[^\s\]]+$")


def parse_fixture(text: str, file_name: str = "<fixture>.ts.lint") -> Fixture:
    """
    Split ``.lint`` text into code and expected failures.

    Raises:
        FixtureError: On markup before any code, an unterminated
            multi-line marker, a ``~nil`` without message or an
            undefined message alias
    """
    code_lines: List[str] = []
    pending: List[Tuple[int, ErrorMarker]] = []
    messages: Dict[str, str] = {}

    for number, line in enumerate(text.split("\n"), start=1):
        markup = parse_markup_line(line)
        if markup is None:
            code_lines.append(line)
        elif isinstance(markup, MessageDefinition):
            messages[markup.alias] = markup.text
        else:
            if not code_lines:
                raise FixtureError(
                    "error marker before any source line",
                    file=file_name, line=number,
                )
            # markers refer to the most recent source line
            pending.append((len(code_lines) - 1, markup))

    expected: List[ExpectedFailure] = []
    open_start: Optional[Tuple[int, int]] = None
    for code_line, marker in pending:
        if marker.is_nil:
            if marker.message is None:
                raise FixtureError("~nil marker without a message", file=file_name,
                                   line=code_line + 1)
            expected.append(ExpectedFailure(
                code_line, marker.column, code_line, marker.column,
                _resolve(marker.message, messages, file_name, code_line),
            ))
            continue

        if open_start is None:
            open_start = (code_line, marker.column)
        if marker.message is None:
            continue
        start_line, start_column = open_start
        expected.append(ExpectedFailure(
            start_line, start_column, code_line, marker.column + marker.width,
            _resolve(marker.message, messages, file_name, code_line),
        ))
        open_start = None

    if open_start is not None:
        raise FixtureError(
            "multi-line error marker is never closed with a message",
            file=file_name, line=open_start[0] + 1,
        )

    return Fixture(
        file_name=file_name,
        code="\n".join(code_lines),
        expected=sorted(expected),
        messages=messages,
    )


def _resolve(message: str, messages: Dict[str, str], file_name: str, code_line: int) -> str:
    if message in messages:
        return messages[message]
    if _ALIAS_RE.match(message):
        raise FixtureError(
            f"undefined message alias [{message}]",
            code=ErrorCodes.UNDEFINED_MESSAGE_ALIAS,
            file=file_name, line=code_line + 1,
        )
    return message


def load_fixture(path: Union[str, Path]) -> Fixture:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FixtureError(f"cannot read fixture: {exc}", file=str(path), cause=exc) from exc
    return parse_fixture(text, str(path))


def render_markup(code: str, failures: Sequence[ExpectedFailure]) -> str:
    """
    Draw ``failures`` under ``code`` in ``.lint`` markup.

    Used for diffs, so expected and actual render the same way.
    """
    lines = code.split("\n")
    out: List[str] = []
    for index, line in enumerate(lines):
        out.append(line)
        width = len(line.rstrip("\r"))
        for failure in failures:
            if not failure.start_line <= index <= failure.end_line:
                continue
            if (failure.start_line, failure.start_column) == (failure.end_line, failure.end_column):
                out.append(" " * failure.start_column + f"~nil    [{failure.message}]")
                continue
            first = failure.start_column if index == failure.start_line else 0
            last = failure.end_column if index == failure.end_line else width
            marker = " " * first + "~" * max(last - first, 1)
            if index == failure.end_line:
                marker += f"    [{failure.message}]"
            out.append(marker)
    return "\n".join(out)


# ═══════════════════════════════════════════════════════════════════
#  PART 3 — FIXTURE RUNNER
# ═══════════════════════════════════════════════════════════════════

@dataclass
class FixtureResult:
    """Outcome of one ``.lint`` file."""
    fixture: Fixture
    actual: List[ExpectedFailure]

    @property
    def path(self) -> str:
        return self.fixture.file_name

    @property
    def passed(self) -> bool:
        return self.fixture.expected == self.actual

    @property
    def missing(self) -> List[ExpectedFailure]:
        return [f for f in self.fixture.expected if f not in self.actual]

    @property
    def unexpected(self) -> List[ExpectedFailure]:
        return [f for f in self.actual if f not in self.fixture.expected]

    def diff(self) -> str:
        """Unified diff of expected vs. actual markup; empty when passed."""
        if self.passed:
            return ""
        expected = render_markup(self.fixture.code, self.fixture.expected).split("\n")
        actual = render_markup(self.fixture.code, self.actual).split("\n")
        return "\n".join(difflib.unified_diff(
            expected, actual, fromfile="expected", tofile="actual", lineterm="",
        ))


@dataclass
class FixtureReport:
    """Results of a fixture run over one or more directories."""
    results: List[FixtureResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(result.passed for result in self.results)

    @property
    def failures(self) -> List[FixtureResult]:
        return [result for result in self.results if not result.passed]

    def summary(self) -> str:
        lines = []
        for result in self.results:
            status = "PASSED" if result.passed else "FAILED"
            lines.append(f"{status}  {result.path}")
            if not result.passed:
                lines.append(result.diff())
        lines.append(
            f"{len(self.results) - len(self.failures)} passed, "
            f"{len(self.failures)} failed"
        )
        return "\n".join(lines)


def find_fixture_dirs(root: Union[str, Path]) -> List[Path]:
    """Directories below ``root`` (inclusive) that hold a ``tslint.json``."""
    root = Path(root)
    return sorted(config.parent for config in root.rglob(CONFIG_FILE_NAME))


def run_fixture(
    fixture: Fixture,
    runner: LintRunner,
) -> FixtureResult:
    results = runner.lint_source(fixture.code, fixture.file_name)
    actual = sorted(ExpectedFailure.from_violation(v) for v in results.violations)
    return FixtureResult(fixture=fixture, actual=actual)


def run_fixture_dir(
    directory: Union[str, Path],
    registry: Optional[RuleRegistry] = None,
) -> List[FixtureResult]:
    """
    Lint every ``*.lint`` file in ``directory`` with its ``tslint.json``.

    Raises:
        FixtureError: If the directory has no ``tslint.json``
        ConfigurationError: If the ``tslint.json`` is invalid
    """
    directory = Path(directory)
    registry = registry or default_registry()
    config_path = directory / CONFIG_FILE_NAME
    if not config_path.is_file():
        raise FixtureError(
            f"no {CONFIG_FILE_NAME} in fixture directory",
            code=ErrorCodes.MISSING_FIXTURE_CONFIG,
            file=str(directory),
        )

    config = LintConfig.load(config_path, known_rules=registry.names)
    runner = LintRunner(config, registry=registry)

    results = []
    for path in sorted(directory.glob(f"*{FIXTURE_SUFFIX}")):
        result = run_fixture(load_fixture(path), runner)
        logger.info("%s: %s", path, "passed" if result.passed else "FAILED")
        results.append(result)
    return results


def run_fixtures(
    roots: Iterable[Union[str, Path]],
    registry: Optional[RuleRegistry] = None,
) -> FixtureReport:
    """Discover fixture directories under each root and run them all."""
    report = FixtureReport()
    for root in roots:
        directories = find_fixture_dirs(root)
        if not directories:
            logger.warning("No fixture directories under %s", root)
        for directory in directories:
            report.results.extend(run_fixture_dir(directory, registry))
    return report


__all__ = [
    "FIXTURE_SUFFIX",
    "MARKUP_GRAMMAR",
    "ErrorMarker",
    "MessageDefinition",
    "MarkupBuilder",
    "parse_markup_line",
    "ExpectedFailure",
    "Fixture",
    "parse_fixture",
    "load_fixture",
    "render_markup",
    "FixtureResult",
    "FixtureReport",
    "find_fixture_dirs",
    "run_fixture",
    "run_fixture_dir",
    "run_fixtures",
]
