# tests/test_checkers.py
"""
Tests for the rule framework: violations and their formats, comment
suppressions, walker dispatch and the rule registry.
"""

import json

import pytest

from tslint_conventions.checkers import (
    Rule,
    RuleRegistry,
    RuleSeverity,
    RuleWalker,
    SourceLocation,
    SuppressionManager,
    Violation,
)
from tslint_conventions.syntax import SyntaxKind
from tests.conftest import make_chain, make_node, make_unit


def _violation(unit, needle, rule="some-rule", severity=RuleSeverity.ERROR):
    start = unit.text.index(needle)
    return Violation.at(unit, start, len(needle), "bad name", rule, severity)


class TestViolation:

    def _sample(self, severity=RuleSeverity.ERROR):
        unit = make_unit("abc\n  def", "src/a.ts")
        return Violation.at(unit, 6, 3, "bad name", "some-rule", severity)

    def test_positions(self):
        v = self._sample()
        assert v.location == SourceLocation("src/a.ts", 1, 2, 6)
        assert v.end == SourceLocation("src/a.ts", 1, 5, 9)
        assert v.span == (6, 3)
        assert v.file == "src/a.ts"

    def test_location_str_is_one_based(self):
        assert str(self._sample().location) == "src/a.ts:2:3"

    def test_to_json(self):
        assert self._sample().to_json() == {
            "endPosition": {"character": 5, "line": 1, "position": 9},
            "failure": "bad name",
            "name": "src/a.ts",
            "ruleName": "some-rule",
            "ruleSeverity": "ERROR",
            "startPosition": {"character": 2, "line": 1, "position": 6},
        }

    def test_to_json_str(self):
        assert json.loads(self._sample().to_json_str())["ruleName"] == "some-rule"

    def test_to_prose(self):
        assert self._sample().to_prose() == "ERROR: src/a.ts[2, 3]: bad name"

    def test_to_prose_warning(self):
        assert self._sample(RuleSeverity.WARNING).to_prose() == "WARNING: src/a.ts[2, 3]: bad name"

    def test_to_verbose(self):
        assert self._sample().to_verbose() == "ERROR: (some-rule) src/a.ts[2, 3]: bad name"

    def test_to_gcc_format(self):
        assert self._sample().to_gcc_format() == "src/a.ts:2:3: error: bad name [some-rule]"

    def test_is_hashable(self):
        assert len({self._sample(), self._sample()}) == 1


class TestSuppressionManager:

    def _load(self, text):
        unit = make_unit(text)
        sm = SuppressionManager()
        sm.load_inline_suppressions(unit)
        return unit, sm

    def test_no_directives(self):
        unit, sm = self._load("let one = 1;")
        assert not sm.is_suppressed(_violation(unit, "one"))

    def test_disable_next_line(self):
        unit, sm = self._load("// tslint:disable-next-line\nlet one = 1;\nlet two = 2;")
        assert sm.is_suppressed(_violation(unit, "one"))
        assert not sm.is_suppressed(_violation(unit, "two"))

    def test_disable_line(self):
        unit, sm = self._load("let one = 1; // tslint:disable-line\nlet two = 2;")
        assert sm.is_suppressed(_violation(unit, "one"))
        assert not sm.is_suppressed(_violation(unit, "two"))

    def test_block_comment_directive(self):
        unit, sm = self._load("let one = 1; /* tslint:disable-line */")
        assert sm.is_suppressed(_violation(unit, "one"))

    def test_disable_enable_range(self):
        unit, sm = self._load(
            "let one = 1;\n"
            "/* tslint:disable */\n"
            "let two = 2;\n"
            "/* tslint:enable */\n"
            "let three = 3;\n"
        )
        assert not sm.is_suppressed(_violation(unit, "one"))
        assert sm.is_suppressed(_violation(unit, "two"))
        assert not sm.is_suppressed(_violation(unit, "three"))

    def test_unclosed_disable_runs_to_end(self):
        unit, sm = self._load("// tslint:disable\nlet one = 1;\n\nlet two = 2;")
        assert sm.is_suppressed(_violation(unit, "two"))

    def test_rule_scoped_next_line(self):
        unit, sm = self._load("// tslint:disable-next-line:variable-name-prefix\nlet one = 1;")
        assert sm.is_suppressed(_violation(unit, "one", rule="variable-name-prefix"))
        assert not sm.is_suppressed(_violation(unit, "one", rule="ordered-import-aliases"))

    def test_several_rules(self):
        unit, sm = self._load("// tslint:disable-next-line:rule-a rule-b\nlet one = 1;")
        assert sm.is_suppressed(_violation(unit, "one", rule="rule-a"))
        assert sm.is_suppressed(_violation(unit, "one", rule="rule-b"))
        assert not sm.is_suppressed(_violation(unit, "one", rule="rule-c"))

    def test_enable_single_rule(self):
        unit, sm = self._load(
            "// tslint:disable:rule-a rule-b\n"
            "let one = 1;\n"
            "// tslint:enable:rule-a\n"
            "let two = 2;\n"
        )
        assert sm.is_suppressed(_violation(unit, "one", rule="rule-a"))
        assert not sm.is_suppressed(_violation(unit, "two", rule="rule-a"))
        assert sm.is_suppressed(_violation(unit, "two", rule="rule-b"))

    def test_enable_all_closes_rule_ranges(self):
        unit, sm = self._load("// tslint:disable:rule-a\nlet one;\n// tslint:enable\nlet two;")
        assert sm.is_suppressed(_violation(unit, "one", rule="rule-a"))
        assert not sm.is_suppressed(_violation(unit, "two", rule="rule-a"))

    def test_enable_next_line_is_ignored(self):
        unit, sm = self._load("// tslint:enable-next-line\nlet one = 1;")
        assert not sm.is_suppressed(_violation(unit, "one"))

    def test_directive_on_last_line(self):
        unit, sm = self._load("let one = 1;\n// tslint:disable-next-line")
        assert not sm.is_suppressed(_violation(unit, "one"))

    def test_other_file_not_suppressed(self):
        _, sm = self._load("// tslint:disable\nlet one = 1;")
        other = make_unit("// tslint:disable\nlet one = 1;", "other.ts")
        assert not sm.is_suppressed(_violation(other, "one"))

    def test_reload_replaces_ranges(self):
        unit, sm = self._load("// tslint:disable\nlet one = 1;")
        fresh = make_unit("let one = 1;")
        sm.load_inline_suppressions(fresh)
        assert not sm.is_suppressed(_violation(fresh, "one"))

    def test_global_suppression(self):
        unit, sm = self._load("let one = 1;")
        sm.add_global_suppression("rule-a")
        assert sm.is_suppressed(_violation(unit, "one", rule="rule-a"))
        assert not sm.is_suppressed(_violation(unit, "one", rule="rule-b"))

    def test_global_wildcard(self):
        _, sm = self._load("")
        sm.add_global_suppression("*")
        assert sm.is_suppressed(_violation(make_unit("one", "z.ts"), "one"))

    def test_filter_violations(self):
        unit, sm = self._load("let a;\nlet b; // tslint:disable-line\nlet c;")
        kept = sm.filter_violations([_violation(unit, n) for n in "abc"])
        assert [unit.text[v.start] for v in kept] == ["a", "c"]


class _Recorder(RuleWalker):

    def __init__(self, root):
        super().__init__(root, "recorder")
        self.seen = []

    def visit_catch_clause(self, node):
        self.seen.append(node.kind)
        self.add_failure_at_node(node, "catch")

    def visit_parameter(self, node):
        self.seen.append(node.kind)


class TestRuleWalker:

    def test_dispatch_by_kind(self):
        root, _, catch, param = make_chain([
            SyntaxKind.SOURCE_FILE,
            SyntaxKind.TRY_STATEMENT,
            SyntaxKind.CATCH_CLAUSE,
            SyntaxKind.PARAMETER,
        ])
        walker = _Recorder(root)
        found = walker.walk()
        assert walker.seen == [SyntaxKind.CATCH_CLAUSE, SyntaxKind.PARAMETER]
        assert [v.message for v in found] == ["catch"]
        assert found[0].rule_name == "recorder"

    def test_every_kind_has_a_visitor_name(self):
        unit = make_unit("x")
        root = make_node(SyntaxKind.SOURCE_FILE, unit)
        for kind in SyntaxKind:
            make_node(kind, unit, parent=root)
        assert RuleWalker(root, "r").walk() == []

    def test_add_failure(self):
        unit = make_unit("let value;", "w.ts")
        root = make_node(SyntaxKind.SOURCE_FILE, unit)
        walker = RuleWalker(root, "r", RuleSeverity.WARNING)
        walker.add_failure(4, 5, "msg")
        (v,) = walker.violations
        assert (v.start, v.width, v.file) == (4, 5, "w.ts")
        assert v.severity is RuleSeverity.WARNING

    def test_violations_is_a_copy(self):
        root, = make_chain([SyntaxKind.SOURCE_FILE])
        walker = RuleWalker(root, "r")
        walker.violations.append("junk")
        assert walker.violations == []


class _EchoRule(Rule):
    name = "echo"
    option_values = ("loud",)

    def apply(self, root):
        return []


class TestRule:

    def test_options_are_tuple(self):
        rule = _EchoRule(["loud"])
        assert rule.options == ("loud",)
        assert rule.has_option("loud")
        assert not rule.has_option("quiet")

    def test_defaults(self):
        rule = _EchoRule()
        assert rule.severity is RuleSeverity.ERROR
        assert rule.rule_type == "style"
        assert "echo" in repr(rule)

    def test_abstract(self):
        with pytest.raises(TypeError):
            Rule()


class TestRuleRegistry:

    def test_register_and_lookup(self):
        registry = RuleRegistry()
        assert registry.register(_EchoRule) is _EchoRule
        assert registry.get_by_name("echo") is _EchoRule
        assert "echo" in registry
        assert registry.names == ["echo"]
        assert registry.get_all() == [_EchoRule]

    def test_missing(self):
        registry = RuleRegistry()
        assert registry.get_by_name("echo") is None
        assert "echo" not in registry

    def test_unregister(self):
        registry = RuleRegistry()
        registry.register(_EchoRule)
        registry.unregister("echo")
        registry.unregister("echo")
        assert registry.names == []

    def test_names_sorted(self):
        class Zeta(_EchoRule):
            name = "zeta"

        class Alpha(_EchoRule):
            name = "alpha"

        registry = RuleRegistry()
        registry.register(Zeta)
        registry.register(Alpha)
        assert registry.names == ["alpha", "zeta"]
        assert registry.get_all() == [Alpha, Zeta]
