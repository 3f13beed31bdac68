# tests/test_config.py
"""
Tests for rule option parsing and tslint.json loading.
"""

import json
import logging

import pytest

from tslint_conventions.config import (
    CONFIG_FILE_NAME,
    ImportCase,
    ImportOrderPolicy,
    LintConfig,
    NamingPolicy,
    PrefixCheck,
    RuleConfig,
    find_config,
)
from tslint_conventions.errors import ConfigurationError, ErrorCodes

KNOWN = ["ordered-import-aliases", "variable-name-prefix"]


def _write_config(directory, data):
    path = directory / CONFIG_FILE_NAME
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestPrefixCheck:

    @pytest.mark.parametrize("option,prefix", [
        ("class-prefix", "i"),
        ("function-prefix", "t"),
        ("global-prefix", "g"),
        ("parameter-prefix", "a"),
        ("jquery-prefix", "$"),
    ])
    def test_from_option(self, option, prefix):
        check = PrefixCheck.from_option(option)
        assert check.option == option
        assert check.prefix == prefix

    def test_unknown_option(self):
        with pytest.raises(ConfigurationError) as info:
            PrefixCheck.from_option("member-prefix")
        assert info.value.code == ErrorCodes.UNKNOWN_RULE_OPTION
        assert "member-prefix" in str(info.value)


class TestNamingPolicy:

    def test_defaults_disable_everything(self):
        policy = NamingPolicy()
        assert not policy.any_enabled
        assert not any(policy.is_enabled(check) for check in PrefixCheck)

    def test_from_options(self):
        policy = NamingPolicy.from_options(["class-prefix", "jquery-prefix"])
        assert policy.check_class and policy.check_jquery
        assert not policy.check_function
        assert policy.is_enabled(PrefixCheck.CLASS)
        assert not policy.is_enabled(PrefixCheck.GLOBAL)
        assert policy.any_enabled

    def test_duplicate_options(self):
        policy = NamingPolicy.from_options(["global-prefix", "global-prefix"])
        assert policy.check_global

    @pytest.mark.parametrize("file_name,expected", [
        ("foo.spec.ts", True),
        ("src/app/foo.spec.ts", True),
        ("foo.ts", False),
        ("spec/foo.ts", False),
        ("foo.specs.ts", True),
        ("tests/foo.spec/bar.ts", True),
    ])
    def test_is_test_spec(self, file_name, expected):
        assert NamingPolicy().is_test_spec(file_name) is expected

    def test_custom_markers(self):
        policy = NamingPolicy(test_file_markers=(".test", ".e2e"))
        assert policy.is_test_spec("a.e2e.ts")
        assert not policy.is_test_spec("a.spec.ts")


class TestImportOrderPolicy:

    def test_default(self):
        policy = ImportOrderPolicy.from_options([])
        assert policy.case is ImportCase.CASE_INSENSITIVE
        assert policy.name == "case-insensitive"

    @pytest.mark.parametrize("option,alias,key", [
        ("case-insensitive", "FooBar", "foobar"),
        ("lowercase-first", "FooBar", "fOObAR"),
        ("lowercase-last", "FooBar", "FooBar"),
    ])
    def test_transform(self, option, alias, key):
        assert ImportOrderPolicy.from_options([option]).transform(alias) == key

    def test_conflicting(self):
        with pytest.raises(ConfigurationError) as info:
            ImportOrderPolicy.from_options(["lowercase-first", "lowercase-first"])
        assert info.value.code == ErrorCodes.CONFLICTING_RULE_OPTIONS

    def test_unknown(self):
        with pytest.raises(ConfigurationError) as info:
            ImportOrderPolicy.from_options(["upper-first"])
        assert info.value.code == ErrorCodes.UNKNOWN_RULE_OPTION


class TestRuleConfig:

    def test_bool(self):
        assert RuleConfig.from_entry("r", True) == RuleConfig("r", enabled=True)
        assert not RuleConfig.from_entry("r", False).enabled

    def test_list_with_head(self):
        rc = RuleConfig.from_entry("r", [True, "class-prefix", "jquery-prefix"])
        assert rc.enabled
        assert rc.options == ("class-prefix", "jquery-prefix")

    def test_list_disabled(self):
        assert not RuleConfig.from_entry("r", [False, "class-prefix"]).enabled

    def test_list_without_head(self):
        rc = RuleConfig.from_entry("r", ["lowercase-first"])
        assert rc.enabled
        assert rc.options == ("lowercase-first",)

    def test_empty_list(self):
        assert RuleConfig.from_entry("r", []) == RuleConfig("r")

    def test_object(self):
        rc = RuleConfig.from_entry("r", {"options": ["global-prefix"], "severity": "Warning"})
        assert rc.enabled
        assert rc.severity == "warning"
        assert rc.options == ("global-prefix",)

    def test_object_single_option(self):
        assert RuleConfig.from_entry("r", {"options": "lowercase-last"}).options == ("lowercase-last",)

    @pytest.mark.parametrize("severity", ["off", "none"])
    def test_object_off(self, severity):
        assert not RuleConfig.from_entry("r", {"severity": severity}).enabled

    def test_object_bool_head(self):
        assert not RuleConfig.from_entry("r", {"options": [False]}).enabled

    def test_object_bad_severity(self):
        with pytest.raises(ConfigurationError) as info:
            RuleConfig.from_entry("r", {"severity": "fatal"})
        assert info.value.code == ErrorCodes.INVALID_RULE_ENTRY

    @pytest.mark.parametrize("entry", [1, "true", None])
    def test_bad_entry(self, entry):
        with pytest.raises(ConfigurationError) as info:
            RuleConfig.from_entry("r", entry)
        assert info.value.code == ErrorCodes.INVALID_RULE_ENTRY

    def test_non_string_option(self):
        with pytest.raises(ConfigurationError):
            RuleConfig.from_entry("r", [True, 3])


class TestLintConfig:

    def test_from_dict(self):
        config = LintConfig.from_dict({
            "rules": {
                "variable-name-prefix": [True, "function-prefix"],
                "ordered-import-aliases": False,
            },
        })
        assert list(config.rules) == ["variable-name-prefix", "ordered-import-aliases"]
        assert [r.name for r in config.enabled_rules()] == ["variable-name-prefix"]

    def test_unknown_rule_is_skipped_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tslint_conventions"):
            config = LintConfig.from_dict(
                {"rules": {"no-var-keyword": True, "variable-name-prefix": True}},
                known_rules=KNOWN,
            )
        assert list(config.rules) == ["variable-name-prefix"]
        assert "no-var-keyword" in caplog.text

    def test_unknown_rule_kept_without_known_list(self):
        config = LintConfig.from_dict({"rules": {"no-var-keyword": True}})
        assert "no-var-keyword" in config.rules

    def test_not_an_object(self):
        with pytest.raises(ConfigurationError) as info:
            LintConfig.from_dict([])
        assert info.value.code == ErrorCodes.INVALID_CONFIG_FILE

    def test_rules_not_an_object(self):
        with pytest.raises(ConfigurationError):
            LintConfig.from_dict({"rules": ["variable-name-prefix"]})

    def test_exclude(self):
        config = LintConfig.from_dict({"linterOptions": {"exclude": "**/*.d.ts"}})
        assert config.exclude == ("**/*.d.ts",)

    def test_load(self, tmp_path):
        path = _write_config(tmp_path, {"rules": {"ordered-import-aliases": [True, "lowercase-last"]}})
        config = LintConfig.load(path, known_rules=KNOWN)
        assert config.path == path
        assert config.rules["ordered-import-aliases"].options == ("lowercase-last",)

    def test_load_missing(self, tmp_path):
        with pytest.raises(ConfigurationError) as info:
            LintConfig.load(tmp_path / "nope.json")
        assert info.value.code == ErrorCodes.INVALID_CONFIG_FILE

    def test_load_malformed(self, tmp_path):
        path = tmp_path / CONFIG_FILE_NAME
        path.write_text('{\n  "rules": {,\n}', encoding="utf-8")
        with pytest.raises(ConfigurationError) as info:
            LintConfig.load(path)
        assert info.value.code == ErrorCodes.INVALID_CONFIG_FILE
        assert info.value.line == 2

    def test_is_excluded_relative_to_config(self, tmp_path):
        path = _write_config(tmp_path, {"linterOptions": {"exclude": ["generated/**"]}})
        config = LintConfig.load(path)
        assert config.is_excluded(str(tmp_path / "generated" / "a.ts"))
        assert not config.is_excluded(str(tmp_path / "src" / "a.ts"))

    def test_is_excluded_raw_path(self):
        config = LintConfig(exclude=("*.d.ts",))
        assert config.is_excluded("types.d.ts")
        assert not config.is_excluded("types.ts")


class TestFindConfig:

    def test_in_start_directory(self, tmp_path):
        path = _write_config(tmp_path, {})
        assert find_config(tmp_path) == path.resolve()

    def test_in_parent(self, tmp_path):
        path = _write_config(tmp_path, {})
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config(nested) == path.resolve()

    def test_from_file(self, tmp_path):
        path = _write_config(tmp_path, {})
        source = tmp_path / "x.ts"
        source.write_text("", encoding="utf-8")
        assert find_config(source) == path.resolve()

    def test_nearest_wins(self, tmp_path):
        _write_config(tmp_path, {})
        nested = tmp_path / "pkg"
        nested.mkdir()
        inner = _write_config(nested, {})
        assert find_config(nested) == inner.resolve()
