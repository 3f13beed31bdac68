"""
tslint_conventions/config.py
════════════════════════════

Rule option parsing and ``tslint.json`` loading.

Rule options follow the tslint convention: an ordered list of strings
taken from the rule's entry in ``tslint.json``::

    {
        "rules": {
            "variable-name-prefix": [true, "function-prefix", "jquery-prefix"],
            "ordered-import-aliases": [true, "lowercase-first"]
        },
        "linterOptions": {"exclude": ["**/*.d.ts"]}
    }

A rule entry is one of ``true``, ``false``, ``[enabled, option, ...]``
or ``{"options": [...], "severity": "warning"}``.
"""

from __future__ import annotations

import fnmatch
import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from tslint_conventions.errors import ConfigurationError, ErrorCodes

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "tslint.json"


# ═════════════════════════════════════════════════════════════════════════
#  PART 1 — VARIABLE NAME PREFIX POLICY
# ═════════════════════════════════════════════════════════════════════════

class PrefixCheck(Enum):
    """
    One naming check: its option string and the required leading character.
    """
    CLASS = ("class-prefix", "i")
    FUNCTION = ("function-prefix", "t")
    GLOBAL = ("global-prefix", "g")
    PARAMETER = ("parameter-prefix", "a")
    JQUERY = ("jquery-prefix", "$")

    def __init__(self, option: str, prefix: str) -> None:
        self.option = option
        self.prefix = prefix

    @classmethod
    def from_option(cls, option: str) -> "PrefixCheck":
        for check in cls:
            if check.option == option:
                return check
        raise ConfigurationError(
            f"unknown variable-name-prefix option {option!r}; expected one of "
            + ", ".join(c.option for c in cls),
            code=ErrorCodes.UNKNOWN_RULE_OPTION,
        )


@dataclass(frozen=True)
class NamingPolicy:
    """
    Which naming checks are enabled.

    ``test_file_markers`` are substrings of a file path (directories
    included) that mark it as a test-spec file, which changes how arrow
    functions are classified.
    """
    check_class: bool = False
    check_function: bool = False
    check_global: bool = False
    check_parameter: bool = False
    check_jquery: bool = False
    test_file_markers: Tuple[str, ...] = (".spec",)

    @classmethod
    def from_options(cls, options: Iterable[str]) -> "NamingPolicy":
        enabled = {PrefixCheck.from_option(option) for option in options}
        return cls(
            check_class=PrefixCheck.CLASS in enabled,
            check_function=PrefixCheck.FUNCTION in enabled,
            check_global=PrefixCheck.GLOBAL in enabled,
            check_parameter=PrefixCheck.PARAMETER in enabled,
            check_jquery=PrefixCheck.JQUERY in enabled,
        )

    def is_enabled(self, check: PrefixCheck) -> bool:
        return {
            PrefixCheck.CLASS: self.check_class,
            PrefixCheck.FUNCTION: self.check_function,
            PrefixCheck.GLOBAL: self.check_global,
            PrefixCheck.PARAMETER: self.check_parameter,
            PrefixCheck.JQUERY: self.check_jquery,
        }[check]

    @property
    def any_enabled(self) -> bool:
        return any(self.is_enabled(check) for check in PrefixCheck)

    def is_test_spec(self, file_name: str) -> bool:
        return any(marker in file_name for marker in self.test_file_markers)


# ═════════════════════════════════════════════════════════════════════════
#  PART 2 — IMPORT ALIAS ORDER POLICY
# ═════════════════════════════════════════════════════════════════════════

_SWAP = str.maketrans(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ",
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz",
)


def flip_case(text: str) -> str:
    """Swap the case of ASCII letters; everything else is left alone."""
    return text.translate(_SWAP)


def case_fold(text: str) -> str:
    return text.lower()


def identity(text: str) -> str:
    return text


class ImportCase(Enum):
    CASE_INSENSITIVE = "case-insensitive"
    LOWERCASE_FIRST = "lowercase-first"
    LOWERCASE_LAST = "lowercase-last"


TRANSFORMS: Dict[ImportCase, Callable[[str], str]] = {
    ImportCase.CASE_INSENSITIVE: case_fold,
    ImportCase.LOWERCASE_FIRST: flip_case,
    ImportCase.LOWERCASE_LAST: identity,
}


@dataclass(frozen=True)
class ImportOrderPolicy:
    """Comparison key used when checking alias order."""
    case: ImportCase = ImportCase.CASE_INSENSITIVE

    @classmethod
    def from_options(cls, options: Sequence[str]) -> "ImportOrderPolicy":
        if len(options) > 1:
            raise ConfigurationError(
                "ordered-import-aliases takes at most one option, got "
                + ", ".join(repr(o) for o in options),
                code=ErrorCodes.CONFLICTING_RULE_OPTIONS,
            )
        if not options:
            return cls()
        try:
            return cls(ImportCase(options[0]))
        except ValueError:
            raise ConfigurationError(
                f"unknown ordered-import-aliases option {options[0]!r}; expected "
                "one of " + ", ".join(c.value for c in ImportCase),
                code=ErrorCodes.UNKNOWN_RULE_OPTION,
            ) from None

    @property
    def name(self) -> str:
        return self.case.value

    def transform(self, alias: str) -> str:
        return TRANSFORMS[self.case](alias)


# ═════════════════════════════════════════════════════════════════════════
#  PART 3 — tslint.json
# ═════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RuleConfig:
    """One entry of the ``rules`` map."""
    name: str
    enabled: bool = True
    options: Tuple[str, ...] = ()
    severity: str = "error"

    @classmethod
    def from_entry(cls, name: str, entry: Any) -> "RuleConfig":
        if isinstance(entry, bool):
            return cls(name, enabled=entry)
        if isinstance(entry, list):
            if not entry:
                return cls(name, enabled=True)
            head, rest = entry[0], entry[1:]
            if not isinstance(head, bool):
                head, rest = True, entry
            return cls(name, enabled=head, options=_string_options(name, rest))
        if isinstance(entry, dict):
            severity = str(entry.get("severity", "error")).lower()
            if severity not in ("error", "warning", "off", "none"):
                raise ConfigurationError(
                    f"rule {name!r}: unknown severity {severity!r}",
                    code=ErrorCodes.INVALID_RULE_ENTRY,
                )
            options = entry.get("options", [])
            if not isinstance(options, list):
                options = [options]
            enabled = severity not in ("off", "none")
            if options and isinstance(options[0], bool):
                enabled = enabled and options[0]
                options = options[1:]
            return cls(
                name,
                enabled=enabled,
                options=_string_options(name, options),
                severity=severity if enabled else "error",
            )
        raise ConfigurationError(
            f"rule {name!r}: expected true, false, a list or an object, "
            f"got {type(entry).__name__}",
            code=ErrorCodes.INVALID_RULE_ENTRY,
        )


def _string_options(name: str, values: Sequence[Any]) -> Tuple[str, ...]:
    for value in values:
        if not isinstance(value, str):
            raise ConfigurationError(
                f"rule {name!r}: options must be strings, got {value!r}",
                code=ErrorCodes.INVALID_RULE_ENTRY,
            )
    return tuple(values)


@dataclass
class LintConfig:
    """
    Parsed ``tslint.json``.

    Attributes
    ----------
    rules   : Rule name -> RuleConfig, in file order
    exclude : Glob patterns of files to skip
    path    : Where the configuration was read from (None when built in code)
    """
    rules: Dict[str, RuleConfig] = field(default_factory=dict)
    exclude: Tuple[str, ...] = ()
    path: Optional[Path] = None

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        path: Optional[Path] = None,
        known_rules: Optional[Iterable[str]] = None,
    ) -> "LintConfig":
        if not isinstance(data, dict):
            raise ConfigurationError(
                "configuration must be a JSON object",
                code=ErrorCodes.INVALID_CONFIG_FILE,
                file=str(path or ""),
            )
        raw_rules = data.get("rules", {})
        if not isinstance(raw_rules, dict):
            raise ConfigurationError(
                '"rules" must be an object',
                code=ErrorCodes.INVALID_CONFIG_FILE,
                file=str(path or ""),
            )
        known = set(known_rules) if known_rules is not None else None
        rules: Dict[str, RuleConfig] = {}
        for name, entry in raw_rules.items():
            if known is not None and name not in known:
                logger.warning("Ignoring unknown rule %r in %s", name, path or "<config>")
                continue
            rules[name] = RuleConfig.from_entry(name, entry)

        linter_options = data.get("linterOptions", {}) or {}
        exclude = linter_options.get("exclude", [])
        if isinstance(exclude, str):
            exclude = [exclude]
        return cls(rules=rules, exclude=tuple(exclude), path=path)

    @classmethod
    def load(
        cls,
        path: os.PathLike,
        known_rules: Optional[Iterable[str]] = None,
    ) -> "LintConfig":
        """Read and parse a ``tslint.json`` file."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ConfigurationError(
                f"cannot read configuration: {exc}",
                code=ErrorCodes.INVALID_CONFIG_FILE,
                file=str(path),
                cause=exc,
            ) from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                f"malformed JSON: {exc.msg}",
                code=ErrorCodes.INVALID_CONFIG_FILE,
                file=str(path),
                line=exc.lineno,
                cause=exc,
            ) from exc
        logger.info("Loaded configuration from %s", path)
        return cls.from_dict(data, path=path, known_rules=known_rules)

    def enabled_rules(self) -> List[RuleConfig]:
        return [rule for rule in self.rules.values() if rule.enabled]

    def is_excluded(self, file_path: str) -> bool:
        """True when ``file_path`` matches one of the exclude globs."""
        candidates = [file_path]
        if self.path is not None:
            try:
                candidates.append(
                    os.path.relpath(os.path.abspath(file_path), self.path.parent)
                )
            except ValueError:
                pass
        for pattern in self.exclude:
            for candidate in candidates:
                if fnmatch.fnmatch(candidate.replace(os.sep, "/"), pattern):
                    return True
        return False


def find_config(start: os.PathLike) -> Optional[Path]:
    """
    Nearest ``tslint.json`` in ``start`` (or its directory) and its parents.
    """
    current = Path(start).resolve()
    if not current.is_dir():
        current = current.parent
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


__all__ = [
    "CONFIG_FILE_NAME",
    "PrefixCheck",
    "NamingPolicy",
    "flip_case",
    "case_fold",
    "identity",
    "ImportCase",
    "TRANSFORMS",
    "ImportOrderPolicy",
    "RuleConfig",
    "LintConfig",
    "find_config",
]
