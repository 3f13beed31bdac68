#!/usr/bin/env python3
"""tslint_conventions/main.py — CLI entry-point.

Usage examples
--------------
    # Lint sources with the nearest tslint.json
    tslint-conventions lint src/

    # Lint with an explicit configuration, JSON output to a file
    tslint-conventions lint "src/**/*.ts" --config tslint.json -f json -o report.json

    # Run rule fixtures (directories holding tslint.json + *.ts.lint)
    tslint-conventions test tests/rules

    # List the available rules and their options
    tslint-conventions rules

Exit codes
----------
    0   Success (no ERROR-severity violations, all fixtures pass).
    1   Violations found, or a fixture did not match.
    2   Infrastructure failure (bad configuration, unreadable file, etc.).

The module doubles as ``python -m tslint_conventions`` via the companion
``tslint_conventions/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from pathlib import Path
from typing import Optional, Sequence, TextIO

from tslint_conventions import __version__
from tslint_conventions.checkers import SuppressionManager
from tslint_conventions.config import LintConfig, find_config
from tslint_conventions.errors import ConventionsError
from tslint_conventions.fixtures import run_fixtures
from tslint_conventions.runner import FORMATTERS, LintRunner, default_registry

_log = logging.getLogger("tslint_conventions")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1
EXIT_INFRA: int = 2

_handler: Optional[logging.Handler] = None


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the package logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    global _handler
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    root = logging.getLogger("tslint_conventions")
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.setLevel(level)
    root.addHandler(_handler)


def _open_output(dest: Optional[str]) -> TextIO:
    """Return a writable text stream.

    *dest* ``None`` or ``"-"`` → ``sys.stdout``; otherwise open the path
    for writing (creating parent directories as needed).
    """
    if dest is None or dest == "-":
        return sys.stdout
    p = Path(dest).expanduser().resolve()
    p.parent.mkdir(parents=True, exist_ok=True)
    return open(p, "w", encoding="utf-8")


def _write(text: str, dest: Optional[str]) -> None:
    out = _open_output(dest)
    try:
        if text:
            out.write(text + "\n")
    finally:
        if out is not sys.stdout:
            out.close()


# ===========================================================================
# Sub-commands
# ===========================================================================

def cmd_lint(args: argparse.Namespace) -> int:
    """Lint source files and report violations."""
    registry = default_registry()
    config_path = Path(args.config) if args.config else find_config(Path.cwd())

    try:
        config = None
        if config_path is not None:
            config = LintConfig.load(config_path, known_rules=registry.names)
        else:
            _log.info("No %s found, running every rule with default options",
                      "tslint.json")

        sm = SuppressionManager()
        for rule_name in args.suppress or ():
            sm.add_global_suppression(rule_name)

        runner = LintRunner(config, registry=registry, suppressions=sm)
        results = runner.lint_paths(args.paths)
    except ConventionsError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    _write(results.format(args.format), args.output)
    _log.info("%s", results.summary())

    if results.errors:
        return EXIT_INFRA
    if results.error_count > 0 and not args.force:
        return EXIT_ERROR
    return EXIT_OK


def cmd_test(args: argparse.Namespace) -> int:
    """Run ``.lint`` fixture directories."""
    try:
        report = run_fixtures(args.directories)
    except ConventionsError as exc:
        _log.error("%s", exc)
        return EXIT_INFRA

    _write(report.summary(), args.output)
    return EXIT_OK if report.passed else EXIT_ERROR


def cmd_rules(args: argparse.Namespace) -> int:
    """List the available rules."""
    registry = default_registry()
    names = args.names or registry.names
    lines = []
    for name in names:
        cls = registry.get_by_name(name)
        if cls is None:
            _log.error("Unknown rule: %s", name)
            return EXIT_INFRA
        lines.append(f"  {name:25s} {cls.description}")
        lines.append(f"  {'':25s} options: {', '.join(cls.option_values) or '<none>'}")
        if args.names:
            lines.append(textwrap.indent(cls.options_description, " " * 29))
            for example in cls.option_examples:
                lines.append(f"  {'':25s} e.g. {example}")
        lines.append("")
    _write("\n".join(lines).rstrip("\n"), args.output)
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    parser = argparse.ArgumentParser(
        prog="tslint-conventions",
        description=(
            "Scope-aware variable naming and import alias ordering checks\n"
            "for TypeScript sources."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              tslint-conventions lint src/ --config tslint.json
              tslint-conventions lint "src/**/*.ts" -f json -o report.json
              tslint-conventions test tests/rules
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    def _add_output_args(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output", "--out",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    # --- lint --------------------------------------------------------------
    p_lint = subparsers.add_parser(
        "lint",
        help="Lint TypeScript files.",
        description="Lint files, directories or glob patterns.",
    )
    p_lint.add_argument("paths", nargs="+", metavar="PATH",
                        help="Files, directories or glob patterns.")
    p_lint.add_argument(
        "-c", "--config",
        default=None,
        metavar="FILE",
        help="tslint.json to use (default: nearest one above the working directory).",
    )
    p_lint.add_argument(
        "-f", "--format",
        choices=sorted(FORMATTERS),
        default="prose",
        help="Output format (default: prose).",
    )
    p_lint.add_argument(
        "--suppress",
        action="append",
        default=None,
        metavar="RULE",
        help="Suppress a rule globally (repeatable).",
    )
    p_lint.add_argument(
        "--force",
        action="store_true",
        help="Return exit code 0 even if there are violations.",
    )
    _add_output_args(p_lint)
    p_lint.set_defaults(func=cmd_lint)

    # --- test --------------------------------------------------------------
    p_test = subparsers.add_parser(
        "test",
        help="Run .lint rule fixtures.",
        description=(
            "Find directories holding a tslint.json, lint every *.lint file "
            "in them and compare against the markup."
        ),
    )
    p_test.add_argument("directories", nargs="+", metavar="DIR",
                        help="Fixture roots, searched recursively.")
    _add_output_args(p_test)
    p_test.set_defaults(func=cmd_test)

    # --- rules -------------------------------------------------------------
    p_rules = subparsers.add_parser(
        "rules",
        help="List available rules.",
        description="List the available rules, or describe the named ones.",
    )
    p_rules.add_argument("names", nargs="*", metavar="RULE")
    _add_output_args(p_rules)
    p_rules.set_defaults(func=cmd_rules)

    return parser


# ===========================================================================
# Main
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    # No subcommand given → print help.
    if not hasattr(args, "func"):
        parser.print_help(sys.stderr)
        return EXIT_INFRA

    try:
        return args.func(args)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


if __name__ == "__main__":
    raise SystemExit(main())
