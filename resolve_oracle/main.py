#!/usr/bin/env python3
"""resolve_oracle/main.py — CLI entry-point for the resolution oracle.

Usage examples
--------------
    # Show the marker-free text and the expectation tables of a fixture
    python -m resolve_oracle extract tests/fixtures/overloads.kt

    # Verify one or more fixtures with the bundled fixturelang resolver
    python -m resolve_oracle check fixtures/*.kt

    # Verify with another resolver adapter and stop at the first mismatch
    python -m resolve_oracle check a.kt --analyzer mypkg.adapter:analyze --fail-fast

    # Parse a fixture (markers stripped) and dump the fixturelang AST
    python -m resolve_oracle parse a.kt --format yaml

Exit codes
----------
``check``
    0   Every expectation matched.
    1   One or more resolution mismatches.
    2   Infrastructure failure: unreadable fixture or config, analyzer
        import or crash, fixturelang syntax error.
    3   Malformed fixture (duplicate marker, misplaced marker, missing context).

``extract``
    0 on success, 3 for a malformed fixture.

``parse``
    0 on success, 1 for a fixturelang syntax error, 3 for a malformed fixture.

Any command returns 2 for a missing input file.

The module doubles as ``python -m resolve_oracle`` via the companion
``resolve_oracle/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, TextIO

from resolve_oracle import __version__
from resolve_oracle.config import OracleConfig
from resolve_oracle.errors import (
    AnalysisError,
    MalformedFixtureError,
    MissingContextError,
    OracleError,
)
from resolve_oracle.harness import DEFAULT_ANALYZER, check_file, load_analyzer
from resolve_oracle.markers import extract, marker_summary, strip_markers
from resolve_oracle.verifier import VerificationReport

_log = logging.getLogger("resolve_oracle")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_MISMATCH: int = 1
EXIT_INFRA: int = 2
EXIT_MALFORMED: int = 3


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``resolve_oracle`` and ``fixturelang`` loggers.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    for name in ("resolve_oracle", "fixturelang"):
        root = logging.getLogger(name)
        root.setLevel(level)
        root.handlers[:] = [handler]


def _resolve_path(raw: str, label: str = "file") -> Path:
    """Resolve *raw* to an absolute ``Path``, raising on missing files."""
    p = Path(raw).expanduser().resolve()
    if not p.exists():
        _log.error("%s not found: %s", label, p)
        raise SystemExit(EXIT_INFRA)
    return p


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


def _exit_code_for(exc: OracleError) -> int:
    if isinstance(exc, (MalformedFixtureError, MissingContextError)):
        return EXIT_MALFORMED
    return EXIT_INFRA


def _report_to_dict(report: VerificationReport) -> Dict[str, Any]:
    return {
        "file": report.filename,
        "passed": report.passed,
        "results": [
            {
                "kind": r.kind.value,
                "position": r.position,
                "payload": r.payload,
                "passed": r.passed,
                **({"error": r.error.to_json()} if r.error is not None else {}),
            }
            for r in report.results
        ],
    }


# ===========================================================================
# Sub-command implementations
# ===========================================================================

# ---------------------------------------------------------------------------
# extract
# ---------------------------------------------------------------------------

def cmd_extract(args: argparse.Namespace) -> int:
    """Strip the markers of one fixture and print the text and tables."""
    path = _resolve_path(args.fixture, "fixture")
    try:
        fixture = extract(path.read_text(encoding="utf-8"), filename=str(path))
    except OracleError as exc:
        sys.stderr.write(exc.to_gcc_format() + "\n")
        return _exit_code_for(exc)

    out = _open_output(args.output)
    try:
        if args.format == "json":
            doc = {
                "file": fixture.filename,
                "text": fixture.text,
                "tables": fixture.tables.to_dict(),
            }
            out.write(json.dumps(doc, indent=2) + "\n")
        else:
            out.write(fixture.text)
            if not fixture.text.endswith("\n"):
                out.write("\n")
            out.write("--- markers ---\n")
            for kind, offset, payload in marker_summary(fixture):
                out.write(f"{offset:>6}  {kind:<12} {payload}\n")
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Run extract → analyze → verify over every fixture given."""
    try:
        analyzer = load_analyzer(args.analyzer)
    except (ImportError, AttributeError, ValueError, TypeError) as exc:
        _log.error("Cannot load analyzer %s: %s", args.analyzer, exc)
        return EXIT_INFRA

    if args.config:
        try:
            config = OracleConfig.from_file(_resolve_path(args.config, "config file"))
        except (OSError, ValueError, TypeError) as exc:
            _log.error("Bad config file %s: %s", args.config, exc)
            return EXIT_INFRA
    else:
        config = OracleConfig()
    if args.fail_fast:
        config.fail_fast = True

    exit_code = EXIT_OK
    reports: List[VerificationReport] = []
    out = _open_output(args.output)
    try:
        for raw in args.fixtures:
            path = _resolve_path(raw, "fixture")
            try:
                report = check_file(path, analyzer, config=config)
            except OracleError as exc:
                # fail_fast mismatches land here as well
                sys.stderr.write(exc.to_gcc_format() + "\n")
                code = _exit_code_for(exc)
                if isinstance(exc, AssertionError):
                    code = EXIT_MISMATCH
                exit_code = max(exit_code, code)
                continue

            reports.append(report)
            if not report.passed:
                exit_code = max(exit_code, EXIT_MISMATCH)
            if args.format == "gcc":
                for failure in report.failures:
                    out.write(failure.to_gcc_format() + "\n")
            elif args.format == "summary":
                out.write(report.summary() + "\n")
                for result in report.results:
                    if not result.passed:
                        out.write(f"  {result.describe()}: {result.error.message}\n")

        if args.format == "json":
            out.write(json.dumps([_report_to_dict(r) for r in reports], indent=2) + "\n")
        elif args.format == "summary":
            failed = sum(1 for r in reports if not r.passed)
            out.write(f"\n--- {len(reports)} fixture(s) checked, {failed} failed ---\n")
    finally:
        if out is not sys.stdout:
            out.close()
    return exit_code


# ---------------------------------------------------------------------------
# parse (debug front-end)
# ---------------------------------------------------------------------------

def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a fixture with fixturelang and pretty-print its AST.

    Markers are stripped first, so annotated fixtures can be inspected
    directly.
    """
    from fixturelang.ast_nodes import dump_json, dump_yaml
    from fixturelang.parser import parse

    src_path = _resolve_path(args.source_file, "source file")
    try:
        source = strip_markers(src_path.read_text(encoding="utf-8"))
        ast = parse(source, filename=str(src_path))
    except AnalysisError as exc:
        sys.stderr.write(exc.to_gcc_format() + "\n")
        return EXIT_MISMATCH
    except OracleError as exc:
        sys.stderr.write(exc.to_gcc_format() + "\n")
        return _exit_code_for(exc)

    out = _open_output(args.output)
    try:
        if args.format == "yaml":
            out.write(dump_yaml(ast))
        elif args.format == "json":
            out.write(dump_json(ast) + "\n")
        else:
            out.write(repr(ast) + "\n")
    finally:
        if out is not sys.stdout:
            out.close()
    return EXIT_OK


# ===========================================================================
# Argument parser
# ===========================================================================

def _build_parser() -> argparse.ArgumentParser:
    """Construct the full CLI argument parser with subcommands."""

    # --- Top-level parser --------------------------------------------------
    parser = argparse.ArgumentParser(
        prog="resolve-oracle",
        description=(
            "Marker-annotated source oracle.\n\n"
            "Strips ~decl~ and `ref` markers from fixtures, runs a resolver\n"
            "over the clean text and checks every recorded expectation."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              resolve-oracle extract fixture.kt
              resolve-oracle check fixtures/*.kt -f summary
              resolve-oracle check a.kt --analyzer mypkg.adapter:analyze
              resolve-oracle parse fixture.kt -f yaml
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

    def _add_output_arg(p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "-o", "--output",
            default=None,
            metavar="FILE",
            help='Output file ("-" or omit for stdout).',
        )

    # --- extract -----------------------------------------------------------
    p_extract = subparsers.add_parser(
        "extract",
        help="Strip markers and print the clean text and expectation tables.",
    )
    p_extract.add_argument("fixture", metavar="FIXTURE", help="Annotated fixture file.")
    p_extract.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )
    _add_output_arg(p_extract)
    p_extract.set_defaults(func=cmd_extract)

    # --- check -------------------------------------------------------------
    p_check = subparsers.add_parser(
        "check",
        help="Verify fixtures against a resolver.",
        description=(
            "Extract markers, run the analyzer over the clean text and "
            "verify declarations, references and type assertions."
        ),
    )
    p_check.add_argument(
        "fixtures",
        metavar="FIXTURE",
        nargs="+",
        help="Annotated fixture file(s).",
    )
    p_check.add_argument(
        "--analyzer",
        default=DEFAULT_ANALYZER,
        metavar="MODULE:CALLABLE",
        help=f"Resolver adapter to use (default: {DEFAULT_ANALYZER}).",
    )
    p_check.add_argument(
        "--config",
        default=None,
        metavar="FILE",
        help="YAML file with OracleConfig options.",
    )
    p_check.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop a fixture at its first mismatch.",
    )
    p_check.add_argument(
        "-f", "--format",
        choices=["gcc", "json", "summary"],
        default="gcc",
        help="Output format (default: gcc).",
    )
    _add_output_arg(p_check)
    p_check.set_defaults(func=cmd_check)

    # --- parse -------------------------------------------------------------
    p_parse = subparsers.add_parser(
        "parse",
        help="Parse a fixturelang file and dump the AST.",
        description=(
            "Strip markers, parse the text with fixturelang and pretty-print "
            "the abstract syntax tree. Useful for front-end debugging."
        ),
    )
    p_parse.add_argument(
        "source_file",
        metavar="SOURCE",
        help="fixturelang source or annotated fixture.",
    )
    p_parse.add_argument(
        "-f", "--format",
        choices=["yaml", "json", "repr"],
        default="yaml",
        help="AST output format (default: yaml).",
    )
    _add_output_arg(p_parse)
    p_parse.set_defaults(func=cmd_parse)

    return parser


# ===========================================================================
# Main entry point
# ===========================================================================

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the resolve-oracle CLI.

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
        return 130  # Standard UNIX convention for SIGINT
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else EXIT_INFRA
    except Exception as exc:
        _log.error("Unhandled exception: %s", exc, exc_info=True)
        return EXIT_INFRA


# ---------------------------------------------------------------------------
# Module execution support
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    raise SystemExit(main())
