"""resolve_oracle — marker-annotated source oracle.

Fixtures are ordinary source files carrying two kinds of markers:
``~name~`` binds *name* to the declaration at that position, and
`` `payload` `` asserts what the reference at that position resolves to
(`` `:T` `` asserts the type of the expression just before it).  The
oracle strips the markers, hands the clean text to a resolver, and checks
every expectation against the resolver's binding model.

Submodules
----------
markers
    ``extract`` — marker scanning with left-to-right offset remapping,
    ``ExpectationTables`` and the ``Sentinel`` payloads.

verifier
    ``ResolutionVerifier`` — declarations, references and type-assertion
    passes over a ``BindingModel``; ``VerificationReport``.

model
    Protocols a resolver adapter implements (``BindingModel``,
    ``ExternalLibrary``).

harness
    ``check_fixture`` / ``check_file`` — extract → analyze → verify.

errors
    ``OracleError`` hierarchy with ``ROC-XXXX`` codes and ``SourceSpan``.

config
    ``OracleConfig`` (YAML-loadable).

main
    CLI entry-point with subcommands ``extract``, ``check`` and ``parse``.

Usage
-----
Command-line::

    python -m resolve_oracle check fixtures/*.kt
    python -m resolve_oracle --help

Programmatic::

    from fixturelang import analyze
    from resolve_oracle import check_fixture

    report = check_fixture(text, analyze, filename="f.kt")
    report.raise_for_failures()
"""

__version__ = "0.1.0"

from resolve_oracle.config import OracleConfig
from resolve_oracle.errors import (
    AnalysisError,
    MalformedFixtureError,
    MissingContextError,
    OracleError,
    ResolutionMismatchError,
    VerificationFailedError,
)
from resolve_oracle.harness import AnalysisResult, check_file, check_fixture, load_analyzer
from resolve_oracle.markers import ExpectationTables, ExtractedFixture, Sentinel, extract
from resolve_oracle.verifier import ResolutionVerifier, VerificationReport, verify

__all__ = [
    "__version__",
    "OracleConfig",
    "OracleError",
    "MalformedFixtureError",
    "MissingContextError",
    "ResolutionMismatchError",
    "VerificationFailedError",
    "AnalysisError",
    "AnalysisResult",
    "check_fixture",
    "check_file",
    "load_analyzer",
    "ExpectationTables",
    "ExtractedFixture",
    "Sentinel",
    "extract",
    "ResolutionVerifier",
    "VerificationReport",
    "verify",
]
