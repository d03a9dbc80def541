# resolve_oracle/errors.py
"""
Resolution Oracle Error Types

This module provides the error handling infrastructure for the marker
extractor, the resolution verifier and the bundled fixture language.

Architecture Overview:
─────────────────────
┌─────────────────────────────────────────────────────────────────────────────┐
│                          Error Hierarchy                                     │
├─────────────────────────────────────────────────────────────────────────────┤
│  OracleError (base)                                                         │
│  ├── MalformedFixtureError     - The fixture itself is broken (fatal)       │
│  │   ├── DuplicateDeclarationError                                          │
│  │   ├── DuplicateMarkerPositionError                                       │
│  │   ├── DanglingTypeAssertionError                                         │
│  │   ├── MisplacedDeclarationMarkerError                                    │
│  │   ├── UndeclaredNameError                                                │
│  │   ├── UnknownExternalClassifierError                                     │
│  │   ├── MissingConstructorParameterError                                   │
│  │   ├── MissingDescriptorError                                             │
│  │   └── UnsupportedTypeAssertionError                                      │
│  ├── MissingContextError       - No enclosing node at a marker (fatal)      │
│  │   ├── MissingReferenceContextError                                       │
│  │   └── MissingExpressionContextError                                      │
│  ├── ResolutionMismatchError   - One failed expectation (AssertionError)    │
│  │   ├── SentinelMismatchError                                              │
│  │   ├── TargetMismatchError                                                │
│  │   ├── MissingTypeError                                                   │
│  │   └── TypeConstructorMismatchError                                       │
│  ├── VerificationFailedError   - Aggregate of mismatches                    │
│  └── AnalysisError             - Resolver front-end failures                │
└─────────────────────────────────────────────────────────────────────────────┘

Error Codes:
────────────
Each error has a unique code ROC-XXXX where XXXX is in ranges:
  - 0001-0999: Extraction errors
  - 1000-1999: Malformed fixture
  - 2000-2999: Missing context
  - 3000-3999: Resolution mismatch
  - 4000-4999: Analysis (fixture language front-end)
  - 9000-9999: Internal errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto, unique
from typing import (
    Any,
    Dict,
    List,
    Optional,
    Sequence,
)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR SEVERITY AND CLASSIFICATION
# ═══════════════════════════════════════════════════════════════════════════════

@unique
class ErrorSeverity(Enum):
    """Severity levels for oracle errors."""

    # Aborts verification of the current fixture
    FATAL = "fatal"

    # A single failed expectation
    ERROR = "error"


@unique
class ErrorPhase(Enum):
    """Pipeline phase where the error occurred."""

    EXTRACTION = "extraction"      # Marker scanning and stripping
    ANALYSIS = "analysis"          # Resolver run over the clean text
    VERIFICATION = "verification"  # Expectation checks
    INTERNAL = "internal"


@unique
class ErrorCategory(Enum):
    """Fine-grained error categories for filtering and statistics."""

    # Extraction
    DUPLICATE_DECLARATION = auto()
    DUPLICATE_POSITION = auto()
    DANGLING_MARKER = auto()

    # Malformed fixture
    MISPLACED_MARKER = auto()
    UNDECLARED_NAME = auto()
    UNKNOWN_EXTERNAL = auto()
    UNSUPPORTED_ASSERTION = auto()

    # Missing context
    MISSING_CONTEXT = auto()

    # Mismatch
    SENTINEL_MISMATCH = auto()
    TARGET_MISMATCH = auto()
    TYPE_MISMATCH = auto()

    # Analysis
    SYNTAX = auto()

    INTERNAL_ERROR = auto()


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES
# ═══════════════════════════════════════════════════════════════════════════════

class ErrorCode:
    """
    Structured error code of the form ``ROC-NNNN``.
    """

    __slots__ = ("prefix", "number", "category", "phase", "default_severity")

    def __init__(
        self,
        prefix: str,
        number: int,
        category: ErrorCategory,
        phase: ErrorPhase,
        default_severity: ErrorSeverity = ErrorSeverity.FATAL,
    ) -> None:
        self.prefix = prefix
        self.number = number
        self.category = category
        self.phase = phase
        self.default_severity = default_severity

    @property
    def code(self) -> str:
        """Get the full error code string."""
        return f"{self.prefix}-{self.number:04d}"

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"ErrorCode({self.code!r}, {self.category.name})"

    def __hash__(self) -> int:
        return hash((self.prefix, self.number))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCode):
            return self.prefix == other.prefix and self.number == other.number
        if isinstance(other, str):
            return self.code == other
        return False


class OracleErrorCodes:
    """Predefined error codes."""

    # ═══════════════════════════════════════════════════════════════════════════
    # EXTRACTION (0001-0999)
    # ═══════════════════════════════════════════════════════════════════════════

    DUPLICATE_DECLARATION = ErrorCode(
        "ROC", 1, ErrorCategory.DUPLICATE_DECLARATION, ErrorPhase.EXTRACTION
    )
    DUPLICATE_MARKER_POSITION = ErrorCode(
        "ROC", 2, ErrorCategory.DUPLICATE_POSITION, ErrorPhase.EXTRACTION
    )
    DANGLING_TYPE_ASSERTION = ErrorCode(
        "ROC", 3, ErrorCategory.DANGLING_MARKER, ErrorPhase.EXTRACTION
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # MALFORMED FIXTURE (1000-1999)
    # ═══════════════════════════════════════════════════════════════════════════

    MISPLACED_DECLARATION_MARKER = ErrorCode(
        "ROC", 1000, ErrorCategory.MISPLACED_MARKER, ErrorPhase.VERIFICATION
    )
    UNDECLARED_NAME = ErrorCode(
        "ROC", 1001, ErrorCategory.UNDECLARED_NAME, ErrorPhase.VERIFICATION
    )
    UNKNOWN_EXTERNAL_CLASSIFIER = ErrorCode(
        "ROC", 1002, ErrorCategory.UNKNOWN_EXTERNAL, ErrorPhase.VERIFICATION
    )
    UNSUPPORTED_TYPE_ASSERTION = ErrorCode(
        "ROC", 1003, ErrorCategory.UNSUPPORTED_ASSERTION, ErrorPhase.VERIFICATION
    )
    MISSING_CONSTRUCTOR_PARAMETER = ErrorCode(
        "ROC", 1004, ErrorCategory.MISPLACED_MARKER, ErrorPhase.VERIFICATION
    )
    MISSING_DESCRIPTOR = ErrorCode(
        "ROC", 1005, ErrorCategory.MISPLACED_MARKER, ErrorPhase.VERIFICATION
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # MISSING CONTEXT (2000-2999)
    # ═══════════════════════════════════════════════════════════════════════════

    MISSING_REFERENCE_CONTEXT = ErrorCode(
        "ROC", 2000, ErrorCategory.MISSING_CONTEXT, ErrorPhase.VERIFICATION
    )
    MISSING_EXPRESSION_CONTEXT = ErrorCode(
        "ROC", 2001, ErrorCategory.MISSING_CONTEXT, ErrorPhase.VERIFICATION
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # RESOLUTION MISMATCH (3000-3999)
    # ═══════════════════════════════════════════════════════════════════════════

    SENTINEL_MISMATCH = ErrorCode(
        "ROC", 3000, ErrorCategory.SENTINEL_MISMATCH, ErrorPhase.VERIFICATION,
        ErrorSeverity.ERROR
    )
    TARGET_MISMATCH = ErrorCode(
        "ROC", 3001, ErrorCategory.TARGET_MISMATCH, ErrorPhase.VERIFICATION,
        ErrorSeverity.ERROR
    )
    MISSING_TYPE = ErrorCode(
        "ROC", 3002, ErrorCategory.TYPE_MISMATCH, ErrorPhase.VERIFICATION,
        ErrorSeverity.ERROR
    )
    TYPE_CONSTRUCTOR_MISMATCH = ErrorCode(
        "ROC", 3003, ErrorCategory.TYPE_MISMATCH, ErrorPhase.VERIFICATION,
        ErrorSeverity.ERROR
    )
    VERIFICATION_FAILED = ErrorCode(
        "ROC", 3999, ErrorCategory.TARGET_MISMATCH, ErrorPhase.VERIFICATION,
        ErrorSeverity.ERROR
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # ANALYSIS (4000-4999)
    # ═══════════════════════════════════════════════════════════════════════════

    SYNTAX_ERROR = ErrorCode(
        "ROC", 4000, ErrorCategory.SYNTAX, ErrorPhase.ANALYSIS
    )

    # ═══════════════════════════════════════════════════════════════════════════
    # INTERNAL (9000-9999)
    # ═══════════════════════════════════════════════════════════════════════════

    INTERNAL_ERROR = ErrorCode(
        "ROC", 9000, ErrorCategory.INTERNAL_ERROR, ErrorPhase.INTERNAL
    )


# ═══════════════════════════════════════════════════════════════════════════════
# SOURCE LOCATION TYPES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SourceSpan:
    """
    A position in the stripped fixture text.

    ``offset`` is the character offset the expectation tables are keyed by;
    ``line`` and ``column`` are 1-based and only for display.
    """

    file: str = ""
    offset: int = -1
    line: int = 0
    column: int = 0

    @classmethod
    def from_offset(cls, text: str, offset: int, file: str = "") -> "SourceSpan":
        """Compute line/column for *offset* within *text*."""
        if offset < 0:
            return cls(file=file, offset=offset)
        clamped = min(offset, len(text))
        line = text.count("\n", 0, clamped) + 1
        line_start = text.rfind("\n", 0, clamped) + 1
        return cls(file=file, offset=offset, line=line, column=clamped - line_start + 1)

    def __str__(self) -> str:
        if not self.file and self.line == 0:
            if self.offset >= 0:
                return f"@{self.offset}"
            return "<unknown location>"

        parts = []
        if self.file:
            parts.append(self.file)
        if self.line > 0:
            parts.append(str(self.line))
            if self.column > 0:
                parts.append(str(self.column))
        return ":".join(parts)


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR MESSAGE FORMATTING
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class ErrorNote:
    """
    Additional note attached to an error, such as the enclosing statement
    of a reference or where a name was first declared.
    """

    message: str
    span: Optional[SourceSpan] = None
    label: str = ""

    def __str__(self) -> str:
        prefix = f"{self.label}: " if self.label else ""
        if self.span:
            return f"{self.span}: {prefix}{self.message}"
        return f"{prefix}{self.message}"


@dataclass
class ErrorMessage:
    """
    A complete error message with all context.
    """

    code: ErrorCode
    message: str
    span: SourceSpan = field(default_factory=SourceSpan)
    severity: Optional[ErrorSeverity] = None  # None means use code's default
    notes: List[ErrorNote] = field(default_factory=list)
    hint: str = ""

    def __post_init__(self) -> None:
        if self.severity is None:
            self.severity = self.code.default_severity

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "ErrorMessage":
        self.notes.append(ErrorNote(message=message, span=span, label=label))
        return self

    def to_gcc_format(self) -> str:
        """Format as a GCC-style error message."""
        severity = self.severity.value if self.severity else "error"
        lines = [f"{self.span}: {severity}: {self.message} [{self.code}]"]
        for note in self.notes:
            lines.append(str(note))
        if self.hint:
            lines.append(f"hint: {self.hint}")
        return "\n".join(lines)

    def to_json(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "code": self.code.code,
            "message": self.message,
            "severity": self.severity.value if self.severity else "error",
            "location": {
                "file": self.span.file,
                "offset": self.span.offset,
                "line": self.span.line,
                "column": self.span.column,
            },
            "phase": self.code.phase.value,
            "category": self.code.category.name,
            "notes": [
                {"message": note.message, "label": note.label}
                for note in self.notes
            ],
            "hint": self.hint,
        }

    def __str__(self) -> str:
        return self.to_gcc_format()


# ═══════════════════════════════════════════════════════════════════════════════
# EXCEPTION CLASSES
# ═══════════════════════════════════════════════════════════════════════════════

class OracleError(Exception):
    """
    Base exception for all oracle errors.

    Carries a structured :class:`ErrorMessage` that can be pretty-printed
    or serialised.
    """

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        notes: Optional[List[ErrorNote]] = None,
        hint: str = "",
    ) -> None:
        super().__init__(message)
        self.error_message = ErrorMessage(
            code=code or OracleErrorCodes.INTERNAL_ERROR,
            message=message,
            span=span or SourceSpan(),
            notes=notes or [],
            hint=hint,
        )

    @property
    def code(self) -> ErrorCode:
        return self.error_message.code

    @property
    def span(self) -> SourceSpan:
        return self.error_message.span

    @property
    def message(self) -> str:
        return self.error_message.message

    def add_note(
        self,
        message: str,
        span: Optional[SourceSpan] = None,
        label: str = "note",
    ) -> "OracleError":
        self.error_message.add_note(message, span, label)
        return self

    def to_gcc_format(self) -> str:
        return self.error_message.to_gcc_format()

    def to_json(self) -> Dict[str, Any]:
        return self.error_message.to_json()

    def __str__(self) -> str:
        return self.to_gcc_format()


# ───────────────────────────────────────────────────────────────────────────────
# MALFORMED FIXTURE
# ───────────────────────────────────────────────────────────────────────────────

class MalformedFixtureError(OracleError):
    """The fixture's markers are inconsistent with themselves or the source."""

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        name: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code or OracleErrorCodes.MISPLACED_DECLARATION_MARKER,
            span=span,
            **kwargs,
        )
        self.name = name


class DuplicateDeclarationError(MalformedFixtureError):
    """Two ``~name~`` markers share a name."""

    def __init__(
        self,
        name: str,
        position: int,
        previous_position: int,
        span: Optional[SourceSpan] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=f"Redeclaration: {name}",
            code=OracleErrorCodes.DUPLICATE_DECLARATION,
            span=span,
            name=name,
            **kwargs,
        )
        self.position = position
        self.previous_position = previous_position
        self.add_note(f"previously declared at offset {previous_position}")


class DuplicateMarkerPositionError(MalformedFixtureError):
    """Two reference (or two type) markers collapse onto one offset."""

    def __init__(
        self,
        position: int,
        payload: str,
        previous_payload: str,
        table: str,
        span: Optional[SourceSpan] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=(
                f"Two {table} markers at offset {position}: "
                f"{previous_payload!r} and {payload!r}"
            ),
            code=OracleErrorCodes.DUPLICATE_MARKER_POSITION,
            span=span,
            name=payload,
            **kwargs,
        )
        self.position = position
        self.table = table


class DanglingTypeAssertionError(MalformedFixtureError):
    """A type marker with no expression in front of it."""

    def __init__(self, payload: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"Type assertion `{payload}` has no preceding expression",
            code=OracleErrorCodes.DANGLING_TYPE_ASSERTION,
            span=span,
            name=payload,
            **kwargs,
        )


class MisplacedDeclarationMarkerError(MalformedFixtureError):
    """A ``~name~`` marker that is not inside any declaration."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"Declaration marker '{name}' is not inside a declaration",
            code=OracleErrorCodes.MISPLACED_DECLARATION_MARKER,
            span=span,
            name=name,
            hint="Move the marker onto the declared name",
            **kwargs,
        )


class UndeclaredNameError(MalformedFixtureError):
    """A marker payload naming no declaration and no external entity."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"No declaration for {name}",
            code=OracleErrorCodes.UNDECLARED_NAME,
            span=span,
            name=name,
            **kwargs,
        )


class UnknownExternalClassifierError(MalformedFixtureError):
    """``std::Name`` where the library has no classifier ``Name``."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"Expected class not found: {name}",
            code=OracleErrorCodes.UNKNOWN_EXTERNAL_CLASSIFIER,
            span=span,
            name=name,
            **kwargs,
        )


class MissingConstructorParameterError(MalformedFixtureError):
    """``$name`` where the declaration has no constructor parameter."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"Declaration '{name}' has no associated constructor parameter",
            code=OracleErrorCodes.MISSING_CONSTRUCTOR_PARAMETER,
            span=span,
            name=name,
            **kwargs,
        )


class MissingDescriptorError(MalformedFixtureError):
    """A marked parameter declaration the binding model has no descriptor for."""

    def __init__(self, name: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"Declaration '{name}' has no descriptor to compare against",
            code=OracleErrorCodes.MISSING_DESCRIPTOR,
            span=span,
            name=name,
            **kwargs,
        )


class UnsupportedTypeAssertionError(MalformedFixtureError):
    """A type assertion naming something that is neither a class nor a type parameter."""

    def __init__(
        self,
        name: str,
        declaration: str = "",
        span: Optional[SourceSpan] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=f"Unsupported declaration: {declaration or name}",
            code=OracleErrorCodes.UNSUPPORTED_TYPE_ASSERTION,
            span=span,
            name=name,
            hint="Type assertions may only name classes or type parameters",
            **kwargs,
        )


# ───────────────────────────────────────────────────────────────────────────────
# MISSING CONTEXT
# ───────────────────────────────────────────────────────────────────────────────

class MissingContextError(OracleError):
    """No node of the required kind encloses a marker position."""

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        payload: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code or OracleErrorCodes.MISSING_REFERENCE_CONTEXT,
            span=span,
            **kwargs,
        )
        self.payload = payload


class MissingReferenceContextError(MissingContextError):
    def __init__(self, payload: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"No reference expression at marker `{payload}`",
            code=OracleErrorCodes.MISSING_REFERENCE_CONTEXT,
            span=span,
            payload=payload,
            **kwargs,
        )


class MissingExpressionContextError(MissingContextError):
    def __init__(self, payload: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=f"No expression before type marker `:{payload}`",
            code=OracleErrorCodes.MISSING_EXPRESSION_CONTEXT,
            span=span,
            payload=payload,
            **kwargs,
        )


# ───────────────────────────────────────────────────────────────────────────────
# RESOLUTION MISMATCH
# ───────────────────────────────────────────────────────────────────────────────

class ResolutionMismatchError(OracleError, AssertionError):
    """
    One expectation did not hold.

    Also an ``AssertionError`` so that test runners report it as a failed
    check rather than an error in the test itself.
    """

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        payload: str = "",
        expected: str = "",
        actual: str = "",
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code or OracleErrorCodes.TARGET_MISMATCH,
            span=span,
            **kwargs,
        )
        self.payload = payload
        self.expected = expected
        self.actual = actual


class SentinelMismatchError(ResolutionMismatchError):
    def __init__(self, message: str, payload: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=message,
            code=OracleErrorCodes.SENTINEL_MISMATCH,
            span=span,
            payload=payload,
            **kwargs,
        )


class TargetMismatchError(ResolutionMismatchError):
    def __init__(self, message: str, payload: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=message,
            code=OracleErrorCodes.TARGET_MISMATCH,
            span=span,
            payload=payload,
            **kwargs,
        )


class MissingTypeError(ResolutionMismatchError):
    def __init__(self, message: str, payload: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=message,
            code=OracleErrorCodes.MISSING_TYPE,
            span=span,
            payload=payload,
            **kwargs,
        )


class TypeConstructorMismatchError(ResolutionMismatchError):
    def __init__(self, message: str, payload: str, span: Optional[SourceSpan] = None, **kwargs: Any) -> None:
        super().__init__(
            message=message,
            code=OracleErrorCodes.TYPE_CONSTRUCTOR_MISMATCH,
            span=span,
            payload=payload,
            **kwargs,
        )


class VerificationFailedError(OracleError, AssertionError):
    """Raised by :meth:`VerificationReport.raise_for_failures`."""

    def __init__(
        self,
        failures: Sequence[ResolutionMismatchError],
        filename: str = "",
        **kwargs: Any,
    ) -> None:
        where = f" in {filename}" if filename else ""
        super().__init__(
            message=f"{len(failures)} resolution expectation(s) failed{where}",
            code=OracleErrorCodes.VERIFICATION_FAILED,
            **kwargs,
        )
        self.failures = list(failures)
        for failure in self.failures:
            self.add_note(failure.message, span=failure.span, label="failed")


# ───────────────────────────────────────────────────────────────────────────────
# ANALYSIS
# ───────────────────────────────────────────────────────────────────────────────

class AnalysisError(OracleError):
    """The resolver could not process the clean fixture text."""

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        span: Optional[SourceSpan] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message=message,
            code=code or OracleErrorCodes.SYNTAX_ERROR,
            span=span,
            **kwargs,
        )
