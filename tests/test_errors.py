# tests/test_errors.py
"""
Tests for the structured error types: codes, severities taken from the
code table, and gcc/JSON rendering.
"""

from resolve_oracle.errors import (
    ErrorSeverity,
    MisplacedDeclarationMarkerError,
    MissingDescriptorError,
    OracleErrorCodes,
    SourceSpan,
    TargetMismatchError,
)


class TestErrorCodes:

    def test_code_string(self):
        assert str(OracleErrorCodes.MISSING_DESCRIPTOR) == "ROC-1005"
        assert OracleErrorCodes.TARGET_MISMATCH == "ROC-3001"

    def test_malformed_codes_are_fatal(self):
        assert OracleErrorCodes.DUPLICATE_DECLARATION.default_severity is ErrorSeverity.FATAL

    def test_mismatch_codes_are_errors(self):
        assert OracleErrorCodes.SENTINEL_MISMATCH.default_severity is ErrorSeverity.ERROR


class TestRendering:

    SPAN = SourceSpan(file="a.kt", offset=4, line=1, column=5)

    def test_gcc_format_uses_code_severity(self):
        err = MisplacedDeclarationMarkerError("a", span=self.SPAN)
        first, hint = err.to_gcc_format().splitlines()
        assert first == (
            "a.kt:1:5: fatal: Declaration marker 'a' is not inside a "
            "declaration [ROC-1000]"
        )
        assert hint == "hint: Move the marker onto the declared name"

    def test_notes_follow_message(self):
        err = TargetMismatchError("mismatch", payload="a", span=self.SPAN)
        assert err.add_note("expected: a") is err
        assert err.to_gcc_format().splitlines() == [
            "a.kt:1:5: error: mismatch [ROC-3001]",
            "note: expected: a",
        ]

    def test_json(self):
        doc = MissingDescriptorError("p", span=self.SPAN).to_json()
        assert doc["code"] == "ROC-1005"
        assert doc["severity"] == "fatal"
        assert doc["location"] == {"file": "a.kt", "offset": 4, "line": 1, "column": 5}
        assert doc["category"] == "MISPLACED_MARKER"

    def test_span_without_file(self):
        assert str(SourceSpan(offset=7)) == "@7"
        assert str(SourceSpan()) == "<unknown location>"
