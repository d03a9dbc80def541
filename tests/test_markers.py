# tests/test_markers.py
"""
Tests for marker extraction: annotated text → clean text + expectation tables.
"""

import pytest

from resolve_oracle.errors import (
    DanglingTypeAssertionError,
    DuplicateDeclarationError,
    DuplicateMarkerPositionError,
    MalformedFixtureError,
    OracleErrorCodes,
)
from resolve_oracle.markers import (
    MarkerKind,
    PayloadKind,
    Sentinel,
    classify_payload,
    extract,
    marker_summary,
    strip_markers,
)


class TestExtractBasics:

    def test_declaration_marker(self):
        fx = extract("val ~a~a = 1")
        assert fx.text == "val a = 1"
        assert fx.tables.declarations == {"a": 4}
        assert fx.tables.references == {}
        assert fx.tables.type_assertions == {}

    def test_reference_marker(self):
        fx = extract("val b = `a`a")
        assert fx.text == "val b = a"
        assert fx.tables.references == {8: "a"}

    def test_type_assertion_keyed_before_marker(self):
        fx = extract("val x = 1`:Int`")
        assert fx.text == "val x = 1"
        # the offset of the last character of the annotated expression
        assert fx.tables.type_assertions == {8: "Int"}
        assert fx.text[8] == "1"

    def test_payload_kept_verbatim(self):
        fx = extract("`std::Int.plus`x `$p`y `!null`z")
        assert sorted(fx.tables.references.values()) == ["!null", "$p", "std::Int.plus"]

    def test_round_trip_example(self):
        fx = extract("val ~a~a = 1; val b = `a`a")
        assert fx.text == "val a = 1; val b = a"
        assert fx.tables.declarations == {"a": 4}
        assert fx.tables.references == {19: "a"}


class TestPositionRemapping:

    def test_later_offsets_use_stripped_text(self):
        fx = extract("fun ~f~f() = 1\nval y = `f`f()")
        assert fx.text == "fun f() = 1\nval y = f()"
        assert fx.tables.declarations == {"f": 4}
        assert fx.tables.references == {20: "f"}

    def test_every_position_within_clean_text(self):
        raw = "class ~A~A(val ~x~x: Int) {\n  fun ~g~g() = `x`x`:std::Int`\n}"
        fx = extract(raw)
        for pos in fx.tables.positions():
            assert 0 <= pos <= len(fx.text)

    def test_offsets_point_at_annotated_names(self):
        fx = extract("val ~first~first = 1\nval ~second~second = `first`first")
        text = fx.text
        for name, pos in fx.tables.declarations.items():
            assert text.startswith(name, pos)
        for pos, name in fx.tables.references.items():
            assert text.startswith(name, pos)

    def test_adjacent_markers_strip_in_order(self):
        # `~~` is not a marker; the scan finds `~a~` first
        fx = extract("~~a~b~")
        assert fx.text == ""
        assert fx.tables.declarations == {"a": 1, "b": 0}

    def test_deterministic(self):
        raw = "val ~a~a = `b`b`:T` + `c`c"
        first = extract(raw)
        second = extract(raw)
        assert first.text == second.text
        assert first.tables == second.tables


class TestIdempotence:

    @pytest.mark.parametrize("text", ["", "val a = 1", "fun f(x: Int) = x\n// no markers\n"])
    def test_clean_text_is_unchanged(self, text):
        fx = extract(text)
        assert fx.text == text
        assert fx.tables.is_empty()

    def test_stripping_twice_is_noop(self):
        once = strip_markers("val ~a~a = `a`a")
        assert strip_markers(once) == once


class TestMalformedFixtures:

    def test_duplicate_declaration(self):
        with pytest.raises(DuplicateDeclarationError) as exc_info:
            extract("val ~a~a = 1\nval ~a~b = 2")
        assert exc_info.value.code == OracleErrorCodes.DUPLICATE_DECLARATION
        assert isinstance(exc_info.value, MalformedFixtureError)

    def test_declaration_names_are_case_sensitive(self):
        fx = extract("val ~a~a = 1\nval ~A~A = 2")
        assert set(fx.tables.declarations) == {"a", "A"}

    def test_duplicate_reference_position(self):
        with pytest.raises(DuplicateMarkerPositionError):
            extract("`a``b`x")

    def test_type_marker_at_start(self):
        with pytest.raises(DanglingTypeAssertionError):
            extract("`:Int`x")

    def test_error_span_has_line_and_column(self):
        with pytest.raises(DuplicateDeclarationError) as exc_info:
            extract("val ~a~a = 1\nval ~a~b = 2")
        span = exc_info.value.span
        assert span.line == 2
        assert span.column == 5


class TestMarkerRecords:

    def test_markers_in_discovery_order(self):
        fx = extract("val ~a~a = `a`a`:Int`")
        kinds = [m.kind for m in fx.markers]
        assert kinds == [MarkerKind.DECLARATION, MarkerKind.REFERENCE, MarkerKind.TYPE]

    def test_summary(self):
        fx = extract("val ~a~a = `a`a")
        assert marker_summary(fx) == [("declaration", 4, "a"), ("reference", 8, "a")]

    def test_span_of_offset(self):
        fx = extract("val a = 1\nval b = `a`a", filename="f.kt")
        span = fx.span(fx.tables.positions()[0])
        assert span.file == "f.kt"
        assert span.line == 2


class TestPayloads:

    @pytest.mark.parametrize("payload,sentinel", [
        ("!", Sentinel.UNRESOLVED),
        ("!!", Sentinel.AMBIGUOUS),
        ("!null", Sentinel.NULL),
        ("!error", Sentinel.ERROR),
    ])
    def test_sentinels(self, payload, sentinel):
        assert Sentinel.from_payload(payload) is sentinel
        assert classify_payload(payload) is PayloadKind.SENTINEL

    def test_non_sentinel(self):
        assert Sentinel.from_payload("!x") is None
        assert Sentinel.from_payload("x") is None

    def test_classify(self):
        assert classify_payload("std::Int") is PayloadKind.EXTERNAL
        assert classify_payload("$p") is PayloadKind.CONSTRUCTOR_PARAMETER
        assert classify_payload("p") is PayloadKind.NAME

    def test_classify_custom_prefixes(self):
        assert classify_payload("lib/Int", std_prefix="lib/") is PayloadKind.EXTERNAL
        assert classify_payload("@p", parameter_prefix="@") is PayloadKind.CONSTRUCTOR_PARAMETER
