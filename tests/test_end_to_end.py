# tests/test_end_to_end.py
"""
End-to-end tests: annotated fixture → extract → fixturelang analyze →
verify → report.
"""

import textwrap

import pytest

import fixturelang
from resolve_oracle import check_file, check_fixture, load_analyzer
from resolve_oracle.config import OracleConfig
from resolve_oracle.errors import (
    AnalysisError,
    MisplacedDeclarationMarkerError,
    MissingExpressionContextError,
    MissingReferenceContextError,
    OracleErrorCodes,
    TargetMismatchError,
    TypeConstructorMismatchError,
    UndeclaredNameError,
    VerificationFailedError,
)


def _check(raw, **kwargs):
    return check_fixture(textwrap.dedent(raw), fixturelang.analyze, **kwargs)


def _assert_passes(raw):
    report = _check(raw)
    assert report.failures == [], "\n".join(str(f) for f in report.failures)
    return report


class TestReferences:

    def test_round_trip(self):
        report = _assert_passes("val ~a~a = 1; val b = `a`a")
        assert len(report.results) == 1

    def test_wrong_target(self):
        report = _check("""\
            val ~a~a = 1
            val ~b~b = 2
            val c = `b`a
        """)
        [failure] = report.failures
        assert isinstance(failure, TargetMismatchError)
        assert "resolved into a" in failure.message

    def test_overload_target(self):
        _assert_passes("""\
            fun ~byInt~f(x: Int) = 1
            fun ~byString~f(x: String) = 2
            val a = `byInt`f(1)
            val b = `byString`f("s")
        """)

    def test_value_parameter(self):
        _assert_passes("fun g(~x~x: Int) = `x`x")

    def test_call_through_function_parameter(self):
        _assert_passes("fun h(~f~f: (Int) -> Int) = `f`f(1)")

    def test_generic_function_resolves_to_its_declaration(self):
        _assert_passes("""\
            fun <T> ~pick~pick(a: T): T = a
            val x = `pick`pick(1)
        """)

    def test_class_constructor_call(self):
        _assert_passes("""\
            class ~A~A
            val a = `A`A()`:A`
        """)


class TestConstructorParameters:

    SOURCE = """\
        class A(val ~p~p: Int) {{
            val q = `{initializer}`p
            fun g() = `{member}`p
        }}
    """

    def test_parameter_and_property(self):
        _assert_passes(self.SOURCE.format(initializer="$p", member="p"))

    def test_swapped_expectations_fail(self):
        report = _check(self.SOURCE.format(initializer="p", member="$p"))
        assert len(report.failures) == 2

    def test_generic_property_through_two_parameter_constructor(self):
        _assert_passes("""\
            class Box<T>(val ~item~item: T, label: String)
            val box = Box(1, "x")
            val n = box.`item`item`:std::Int`
        """)

    def test_constructor_argument_mismatch_leaves_property_generic(self):
        report = _check("""\
            class Box<T>(val item: T, label: String)
            val box = Box(1)
            val n = box.item`:std::Int`
        """)
        [failure] = report.failures
        assert isinstance(failure, TypeConstructorMismatchError)


class TestSentinels:

    def test_unresolved(self):
        _assert_passes("val a = `!`nope")

    def test_ambiguous(self):
        _assert_passes("""\
            fun f(x: Int) = 1
            fun f(y: Int) = 2
            val a = `!!`f(1)
        """)

    def test_error_entity_on_unresolved_receiver(self):
        _assert_passes("val a = `!`missing.`!error`member")

    def test_null_for_package_name(self):
        _assert_passes("package `!null`demo\nval a = 1")

    def test_wrong_sentinel_fails(self):
        report = _check("val a = 1\nval b = `!`a")
        assert "Must have been unresolved" in report.failures[0].message


class TestStdLibrary:

    def test_std_function(self):
        _assert_passes("fun f() = `std::println`println(1)")

    def test_std_generic_function(self):
        _assert_passes("val a = `std::listOf`listOf(1)`:std::List`")

    def test_std_member_operator_call(self):
        _assert_passes("val a = 1.`std::Int.plus`plus(2)`:std::Int`")

    def test_std_classifier_in_type_position(self):
        _assert_passes("val x: `std::Int`Int = 1")

    def test_std_type_assertions(self):
        _assert_passes("""\
            val a = 1`:std::Int`
            val b = "s"`:std::String`
            val c = (1 < 2)`:std::Boolean`
        """)

    def test_std_type_mismatch(self):
        report = _check('val a = "s"`:std::Int`')
        assert len(report.failures) == 1


class TestMalformedAndMissingContext:

    def test_reference_marker_on_literal(self):
        with pytest.raises(MissingReferenceContextError):
            _check("val a = `x`1")

    def test_type_marker_without_expression(self):
        with pytest.raises(MissingExpressionContextError):
            _check("class A`:std::Int`")

    def test_declaration_marker_outside_declaration(self):
        with pytest.raises(MisplacedDeclarationMarkerError):
            _check("~a~ val a = 1")

    def test_undeclared_name(self):
        with pytest.raises(UndeclaredNameError):
            _check("val a = 1\nval b = `zzz`a")

    def test_syntax_error(self):
        with pytest.raises(AnalysisError) as exc_info:
            _check("val = `a`a")
        assert exc_info.value.code == OracleErrorCodes.SYNTAX_ERROR

    def test_analyzer_crash_is_wrapped(self):
        def broken(text, filename):
            raise RuntimeError("boom")

        with pytest.raises(AnalysisError) as exc_info:
            check_fixture("val a = 1", broken)
        assert exc_info.value.code == OracleErrorCodes.INTERNAL_ERROR


class TestReportingModes:

    def test_fail_fast(self):
        with pytest.raises(TargetMismatchError):
            _check(
                "val ~a~a = 1\nval ~b~b = 2\nval c = `b`a",
                config=OracleConfig(fail_fast=True),
            )

    def test_raise_for_failures(self):
        report = _check("val ~a~a = 1\nval ~b~b = 2\nval c = `b`a\nval d = `a`b")
        with pytest.raises(VerificationFailedError) as exc_info:
            report.raise_for_failures()
        assert len(exc_info.value.failures) == 2

    def test_check_file(self, tmp_path):
        path = tmp_path / "ok.kt"
        path.write_text("val ~a~a = 1\nval b = `a`a\n", encoding="utf-8")
        report = check_file(path, fixturelang.analyze)
        assert report.passed
        assert report.filename == str(path)


class TestLoadAnalyzer:

    def test_default(self):
        assert load_analyzer("fixturelang:analyze") is fixturelang.analyze

    def test_dotted_attribute(self):
        assert load_analyzer("fixturelang.analyzer:SemanticAnalyzer.analyze")

    @pytest.mark.parametrize("name", ["fixturelang", ":analyze", "fixturelang:"])
    def test_bad_name(self, name):
        with pytest.raises(ValueError):
            load_analyzer(name)
