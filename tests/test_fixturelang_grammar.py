# tests/test_fixturelang_grammar.py
"""
Tests that the fixturelang PEG grammar compiles and accepts the core
constructs at the grammar level (before visitor transformation).
"""

import pytest
from parsimonious.exceptions import IncompleteParseError, ParseError

from fixturelang.grammar import FIXTURE_GRAMMAR, KEYWORDS


@pytest.fixture(scope="module")
def grammar():
    return FIXTURE_GRAMMAR


class TestGrammarWellFormed:

    def test_default_rule_is_file(self, grammar):
        assert grammar.default_rule.name == "file"

    def test_key_rules_present(self, grammar):
        for rule in ("file", "class_decl", "fun_decl", "property_decl",
                     "expr", "type", "call_suffix", "callable_ref", "if_expr"):
            assert rule in grammar, f"Rule {rule!r} missing"


class TestAtoms:

    def test_empty_input(self, grammar):
        assert grammar.parse("") is not None

    def test_literals(self, grammar):
        assert grammar["int_lit"].parse("42").text == "42"
        grammar["string_lit"].parse('"a \\"b\\""')
        grammar["bool_lit"].parse("false")
        grammar["null_lit"].parse("null")

    @pytest.mark.parametrize("name", ["x", "foo_bar", "_p", "value", "classy", "A1"])
    def test_identifiers(self, grammar, name):
        assert grammar["name_ref"].parse(name).text == name

    @pytest.mark.parametrize("keyword", KEYWORDS)
    def test_keywords_are_not_identifiers(self, grammar, keyword):
        with pytest.raises(ParseError):
            grammar["name_ref"].parse(keyword)

    def test_comments_are_whitespace(self, grammar):
        grammar.parse("// leading\nval a = 1 // trailing\n")


class TestDeclarations:

    @pytest.mark.parametrize("src", [
        "class A",
        "class A()",
        "class A<T>(val x: T, y: Int) { fun get(): T = x }",
        "class B { val p = 1\n fun q() {} }",
    ])
    def test_classes(self, grammar, src):
        grammar.parse(src)

    @pytest.mark.parametrize("src", [
        "fun f() = 1",
        "fun f(x: Int, y: String): Int = x",
        "fun <T> id(x: T): T = x",
        "fun g() { val a = 1; println(a) }",
        "fun h(cb: (Int) -> String?) = cb(1)",
    ])
    def test_functions(self, grammar, src):
        grammar.parse(src)

    @pytest.mark.parametrize("src", [
        "val a = 1",
        "var b: Int? = null",
        "val c: List<Int>",
        "val d = if (true) 1 else 2",
        "val e = ::f",
        "val g = a.b.c(1, 2).d",
        "val h = (1 + 2) * 3 == 9",
    ])
    def test_properties(self, grammar, src):
        grammar.parse(src)

    def test_package_header(self, grammar):
        grammar.parse("package a.b.c\nval x = 1")

    def test_semicolon_separated(self, grammar):
        grammar.parse("val a = 1; val b = a")


class TestRejections:

    def test_statement_at_top_level(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar.parse("println(1)")

    def test_unclosed_block(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar.parse("fun f() { val a = 1")

    def test_missing_parameter_type(self, grammar):
        with pytest.raises((ParseError, IncompleteParseError)):
            grammar.parse("fun f(x) = x")
