# tests/test_analyzer.py
"""
Tests for the fixturelang semantic analyzer and its binding model:
scoping, overload resolution, generics, constructor parameters and the
error entities produced for unresolvable receivers.
"""

import pytest

from fixturelang import analyze
from fixturelang.ast_nodes import (
    BinaryExpr,
    CallExpr,
    ClassDecl,
    CtorParamDecl,
    NamedType,
    NameExpr,
    PropertyDecl,
)
from fixturelang.descriptors import (
    ClassDescriptor,
    FunctionDescriptor,
    LocalVariableDescriptor,
    PropertyDescriptor,
    SubstitutedFunctionDescriptor,
    ValueParameterDescriptor,
    VariableAsFunctionDescriptor,
)


def _names(result, name):
    return [
        n for n in result.model.file.walk()
        if isinstance(n, NameExpr) and n.name == name
    ]


def _decl(result, name, cls=None):
    for node in result.model.file.walk():
        if getattr(node, "is_declaration", False) and node.name == name:
            if cls is None or isinstance(node, cls):
                return node
    raise LookupError(name)


def _diagnostic_ids(result):
    return [d.error_id for d in result.diagnostics]


def _std_constructor(result, name):
    return result.library.classifier(name).type_constructor


class TestNames:

    def test_property_reference(self):
        result = analyze("val a = 1\nval b = a")
        [ref] = _names(result, "a")
        model = result.model
        assert model.resolve_to_declaration(ref) is _decl(result, "a")
        assert model.type_of(ref).constructor is _std_constructor(result, "Int")
        assert result.diagnostics == []

    def test_declaration_order_does_not_matter(self):
        result = analyze("val b = a\nval a = \"s\"")
        b = result.model.descriptor_of(_decl(result, "b"))
        assert b.type.constructor is _std_constructor(result, "String")

    def test_unresolved(self):
        result = analyze("val a = nope")
        [ref] = _names(result, "nope")
        assert result.model.is_unresolved(ref)
        assert result.model.resolve(ref) is None
        assert _diagnostic_ids(result) == ["unresolved-reference"]

    def test_local_shadows_function(self):
        result = analyze("fun f() = 1\nfun g() {\n  val f = 2\n  f\n}")
        [ref] = _names(result, "f")
        target = result.model.resolve(ref)
        assert isinstance(target, LocalVariableDescriptor)
        assert result.model.resolve_to_declaration(ref) is _decl(result, "f", PropertyDecl)

    def test_local_initializer_sees_outer_name(self):
        result = analyze("val x = 1\nfun g() {\n  val x = x\n}")
        [ref] = _names(result, "x")
        assert isinstance(result.model.resolve(ref), PropertyDescriptor)

    def test_redeclaration_reported(self):
        result = analyze("val a = 1\nval a = 2")
        assert "redeclaration" in _diagnostic_ids(result)

    def test_recursive_inference_reported(self):
        result = analyze("fun f() = f()")
        assert "recursive-type" in _diagnostic_ids(result)

    def test_type_reference_resolves_to_classifier(self):
        src = "class A\nval x: A? = null"
        result = analyze(src)
        type_ref = _decl(result, "x").type_ref
        assert isinstance(type_ref, NamedType)
        target = result.model.resolve(type_ref)
        assert isinstance(target, ClassDescriptor)
        assert result.model.type_of(type_ref).nullable


class TestOverloads:

    SOURCE = (
        "fun f(x: Int) = 1\n"
        "fun f(x: String) = 2\n"
        "val a = f(1)\n"
        "val b = f(\"s\")\n"
    )

    def test_picks_by_argument_type(self):
        result = analyze(self.SOURCE)
        by_int, by_string = _names(result, "f")
        decl_int, decl_string = [
            d for d in result.model.file.declarations if d.name == "f"
        ]
        assert result.model.resolve_to_declaration(by_int) is decl_int
        assert result.model.resolve_to_declaration(by_string) is decl_string
        assert result.diagnostics == []

    def test_ambiguity(self):
        result = analyze("fun f(x: Int) = 1\nfun f(y: Int) = 2\nval a = f(1)")
        [ref] = _names(result, "f")
        assert result.model.is_ambiguous(ref)
        assert result.model.resolve(ref) is None
        assert "overload-ambiguity" in _diagnostic_ids(result)

    def test_exact_match_beats_supertype(self):
        result = analyze("fun f(x: Any) = 1\nfun f(x: Int) = 2\nval a = f(1)")
        [ref] = _names(result, "f")
        assert result.model.resolve_to_declaration(ref).params[0].type_ref.name == "Int"

    def test_none_applicable(self):
        result = analyze(self.SOURCE + "val c = f(true)")
        ref = _names(result, "f")[-1]
        assert result.model.is_unresolved(ref)
        assert "none-applicable" in _diagnostic_ids(result)

    def test_single_candidate_is_bound_despite_mismatch(self):
        result = analyze("fun f(x: Int) = 1\nval a = f(\"s\")")
        [ref] = _names(result, "f")
        assert isinstance(result.model.resolve(ref), FunctionDescriptor)
        assert "argument-mismatch" in _diagnostic_ids(result)

    def test_callable_reference_ambiguity(self):
        result = analyze("fun f(x: Int) = 1\nfun f(x: String) = 2\nval r = ::f")
        [ref] = _names(result, "f")
        assert result.model.is_ambiguous(ref)
        assert "callable-reference-ambiguity" in _diagnostic_ids(result)

    def test_callable_reference_type(self):
        result = analyze("fun f(x: Int): String = \"s\"\nval r = ::f")
        r = result.model.descriptor_of(_decl(result, "r"))
        assert result.library.is_function_type(r.type)
        assert str(r.type) == "Function1<Int, String>"


class TestGenerics:

    def test_std_generic_function(self):
        result = analyze("val a = identity(1)")
        [ref] = _names(result, "identity")
        target = result.model.resolve(ref)
        assert isinstance(target, SubstitutedFunctionDescriptor)
        assert target.original is result.external_descriptors["std::identity"]
        assert result.model.original_of(target) is result.library.function("identity")
        call = ref.parent
        assert result.model.type_of(call).constructor is _std_constructor(result, "Int")

    def test_list_of(self):
        result = analyze("val a = listOf(\"s\")")
        a = result.model.descriptor_of(_decl(result, "a"))
        assert a.type.constructor is _std_constructor(result, "List")
        assert str(a.type) == "List<String>"

    def test_user_generic_class(self):
        src = "class Box<T>(val item: T)\nval b = Box(1)\nval c = b.item"
        result = analyze(src)
        [ctor_ref] = _names(result, "Box")
        assert result.model.resolve_to_declaration(ctor_ref) is _decl(result, "Box", ClassDecl)
        c = result.model.descriptor_of(_decl(result, "c"))
        assert c.type.constructor is _std_constructor(result, "Int")

    def test_user_generic_function(self):
        result = analyze("fun <T> pick(a: T, b: T): T = a\nval x = pick(1, 2)")
        [ref] = _names(result, "pick")
        target = result.model.resolve(ref)
        assert target.original is result.model.descriptor_of(_decl(result, "pick"))
        assert result.model.resolve_to_declaration(ref) is _decl(result, "pick")

    def test_type_parameter_constructor(self):
        result = analyze("fun <T> id(a: T): T = a")
        tp_decl = _decl(result, "T")
        body = _decl(result, "id").body
        assert result.model.type_of(body).constructor is result.model.type_constructor_of(tp_decl)


class TestConstructorParameters:

    SOURCE = (
        "class A(val x: Int, y: String) {\n"
        "    val fromParam = x\n"
        "    val fromPlain = y\n"
        "    fun fromMember() = x\n"
        "}\n"
    )

    def test_initializer_sees_parameter_member_sees_property(self):
        result = analyze(self.SOURCE)
        model = result.model
        param_decl = _decl(result, "x", CtorParamDecl)
        in_initializer, in_member = _names(result, "x")

        assert model.resolve(in_initializer) is model.constructor_parameter_of(param_decl)
        assert model.resolve(in_member) is model.descriptor_of(param_decl)
        assert isinstance(model.resolve(in_member), PropertyDescriptor)
        assert model.resolve(in_initializer) is not model.resolve(in_member)
        # both land on the same declaration node
        assert model.resolve_to_declaration(in_initializer) is param_decl
        assert model.resolve_to_declaration(in_member) is param_decl

    def test_plain_parameter_has_no_property(self):
        result = analyze(self.SOURCE)
        y_decl = _decl(result, "y", CtorParamDecl)
        assert isinstance(result.model.descriptor_of(y_decl), ValueParameterDescriptor)
        assert result.model.is_parameter(y_decl)

    def test_plain_parameter_invisible_in_members(self):
        result = analyze("class A(y: Int) { fun g() = y }")
        [ref] = _names(result, "y")
        assert result.model.is_unresolved(ref)

    def test_constructor_call_argument_check(self):
        result = analyze("class A(val x: Int)\nval a = A(\"s\")")
        assert "argument-mismatch" in _diagnostic_ids(result)


class TestMembersAndOperators:

    def test_operator_resolves_to_member(self):
        result = analyze("val a = 1 + 2")
        expr = _decl(result, "a").initializer
        assert isinstance(expr, BinaryExpr)
        assert result.model.resolve(expr.operator) is result.library.function("Int.plus")

    def test_string_plus_any(self):
        result = analyze("val s = \"a\" + 1")
        s = result.model.descriptor_of(_decl(result, "s"))
        assert s.type.constructor is _std_constructor(result, "String")

    def test_comparison_is_boolean(self):
        result = analyze("val c = 1 < 2")
        c = result.model.descriptor_of(_decl(result, "c"))
        assert c.type.constructor is _std_constructor(result, "Boolean")

    def test_equals_falls_back_to_any(self):
        result = analyze("val c = \"a\" == \"b\"")
        op = _decl(result, "c").initializer.operator
        assert result.model.resolve(op).container is result.library.any_class

    def test_member_property_and_call(self):
        result = analyze("val n = \"abc\".length\nval t = n.toString()")
        [length] = _names(result, "length")
        assert isinstance(result.model.resolve(length), PropertyDescriptor)
        [to_string] = _names(result, "toString")
        assert result.model.resolve(to_string) is result.external_descriptors["std::Int.toString"]

    def test_error_receiver_yields_error_entity(self):
        result = analyze("val a = missing.member")
        [selector] = _names(result, "member")
        target = result.model.resolve(selector)
        assert result.model.is_error_entity(target)
        assert not result.model.is_unresolved(selector)

    def test_error_receiver_call(self):
        result = analyze("val a = missing.run(1)")
        [selector] = _names(result, "run")
        assert result.model.is_error_entity(result.model.resolve(selector))

    def test_unknown_member(self):
        result = analyze("val a = 1.nope")
        [selector] = _names(result, "nope")
        assert result.model.is_unresolved(selector)

    def test_if_join_is_nullable(self):
        result = analyze("val a = if (true) 1 else null")
        a = result.model.descriptor_of(_decl(result, "a"))
        assert a.type.constructor is _std_constructor(result, "Int")
        assert a.type.nullable


class TestFunctionTypedValues:

    def test_call_through_parameter(self):
        result = analyze("fun h(f: (Int) -> String) = f(1)")
        [callee] = _names(result, "f")
        model = result.model
        target = model.resolve(callee)
        assert isinstance(target, VariableAsFunctionDescriptor)
        param = _decl(result, "f")
        assert model.unwrap_variable(target) is model.descriptor_of(param)
        assert model.resolve_to_declaration(callee) is param
        h = model.descriptor_of(_decl(result, "h"))
        assert h.return_type.constructor is _std_constructor(result, "String")

    def test_not_callable(self):
        result = analyze("val a = (1)(2)")
        assert "not-callable" in _diagnostic_ids(result)


class TestBindingModelQueries:

    SOURCE = "fun f(x: Int) {\n  val a = g(x)\n}\nfun g(y: Int) = y\n"

    @pytest.fixture
    def result(self):
        return analyze(self.SOURCE, filename="q.kt")

    def test_declaration_at_innermost(self, result):
        pos = self.SOURCE.index("a =")
        assert result.model.declaration_at(pos) is _decl(result, "a")

    def test_declaration_at_outside(self, result):
        assert analyze("  val a = 1").model.declaration_at(0) is None

    def test_reference_at(self, result):
        pos = self.SOURCE.index("g(x)")
        ref = result.model.reference_at(pos)
        assert isinstance(ref, NameExpr) and ref.name == "g"

    def test_expression_at_last_char(self, result):
        pos = self.SOURCE.index("g(x)") + len("g(x)") - 1
        expr = result.model.expression_at(pos)
        assert isinstance(expr, CallExpr)
        assert result.model.type_of(expr).constructor is _std_constructor(result, "Int")

    def test_context_of(self, result):
        ref = result.model.reference_at(self.SOURCE.index("x)"))
        context = result.model.context_of(ref)
        assert context.text == "x"
        assert context.location == "2:13"
        assert context.statement == "g(x)"
        assert context.declaration == "val a"

    def test_type_constructor_of_class(self):
        result = analyze("class A\nval a = A()")
        cls_decl = _decl(result, "A")
        call = _decl(result, "a").initializer
        assert result.model.type_of(call).constructor is result.model.type_constructor_of(cls_decl)
        assert result.model.type_constructor_of(_decl(result, "a")) is None

    def test_diagnostic_format(self):
        result = analyze("val a = nope", filename="d.kt")
        diag = result.diagnostics[0]
        assert diag.error_id == "unresolved-reference"
        assert str(diag) == "d.kt:1:9: error: [unresolved-reference] Unresolved reference: nope"
