"""
fixturelang Semantic Analyzer

Resolves every name in a parsed file and infers every expression type,
writing the results into a :class:`~fixturelang.binding.BindingContext`:

1. Phase 1 (declare) - classes first, then members and top-level
   signatures, building the scope tree and one descriptor per declaration
2. Phase 2 (resolve) - walk bodies and initializers, resolving references
   and overloads, inferring expression types

Return types of expression-bodied functions and types of untyped
properties are inferred on first use, so declaration order never matters.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set, Tuple

import fixturelang.ast_nodes as A
from fixturelang.binding import BindingContext, FixtureBindingModel
from fixturelang.descriptors import (
    CallableDescriptor,
    ClassDescriptor,
    Descriptor,
    ErrorDescriptor,
    FunctionDescriptor,
    LocalVariableDescriptor,
    PropertyDescriptor,
    TypeParameterDescriptor,
    ValueParameterDescriptor,
    VariableAsFunctionDescriptor,
    make_substituted,
    render_descriptor,
)
from fixturelang.parser import parse
from fixturelang.scopes import VALUE_KINDS, Scope, Symbol
from fixturelang.stdlib import StdLibrary
from fixturelang.types import (
    ConstructorKind,
    KType,
    TypeConstructor,
    error_type,
    infer_substitution,
    is_subtype,
    join,
    substitute,
)
from resolve_oracle.errors import SourceSpan
from resolve_oracle.harness import AnalysisResult

logger = logging.getLogger(__name__)

__all__ = [
    "Diagnostic",
    "DiagnosticCollector",
    "SemanticAnalyzer",
    "analyze",
]

OPERATOR_MEMBERS = {
    "+": "plus",
    "-": "minus",
    "*": "times",
    "/": "div",
    "%": "rem",
    "<": "compareTo",
    ">": "compareTo",
    "<=": "compareTo",
    ">=": "compareTo",
    "==": "equals",
    "!=": "equals",
}
COMPARISON_OPERATORS = frozenset({"<", ">", "<=", ">=", "==", "!="})


# ============================================================================
# Diagnostics
# ============================================================================


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A resolver finding.  Informational for the oracle; never fatal."""
    error_id: str
    message: str
    location: Optional[SourceSpan] = None

    def to_gcc_format(self) -> str:
        loc_str = str(self.location) if self.location else "<unknown>"
        return f"{loc_str}: error: [{self.error_id}] {self.message}"

    def __str__(self) -> str:
        return self.to_gcc_format()


class DiagnosticCollector:
    """Collects diagnostics during semantic analysis."""

    def __init__(self, source: str, filename: str) -> None:
        self._source = source
        self._filename = filename
        self._diagnostics: List[Diagnostic] = []

    def report(
        self,
        error_id: str,
        message: str,
        node: Optional[A.Node] = None,
    ) -> None:
        location = None
        if node is not None:
            location = SourceSpan.from_offset(self._source, node.span.start, self._filename)
        diag = Diagnostic(error_id, message, location)
        logger.debug("%s", diag)
        self._diagnostics.append(diag)

    @property
    def diagnostics(self) -> List[Diagnostic]:
        return list(self._diagnostics)


# ============================================================================
# Analyzer
# ============================================================================


@dataclass
class SemanticContext:
    """
    Context maintained during semantic analysis.
    """
    file: A.FileNode
    std: StdLibrary
    binding: BindingContext
    diagnostics: DiagnosticCollector
    file_scope: Scope
    # Scopes built in phase 1, entered again in phase 2
    class_headers: Dict[A.ClassDecl, Scope] = field(default_factory=dict)
    class_members: Dict[A.ClassDecl, Scope] = field(default_factory=dict)
    function_scopes: Dict[A.FunDecl, Scope] = field(default_factory=dict)
    initializer_scopes: Dict[A.PropertyDecl, Scope] = field(default_factory=dict)
    # Bodies and initializers already inferred on demand
    analyzed: Set[A.Node] = field(default_factory=set)
    in_progress: Set[A.Declaration] = field(default_factory=set)


@dataclass
class _Applicable:
    candidate: Descriptor
    substitution: Dict[TypeConstructor, KType]
    result: KType
    score: int


class SemanticAnalyzer:
    """
    Semantic analyzer for fixturelang files.

    One instance may analyze several files; all per-file state lives in the
    :class:`SemanticContext` built by :meth:`analyze`.
    """

    def analyze(
        self, file: A.FileNode, source: str, filename: str = "<fixture>"
    ) -> Tuple[FixtureBindingModel, StdLibrary, DiagnosticCollector]:
        std = StdLibrary()
        ctx = SemanticContext(
            file=file,
            std=std,
            binding=BindingContext(),
            diagnostics=DiagnosticCollector(source, filename),
            file_scope=std.scope().child("file", kind="file"),
        )

        self._phase1_declare(ctx)
        self._phase2_resolve(ctx)

        logger.debug(
            "%s: %d target(s), %d unresolved, %d ambiguous, %d diagnostic(s)",
            filename,
            len(ctx.binding.targets),
            len(ctx.binding.unresolved),
            len(ctx.binding.ambiguous),
            len(ctx.diagnostics.diagnostics),
        )
        model = FixtureBindingModel(file, ctx.binding, source, filename)
        return model, std, ctx.diagnostics

    # ========================================================================
    # Phase 1: declarations
    # ========================================================================

    def _phase1_declare(self, ctx: SemanticContext) -> None:
        for decl in ctx.file.declarations:
            if isinstance(decl, A.ClassDecl):
                self._declare_class(ctx, decl)

        for decl in ctx.file.declarations:
            if isinstance(decl, A.ClassDecl):
                self._declare_class_members(ctx, decl)
            elif isinstance(decl, A.FunDecl):
                self._declare_function(ctx, decl, ctx.file_scope, None)
            elif isinstance(decl, A.PropertyDecl):
                self._declare_property(ctx, decl, ctx.file_scope, None, ctx.file_scope)

    def _define(self, ctx: SemanticContext, scope: Scope, symbol: Symbol) -> None:
        conflict = scope.define(symbol)
        if conflict is not None:
            ctx.diagnostics.report(
                "redeclaration",
                f"Conflicting declarations of '{symbol.name}'",
                symbol.node,
            )

    def _declare_type_parameters(
        self,
        ctx: SemanticContext,
        params: List[A.TypeParamDecl],
        scope: Scope,
        owner: Descriptor,
    ) -> List[TypeParameterDescriptor]:
        result = []
        for param in params:
            tp = TypeParameterDescriptor(name=param.name, declaration=param, container=owner)
            tp.type_constructor = TypeConstructor(
                param.name, ConstructorKind.TYPE_PARAMETER, descriptor=tp
            )
            self._define(ctx, scope, Symbol(param.name, "type-parameter", tp, param))
            ctx.binding.declarations[param] = tp
            result.append(tp)
        return result

    def _declare_class(self, ctx: SemanticContext, decl: A.ClassDecl) -> None:
        cls = ClassDescriptor(name=decl.name, declaration=decl)
        cls.type_constructor = TypeConstructor(decl.name, ConstructorKind.CLASS, descriptor=cls)
        header = ctx.file_scope.child(f"class {decl.name}", kind="class")
        cls.type_parameters = self._declare_type_parameters(ctx, decl.type_params, header, cls)
        self._define(ctx, ctx.file_scope, Symbol(decl.name, "class", cls, decl))
        ctx.binding.declarations[decl] = cls
        ctx.class_headers[decl] = header

    def _declare_class_members(self, ctx: SemanticContext, decl: A.ClassDecl) -> None:
        cls = ctx.binding.declarations[decl]
        header = ctx.class_headers[decl]
        members = header.child(f"members of {decl.name}", kind="class")
        # Property initializers see constructor parameters, member bodies do not
        constructor = members.child(f"constructor of {decl.name}", kind="constructor")
        ctx.class_members[decl] = members

        for index, param in enumerate(decl.ctor_params):
            param_type = self._resolve_type(ctx, param.type_ref, header)
            value_param = ValueParameterDescriptor(
                name=param.name, declaration=param, container=cls, type=param_type, index=index
            )
            cls.constructor_parameters.append(value_param)
            ctx.binding.constructor_parameters[param] = value_param
            self._define(ctx, constructor, Symbol(param.name, "parameter", value_param, param))

            if param.declares_property:
                prop = PropertyDescriptor(
                    name=param.name,
                    declaration=param,
                    container=cls,
                    type=param_type,
                    mutable=param.binding == "var",
                    constructor_parameter=value_param,
                )
                cls.add_member(prop)
                self._define(ctx, members, Symbol(param.name, "property", prop, param))
                ctx.binding.declarations[param] = prop
            else:
                ctx.binding.declarations[param] = value_param

        for member in decl.members:
            if isinstance(member, A.FunDecl):
                self._declare_function(ctx, member, members, cls)
            elif isinstance(member, A.PropertyDecl):
                self._declare_property(ctx, member, members, cls, constructor)

    def _declare_function(
        self,
        ctx: SemanticContext,
        decl: A.FunDecl,
        scope: Scope,
        container: Optional[ClassDescriptor],
    ) -> None:
        fn = FunctionDescriptor(name=decl.name, declaration=decl, container=container)
        fn_scope = scope.child(f"fun {decl.name}", kind="function")
        fn.type_parameters = self._declare_type_parameters(ctx, decl.type_params, fn_scope, fn)

        for index, param in enumerate(decl.params):
            value_param = ValueParameterDescriptor(
                name=param.name,
                declaration=param,
                container=fn,
                type=self._resolve_type(ctx, param.type_ref, fn_scope),
                index=index,
            )
            fn.value_parameters.append(value_param)
            self._define(ctx, fn_scope, Symbol(param.name, "parameter", value_param, param))
            ctx.binding.declarations[param] = value_param

        if decl.return_type is not None:
            fn.return_type = self._resolve_type(ctx, decl.return_type, fn_scope)
        elif decl.body is None or isinstance(decl.body, A.Block):
            fn.return_type = ctx.std.unit_type
        # else: inferred from the expression body on first use

        self._define(ctx, scope, Symbol(decl.name, "function", fn, decl))
        if container is not None:
            container.add_member(fn)
        ctx.binding.declarations[decl] = fn
        ctx.function_scopes[decl] = fn_scope

    def _declare_property(
        self,
        ctx: SemanticContext,
        decl: A.PropertyDecl,
        scope: Scope,
        container: Optional[ClassDescriptor],
        initializer_scope: Scope,
    ) -> None:
        prop = PropertyDescriptor(
            name=decl.name, declaration=decl, container=container, mutable=decl.mutable
        )
        if decl.type_ref is not None:
            prop.type = self._resolve_type(ctx, decl.type_ref, scope)
        elif decl.initializer is None:
            ctx.diagnostics.report(
                "missing-type", f"Property '{decl.name}' needs a type or an initializer", decl
            )
            prop.type = error_type()

        self._define(ctx, scope, Symbol(decl.name, "property", prop, decl))
        if container is not None:
            container.add_member(prop)
        ctx.binding.declarations[decl] = prop
        ctx.initializer_scopes[decl] = initializer_scope

    # ========================================================================
    # Types
    # ========================================================================

    def _resolve_type(self, ctx: SemanticContext, node: Optional[A.TypeNode], scope: Scope) -> KType:
        if node is None:
            return error_type()

        if isinstance(node, A.FunctionTypeNode):
            params = [self._resolve_type(ctx, p, scope) for p in node.params]
            result = ctx.std.function_type(
                params, self._resolve_type(ctx, node.result, scope), node.nullable
            )
        else:
            args = tuple(self._resolve_type(ctx, a, scope) for a in node.args)
            symbol = scope.lookup_classifier(node.name)
            if symbol is None:
                self._unresolved(ctx, node, node.name)
                result = error_type()
            else:
                ctx.binding.record(node, symbol.descriptor)
                expected = len(getattr(symbol.descriptor, "type_parameters", ()))
                if symbol.kind == "class" and len(args) != expected:
                    ctx.diagnostics.report(
                        "wrong-type-arguments",
                        f"'{node.name}' expects {expected} type argument(s), got {len(args)}",
                        node,
                    )
                result = KType(symbol.descriptor.type_constructor, args, node.nullable)

        ctx.binding.record_type(node, result)
        return result

    def _ensure_type(self, ctx: SemanticContext, descriptor: Descriptor) -> KType:
        """Value type of a property or variable, or return type of a function."""
        if isinstance(descriptor, CallableDescriptor):
            if descriptor.return_type is None:
                descriptor.return_type = self._infer_deferred(
                    ctx, descriptor.declaration, descriptor.declaration.body,
                    ctx.function_scopes.get(descriptor.declaration),
                )
            return descriptor.return_type

        if isinstance(descriptor, PropertyDescriptor) and descriptor.type is None:
            decl = descriptor.declaration
            descriptor.type = self._infer_deferred(
                ctx, decl, decl.initializer, ctx.initializer_scopes.get(decl)
            )
        declared = getattr(descriptor, "type", None)
        return declared if declared is not None else error_type()

    def _infer_deferred(
        self,
        ctx: SemanticContext,
        decl: A.Declaration,
        expr: Optional[A.Expression],
        scope: Optional[Scope],
    ) -> KType:
        if decl in ctx.in_progress:
            ctx.diagnostics.report(
                "recursive-type",
                f"Type of '{decl.name}' cannot be inferred: it depends on itself",
                decl,
            )
            return error_type()
        if expr is None or scope is None:
            return error_type()
        ctx.in_progress.add(decl)
        try:
            result = self._infer(ctx, expr, scope)
        finally:
            ctx.in_progress.discard(decl)
        ctx.analyzed.add(expr)
        return result

    def _value_type(self, ctx: SemanticContext, descriptor: Descriptor) -> KType:
        if isinstance(descriptor, VariableAsFunctionDescriptor):
            return self._ensure_type(ctx, descriptor.variable)
        if isinstance(descriptor, CallableDescriptor):
            params = [p.type for p in descriptor.value_parameters]
            return ctx.std.function_type(params, self._ensure_type(ctx, descriptor))
        return self._ensure_type(ctx, descriptor)

    def _expect(self, ctx: SemanticContext, actual: KType, expected: KType, node: A.Node) -> None:
        if not is_subtype(actual, expected):
            ctx.diagnostics.report(
                "type-mismatch", f"Type mismatch: inferred {actual} but {expected} was expected", node
            )

    # ========================================================================
    # Phase 2: bodies
    # ========================================================================

    def _phase2_resolve(self, ctx: SemanticContext) -> None:
        for decl in ctx.file.declarations:
            if isinstance(decl, A.ClassDecl):
                for member in decl.members:
                    self._check_declaration(ctx, member)
            else:
                self._check_declaration(ctx, decl)

    def _check_declaration(self, ctx: SemanticContext, decl: A.Declaration) -> None:
        descriptor = ctx.binding.declarations[decl]
        if isinstance(decl, A.FunDecl):
            self._ensure_type(ctx, descriptor)
            scope = ctx.function_scopes[decl]
            if isinstance(decl.body, A.Block):
                self._check_block(ctx, decl.body, scope, descriptor)
            elif decl.body is not None and decl.body not in ctx.analyzed:
                body_type = self._infer(ctx, decl.body, scope)
                self._expect(ctx, body_type, descriptor.return_type, decl.body)
        elif isinstance(decl, A.PropertyDecl):
            self._ensure_type(ctx, descriptor)
            if decl.initializer is not None and decl.initializer not in ctx.analyzed:
                init_type = self._infer(ctx, decl.initializer, ctx.initializer_scopes[decl])
                self._expect(ctx, init_type, descriptor.type, decl.initializer)

    def _check_block(
        self, ctx: SemanticContext, block: A.Block, parent: Scope, owner: Descriptor
    ) -> None:
        scope = parent.child("block")
        for statement in block.statements:
            if isinstance(statement, A.PropertyDecl):
                self._declare_local(ctx, statement, scope, owner)
            else:
                self._infer(ctx, statement, scope)

    def _declare_local(
        self, ctx: SemanticContext, decl: A.PropertyDecl, scope: Scope, owner: Descriptor
    ) -> None:
        declared = self._resolve_type(ctx, decl.type_ref, scope) if decl.type_ref else None
        inferred = self._infer(ctx, decl.initializer, scope) if decl.initializer else None
        if declared is not None and inferred is not None:
            self._expect(ctx, inferred, declared, decl.initializer)
        local_type = declared or inferred
        if local_type is None:
            ctx.diagnostics.report(
                "missing-type", f"Variable '{decl.name}' needs a type or an initializer", decl
            )
            local_type = error_type()
        # Defined after the initializer: `val x = x` sees the outer x
        local = LocalVariableDescriptor(
            name=decl.name, declaration=decl, container=owner, type=local_type, mutable=decl.mutable
        )
        self._define(ctx, scope, Symbol(decl.name, "variable", local, decl))
        ctx.binding.declarations[decl] = local

    # ========================================================================
    # Expressions
    # ========================================================================

    def _infer(self, ctx: SemanticContext, expr: A.Expression, scope: Scope) -> KType:
        handler = self._INFER.get(type(expr))
        if handler is None:
            raise TypeError(f"No inference rule for {type(expr).__name__}")
        result = handler(self, ctx, expr, scope)
        ctx.binding.record_type(expr, result)
        return result

    def _infer_int(self, ctx, expr, scope) -> KType:
        return ctx.std.int_type

    def _infer_string(self, ctx, expr, scope) -> KType:
        return ctx.std.string_type

    def _infer_bool(self, ctx, expr, scope) -> KType:
        return ctx.std.boolean_type

    def _infer_null(self, ctx, expr, scope) -> KType:
        return ctx.std.nothing_type.make_nullable()

    def _infer_paren(self, ctx, expr: A.ParenExpr, scope) -> KType:
        return self._infer(ctx, expr.inner, scope)

    def _infer_name(self, ctx: SemanticContext, expr: A.NameExpr, scope: Scope) -> KType:
        symbols = scope.lookup_all(expr.name, VALUE_KINDS)
        if not symbols:
            self._unresolved(ctx, expr, expr.name)
            return error_type()
        target = symbols[0].descriptor
        ctx.binding.record(expr, target)
        return self._ensure_type(ctx, target)

    def _infer_callable_ref(self, ctx: SemanticContext, expr: A.CallableRefExpr, scope: Scope) -> KType:
        name = expr.target
        symbols = scope.lookup_all(name.name, ("function",))
        if not symbols:
            self._unresolved(ctx, name, name.name)
            result = error_type()
        elif len(symbols) > 1:
            candidates = [s.descriptor for s in symbols]
            ctx.binding.mark_ambiguous(name, candidates)
            ctx.diagnostics.report(
                "callable-reference-ambiguity",
                f"Callable reference '::{name.name}' matches {len(candidates)} overloads",
                name,
            )
            result = error_type()
        else:
            target = symbols[0].descriptor
            ctx.binding.record(name, target)
            result = self._value_type(ctx, target)
        ctx.binding.record_type(name, result)
        return result

    def _infer_if(self, ctx: SemanticContext, expr: A.IfExpr, scope: Scope) -> KType:
        condition = self._infer(ctx, expr.condition, scope)
        self._expect(ctx, condition, ctx.std.boolean_type, expr.condition)
        then_type = self._infer(ctx, expr.then_branch, scope)
        if expr.else_branch is None:
            return ctx.std.unit_type
        else_type = self._infer(ctx, expr.else_branch, scope)
        return join(then_type, else_type, ctx.std.any_type)

    def _infer_binary(self, ctx: SemanticContext, expr: A.BinaryExpr, scope: Scope) -> KType:
        left = self._infer(ctx, expr.left, scope)
        right = self._infer(ctx, expr.right, scope)
        operator = expr.operator
        member_name = OPERATOR_MEMBERS[operator.symbol]
        comparison = operator.symbol in COMPARISON_OPERATORS

        if left.is_error:
            ctx.binding.record(operator, ErrorDescriptor(name=member_name))
            return ctx.std.boolean_type if comparison else error_type()

        candidates, receiver_subst = self._members(ctx, left, member_name, functions_only=True)
        result = self._select_overload(
            ctx, operator, member_name, candidates, [right], receiver_subst
        )
        return ctx.std.boolean_type if comparison else result

    def _infer_member_access(self, ctx: SemanticContext, expr: A.MemberAccess, scope: Scope) -> KType:
        receiver = self._infer(ctx, expr.receiver, scope)
        selector = expr.selector
        if receiver.is_error:
            ctx.binding.record(selector, ErrorDescriptor(name=selector.name))
            result = error_type()
        else:
            members, receiver_subst = self._members(ctx, receiver, selector.name)
            properties = [m for m in members if isinstance(m, PropertyDescriptor)]
            if properties:
                ctx.binding.record(selector, properties[0])
                result = substitute(self._ensure_type(ctx, properties[0]), receiver_subst)
            else:
                self._unresolved(ctx, selector, f"{receiver}.{selector.name}")
                result = error_type()
        ctx.binding.record_type(selector, result)
        return result

    def _infer_call(self, ctx: SemanticContext, expr: A.CallExpr, scope: Scope) -> KType:
        callee = expr.callee
        arg_types = [self._infer(ctx, arg, scope) for arg in expr.args]

        if isinstance(callee, A.NameExpr):
            candidates = self._callable_candidates(ctx, callee.name, scope)
            result = self._select_overload(ctx, callee, callee.name, candidates, arg_types, {})
            ctx.binding.record_type(callee, result)
            return result

        if isinstance(callee, A.MemberAccess):
            receiver = self._infer(ctx, callee.receiver, scope)
            selector = callee.selector
            if receiver.is_error:
                ctx.binding.record(selector, ErrorDescriptor(name=selector.name))
                result = error_type()
            else:
                members, receiver_subst = self._members(ctx, receiver, selector.name)
                candidates = [self._as_callable(ctx, m) for m in members]
                candidates = [c for c in candidates if c is not None]
                result = self._select_overload(
                    ctx, selector, selector.name, candidates, arg_types, receiver_subst
                )
            ctx.binding.record_type(selector, result)
            ctx.binding.record_type(callee, result)
            return result

        # Calling the value of an arbitrary expression: `(f)(1)`, `g()(2)`
        callee_type = self._infer(ctx, callee, scope)
        if callee_type.is_error:
            return error_type()
        if not ctx.std.is_function_type(callee_type):
            ctx.diagnostics.report("not-callable", f"Expression of type {callee_type} cannot be called", callee)
            return error_type()
        *params, result = callee_type.arguments
        if len(params) != len(arg_types):
            ctx.diagnostics.report(
                "argument-mismatch", f"Expected {len(params)} argument(s), got {len(arg_types)}", expr
            )
        for arg, param, node in zip(arg_types, params, expr.args):
            self._expect(ctx, arg, param, node)
        return result

    _INFER: Dict[type, Callable[..., KType]] = {
        A.IntLiteral: _infer_int,
        A.StringLiteral: _infer_string,
        A.BoolLiteral: _infer_bool,
        A.NullLiteral: _infer_null,
        A.ParenExpr: _infer_paren,
        A.NameExpr: _infer_name,
        A.CallableRefExpr: _infer_callable_ref,
        A.IfExpr: _infer_if,
        A.BinaryExpr: _infer_binary,
        A.MemberAccess: _infer_member_access,
        A.CallExpr: _infer_call,
    }

    # ========================================================================
    # Calls and overloads
    # ========================================================================

    def _as_callable(self, ctx: SemanticContext, descriptor: Descriptor) -> Optional[Descriptor]:
        """The descriptor a call through *descriptor* would target, if any."""
        if isinstance(descriptor, (CallableDescriptor, ClassDescriptor)):
            return descriptor
        if isinstance(descriptor, (PropertyDescriptor, LocalVariableDescriptor, ValueParameterDescriptor)):
            value_type = self._ensure_type(ctx, descriptor)
            if ctx.std.is_function_type(value_type):
                return VariableAsFunctionDescriptor(
                    name=descriptor.name,
                    declaration=descriptor.declaration,
                    container=descriptor.container,
                    variable=descriptor,
                    function_type=value_type,
                )
        return None

    def _callable_candidates(self, ctx: SemanticContext, name: str, scope: Scope) -> List[Descriptor]:
        """Callables for *name* at the innermost scope level that has any."""
        for level in scope.levels():
            found = []
            for symbol in level.lookup_local(name):
                if symbol.kind == "type-parameter":
                    continue
                callable_ = self._as_callable(ctx, symbol.descriptor)
                if callable_ is not None:
                    found.append(callable_)
            if found:
                return found
        return []

    def _members(
        self,
        ctx: SemanticContext,
        receiver: KType,
        name: str,
        functions_only: bool = False,
    ) -> Tuple[List[Descriptor], Dict[TypeConstructor, KType]]:
        owner = receiver.constructor.descriptor
        receiver_subst: Dict[TypeConstructor, KType] = {}
        found: List[Descriptor] = []
        if isinstance(owner, ClassDescriptor):
            found = owner.members_named(name)
            receiver_subst = {
                tp.type_constructor: arg
                for tp, arg in zip(owner.type_parameters, receiver.arguments)
            }
        if not found:
            found = ctx.std.any_class.members_named(name)
        if functions_only:
            found = [m for m in found if isinstance(m, CallableDescriptor)]
        return found, receiver_subst

    def _signature(
        self, ctx: SemanticContext, candidate: Descriptor, receiver_subst: Dict[TypeConstructor, KType]
    ) -> Tuple[List[KType], KType, Tuple[TypeConstructor, ...]]:
        if isinstance(candidate, VariableAsFunctionDescriptor):
            *params, result = candidate.function_type.arguments
            return list(params), result, ()
        if isinstance(candidate, ClassDescriptor):
            params = [p.type for p in candidate.constructor_parameters]
            variables = tuple(tp.type_constructor for tp in candidate.type_parameters)
            return params, candidate.default_type(), variables
        params = [substitute(p.type, receiver_subst) for p in candidate.value_parameters]
        result = substitute(self._ensure_type(ctx, candidate), receiver_subst)
        variables = tuple(tp.type_constructor for tp in candidate.type_parameters)
        return params, result, variables

    def _applicable(
        self,
        ctx: SemanticContext,
        candidate: Descriptor,
        arg_types: List[KType],
        receiver_subst: Dict[TypeConstructor, KType],
    ) -> Optional[_Applicable]:
        params, result, variables = self._signature(ctx, candidate, receiver_subst)
        if len(params) != len(arg_types):
            return None
        substitution: Dict[TypeConstructor, KType] = {}
        if variables:
            for param, arg in zip(params, arg_types):
                infer_substitution(param, arg, variables, substitution)
            params = [substitute(p, substitution) for p in params]
            result = substitute(result, substitution)
        if not all(is_subtype(arg, param) for arg, param in zip(arg_types, params)):
            return None
        score = sum(1 for arg, param in zip(arg_types, params) if arg.constructor is param.constructor)
        return _Applicable(candidate, substitution, result, score)

    def _select_overload(
        self,
        ctx: SemanticContext,
        reference: A.Node,
        name: str,
        candidates: List[Descriptor],
        arg_types: List[KType],
        receiver_subst: Dict[TypeConstructor, KType],
    ) -> KType:
        if not candidates:
            self._unresolved(ctx, reference, name)
            return error_type()

        applicable = [
            a for a in (self._applicable(ctx, c, arg_types, receiver_subst) for c in candidates)
            if a is not None
        ]

        if not applicable:
            if len(candidates) == 1:
                # Single candidate: bind it anyway so the mismatch is the only error
                target = candidates[0]
                ctx.binding.record(reference, target)
                ctx.diagnostics.report(
                    "argument-mismatch",
                    f"Arguments ({', '.join(map(str, arg_types))}) do not match "
                    f"{render_descriptor(target)}",
                    reference,
                )
                return self._signature(ctx, target, receiver_subst)[1]
            ctx.diagnostics.report(
                "none-applicable",
                f"None of {len(candidates)} candidates for '{name}' accepts "
                f"({', '.join(map(str, arg_types))})",
                reference,
            )
            ctx.binding.mark_unresolved(reference)
            return error_type()

        best = max(a.score for a in applicable)
        winners = [a for a in applicable if a.score == best]
        if len(winners) > 1:
            ctx.binding.mark_ambiguous(reference, [w.candidate for w in winners])
            ctx.diagnostics.report(
                "overload-ambiguity",
                f"Overload resolution ambiguity for '{name}': {len(winners)} candidates",
                reference,
            )
            return error_type()

        chosen = winners[0]
        target = chosen.candidate
        if isinstance(target, FunctionDescriptor) and target.type_parameters:
            target = make_substituted(target, chosen.substitution)
        ctx.binding.record(reference, target)
        return chosen.result

    def _unresolved(self, ctx: SemanticContext, node: A.Node, name: str) -> None:
        ctx.binding.mark_unresolved(node)
        ctx.diagnostics.report("unresolved-reference", f"Unresolved reference: {name}", node)


# ============================================================================
# Public API
# ============================================================================


def analyze(text: str, filename: str = "<fixture>") -> AnalysisResult:
    """Parse and resolve *text*; the bundled analyzer for the oracle harness.

    Raises :class:`~resolve_oracle.errors.AnalysisError` on a syntax error.
    Resolution problems are reported as diagnostics, never raised.
    """
    file_node = parse(text, filename)
    model, std, diagnostics = SemanticAnalyzer().analyze(file_node, text, filename)
    external_descriptors = {
        f"std::{name}": std.function(name)
        for name in ("println", "listOf", "identity", "Int.plus", "Int.toString")
    }
    return AnalysisResult(
        model=model,
        library=std,
        renderer=render_descriptor,
        external_descriptors=external_descriptors,
        external_elements={},
        diagnostics=diagnostics.diagnostics,
    )
