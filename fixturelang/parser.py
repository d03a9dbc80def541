"""
fixturelang parser

Transforms the Parsimonious parse tree produced by
:data:`fixturelang.grammar.FIXTURE_GRAMMAR` into the typed AST of
:mod:`fixturelang.ast_nodes`.

Usage::

    from fixturelang.parser import parse

    tree = parse("fun f(x: Int): Int = x + 1")
    print(tree.declarations[0].name)    # "f"
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.nodes import Node as ParseNode
from parsimonious.nodes import NodeVisitor

from fixturelang.ast_nodes import (
    BinaryExpr,
    Block,
    BoolLiteral,
    CallableRefExpr,
    CallExpr,
    ClassDecl,
    CtorParamDecl,
    Expression,
    FileNode,
    FunDecl,
    FunctionTypeNode,
    IfExpr,
    IntLiteral,
    MemberAccess,
    NamedType,
    NameExpr,
    NullLiteral,
    OperatorRef,
    PackageDirective,
    ParenExpr,
    PropertyDecl,
    Span,
    StringLiteral,
    TypeParamDecl,
    ValueParamDecl,
    link_parents,
)
from fixturelang.grammar import FIXTURE_GRAMMAR
from resolve_oracle.errors import AnalysisError, SourceSpan

logger = logging.getLogger(__name__)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\(.)")


def _span(node: ParseNode) -> Span:
    return Span(node.start, node.end)


def _opt(visited: Any) -> Any:
    """Unwrap an optional: its single visited child, or ``None`` when absent."""
    if isinstance(visited, list) and visited:
        return visited[0]
    return None


def _many(visited: Any) -> List[Any]:
    """Visited children of a ``*`` repetition; an empty match is not a list."""
    if isinstance(visited, list):
        return visited
    return []


class FixtureASTBuilder(NodeVisitor):
    """Transforms Parsimonious parse tree into fixturelang AST."""

    unwrapped_exceptions = (AnalysisError,)

    def generic_visit(self, node, visited_children):
        """Default: the visited children, or the node itself for leaves."""
        return visited_children or node

    # ─────────────────────────────────────────────────────────────
    # File
    # ─────────────────────────────────────────────────────────────

    def visit_file(self, node, visited_children):
        _, package_part, top_levels = visited_children
        return FileNode(
            span=_span(node),
            package=_opt(package_part),
            declarations=_many(top_levels),
        )

    def visit_package_part(self, node, visited_children):
        return visited_children[0]

    def visit_top_level(self, node, visited_children):
        return visited_children[0]

    def visit_package_header(self, node, visited_children):
        _, _, names, _ = visited_children
        return PackageDirective(span=Span(node.start, names[-1].span.end), names=names)

    def visit_qualified_name(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[3] for item in _many(rest)]

    def visit_declaration(self, node, visited_children):
        return visited_children[0]

    def visit_member(self, node, visited_children):
        return visited_children[0]

    # ─────────────────────────────────────────────────────────────
    # Classes
    # ─────────────────────────────────────────────────────────────

    def visit_class_decl(self, node, visited_children):
        _, _, (name, name_span), type_params, ctor_params, body = visited_children
        type_params = _opt(type_params)
        ctor_params = _opt(ctor_params)
        body = _opt(body)
        return ClassDecl(
            span=_span(node),
            name=name,
            name_span=name_span,
            type_params=type_params[1] if type_params else [],
            ctor_params=ctor_params[1] if ctor_params else [],
            members=body[1] if body else [],
        )

    def visit_type_params(self, node, visited_children):
        _, _, first, rest, _, _ = visited_children
        return [first] + [item[3] for item in _many(rest)]

    def visit_type_param(self, node, visited_children):
        span = _span(node)
        return TypeParamDecl(span=span, name=node.text, name_span=span)

    def visit_ctor_params(self, node, visited_children):
        _, _, params, _, _ = visited_children
        return _opt(params) or []

    def visit_ctor_param_list(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[3] for item in _many(rest)]

    def visit_ctor_param(self, node, visited_children):
        binding, (name, name_span), _, _, _, type_ref = visited_children
        binding = _opt(binding)
        return CtorParamDecl(
            span=_span(node),
            name=name,
            name_span=name_span,
            type_ref=type_ref,
            binding=binding[0] if binding else None,
        )

    def visit_class_body(self, node, visited_children):
        _, _, members, _ = visited_children
        return [item[0] for item in _many(members)]

    # ─────────────────────────────────────────────────────────────
    # Functions and Properties
    # ─────────────────────────────────────────────────────────────

    def visit_fun_decl(self, node, visited_children):
        (_, type_params, _, (name, name_span), _, _, _,
         params, _, _, return_type, _, body) = visited_children
        type_params = _opt(type_params)
        return_type = _opt(return_type)
        return FunDecl(
            span=_span(node),
            name=name,
            name_span=name_span,
            type_params=type_params[1] if type_params else [],
            params=_opt(params) or [],
            return_type=return_type[3] if return_type else None,
            body=body,
        )

    def visit_value_params(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[3] for item in _many(rest)]

    def visit_value_param(self, node, visited_children):
        (name, name_span), _, _, _, type_ref = visited_children
        return ValueParamDecl(span=_span(node), name=name, name_span=name_span, type_ref=type_ref)

    def visit_fun_body(self, node, visited_children):
        return visited_children[0]

    def visit_expr_body(self, node, visited_children):
        return visited_children[2]

    def visit_block(self, node, visited_children):
        _, _, statements, _ = visited_children
        return Block(span=_span(node), statements=[item[0] for item in _many(statements)])

    def visit_statement(self, node, visited_children):
        return visited_children[0]

    def visit_statement_body(self, node, visited_children):
        return visited_children[0]

    def visit_property_decl(self, node, visited_children):
        keyword, _, (name, name_span), type_ref, initializer = visited_children
        type_ref = _opt(type_ref)
        initializer = _opt(initializer)
        return PropertyDecl(
            span=_span(node),
            name=name,
            name_span=name_span,
            mutable=keyword == "var",
            type_ref=type_ref[3] if type_ref else None,
            initializer=initializer[3] if initializer else None,
        )

    def visit_decl_name(self, node, visited_children) -> Tuple[str, Span]:
        return node.text, _span(node)

    def visit_binding_kw(self, node, visited_children):
        return node.text

    # ─────────────────────────────────────────────────────────────
    # Types
    # ─────────────────────────────────────────────────────────────

    def visit_type(self, node, visited_children):
        type_node, nullable = visited_children
        if _opt(nullable) is not None:
            type_node.nullable = True
            type_node.span = _span(node)
        return type_node

    def visit_type_body(self, node, visited_children):
        return visited_children[0]

    def visit_function_type(self, node, visited_children):
        _, _, params, _, _, _, _, _, result = visited_children
        return FunctionTypeNode(span=_span(node), params=_opt(params) or [], result=result)

    def visit_type_list(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[3] for item in _many(rest)]

    def visit_named_type(self, node, visited_children):
        (name, name_span), args = visited_children
        return NamedType(
            span=_span(node),
            name=name,
            name_span=name_span,
            args=_opt(args) or [],
        )

    def visit_type_args(self, node, visited_children):
        return visited_children[2]

    def visit_type_name(self, node, visited_children):
        return node.text, _span(node)

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    def visit_expr(self, node, visited_children):
        left, rest = visited_children
        rest = _opt(rest)
        if rest is None:
            return left
        _, operator, _, right = rest
        return self._binary(left, operator, right)

    def visit_additive(self, node, visited_children):
        first, rest = visited_children
        return self._fold_binary(first, rest)

    def visit_multiplicative(self, node, visited_children):
        first, rest = visited_children
        return self._fold_binary(first, rest)

    def visit_comp_op(self, node, visited_children):
        return OperatorRef(span=_span(node), symbol=node.text)

    visit_add_op = visit_comp_op
    visit_mul_op = visit_comp_op

    def visit_postfix(self, node, visited_children):
        expr, suffixes = visited_children
        for kind, payload, end in _many(suffixes):
            if kind == "call":
                expr = CallExpr(span=Span(expr.span.start, end), callee=expr, args=payload)
            else:
                expr = MemberAccess(span=Span(expr.span.start, end), receiver=expr, selector=payload)
        return expr

    def visit_postfix_op(self, node, visited_children):
        return visited_children[0]

    def visit_call_suffix(self, node, visited_children):
        _, _, args, _, _ = visited_children
        return ("call", _opt(args) or [], node.end)

    def visit_member_suffix(self, node, visited_children):
        _, name = visited_children
        return ("member", name, node.end)

    def visit_arguments(self, node, visited_children):
        first, rest = visited_children
        return [first] + [item[3] for item in _many(rest)]

    def visit_primary(self, node, visited_children):
        return visited_children[0]

    def visit_if_expr(self, node, visited_children):
        _, _, _, _, condition, _, _, _, then_branch, else_part = visited_children
        else_part = _opt(else_part)
        return IfExpr(
            span=_span(node),
            condition=condition,
            then_branch=then_branch,
            else_branch=else_part[3] if else_part else None,
        )

    def visit_paren_expr(self, node, visited_children):
        return ParenExpr(span=_span(node), inner=visited_children[2])

    def visit_callable_ref(self, node, visited_children):
        return CallableRefExpr(span=_span(node), target=visited_children[1])

    def visit_name_ref(self, node, visited_children):
        return NameExpr(span=_span(node), name=node.text)

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    def visit_literal(self, node, visited_children):
        return visited_children[0]

    def visit_int_lit(self, node, visited_children):
        return IntLiteral(span=_span(node), value=int(node.text))

    def visit_string_lit(self, node, visited_children):
        body = node.text[1:-1]
        value = _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)
        return StringLiteral(span=_span(node), value=value)

    def visit_bool_lit(self, node, visited_children):
        return BoolLiteral(span=_span(node), value=node.text == "true")

    def visit_null_lit(self, node, visited_children):
        return NullLiteral(span=_span(node))

    # ─────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────

    def _fold_binary(self, first: Expression, rest: Any) -> Expression:
        expr = first
        for _, operator, _, right in _many(rest):
            expr = self._binary(expr, operator, right)
        return expr

    @staticmethod
    def _binary(left: Expression, operator: OperatorRef, right: Expression) -> BinaryExpr:
        return BinaryExpr(
            span=Span(left.span.start, right.span.end),
            left=left,
            operator=operator,
            right=right,
        )


def parse(text: str, filename: str = "<input>") -> FileNode:
    """Parse fixturelang source into a parent-linked AST.

    Raises :class:`AnalysisError` (``ROC-4000``) on a syntax error.
    """
    try:
        tree = FIXTURE_GRAMMAR.parse(text)
    except ParseError as exc:
        span = SourceSpan.from_offset(text, exc.pos, filename)
        raise AnalysisError(f"Syntax error: {exc}", span=span) from exc

    try:
        file_node = FixtureASTBuilder().visit(tree)
    except VisitationError as exc:
        raise AnalysisError(f"Could not build AST: {exc}", span=SourceSpan(file=filename)) from exc

    link_parents(file_node)
    logger.debug("%s: parsed %d top-level declaration(s)", filename, len(file_node.declarations))
    return file_node

