"""
fixturelang grammar (Parsimonious PEG)

A small, statically typed language with just enough surface to produce
every resolution outcome a fixture can assert: classes with type and
constructor parameters, overloaded and generic functions, properties and
locals, function types, callable references, member access and binary
operators.

Whitespace is consumed *between* tokens only, so every node's span is
tight around its own text.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

KEYWORDS = ("package", "class", "fun", "val", "var", "if", "else", "true", "false", "null")

IDENTIFIER_PATTERN = r"(?!(?:%s)\b)[A-Za-z_][A-Za-z0-9_]*" % "|".join(KEYWORDS)

_GRAMMAR_TEXT = r'''
    # ─────────────────────────────────────────────────────────────
    # File Structure
    # ─────────────────────────────────────────────────────────────

    file             = _ package_part? top_level*
    package_part     = package_header _
    top_level        = declaration (_ ";")? _
    package_header   = kw_package _ qualified_name (_ ";")?
    qualified_name   = name_ref (_ "." _ name_ref)*

    declaration      = class_decl / fun_decl / property_decl
    member           = fun_decl / property_decl

    # ─────────────────────────────────────────────────────────────
    # Classes
    # ─────────────────────────────────────────────────────────────

    class_decl       = kw_class _ decl_name (_ type_params)? (_ ctor_params)? (_ class_body)?
    type_params      = "<" _ type_param (_ "," _ type_param)* _ ">"
    ctor_params      = "(" _ ctor_param_list? _ ")"
    ctor_param_list  = ctor_param (_ "," _ ctor_param)*
    ctor_param       = (binding_kw _)? decl_name _ ":" _ type
    class_body       = "{" _ (member _)* "}"

    # ─────────────────────────────────────────────────────────────
    # Functions and Properties
    # ─────────────────────────────────────────────────────────────

    fun_decl         = kw_fun (_ type_params)? _ decl_name _ "(" _ value_params? _ ")" (_ ":" _ type)? _ fun_body
    value_params     = value_param (_ "," _ value_param)*
    value_param      = decl_name _ ":" _ type
    fun_body         = expr_body / block
    expr_body        = "=" _ expr
    block            = "{" _ (statement _)* "}"
    statement        = statement_body (_ ";")?
    statement_body   = property_decl / expr

    property_decl    = binding_kw _ decl_name (_ ":" _ type)? (_ "=" _ expr)?

    # ─────────────────────────────────────────────────────────────
    # Types
    # ─────────────────────────────────────────────────────────────

    type             = type_body nullable?
    type_body        = function_type / named_type
    nullable         = "?"
    function_type    = "(" _ type_list? _ ")" _ "->" _ type
    type_list        = type (_ "," _ type)*
    named_type       = type_name type_args?
    type_args        = "<" _ type_list _ ">"

    # ─────────────────────────────────────────────────────────────
    # Expressions
    # ─────────────────────────────────────────────────────────────

    expr             = additive (_ comp_op _ additive)?
    comp_op          = "==" / "!=" / "<=" / ">=" / "<" / ">"
    additive         = multiplicative (_ add_op _ multiplicative)*
    add_op           = "+" / "-"
    multiplicative   = postfix (_ mul_op _ postfix)*
    mul_op           = "*" / "/" / "%"
    postfix          = primary postfix_op*
    postfix_op       = call_suffix / member_suffix
    call_suffix      = "(" _ arguments? _ ")"
    member_suffix    = "." name_ref
    arguments        = expr (_ "," _ expr)*

    primary          = if_expr / literal / callable_ref / paren_expr / name_ref
    if_expr          = kw_if _ "(" _ expr _ ")" _ expr (_ kw_else _ expr)?
    paren_expr       = "(" _ expr _ ")"
    callable_ref     = "::" name_ref

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    literal          = int_lit / string_lit / bool_lit / null_lit
    int_lit          = ~r"[0-9]+"
    string_lit       = ~r'"(?:[^"\\\n]|\\.)*"'
    bool_lit         = ~r"(?:true|false)\b"
    null_lit         = ~r"null\b"

    # ─────────────────────────────────────────────────────────────
    # Identifiers, Keywords & Whitespace
    # ─────────────────────────────────────────────────────────────

    decl_name        = ~r"@IDENT@"
    type_param       = ~r"@IDENT@"
    type_name        = ~r"@IDENT@"
    name_ref         = ~r"@IDENT@"

    kw_package       = ~r"package\b"
    kw_class         = ~r"class\b"
    kw_fun           = ~r"fun\b"
    kw_if            = ~r"if\b"
    kw_else          = ~r"else\b"
    binding_kw       = ~r"va[lr]\b"

    _                = ~r"(?:\s|//[^\n]*)*"
'''

# Identifier rules are spelled out separately: a rule that merely aliases
# another is folded into it and would never reach its own visit_ method.
FIXTURE_GRAMMAR = Grammar(_GRAMMAR_TEXT.replace("@IDENT@", IDENTIFIER_PATTERN))
