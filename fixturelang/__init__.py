"""
fixturelang - the bundled reference resolver.

A small statically typed language (classes, generics, overloads, function
types) with a parser and a name/type resolver whose results are exposed
through :class:`fixturelang.binding.FixtureBindingModel`.

Usage::

    from fixturelang import analyze

    result = analyze("fun f(x: Int) = x + 1")
    result.model.type_of(...)
"""

from fixturelang.analyzer import Diagnostic, SemanticAnalyzer, analyze
from fixturelang.parser import parse

__all__ = ["analyze", "parse", "Diagnostic", "SemanticAnalyzer"]
