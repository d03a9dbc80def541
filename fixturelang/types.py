"""
fixturelang type model

A :class:`KType` is a nominal type: a :class:`TypeConstructor` applied to
type arguments, plus nullability.  Constructors are compared by identity,
so two classes that happen to share a name are never the same type.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Tuple


class ConstructorKind(Enum):
    CLASS = "class"
    TYPE_PARAMETER = "type-parameter"
    ERROR = "error"


@dataclass(eq=False)
class TypeConstructor:
    """Owned by exactly one class or type parameter (or the error type)."""
    name: str
    kind: ConstructorKind
    descriptor: Any = field(default=None, repr=False)
    # ``Any`` is the top, ``Nothing`` the bottom of the class hierarchy
    is_top: bool = False
    is_bottom: bool = False

    def __str__(self) -> str:
        return self.name


ERROR_CONSTRUCTOR = TypeConstructor("<error>", ConstructorKind.ERROR)


@dataclass(frozen=True)
class KType:
    constructor: TypeConstructor
    arguments: Tuple["KType", ...] = ()
    nullable: bool = False

    @property
    def is_error(self) -> bool:
        return self.constructor.kind is ConstructorKind.ERROR

    @property
    def is_type_parameter(self) -> bool:
        return self.constructor.kind is ConstructorKind.TYPE_PARAMETER

    def make_nullable(self, nullable: bool = True) -> "KType":
        if self.nullable == nullable:
            return self
        return replace(self, nullable=nullable)

    def __str__(self) -> str:
        out = self.constructor.name
        if self.arguments:
            out += "<" + ", ".join(str(a) for a in self.arguments) + ">"
        if self.nullable:
            out += "?"
        return out


def error_type() -> KType:
    return KType(ERROR_CONSTRUCTOR)


Substitution = Mapping[TypeConstructor, KType]


def substitute(t: KType, substitution: Substitution) -> KType:
    """Replace type-parameter constructors according to *substitution*."""
    if not substitution:
        return t
    replacement = substitution.get(t.constructor)
    if replacement is not None:
        return replacement.make_nullable(replacement.nullable or t.nullable)
    if not t.arguments:
        return t
    return replace(t, arguments=tuple(substitute(a, substitution) for a in t.arguments))


def is_subtype(sub: KType, sup: KType) -> bool:
    """Nominal subtyping: every class extends ``Any``, ``Nothing`` extends everything.

    Error types are compatible with anything so that one unresolved name
    does not cascade into type mismatches.
    """
    if sub.is_error or sup.is_error:
        return True
    if sub.nullable and not sup.nullable:
        return False
    if sub.constructor.is_bottom or sup.constructor.is_top:
        return True
    if sub.constructor is not sup.constructor:
        return False
    if len(sub.arguments) != len(sup.arguments):
        return False
    return all(a.constructor is b.constructor or a.is_error or b.is_error
               for a, b in zip(sub.arguments, sup.arguments))


def join(a: KType, b: KType, top: KType) -> KType:
    """Least common supertype, approximated: equal constructors or one side is bottom."""
    nullable = a.nullable or b.nullable
    if a.is_error or b.is_error:
        return error_type()
    if a.constructor.is_bottom:
        return b.make_nullable(nullable)
    if b.constructor.is_bottom:
        return a.make_nullable(nullable)
    if a.constructor is b.constructor:
        return a.make_nullable(nullable)
    return top.make_nullable(nullable)


def infer_substitution(
    parameter: KType,
    argument: KType,
    variables: Tuple[TypeConstructor, ...],
    out: Dict[TypeConstructor, KType],
) -> None:
    """Bind type variables in *parameter* from the matching *argument* (first binding wins)."""
    if argument.is_error:
        return
    if parameter.constructor in variables:
        if parameter.constructor not in out:
            out[parameter.constructor] = argument.make_nullable(argument.nullable and not parameter.nullable)
        return
    if parameter.constructor is argument.constructor:
        for p, a in zip(parameter.arguments, argument.arguments):
            infer_substitution(p, a, variables, out)
