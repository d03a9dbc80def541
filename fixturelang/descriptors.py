"""
fixturelang descriptors

A descriptor is the resolver-side symbol for a declared entity.  It is
distinct from the declaration node that introduced it (``declaration``),
and standard-library descriptors have no declaration node at all.
Descriptors compare by identity.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fixturelang.types import KType, Substitution, TypeConstructor, error_type, substitute


@dataclass(eq=False)
class Descriptor:
    name: str
    declaration: Any = field(default=None, repr=False)
    container: Optional["Descriptor"] = field(default=None, repr=False)

    kind = "declaration"

    @property
    def original(self) -> "Descriptor":
        return self

    @property
    def qualified_name(self) -> str:
        if self.container is None or isinstance(self.container, CallableDescriptor):
            return self.name
        return f"{self.container.qualified_name}.{self.name}"

    def render(self) -> str:
        return f"{self.kind} {self.qualified_name}"

    def __str__(self) -> str:
        return self.render()


@dataclass(eq=False)
class TypeParameterDescriptor(Descriptor):
    type_constructor: Optional[TypeConstructor] = field(default=None, repr=False)

    kind = "type parameter"


@dataclass(eq=False)
class ClassDescriptor(Descriptor):
    type_constructor: Optional[TypeConstructor] = field(default=None, repr=False)
    type_parameters: List[TypeParameterDescriptor] = field(default_factory=list)
    constructor_parameters: List["ValueParameterDescriptor"] = field(default_factory=list)
    members: Dict[str, List[Descriptor]] = field(default_factory=dict, repr=False)

    kind = "class"

    def add_member(self, member: Descriptor) -> None:
        self.members.setdefault(member.name, []).append(member)

    def members_named(self, name: str) -> List[Descriptor]:
        return list(self.members.get(name, ()))

    def default_type(self) -> KType:
        """The class applied to its own type parameters, ``Box<T>``."""
        args = tuple(KType(tp.type_constructor) for tp in self.type_parameters)
        return KType(self.type_constructor, args)


@dataclass(eq=False)
class ValueParameterDescriptor(Descriptor):
    type: KType = field(default_factory=error_type)
    index: int = 0

    kind = "value parameter"

    def render(self) -> str:
        return f"{self.kind} {self.name}: {self.type} of {self.container}"


@dataclass(eq=False)
class CallableDescriptor(Descriptor):
    type_parameters: List[TypeParameterDescriptor] = field(default_factory=list)
    value_parameters: List[ValueParameterDescriptor] = field(default_factory=list)
    # None until inferred from an expression body
    return_type: Optional[KType] = None

    kind = "fun"

    def signature(self) -> str:
        params = ", ".join(f"{p.name}: {p.type}" for p in self.value_parameters)
        type_params = ""
        if self.type_parameters:
            type_params = "<" + ", ".join(tp.name for tp in self.type_parameters) + "> "
        ret = self.return_type if self.return_type is not None else "?"
        return f"{type_params}{self.qualified_name}({params}): {ret}"

    def render(self) -> str:
        return f"{self.kind} {self.signature()}"


@dataclass(eq=False)
class FunctionDescriptor(CallableDescriptor):
    pass


@dataclass(eq=False)
class SubstitutedFunctionDescriptor(CallableDescriptor):
    """A generic function as seen at one call site."""
    generic: Optional[FunctionDescriptor] = field(default=None, repr=False)
    substitution: Substitution = field(default_factory=dict, repr=False)

    @property
    def original(self) -> Descriptor:
        return self.generic if self.generic is not None else self


@dataclass(eq=False)
class PropertyDescriptor(Descriptor):
    type: Optional[KType] = None
    mutable: bool = False
    # Set for properties declared by ``val``/``var`` constructor parameters
    constructor_parameter: Optional[ValueParameterDescriptor] = field(default=None, repr=False)

    kind = "val"

    def render(self) -> str:
        keyword = "var" if self.mutable else "val"
        return f"{keyword} {self.qualified_name}: {self.type}"


@dataclass(eq=False)
class LocalVariableDescriptor(Descriptor):
    type: Optional[KType] = None
    mutable: bool = False

    kind = "local val"

    def render(self) -> str:
        keyword = "var" if self.mutable else "val"
        return f"local {keyword} {self.name}: {self.type}"


@dataclass(eq=False)
class VariableAsFunctionDescriptor(Descriptor):
    """A call through a variable of function type: ``f(1)`` where ``val f: (Int) -> Int``."""
    variable: Optional[Descriptor] = field(default=None, repr=False)
    function_type: Optional[KType] = None

    kind = "invoke"

    def render(self) -> str:
        return f"invoke of {self.variable}"


@dataclass(eq=False)
class ErrorDescriptor(Descriptor):
    """Placeholder target for members selected on an unresolvable receiver."""

    kind = "error"

    def render(self) -> str:
        return f"[error: {self.name}]"


def make_substituted(
    function: CallableDescriptor, substitution: Substitution
) -> SubstitutedFunctionDescriptor:
    result = SubstitutedFunctionDescriptor(
        name=function.name,
        declaration=function.declaration,
        container=function.container,
        generic=function.original,
        substitution=dict(substitution),
    )
    result.value_parameters = [
        ValueParameterDescriptor(
            name=p.name,
            declaration=p.declaration,
            container=result,
            type=substitute(p.type, substitution),
            index=p.index,
        )
        for p in function.value_parameters
    ]
    if function.return_type is not None:
        result.return_type = substitute(function.return_type, substitution)
    return result


def render_descriptor(target: Optional[Any]) -> str:
    """Render a resolution target for failure messages."""
    if target is None:
        return "null"
    if isinstance(target, Descriptor):
        return target.render()
    return str(target)
