"""resolve_oracle/model.py – What the verifier needs from a resolver.

The verifier never looks inside a resolver.  It talks to a
:class:`BindingModel` built over the marker-stripped text, an
:class:`ExternalLibrary` for ``std::`` names, and a renderer used only to
make failure messages readable.  Nodes, descriptors and types are opaque
to this package; the only attribute it reads is ``constructor`` on a type
handle and ``type_constructor`` on a library classifier.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable

__all__ = [
    "NodeContext",
    "TypeHandle",
    "Classifier",
    "BindingModel",
    "ExternalLibrary",
    "Renderer",
    "default_renderer",
]


@dataclass(frozen=True, slots=True)
class NodeContext:
    """Where a node sits in the source, for failure messages."""

    text: str
    location: str
    statement: str = ""
    declaration: str = ""

    def render(self) -> str:
        out = f"{self.text} at {self.location}"
        if self.statement and self.statement != self.text:
            out += f" in {self.statement}"
        if self.declaration:
            out += f" in {self.declaration}"
        return out

    def __str__(self) -> str:
        return self.render()


@runtime_checkable
class TypeHandle(Protocol):
    @property
    def constructor(self) -> Any: ...


@runtime_checkable
class Classifier(Protocol):
    @property
    def type_constructor(self) -> Any: ...


@runtime_checkable
class BindingModel(Protocol):
    """Queryable result of name and type resolution over one source text.

    Position lookups return the *innermost* node of the requested kind that
    encloses the offset, or ``None``.
    """

    def declaration_at(self, position: int) -> Optional[Any]: ...

    def reference_at(self, position: int) -> Optional[Any]: ...

    def expression_at(self, position: int) -> Optional[Any]: ...

    def resolve(self, reference: Any) -> Optional[Any]:
        """Descriptor the reference resolves to, or ``None``."""
        ...

    def resolve_to_declaration(self, reference: Any) -> Optional[Any]:
        """Declaration node of the resolved target, or ``None``."""
        ...

    def is_unresolved(self, reference: Any) -> bool: ...

    def is_ambiguous(self, reference: Any) -> bool: ...

    def is_error_entity(self, target: Optional[Any]) -> bool: ...

    def type_of(self, node: Any) -> Optional[TypeHandle]: ...

    def descriptor_of(self, declaration: Any) -> Optional[Any]: ...

    def constructor_parameter_of(self, declaration: Any) -> Optional[Any]: ...

    def is_parameter(self, declaration: Optional[Any]) -> bool: ...

    def unwrap_variable(self, target: Optional[Any]) -> Optional[Any]:
        """Underlying variable of a call-through-variable target, else *target*."""
        ...

    def original_of(self, target: Optional[Any]) -> Optional[Any]:
        """Generic (unsubstituted) form of *target*."""
        ...

    def type_constructor_of(self, declaration: Any) -> Optional[Any]:
        """Type constructor of a class or type-parameter declaration, else ``None``."""
        ...

    def context_of(self, node: Any) -> NodeContext: ...


@runtime_checkable
class ExternalLibrary(Protocol):
    def classifier(self, name: str) -> Optional[Classifier]: ...


Renderer = Callable[[Optional[Any]], str]


def default_renderer(target: Optional[Any]) -> str:
    if target is None:
        return "null"
    return str(target)
