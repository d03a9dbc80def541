# fixturelang/ast_nodes.py
"""
fixturelang Abstract Syntax Tree node definitions.

Every node carries the character span it covers in the (marker-free)
source text.  The binding model locates declarations, references and
expressions by offset, so spans never include surrounding whitespace.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Iterator, List, Optional

import yaml


# ── Source Span ──────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Span:
    """Half-open character range ``[start, end)``."""
    start: int
    end: int

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    @property
    def size(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


# ── Base ─────────────────────────────────────────────────────────

_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass(eq=False)
class Node:
    """Base class for all AST nodes.  Compared and hashed by identity."""
    span: Span
    parent: Optional["Node"] = field(default=None, init=False, repr=False)

    is_declaration: ClassVar[bool] = False
    is_reference: ClassVar[bool] = False
    is_expression: ClassVar[bool] = False

    def children(self) -> Iterator["Node"]:
        for f in fields(self):
            if f.name == "parent":
                continue
            value = getattr(self, f.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, Node):
                        yield item

    def walk(self) -> Iterator["Node"]:
        """Pre-order traversal, parents before children."""
        yield self
        for child in self.children():
            yield from child.walk()

    def ancestors(self) -> Iterator["Node"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def text(self, source: str) -> str:
        return source[self.span.start:self.span.end]

    @classmethod
    def node_name(cls) -> str:
        return _CAMEL.sub("-", cls.__name__).lower()

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "node": self.node_name(),
            "span": [self.span.start, self.span.end],
        }
        for f in fields(self):
            if f.name in ("span", "parent", "name_span"):
                continue
            out[f.name] = _plain(getattr(self, f.name))
        return out


def _plain(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, Span):
        return [value.start, value.end]
    return value


# ── File ─────────────────────────────────────────────────────────

@dataclass(eq=False)
class Expression(Node):
    is_expression = True


@dataclass(eq=False)
class NameExpr(Expression):
    """A simple name used as a value, callee, member selector or package part."""
    name: str = ""

    is_reference = True


@dataclass(eq=False)
class PackageDirective(Node):
    names: List[NameExpr] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return ".".join(n.name for n in self.names)


@dataclass(eq=False)
class FileNode(Node):
    """Root AST node."""
    package: Optional[PackageDirective] = None
    declarations: List["Declaration"] = field(default_factory=list)


# ── Types ────────────────────────────────────────────────────────

@dataclass(eq=False)
class TypeNode(Node):
    nullable: bool = False


@dataclass(eq=False)
class NamedType(TypeNode):
    """``Name<Args>?`` – the name is a reference to a classifier."""
    name: str = ""
    name_span: Optional[Span] = None
    args: List[TypeNode] = field(default_factory=list)

    is_reference = True


@dataclass(eq=False)
class FunctionTypeNode(TypeNode):
    """``(A, B) -> R``"""
    params: List[TypeNode] = field(default_factory=list)
    result: Optional[TypeNode] = None


# ── Declarations ─────────────────────────────────────────────────

@dataclass(eq=False)
class Declaration(Node):
    name: str = ""
    name_span: Optional[Span] = None

    is_declaration = True
    keyword: ClassVar[str] = "declaration"

    def describe(self) -> str:
        return f"{self.keyword} {self.name}"


@dataclass(eq=False)
class TypeParamDecl(Declaration):
    keyword = "type parameter"


@dataclass(eq=False)
class CtorParamDecl(Declaration):
    """Constructor parameter; ``binding`` is ``"val"``, ``"var"`` or ``None``."""
    type_ref: Optional[TypeNode] = None
    binding: Optional[str] = None

    keyword = "constructor parameter"

    @property
    def declares_property(self) -> bool:
        return self.binding is not None


@dataclass(eq=False)
class ValueParamDecl(Declaration):
    type_ref: Optional[TypeNode] = None

    keyword = "parameter"


@dataclass(eq=False)
class PropertyDecl(Declaration):
    """``val``/``var`` at top level, in a class body, or as a local in a block."""
    mutable: bool = False
    type_ref: Optional[TypeNode] = None
    initializer: Optional["Expression"] = None

    keyword = "val"

    def describe(self) -> str:
        return f"{'var' if self.mutable else 'val'} {self.name}"


@dataclass(eq=False)
class FunDecl(Declaration):
    type_params: List[TypeParamDecl] = field(default_factory=list)
    params: List[ValueParamDecl] = field(default_factory=list)
    return_type: Optional[TypeNode] = None
    # Expression for ``= expr`` bodies, Block for ``{ ... }``
    body: Optional[Node] = None

    keyword = "fun"


@dataclass(eq=False)
class ClassDecl(Declaration):
    type_params: List[TypeParamDecl] = field(default_factory=list)
    ctor_params: List[CtorParamDecl] = field(default_factory=list)
    members: List[Declaration] = field(default_factory=list)

    keyword = "class"


@dataclass(eq=False)
class Block(Node):
    statements: List[Node] = field(default_factory=list)


# ── Expressions ──────────────────────────────────────────────────

@dataclass(eq=False)
class IntLiteral(Expression):
    value: int = 0


@dataclass(eq=False)
class StringLiteral(Expression):
    value: str = ""


@dataclass(eq=False)
class BoolLiteral(Expression):
    value: bool = False


@dataclass(eq=False)
class NullLiteral(Expression):
    pass


@dataclass(eq=False)
class CallableRefExpr(Expression):
    """``::name``"""
    target: Optional[NameExpr] = None


@dataclass(eq=False)
class ParenExpr(Expression):
    inner: Optional[Expression] = None


@dataclass(eq=False)
class IfExpr(Expression):
    condition: Optional[Expression] = None
    then_branch: Optional[Expression] = None
    else_branch: Optional[Expression] = None


@dataclass(eq=False)
class CallExpr(Expression):
    callee: Optional[Expression] = None
    args: List[Expression] = field(default_factory=list)


@dataclass(eq=False)
class MemberAccess(Expression):
    receiver: Optional[Expression] = None
    selector: Optional[NameExpr] = None


@dataclass(eq=False)
class OperatorRef(Node):
    """The operator token of a binary expression; resolves to a member function."""
    symbol: str = ""

    is_reference = True


@dataclass(eq=False)
class BinaryExpr(Expression):
    left: Optional[Expression] = None
    operator: Optional[OperatorRef] = None
    right: Optional[Expression] = None


# ── Tree utilities ───────────────────────────────────────────────

def link_parents(root: Node) -> Node:
    """Set ``parent`` on every node below *root*."""
    for node in root.walk():
        for child in node.children():
            child.parent = node
    return root


def statement_of(node: Node) -> Node:
    """The outermost expression containing *node*, or *node* itself."""
    current = node
    while current.parent is not None and current.parent.is_expression:
        current = current.parent
    return current


def enclosing_declaration(node: Node) -> Optional[Declaration]:
    for ancestor in node.ancestors():
        if isinstance(ancestor, Declaration):
            return ancestor
    return None


def dump_yaml(node: Node) -> str:
    return yaml.safe_dump(node.to_dict(), sort_keys=False, default_flow_style=None)


def dump_json(node: Node, indent: int = 2) -> str:
    return json.dumps(node.to_dict(), indent=indent)
