"""
fixturelang binding model

:class:`BindingContext` is what the analyzer writes while it resolves a
file: one entry per reference node (target, ambiguity or failure), per
expression node (type) and per declaration node (descriptor).

:class:`FixtureBindingModel` answers the verifier's position and node
queries over that context.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from fixturelang.ast_nodes import (
    CtorParamDecl,
    Declaration,
    FileNode,
    Node,
    ValueParamDecl,
    enclosing_declaration,
    statement_of,
)
from fixturelang.descriptors import (
    ClassDescriptor,
    Descriptor,
    ErrorDescriptor,
    TypeParameterDescriptor,
    ValueParameterDescriptor,
    VariableAsFunctionDescriptor,
)
from fixturelang.types import KType, TypeConstructor
from resolve_oracle.errors import SourceSpan
from resolve_oracle.model import NodeContext

logger = logging.getLogger(__name__)


@dataclass
class BindingContext:
    """Resolution results keyed by AST node (nodes hash by identity)."""
    targets: Dict[Node, Descriptor] = field(default_factory=dict)
    ambiguous: Dict[Node, List[Descriptor]] = field(default_factory=dict)
    unresolved: Set[Node] = field(default_factory=set)
    types: Dict[Node, KType] = field(default_factory=dict)
    declarations: Dict[Declaration, Descriptor] = field(default_factory=dict)
    constructor_parameters: Dict[CtorParamDecl, ValueParameterDescriptor] = field(default_factory=dict)

    def record(self, reference: Node, target: Descriptor) -> None:
        self.targets[reference] = target
        self.unresolved.discard(reference)
        self.ambiguous.pop(reference, None)

    def mark_ambiguous(self, reference: Node, candidates: List[Descriptor]) -> None:
        self.targets.pop(reference, None)
        self.ambiguous[reference] = list(candidates)

    def mark_unresolved(self, reference: Node) -> None:
        self.targets.pop(reference, None)
        self.unresolved.add(reference)

    def record_type(self, node: Node, t: KType) -> None:
        self.types[node] = t


class FixtureBindingModel:
    """Implements :class:`resolve_oracle.model.BindingModel` for fixturelang."""

    def __init__(
        self,
        file: FileNode,
        context: BindingContext,
        source: str,
        filename: str = "<fixture>",
    ) -> None:
        self.file = file
        self.context = context
        self.source = source
        self.filename = filename
        self._index: List[Tuple[Node, int]] = []
        self._build_index(file, 0)
        logger.debug("%s: indexed %d node(s)", filename, len(self._index))

    def _build_index(self, node: Node, depth: int) -> None:
        self._index.append((node, depth))
        for child in node.children():
            self._build_index(child, depth + 1)

    def _innermost(self, position: int, accept: Callable[[Node], bool]) -> Optional[Node]:
        best: Optional[Node] = None
        best_key: Optional[Tuple[int, int]] = None
        for node, depth in self._index:
            if not accept(node) or not node.span.contains(position):
                continue
            key = (node.span.size, -depth)
            if best_key is None or key < best_key:
                best, best_key = node, key
        return best

    # ─────────────────────────────────────────────────────────────
    # Position lookups
    # ─────────────────────────────────────────────────────────────

    def declaration_at(self, position: int) -> Optional[Node]:
        return self._innermost(position, lambda n: n.is_declaration)

    def reference_at(self, position: int) -> Optional[Node]:
        return self._innermost(position, lambda n: n.is_reference)

    def expression_at(self, position: int) -> Optional[Node]:
        return self._innermost(position, lambda n: n.is_expression)

    # ─────────────────────────────────────────────────────────────
    # Resolution
    # ─────────────────────────────────────────────────────────────

    def resolve(self, reference: Node) -> Optional[Descriptor]:
        return self.context.targets.get(reference)

    def resolve_to_declaration(self, reference: Node) -> Optional[Node]:
        target = self.unwrap_variable(self.resolve(reference))
        if target is None:
            return None
        return target.original.declaration

    def is_unresolved(self, reference: Node) -> bool:
        return reference in self.context.unresolved

    def is_ambiguous(self, reference: Node) -> bool:
        return reference in self.context.ambiguous

    def is_error_entity(self, target: Optional[Any]) -> bool:
        return isinstance(target, ErrorDescriptor)

    def type_of(self, node: Node) -> Optional[KType]:
        return self.context.types.get(node)

    def descriptor_of(self, declaration: Node) -> Optional[Descriptor]:
        return self.context.declarations.get(declaration)

    def constructor_parameter_of(self, declaration: Node) -> Optional[ValueParameterDescriptor]:
        return self.context.constructor_parameters.get(declaration)

    def is_parameter(self, declaration: Optional[Node]) -> bool:
        return isinstance(declaration, (ValueParamDecl, CtorParamDecl))

    def unwrap_variable(self, target: Optional[Any]) -> Optional[Any]:
        if isinstance(target, VariableAsFunctionDescriptor):
            return target.variable
        return target

    def original_of(self, target: Optional[Any]) -> Optional[Any]:
        if isinstance(target, Descriptor):
            return target.original
        return target

    def type_constructor_of(self, declaration: Node) -> Optional[TypeConstructor]:
        descriptor = self.context.declarations.get(declaration)
        if isinstance(descriptor, (ClassDescriptor, TypeParameterDescriptor)):
            return descriptor.type_constructor
        return None

    def context_of(self, node: Node) -> NodeContext:
        span = SourceSpan.from_offset(self.source, node.span.start, self.filename)
        owner = enclosing_declaration(node)
        return NodeContext(
            text=node.text(self.source),
            location=f"{span.line}:{span.column}",
            statement=statement_of(node).text(self.source),
            declaration=owner.describe() if owner is not None else "",
        )
