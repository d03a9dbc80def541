"""
fixturelang lexical scopes

A :class:`Scope` maps a name to every symbol declared under it at that
level, so function overloads can sit side by side.  Lookup walks outwards
and stops at the first level that has a symbol of an acceptable kind:
an inner local shadows an outer function of the same name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Collection, Dict, Iterator, List, Optional

SYMBOL_KINDS = ("class", "type-parameter", "function", "property", "parameter", "variable")
VALUE_KINDS = frozenset({"property", "parameter", "variable"})
CLASSIFIER_KINDS = frozenset({"class", "type-parameter"})


@dataclass(frozen=True, slots=True)
class Symbol:
    """A declared name.  ``node`` is ``None`` for ``std`` entries."""
    name: str
    kind: str
    descriptor: Any
    node: Any = None


class Scope:
    """
    A lexical scope containing symbol bindings.
    Supports nested scopes with parent lookup.
    """

    def __init__(
        self,
        name: str,
        parent: Optional[Scope] = None,
        kind: str = "block",
    ) -> None:
        self.name = name
        self.parent = parent
        self.kind = kind  # "std", "file", "class", "constructor", "function", "block"
        self._symbols: Dict[str, List[Symbol]] = {}

    def child(self, name: str, kind: str = "block") -> Scope:
        return Scope(name, parent=self, kind=kind)

    def define(self, symbol: Symbol) -> Optional[Symbol]:
        """
        Define a symbol in this scope.
        Returns the previous definition if there was a conflict, None otherwise.
        Functions never conflict with each other (overloads).
        """
        existing = self._symbols.setdefault(symbol.name, [])
        conflict = None
        for previous in existing:
            if symbol.kind == "function" and previous.kind == "function":
                continue
            conflict = previous
            break
        existing.append(symbol)
        return conflict

    def lookup_local(self, name: str) -> List[Symbol]:
        """Symbols for *name* in this scope only (no parent lookup)."""
        return list(self._symbols.get(name, ()))

    def lookup_all(self, name: str, kinds: Optional[Collection[str]] = None) -> List[Symbol]:
        """Symbols at the innermost level that declares *name* with one of *kinds*."""
        scope: Optional[Scope] = self
        while scope is not None:
            found = [
                s for s in scope._symbols.get(name, ())
                if kinds is None or s.kind in kinds
            ]
            if found:
                return found
            scope = scope.parent
        return []

    def levels(self) -> Iterator[Scope]:
        """This scope, then each enclosing one."""
        scope: Optional[Scope] = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def lookup_classifier(self, name: str) -> Optional[Symbol]:
        found = self.lookup_all(name, CLASSIFIER_KINDS)
        return found[0] if found else None

    def all_symbols(self) -> Iterator[Symbol]:
        for overloads in self._symbols.values():
            yield from overloads

    def __repr__(self) -> str:
        return f"Scope({self.name!r}, kind={self.kind!r}, names={sorted(self._symbols)})"
