"""
fixturelang ``std`` namespace

Built fresh for every analysis so that no state (and no type-constructor
identity) leaks between fixtures.  Doubles as the verifier's external
library: :meth:`StdLibrary.classifier` answers ``std::Name`` lookups.

Contents::

    classes    Any Unit Int String Boolean Nothing List<T>
    members    Any.equals Any.toString
               Int.plus Int.minus Int.times Int.div Int.rem Int.compareTo Int.toString
               String.length String.plus
               List.size List.get
    functions  println(Any) listOf<T>(T) identity<T>(T)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from fixturelang.descriptors import (
    CallableDescriptor,
    ClassDescriptor,
    Descriptor,
    FunctionDescriptor,
    PropertyDescriptor,
    TypeParameterDescriptor,
    ValueParameterDescriptor,
)
from fixturelang.scopes import Scope, Symbol
from fixturelang.types import ConstructorKind, KType, TypeConstructor

logger = logging.getLogger(__name__)

STD_CLASS_NAMES = ("Any", "Unit", "Int", "String", "Boolean", "Nothing")


class StdLibrary:
    """The built-in classes and functions every fixture can see."""

    def __init__(self) -> None:
        self.classes: Dict[str, ClassDescriptor] = {}
        self.functions: Dict[str, List[FunctionDescriptor]] = {}
        self._function_classes: Dict[int, ClassDescriptor] = {}

        for name in STD_CLASS_NAMES:
            self._new_class(name)
        self.classes["Any"].type_constructor.is_top = True
        self.classes["Nothing"].type_constructor.is_bottom = True

        list_class = self._new_class("List", type_parameters=("T",))
        list_t = self._param_type(list_class, 0)

        any_t, int_t, string_t, boolean_t = self.any_type, self.int_type, self.string_type, self.boolean_type
        unit_t = self.unit_type

        self._member("Any", "equals", [("other", any_t.make_nullable())], boolean_t)
        self._member("Any", "toString", [], string_t)

        for op in ("plus", "minus", "times", "div", "rem", "compareTo"):
            self._member("Int", op, [("other", int_t)], int_t)
        self._member("Int", "toString", [], string_t)

        self._property("String", "length", int_t)
        self._member("String", "plus", [("other", any_t.make_nullable())], string_t)

        self._property("List", "size", int_t)
        self._member("List", "get", [("index", int_t)], list_t)

        self._function("println", [("message", any_t)], unit_t)
        self._function("listOf", [("element", None)], None, type_parameters=("T",), returns_list=True)
        self._function("identity", [("value", None)], None, type_parameters=("T",))

        self._scope = self._build_scope()

    # ─────────────────────────────────────────────────────────────
    # Lookups
    # ─────────────────────────────────────────────────────────────

    def classifier(self, name: str) -> Optional[ClassDescriptor]:
        """``std::Name`` lookup for the verifier."""
        found = self.classes.get(name)
        if found is None:
            for cls in self._function_classes.values():
                if cls.name == name:
                    return cls
        return found

    def function(self, qualified: str) -> Optional[Descriptor]:
        """``"println"`` or ``"Int.plus"``; the first overload when there are several."""
        owner, _, name = qualified.rpartition(".")
        if owner:
            cls = self.classes.get(owner)
            candidates = cls.members_named(name) if cls else []
        else:
            candidates = self.functions.get(name, [])
        return candidates[0] if candidates else None

    def scope(self) -> Scope:
        return self._scope

    @property
    def any_class(self) -> ClassDescriptor:
        return self.classes["Any"]

    @property
    def any_type(self) -> KType:
        return self._type("Any")

    @property
    def unit_type(self) -> KType:
        return self._type("Unit")

    @property
    def int_type(self) -> KType:
        return self._type("Int")

    @property
    def string_type(self) -> KType:
        return self._type("String")

    @property
    def boolean_type(self) -> KType:
        return self._type("Boolean")

    @property
    def nothing_type(self) -> KType:
        return self._type("Nothing")

    def function_type(self, params: Sequence[KType], result: KType, nullable: bool = False) -> KType:
        """``(P1, ..., Pn) -> R`` as ``FunctionN<P1, ..., Pn, R>``."""
        cls = self._function_class(len(params))
        return KType(cls.type_constructor, tuple(params) + (result,), nullable)

    def is_function_type(self, t: KType) -> bool:
        descriptor = t.constructor.descriptor
        return any(descriptor is cls for cls in self._function_classes.values())

    # ─────────────────────────────────────────────────────────────
    # Construction helpers
    # ─────────────────────────────────────────────────────────────

    def _type(self, name: str) -> KType:
        return KType(self.classes[name].type_constructor)

    def _new_class(self, name: str, type_parameters: Sequence[str] = ()) -> ClassDescriptor:
        cls = ClassDescriptor(name=name)
        cls.type_constructor = TypeConstructor(name, ConstructorKind.CLASS, descriptor=cls)
        for tp_name in type_parameters:
            tp = TypeParameterDescriptor(name=tp_name, container=cls)
            tp.type_constructor = TypeConstructor(tp_name, ConstructorKind.TYPE_PARAMETER, descriptor=tp)
            cls.type_parameters.append(tp)
        if not name.startswith("Function"):
            self.classes[name] = cls
        return cls

    @staticmethod
    def _param_type(cls: ClassDescriptor, index: int) -> KType:
        return KType(cls.type_parameters[index].type_constructor)

    def _function_class(self, arity: int) -> ClassDescriptor:
        cls = self._function_classes.get(arity)
        if cls is None:
            names = [f"P{i + 1}" for i in range(arity)] + ["R"]
            cls = self._new_class(f"Function{arity}", type_parameters=names)
            self._function_classes[arity] = cls
        return cls

    def _fill_callable(self, fn: CallableDescriptor, params, return_type: KType) -> None:
        for index, (pname, ptype) in enumerate(params):
            fn.value_parameters.append(
                ValueParameterDescriptor(name=pname, container=fn, type=ptype, index=index)
            )
        fn.return_type = return_type

    def _member(self, owner: str, name: str, params, return_type: KType) -> FunctionDescriptor:
        cls = self.classes[owner]
        fn = FunctionDescriptor(name=name, container=cls)
        self._fill_callable(fn, params, return_type)
        cls.add_member(fn)
        return fn

    def _property(self, owner: str, name: str, prop_type: KType) -> PropertyDescriptor:
        cls = self.classes[owner]
        prop = PropertyDescriptor(name=name, container=cls, type=prop_type)
        cls.add_member(prop)
        return prop

    def _function(
        self,
        name: str,
        params,
        return_type: Optional[KType],
        *,
        type_parameters: Sequence[str] = (),
        returns_list: bool = False,
    ) -> FunctionDescriptor:
        """Top-level function; ``None`` parameter/return types mean the sole type parameter."""
        fn = FunctionDescriptor(name=name)
        for tp_name in type_parameters:
            tp = TypeParameterDescriptor(name=tp_name, container=fn)
            tp.type_constructor = TypeConstructor(tp_name, ConstructorKind.TYPE_PARAMETER, descriptor=tp)
            fn.type_parameters.append(tp)
        type_var = KType(fn.type_parameters[0].type_constructor) if fn.type_parameters else None
        params = [(pname, ptype if ptype is not None else type_var) for pname, ptype in params]
        if return_type is None:
            return_type = type_var
            if returns_list:
                return_type = KType(self.classes["List"].type_constructor, (type_var,))
        self._fill_callable(fn, params, return_type)
        self.functions.setdefault(name, []).append(fn)
        return fn

    def _build_scope(self) -> Scope:
        scope = Scope("std", kind="std")
        for cls in self.classes.values():
            scope.define(Symbol(cls.name, "class", cls, None))
        for overloads in self.functions.values():
            for fn in overloads:
                scope.define(Symbol(fn.name, "function", fn, None))
        logger.debug("std scope: %d classes, %d functions", len(self.classes), len(self.functions))
        return scope
