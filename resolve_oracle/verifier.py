"""
Resolution Verifier

Checks the expectation tables of an :class:`ExtractedFixture` against a
:class:`BindingModel` built over the fixture's clean text.

Three passes, in order:

1. Declarations – map every ``~name~`` to its enclosing declaration node.
   A marker outside any declaration aborts the fixture.
2. References – for every `` `payload` `` find the enclosing reference and
   check a sentinel predicate, entity identity, or an ``std::`` lookup.
3. Type assertions – for every `` `:T` `` compare the nominal type
   constructor of the expression before the marker with the one named.

Malformed-fixture and missing-context conditions raise immediately.
Mismatches are collected per table entry in a :class:`VerificationReport`
(or raised at once when ``OracleConfig.fail_fast`` is set).
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Tuple,
)

from resolve_oracle.config import OracleConfig
from resolve_oracle.errors import (
    MisplacedDeclarationMarkerError,
    MissingConstructorParameterError,
    MissingDescriptorError,
    MissingExpressionContextError,
    MissingReferenceContextError,
    MissingTypeError,
    ResolutionMismatchError,
    SentinelMismatchError,
    SourceSpan,
    TargetMismatchError,
    TypeConstructorMismatchError,
    UndeclaredNameError,
    UnknownExternalClassifierError,
    UnsupportedTypeAssertionError,
    VerificationFailedError,
)
from resolve_oracle.markers import (
    ExtractedFixture,
    PayloadKind,
    Sentinel,
    classify_payload,
)
from resolve_oracle.model import (
    BindingModel,
    ExternalLibrary,
    Renderer,
    default_renderer,
)

logger = logging.getLogger(__name__)

__all__ = [
    "CheckKind",
    "CheckResult",
    "VerificationReport",
    "ResolutionVerifier",
    "verify",
]


# ============================================================================
# Report
# ============================================================================


class CheckKind(enum.Enum):
    REFERENCE = "reference"
    TYPE = "type"


@dataclass
class CheckResult:
    """Outcome of one reference or type-assertion entry."""
    kind: CheckKind
    position: int
    payload: str
    error: Optional[ResolutionMismatchError] = None

    @property
    def passed(self) -> bool:
        return self.error is None

    def describe(self) -> str:
        status = "ok" if self.passed else "FAILED"
        marker = f":{self.payload}" if self.kind is CheckKind.TYPE else self.payload
        return f"{self.kind.value} `{marker}` @{self.position}: {status}"


@dataclass
class VerificationReport:
    filename: str
    results: List[CheckResult] = field(default_factory=list)
    declarations: Dict[str, Any] = field(default_factory=dict)

    @property
    def failures(self) -> List[ResolutionMismatchError]:
        return [r.error for r in self.results if r.error is not None]

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    def raise_for_failures(self) -> None:
        failures = self.failures
        if failures:
            raise VerificationFailedError(failures, filename=self.filename)

    def summary(self) -> str:
        failed = len(self.failures)
        return (
            f"{self.filename}: {len(self.results)} check(s), "
            f"{len(self.results) - failed} passed, {failed} failed"
        )


# ============================================================================
# Verifier
# ============================================================================


@dataclass
class _VerificationContext:
    """Per-fixture state.  Built fresh by every :meth:`ResolutionVerifier.verify`."""
    fixture: ExtractedFixture
    declared: Dict[str, Any] = field(default_factory=dict)
    # id(node) -> marker name, for naming actual targets in messages
    names_by_node: Dict[int, str] = field(default_factory=dict)

    def span(self, position: int) -> SourceSpan:
        return self.fixture.span(position)


_SentinelCheck = Callable[[BindingModel, Any, Optional[Any]], bool]

_SENTINEL_CHECKS: Dict[Sentinel, _SentinelCheck] = {
    Sentinel.UNRESOLVED: lambda model, ref, target: model.is_unresolved(ref),
    Sentinel.AMBIGUOUS: lambda model, ref, target: model.is_ambiguous(ref),
    Sentinel.NULL: lambda model, ref, target: (
        target is None
        and not model.is_ambiguous(ref)
        and not model.is_error_entity(target)
    ),
    Sentinel.ERROR: lambda model, ref, target: model.is_error_entity(target),
}


class ResolutionVerifier:
    """
    Verifies extracted expectations against a resolver's binding model.

    ``external_descriptors`` maps literal ``std::...`` payloads to library
    descriptors for direct identity checks; ``external_elements`` maps
    payloads to declaration nodes that exist outside the fixture's own
    markers.
    """

    def __init__(
        self,
        model: BindingModel,
        library: ExternalLibrary,
        *,
        renderer: Renderer = default_renderer,
        external_descriptors: Optional[Mapping[str, Any]] = None,
        external_elements: Optional[Mapping[str, Any]] = None,
        config: Optional[OracleConfig] = None,
    ) -> None:
        self.model = model
        self.library = library
        self.renderer = renderer
        self.external_descriptors = dict(external_descriptors or {})
        self.external_elements = dict(external_elements or {})
        self.config = config or OracleConfig()

    def verify(self, fixture: ExtractedFixture) -> VerificationReport:
        ctx = _VerificationContext(fixture=fixture)
        report = VerificationReport(filename=fixture.filename)

        self._check_declarations(ctx)
        report.declarations = dict(ctx.declared)
        if self.config.check_declarations_only:
            return report

        tables = fixture.tables
        logger.debug("%s: checking %d reference(s)", fixture.filename, len(tables.references))
        for position, payload in sorted(tables.references.items()):
            self._run_check(ctx, report, CheckKind.REFERENCE, position, payload)

        logger.debug("%s: checking %d type assertion(s)", fixture.filename, len(tables.type_assertions))
        for position, type_name in sorted(tables.type_assertions.items()):
            self._run_check(ctx, report, CheckKind.TYPE, position, type_name)

        logger.info(report.summary())
        return report

    def _run_check(
        self,
        ctx: _VerificationContext,
        report: VerificationReport,
        kind: CheckKind,
        position: int,
        payload: str,
    ) -> None:
        check = self._check_reference if kind is CheckKind.REFERENCE else self._check_type
        result = CheckResult(kind=kind, position=position, payload=payload)
        try:
            check(ctx, position, payload)
        except ResolutionMismatchError as exc:
            logger.debug("%s", exc.to_gcc_format())
            if self.config.fail_fast:
                raise
            result.error = exc
        report.results.append(result)

    # ========================================================================
    # Pass 1: declarations
    # ========================================================================

    def _check_declarations(self, ctx: _VerificationContext) -> None:
        for name, position in ctx.fixture.tables.declarations.items():
            node = self.model.declaration_at(position)
            if node is None:
                raise MisplacedDeclarationMarkerError(name, span=ctx.span(position))
            ctx.declared[name] = node
            ctx.names_by_node[id(node)] = name
        logger.debug("%s: %d declaration(s) bound", ctx.fixture.filename, len(ctx.declared))

    # ========================================================================
    # Pass 2: references
    # ========================================================================

    def _check_reference(self, ctx: _VerificationContext, position: int, payload: str) -> None:
        span = ctx.span(position)
        reference = self.model.reference_at(position)
        if reference is None:
            raise MissingReferenceContextError(payload, span=span)

        kind = self._classify(payload)
        if kind is PayloadKind.SENTINEL:
            self._check_sentinel(Sentinel(payload), reference, span)
            return

        expected, via_parameter = self._expected_declaration(ctx, payload, kind)
        if expected is None:
            if kind is PayloadKind.EXTERNAL:
                self._check_external_reference(reference, payload, span)
                return
            raise UndeclaredNameError(payload, span=span)

        self._check_identity(ctx, reference, payload, expected, via_parameter, span)

    def _check_sentinel(self, sentinel: Sentinel, reference: Any, span: SourceSpan) -> None:
        target = self.model.resolve(reference)
        if _SENTINEL_CHECKS[sentinel](self.model, reference, target):
            return
        context = self.model.context_of(reference)
        raise SentinelMismatchError(
            f"Must have been {sentinel.description}: {context} "
            f"but was resolved to {self.renderer(target)}",
            payload=sentinel.value,
            span=span,
            expected=sentinel.description,
            actual=self.renderer(target),
        )

    def _expected_declaration(
        self, ctx: _VerificationContext, payload: str, kind: PayloadKind
    ) -> Tuple[Optional[Any], bool]:
        """Find the node a payload names.  The flag is set for ``$name`` redirection."""
        node = ctx.declared.get(payload)
        if node is not None:
            return node, False
        if kind is PayloadKind.CONSTRUCTOR_PARAMETER:
            node = ctx.declared.get(payload[len(self.config.parameter_prefix):])
            if node is not None:
                return node, True
        return self.external_elements.get(payload), False

    def _check_identity(
        self,
        ctx: _VerificationContext,
        reference: Any,
        payload: str,
        expected: Any,
        via_parameter: bool,
        span: SourceSpan,
    ) -> None:
        model = self.model
        actual = model.resolve_to_declaration(reference)

        if via_parameter or model.is_parameter(expected) or model.is_parameter(actual):
            # Parameters and the descriptors seen at call sites are different
            # objects, so compare on the descriptor side.
            if via_parameter:
                expected_descriptor = model.constructor_parameter_of(expected)
                if expected_descriptor is None:
                    raise MissingConstructorParameterError(
                        payload[len(self.config.parameter_prefix):], span=span
                    )
            else:
                expected_descriptor = model.descriptor_of(expected)
                if expected_descriptor is None:
                    raise MissingDescriptorError(self._name_of(ctx, expected), span=span)
            actual_descriptor = model.unwrap_variable(model.resolve(reference))
            matched = expected_descriptor == actual_descriptor
            expected_text = self.renderer(expected_descriptor)
            actual_text = self.renderer(actual_descriptor)
        else:
            matched = expected is actual
            expected_text = self._name_of(ctx, expected)
            actual_text = self._name_of(ctx, actual)

        if matched:
            return
        context = model.context_of(reference)
        error = TargetMismatchError(
            f"Reference `{payload}` {context} is resolved into {self._name_of(ctx, actual)}.",
            payload=payload,
            span=span,
            expected=expected_text,
            actual=actual_text,
        )
        error.add_note(f"expected: {expected_text}")
        error.add_note(f"actual: {actual_text}")
        raise error

    def _check_external_reference(self, reference: Any, payload: str, span: SourceSpan) -> None:
        model = self.model
        expected_descriptor = self.external_descriptors.get(payload)
        if expected_descriptor is not None:
            actual = model.resolve(reference)
            # Generic library functions are specialised per call site.
            if model.original_of(expected_descriptor) is not model.original_of(actual):
                raise TargetMismatchError(
                    f"Expected: {payload}, but {model.context_of(reference)} "
                    f"was resolved to {self.renderer(actual)}",
                    payload=payload,
                    span=span,
                    expected=self.renderer(expected_descriptor),
                    actual=self.renderer(actual),
                )
            return

        classifier = self._external_classifier(payload, span)
        actual_type = model.type_of(reference)
        if actual_type is None:
            raise MissingTypeError(
                f"Type {payload} not resolved for reference {model.context_of(reference)}",
                payload=payload,
                span=span,
                expected=payload,
            )
        if classifier.type_constructor is not actual_type.constructor:
            raise TypeConstructorMismatchError(
                f"Type resolution mismatch: {model.context_of(reference)} "
                f"has type {actual_type}, expected {payload}",
                payload=payload,
                span=span,
                expected=str(classifier.type_constructor),
                actual=str(actual_type.constructor),
            )

    # ========================================================================
    # Pass 3: type assertions
    # ========================================================================

    def _check_type(self, ctx: _VerificationContext, position: int, type_name: str) -> None:
        span = ctx.span(position)
        expression = self.model.expression_at(position)
        if expression is None:
            raise MissingExpressionContextError(type_name, span=span)

        expected = self._expected_type_constructor(ctx, type_name, span)
        actual_type = self.model.type_of(expression)
        context = self.model.context_of(expression)
        if actual_type is None:
            raise MissingTypeError(
                f"{context.text} type is null",
                payload=type_name,
                span=span,
                expected=type_name,
            )
        if actual_type.constructor is not expected:
            raise TypeConstructorMismatchError(
                f"At {position}: {context} has type {actual_type}, expected {type_name}",
                payload=type_name,
                span=span,
                expected=str(expected),
                actual=str(actual_type.constructor),
            )

    def _expected_type_constructor(
        self, ctx: _VerificationContext, type_name: str, span: SourceSpan
    ) -> Any:
        if self._classify(type_name) is PayloadKind.EXTERNAL:
            return self._external_classifier(type_name, span).type_constructor

        declaration = ctx.declared.get(type_name)
        if declaration is None:
            raise UndeclaredNameError(type_name, span=span)
        constructor = self.model.type_constructor_of(declaration)
        if constructor is None:
            raise UnsupportedTypeAssertionError(
                type_name, declaration=str(declaration), span=span
            )
        return constructor

    # ========================================================================
    # Helpers
    # ========================================================================

    def _classify(self, payload: str) -> PayloadKind:
        return classify_payload(
            payload,
            std_prefix=self.config.std_prefix,
            parameter_prefix=self.config.parameter_prefix,
        )

    def _external_classifier(self, payload: str, span: SourceSpan) -> Any:
        name = payload[len(self.config.std_prefix):]
        classifier = self.library.classifier(name)
        if classifier is None:
            raise UnknownExternalClassifierError(payload, span=span)
        return classifier

    def _name_of(self, ctx: _VerificationContext, node: Optional[Any]) -> str:
        if node is None:
            return "null"
        name = ctx.names_by_node.get(id(node))
        if name is not None:
            return name
        return str(node)


def verify(
    fixture: ExtractedFixture,
    model: BindingModel,
    library: ExternalLibrary,
    **kwargs: Any,
) -> VerificationReport:
    """Convenience wrapper: ``ResolutionVerifier(model, library, **kwargs).verify(fixture)``."""
    return ResolutionVerifier(model, library, **kwargs).verify(fixture)
