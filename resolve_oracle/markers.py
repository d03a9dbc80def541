"""resolve_oracle/markers.py – Marker extraction for annotated fixtures.

A fixture is ordinary source text with two kinds of inline markers:

``~name~``
    Declaration marker.  Binds *name* to the offset of the opening ``~``.

```` `payload` ````
    Reference marker, keyed by the offset of the opening backtick.  When the
    payload starts with ``:`` it is a *type assertion* instead, keyed by the
    offset just before the marker (the end of the expression it annotates).

Markers are stripped one at a time, left to right, and every search after a
strip runs on the shortened text.  All recorded offsets therefore index the
final, fully stripped text::

    >>> fx = extract("val ~a~a = 1; val b = `a`a")
    >>> fx.text
    'val a = 1; val b = a'
    >>> fx.tables.declarations, fx.tables.references
    ({'a': 4}, {19: 'a'})
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Final, List, Optional, Tuple

from resolve_oracle.errors import (
    DanglingTypeAssertionError,
    DuplicateDeclarationError,
    DuplicateMarkerPositionError,
    SourceSpan,
)

logger = logging.getLogger(__name__)

__all__ = [
    "MARKER_PATTERN",
    "MarkerKind",
    "Marker",
    "Sentinel",
    "PayloadKind",
    "ExpectationTables",
    "ExtractedFixture",
    "classify_payload",
    "extract",
    "strip_markers",
]

MARKER_PATTERN: Final = re.compile(r"(~[^~]+~)|(`[^`]+`)")

STD_PREFIX: Final[str] = "std::"
PARAMETER_PREFIX: Final[str] = "$"
TYPE_PREFIX: Final[str] = ":"


class MarkerKind(enum.Enum):
    DECLARATION = "declaration"
    REFERENCE = "reference"
    TYPE = "type"


@dataclass(frozen=True, slots=True)
class Marker:
    """One marker occurrence, in discovery order.

    ``offset`` is the table key (already shifted by one for type markers);
    ``start`` is where the marker itself began in the stripped text.
    """

    kind: MarkerKind
    payload: str
    offset: int
    start: int
    raw: str


class Sentinel(enum.Enum):
    """Reserved reference payloads that assert a non-identity outcome."""

    UNRESOLVED = "!"
    AMBIGUOUS = "!!"
    NULL = "!null"
    ERROR = "!error"

    @classmethod
    def from_payload(cls, payload: str) -> Optional["Sentinel"]:
        try:
            return cls(payload)
        except ValueError:
            return None

    @property
    def description(self) -> str:
        return _SENTINEL_DESCRIPTIONS[self]


_SENTINEL_DESCRIPTIONS: Final[Dict[Sentinel, str]] = {
    Sentinel.UNRESOLVED: "unresolved",
    Sentinel.AMBIGUOUS: "resolved to multiple descriptors",
    Sentinel.NULL: "resolved to null",
    Sentinel.ERROR: "resolved to error",
}


class PayloadKind(enum.Enum):
    SENTINEL = "sentinel"
    CONSTRUCTOR_PARAMETER = "constructor-parameter"
    EXTERNAL = "external"
    NAME = "name"


def classify_payload(
    payload: str,
    *,
    std_prefix: str = STD_PREFIX,
    parameter_prefix: str = PARAMETER_PREFIX,
) -> PayloadKind:
    """Classify a reference payload by its surface form alone.

    This does not consult any declaration table: a ``$p`` payload is only
    redirected through the constructor parameter when no declaration is
    literally named ``$p``.
    """
    if Sentinel.from_payload(payload) is not None:
        return PayloadKind.SENTINEL
    if payload.startswith(std_prefix):
        return PayloadKind.EXTERNAL
    if payload.startswith(parameter_prefix):
        return PayloadKind.CONSTRUCTOR_PARAMETER
    return PayloadKind.NAME


@dataclass
class ExpectationTables:
    """The three lookup tables produced by :func:`extract`."""

    declarations: Dict[str, int] = field(default_factory=dict)
    references: Dict[int, str] = field(default_factory=dict)
    type_assertions: Dict[int, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.declarations or self.references or self.type_assertions)

    def positions(self) -> List[int]:
        """Every recorded offset across all three tables, sorted."""
        return sorted(
            {
                *self.declarations.values(),
                *self.references.keys(),
                *self.type_assertions.keys(),
            }
        )

    def to_dict(self) -> Dict[str, Dict[str, object]]:
        return {
            "declarations": dict(self.declarations),
            "references": {str(k): v for k, v in sorted(self.references.items())},
            "type_assertions": {str(k): v for k, v in sorted(self.type_assertions.items())},
        }


@dataclass
class ExtractedFixture:
    text: str
    tables: ExpectationTables
    markers: List[Marker] = field(default_factory=list)
    filename: str = "<fixture>"

    def span(self, offset: int) -> SourceSpan:
        return SourceSpan.from_offset(self.text, offset, self.filename)


def extract(raw_text: str, *, filename: str = "<fixture>") -> ExtractedFixture:
    """Strip all markers from *raw_text* and build the expectation tables.

    Raises :class:`DuplicateDeclarationError` on a repeated ``~name~``,
    :class:`DuplicateMarkerPositionError` when two reference (or two type)
    markers end up on the same offset and :class:`DanglingTypeAssertionError`
    for a type marker at the very start of the text.
    """
    text = raw_text
    tables = ExpectationTables()
    markers: List[Marker] = []

    while True:
        match = MARKER_PATTERN.search(text)
        if match is None:
            break

        raw = match.group()
        payload = raw[1:-1]
        start = match.start()

        if raw.startswith("~"):
            previous = tables.declarations.get(payload)
            if previous is not None:
                raise DuplicateDeclarationError(
                    payload,
                    position=start,
                    previous_position=previous,
                    span=SourceSpan.from_offset(text, start, filename),
                )
            tables.declarations[payload] = start
            markers.append(Marker(MarkerKind.DECLARATION, payload, start, start, raw))
        elif payload.startswith(TYPE_PREFIX):
            type_name = payload[len(TYPE_PREFIX):]
            key = start - 1
            if key < 0:
                raise DanglingTypeAssertionError(
                    type_name, span=SourceSpan.from_offset(text, start, filename)
                )
            _put_unique(tables.type_assertions, key, type_name, "type", text, filename)
            markers.append(Marker(MarkerKind.TYPE, type_name, key, start, raw))
        else:
            _put_unique(tables.references, start, payload, "reference", text, filename)
            markers.append(Marker(MarkerKind.REFERENCE, payload, start, start, raw))

        text = text[:start] + text[match.end():]

    logger.debug(
        "%s: stripped %d marker(s): %d declaration(s), %d reference(s), %d type assertion(s)",
        filename,
        len(markers),
        len(tables.declarations),
        len(tables.references),
        len(tables.type_assertions),
    )
    logger.debug("%s: clean text:\n%s", filename, text)
    return ExtractedFixture(text=text, tables=tables, markers=markers, filename=filename)


def _put_unique(
    table: Dict[int, str],
    key: int,
    payload: str,
    label: str,
    text: str,
    filename: str,
) -> None:
    previous = table.get(key)
    if previous is not None:
        raise DuplicateMarkerPositionError(
            key,
            payload,
            previous,
            label,
            span=SourceSpan.from_offset(text, key, filename),
        )
    table[key] = payload


def strip_markers(raw_text: str) -> str:
    """Return *raw_text* with every marker removed."""
    return extract(raw_text).text


def marker_summary(fixture: ExtractedFixture) -> List[Tuple[str, int, str]]:
    """``(kind, offset, payload)`` triples in discovery order, for display."""
    return [(m.kind.value, m.offset, m.payload) for m in fixture.markers]
